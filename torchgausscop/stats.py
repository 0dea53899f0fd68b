"""Numeric primitives — normal CDF/quantile, log1m, Owen's T."""

from __future__ import annotations

import math
from functools import lru_cache

import torch


def _as_tensor(x, *, device=None, dtype=None):
    if torch.is_tensor(x):
        t = x
        if device is not None:
            t = t.to(device=device)
        if dtype is not None:
            t = t.to(dtype=dtype)
        return t
    # Plain Python numbers default to double precision.
    return torch.as_tensor(x, device=device, dtype=torch.float64 if dtype is None else dtype)


def dnorm(x: torch.Tensor) -> torch.Tensor:
    x = _as_tensor(x)
    inv_sqrt_2pi = 0.39894228040143270286
    return inv_sqrt_2pi * torch.exp(-0.5 * x * x)


def pnorm(x: torch.Tensor) -> torch.Tensor:
    x = _as_tensor(x)
    # erfc keeps relative accuracy in the lower tail (and, via pnorm(-x), the upper one).
    return 0.5 * torch.erfc(-x / math.sqrt(2.0))


def qnorm(u: torch.Tensor) -> torch.Tensor:
    u = _as_tensor(u)
    # torch.special.ndtri is the inverse of the standard normal CDF
    return torch.special.ndtri(u)


def log1m(x: torch.Tensor) -> torch.Tensor:
    """log(1 - x) without cancellation for small ``x``."""
    x = _as_tensor(x)
    return torch.log1p(-x)


@lru_cache(maxsize=16)
def _gauss_legendre_cpu(n: int) -> tuple[torch.Tensor, torch.Tensor]:
    # Golub-Welsch: nodes are the eigenvalues of the Jacobi matrix of the
    # Legendre recurrence, weights 2 * (first eigenvector component)^2.
    k = torch.arange(1, n, dtype=torch.float64)
    beta = k / torch.sqrt(4.0 * k * k - 1.0)
    J = torch.diag(beta, 1) + torch.diag(beta, -1)
    nodes, vecs = torch.linalg.eigh(J)
    weights = 2.0 * vecs[0, :] ** 2
    return nodes, weights


def gauss_legendre(n: int, *, device=None, dtype=None) -> tuple[torch.Tensor, torch.Tensor]:
    """Gauss-Legendre nodes and weights on [-1, 1].

    Parameters
    ----------
    n : int
        Number of nodes (>= 1).
    device, dtype : optional
        Where to place the returned tensors (default CPU / float64).

    Returns
    -------
    (nodes, weights) : tuple of torch.Tensor, each of shape (n,)
    """
    n = int(n)
    if n < 1:
        raise ValueError("n must be >= 1")
    if n == 1:
        nodes = torch.zeros(1, dtype=torch.float64)
        weights = torch.full((1,), 2.0, dtype=torch.float64)
    else:
        nodes, weights = _gauss_legendre_cpu(n)
    dtype = torch.float64 if dtype is None else dtype
    return nodes.to(device=device, dtype=dtype), weights.to(device=device, dtype=dtype)


def _owens_t_quad(h: torch.Tensor, a: torch.Tensor, n_nodes: int) -> torch.Tensor:
    # (1/2pi) * int_0^a exp(-h^2 (1+x^2)/2) / (1+x^2) dx, for |a| <= 1; odd in a.
    x, w = gauss_legendre(n_nodes, device=h.device, dtype=h.dtype)
    t = 0.5 * a[..., None] * (x + 1.0)
    one_t2 = 1.0 + t * t
    f = torch.exp(-0.5 * (h * h)[..., None] * one_t2) / one_t2
    return 0.5 * a * torch.sum(w * f, dim=-1) / (2.0 * math.pi)


def owens_t(h: torch.Tensor, a: torch.Tensor, *, n_nodes: int = 64) -> torch.Tensor:
    """Owen's T function T(h, a), vectorized over broadcast ``h`` and ``a``.

    T(h, a) = (1/2pi) int_0^a exp(-h^2 (1+x^2)/2) / (1+x^2) dx

    For |a| <= 1 the integral is evaluated by Gauss-Legendre quadrature. For
    |a| > 1 Owen's (1956) reflection

        T(h, a) = 1/2 [Phi(h) Phi(-ah) + Phi(ah) Phi(-h)] - T(ah, 1/a),  h >= 0

    maps the problem back onto |a| < 1. ``h == 0`` uses the closed form
    atan(a) / (2pi), which stays exact for ``a = +-inf``.
    """
    h = _as_tensor(h)
    a = _as_tensor(a, device=h.device, dtype=h.dtype)
    h, a = torch.broadcast_tensors(h, a)

    sign = torch.sign(a)
    ha = h.abs()
    aa = a.abs()
    small = aa <= 1.0

    # The quadrature is odd in a, so it runs on the signed argument and stays
    # differentiable at a = 0. 1/a is only taken where |a| > 1.
    ah = ha * aa
    hq = torch.where(small, ha, ah)
    a_large = torch.where(small, torch.ones_like(a), a)
    aq = torch.where(small, a, 1.0 / a_large)
    q = _owens_t_quad(hq, aq, n_nodes)

    reflected = sign * 0.5 * (pnorm(ha) * pnorm(-ah) + pnorm(ah) * pnorm(-ha)) - q
    t = torch.where(small, q, reflected)
    return torch.where(ha == 0, torch.atan(a) / (2.0 * math.pi), t)
