"""Argument checks layered above the unchecked kernels."""

from __future__ import annotations

import torch

from .stats import _as_tensor


def check_correlation(rho) -> torch.Tensor:
    rho = _as_tensor(rho)
    if not torch.all(torch.isfinite(rho)) or torch.any(rho * rho >= 1.0):
        raise ValueError("rho must lie in (-1, 1)")
    return rho


def check_cholesky_factor(L, *, tol: float = 1e-8) -> torch.Tensor:
    """Check that ``L`` is the lower Cholesky factor of a correlation matrix.

    Requires a square matrix with finite entries, a strictly positive
    diagonal and rows of the lower triangle with unit norm (so ``L @ L.T``
    has unit diagonal within ``tol``). ``tol`` is raised to ten machine
    epsilons of ``L.dtype`` so float32 factors are not rejected for rounding.
    Returns ``tril(L)``.
    """
    L = _as_tensor(L)
    if L.ndim != 2 or L.shape[0] != L.shape[1]:
        raise ValueError("cholesky factor must be square (d,d)")
    if L.is_floating_point():
        tol = max(float(tol), 10.0 * torch.finfo(L.dtype).eps)
    L = torch.tril(L)
    if not torch.all(torch.isfinite(L)):
        raise ValueError("cholesky factor must be finite")
    if torch.any(torch.diagonal(L) <= 0):
        raise ValueError("cholesky factor must have a strictly positive diagonal")
    row_norms = torch.sum(L * L, dim=1)
    if torch.any(torch.abs(row_norms - 1.0) > tol):
        raise ValueError("cholesky factor must belong to a correlation matrix (unit diagonal)")
    return L


def check_unit_interval(u) -> torch.Tensor:
    u = _as_tensor(u)
    if torch.any(~((u > 0.0) & (u < 1.0))):
        raise ValueError("copula data must lie in the open interval (0, 1)")
    return u


def check_same_length(u, v) -> None:
    u = _as_tensor(u)
    v = _as_tensor(v)
    if u.ndim != 1 or v.ndim != 1 or u.shape[0] != v.shape[0]:
        raise ValueError(f"shape mismatch: u {tuple(u.shape)} vs v {tuple(v.shape)}")


def check_conformable(U, L) -> None:
    U = _as_tensor(U)
    L = _as_tensor(L)
    if U.ndim != 2 or L.ndim != 2 or L.shape[0] != L.shape[1] or L.shape[0] != U.shape[0]:
        raise ValueError(f"shape mismatch: U {tuple(U.shape)} vs L {tuple(L.shape)}")
