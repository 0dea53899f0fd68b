"""Gaussian copula log-density and CDF kernels.

The kernels do not validate their parameters: ``rho`` outside (-1, 1), a
Cholesky factor with a non-positive diagonal or data outside (0, 1) give NaN
or inf rather than an exception, so they can be called from inner
log-likelihood loops without branching. Use :mod:`torchgausscop.checks` or
:class:`torchgausscop.GaussianCopula` for a validated entry point. Shape
mismatches are always reported with ``ValueError``.
"""

from __future__ import annotations

import torch

from . import stats
from .checks import check_conformable, check_same_length
from .linalg import inner, solve_lower, sum_log_diag, sum_squares


def bivariate_lpdf(u, v, rho) -> torch.Tensor:
    """Log-density of the bivariate Gaussian copula at ``(u, v)``.

    log c = 0.5 rho (rho a^2 + rho b^2 - 2ab) / (rho^2 - 1) - 0.5 log(1 - rho^2)

    with ``a = qnorm(u)``, ``b = qnorm(v)``. Broadcasts elementwise over
    ``u``, ``v`` and ``rho``. Exactly zero for ``rho == 0``.
    """
    u = stats._as_tensor(u)
    v = stats._as_tensor(v, device=u.device, dtype=u.dtype)
    rho = stats._as_tensor(rho, device=u.device, dtype=u.dtype)
    a = stats.qnorm(u)
    b = stats.qnorm(v)
    num = 0.5 * rho * (-2.0 * a * b + rho * (a * a + b * b))
    return num / (rho * rho - 1.0) - 0.5 * stats.log1m(rho * rho)


def bivariate_lpdf_sum(u, v, rho) -> torch.Tensor:
    """Sum of :func:`bivariate_lpdf` over paired 1-D sequences ``u`` and ``v``.

    Uses the fused form ``a1 * x / a2 - n * a3`` with
    ``x = -2 <A, B> + rho (|A|^2 + |B|^2)`` so the rho-dependent constants
    are computed once rather than per pair.
    """
    u = stats._as_tensor(u)
    v = stats._as_tensor(v, device=u.device, dtype=u.dtype)
    check_same_length(u, v)
    rho = stats._as_tensor(rho, device=u.device, dtype=u.dtype)
    n = u.shape[0]

    A = stats.qnorm(u)
    B = stats.qnorm(v)
    a1 = 0.5 * rho
    a2 = rho * rho - 1.0
    a3 = 0.5 * stats.log1m(rho * rho)
    x = -2.0 * inner(A, B) + rho * (sum_squares(A) + sum_squares(B))
    return a1 * x / a2 - n * a3


def multi_lpdf(U, L) -> torch.Tensor:
    """Summed log-density of the d-dimensional Gaussian copula.

    Parameters
    ----------
    U : (d, n) tensor
        Copula-scale data, one observation per column.
    L : (d, d) tensor
        Lower Cholesky factor of the correlation matrix. The strict upper
        triangle is ignored.

    Returns
    -------
    torch.Tensor
        ``-n * sum(log diag L) - 0.5 * (|L^{-1} A|^2 - |A|^2)`` with
        ``A = qnorm(U)``; zero for ``L = I`` and for ``n = 0``.
    """
    U = stats._as_tensor(U)
    L = stats._as_tensor(L, device=U.device, dtype=U.dtype)
    check_conformable(U, L)
    n = U.shape[1]

    A = stats.qnorm(U)
    X = solve_lower(L, A)
    log_det_half = sum_log_diag(L)
    return -n * log_det_half - 0.5 * (sum_squares(X) - sum_squares(A))


def multi_lpdf_pointwise(U, L) -> torch.Tensor:
    """Per-column terms of :func:`multi_lpdf`, shape ``(n,)``."""
    U = stats._as_tensor(U)
    L = stats._as_tensor(L, device=U.device, dtype=U.dtype)
    check_conformable(U, L)
    A = stats.qnorm(U)
    X = solve_lower(L, A)
    return -sum_log_diag(L) - 0.5 * (sum_squares(X, dim=0) - sum_squares(A, dim=0))


def median_straddle(u1, u2) -> torch.Tensor:
    """0.5 where exactly one of ``u1``, ``u2`` lies strictly below 0.5, else 0.

    A coordinate equal to 0.5 counts as not below the median.
    """
    u1 = stats._as_tensor(u1)
    u2 = stats._as_tensor(u2, device=u1.device, dtype=u1.dtype)
    straddle = ((u1 < 0.5) & (u2 >= 0.5)) | ((u1 >= 0.5) & (u2 < 0.5))
    return 0.5 * straddle.to(u1.dtype)


def bivariate_cdf(u, rho) -> torch.Tensor:
    """CDF of the bivariate Gaussian copula via Owen's T.

    C(u1, u2) = (u1 + u2) / 2 - T(p1, alpha1) - T(p2, alpha2) - d

    where ``p = qnorm(u)``, ``alpha1 = (p2/p1 - rho) / sqrt(1 - rho^2)``,
    ``alpha2 = (p1/p2 - rho) / sqrt(1 - rho^2)`` and ``d`` is
    :func:`median_straddle`. ``u`` has shape ``(2,)`` or ``(..., 2)``.

    ``p1 == 0`` (or ``p2 == 0``) makes the corresponding ratio infinite; Owen's
    T is exact there as long as the other coordinate is not also 0.5, where
    the result is NaN.
    """
    u = stats._as_tensor(u)
    if u.ndim == 0 or u.shape[-1] != 2:
        raise ValueError("u must have shape (2,) or (...,2)")
    rho = stats._as_tensor(rho, device=u.device, dtype=u.dtype)
    u1 = u[..., 0]
    u2 = u[..., 1]

    a = 1.0 / torch.sqrt(1.0 - rho * rho)
    p1 = stats.qnorm(u1)
    p2 = stats.qnorm(u2)
    alpha1 = a * (p2 / p1 - rho)
    alpha2 = a * (p1 / p2 - rho)
    d = median_straddle(u1, u2)
    return 0.5 * (u1 + u2) - stats.owens_t(p1, alpha1) - stats.owens_t(p2, alpha2) - d
