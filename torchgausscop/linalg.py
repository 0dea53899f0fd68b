"""Linear-algebra helpers for correlation matrices and their Cholesky factors."""

from __future__ import annotations

import torch

from .stats import _as_tensor


def solve_lower(L: torch.Tensor, A: torch.Tensor) -> torch.Tensor:
    """Solve ``L @ X = A`` by forward substitution.

    Only the lower triangle of ``L`` is read; the strict upper triangle is
    treated as zero.
    """
    L = _as_tensor(L)
    A = _as_tensor(A, device=L.device, dtype=L.dtype)
    return torch.linalg.solve_triangular(torch.tril(L), A, upper=False)


def sum_squares(x: torch.Tensor, dim=None) -> torch.Tensor:
    x = _as_tensor(x)
    if dim is None:
        return torch.sum(x * x)
    return torch.sum(x * x, dim=dim)


def inner(x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
    x = _as_tensor(x)
    y = _as_tensor(y, device=x.device, dtype=x.dtype)
    return torch.sum(x * y)


def sum_log_diag(L: torch.Tensor) -> torch.Tensor:
    # For a Cholesky factor this is 0.5 * log det(L @ L.T).
    L = _as_tensor(L)
    return torch.sum(torch.log(torch.diagonal(L, dim1=-2, dim2=-1)), dim=-1)


def to_correlation(M: torch.Tensor) -> torch.Tensor:
    """Symmetrize ``M`` and rescale it to unit diagonal."""
    M = _as_tensor(M)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValueError("matrix must be square (d,d)")
    S = 0.5 * (M + M.T)
    d = torch.diagonal(S)
    if torch.any(d <= 0):
        raise ValueError("matrix must have a strictly positive diagonal")
    s = torch.rsqrt(d)
    R = S * (s[:, None] * s[None, :])
    R.fill_diagonal_(1.0)
    return R


def cholesky_corr(R: torch.Tensor) -> torch.Tensor:
    """Lower Cholesky factor of a correlation matrix."""
    R = _as_tensor(R)
    if R.ndim != 2 or R.shape[0] != R.shape[1]:
        raise ValueError("correlation matrix must be square (d,d)")
    try:
        return torch.linalg.cholesky(R)
    except torch.linalg.LinAlgError as e:
        raise ValueError("correlation matrix is not positive definite") from e


def bivariate_cholesky(rho) -> torch.Tensor:
    """Cholesky factor ``[[1, 0], [rho, sqrt(1 - rho^2)]]``."""
    rho = _as_tensor(rho)
    one = torch.ones_like(rho)
    zero = torch.zeros_like(rho)
    return torch.stack([
        torch.stack([one, zero]),
        torch.stack([rho, torch.sqrt(1.0 - rho * rho)]),
    ])


def cholesky_corr_from_angles(theta: torch.Tensor) -> torch.Tensor:
    """Cholesky factor of a correlation matrix from hyperspherical angles.

    Row ``i`` of the factor is the point on the unit sphere with angles
    ``theta[i, :i]``::

        L[i, 0] = cos(theta[i, 0])
        L[i, j] = cos(theta[i, j]) * prod_{k<j} sin(theta[i, k])
        L[i, i] = prod_{k<i} sin(theta[i, k])

    so every row has unit norm and ``L @ L.T`` has unit diagonal. Angles in
    (0, pi) give a strictly positive diagonal. Only the strict lower triangle
    of ``theta`` is read.
    """
    theta = _as_tensor(theta)
    if theta.ndim != 2 or theta.shape[0] != theta.shape[1]:
        raise ValueError("theta must be square (d,d)")
    d = theta.shape[0]
    mask = torch.tril(torch.ones(d, d, device=theta.device, dtype=torch.bool), diagonal=-1)
    th = torch.where(mask, theta, torch.zeros_like(theta))

    # prod_{k<j} sin(theta[i,k]) as an exclusive cumulative product along rows.
    sin_th = torch.where(mask, torch.sin(th), torch.ones_like(th))
    sin_prod = torch.cumprod(sin_th, dim=1)
    sin_prod = torch.cat([torch.ones_like(sin_prod[:, :1]), sin_prod[:, :-1]], dim=1)

    cos_th = torch.where(mask, torch.cos(th), torch.ones_like(th))
    L = cos_th * sin_prod
    return torch.tril(L)
