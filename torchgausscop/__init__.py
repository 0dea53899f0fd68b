"""torchgausscop — Gaussian copula densities and CDF in pure PyTorch.

GPU-ready and differentiable log-density kernels for use inside
log-likelihood accumulation.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .controls import ValidationControls
from .copula import GaussianCopula
from .kernels import (
    bivariate_lpdf, bivariate_lpdf_sum, multi_lpdf, multi_lpdf_pointwise, bivariate_cdf, median_straddle,
)
from .linalg import (
    solve_lower, to_correlation, cholesky_corr, bivariate_cholesky, cholesky_corr_from_angles,
)
from .stats import dnorm, pnorm, qnorm, log1m, owens_t, gauss_legendre
from . import checks

import torch


def get_device(verbose: bool = False) -> torch.device:
    """Return the best available device (CUDA if available, else CPU).

    Parameters
    ----------
    verbose : bool, optional
        If ``True``, print which device was selected.

    Returns
    -------
    torch.device
    """
    if torch.cuda.is_available():
        dev = torch.device("cuda")
    else:
        dev = torch.device("cpu")
    if verbose:
        print(f"torchgausscop: using device '{dev}'")
    return dev


def simulate_uniform(
    n: int,
    d: int,
    *,
    qrng: bool = False,
    seeds: list[int] | tuple[int, ...] = (),
    dtype: torch.dtype = torch.float64,
) -> torch.Tensor:
    """Simulate copula-scale data from the independence copula, shape ``(n, d)``.

    If ``qrng=True``, uses scrambled Sobol points instead of pseudo-random ones.
    """
    n = int(n)
    d = int(d)
    if qrng:
        eng = torch.quasirandom.SobolEngine(dimension=d, scramble=True, seed=int(seeds[0]) if seeds else 0)
        return eng.draw(n, dtype=dtype)
    g = None
    if seeds:
        g = torch.Generator()
        g.manual_seed(int(seeds[0]))
    return torch.rand((n, d), generator=g, dtype=dtype)


__all__ = [
    "GaussianCopula",
    "ValidationControls",
    "checks",
    # Kernels
    "bivariate_lpdf",
    "bivariate_lpdf_sum",
    "multi_lpdf",
    "multi_lpdf_pointwise",
    "bivariate_cdf",
    "median_straddle",
    # Linear algebra
    "solve_lower",
    "to_correlation",
    "cholesky_corr",
    "bivariate_cholesky",
    "cholesky_corr_from_angles",
    # Numeric primitives
    "dnorm",
    "pnorm",
    "qnorm",
    "log1m",
    "owens_t",
    "gauss_legendre",
    "get_device",
    "simulate_uniform",
]
