from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import torch

from . import checks, kernels
from .controls import ValidationControls
from .linalg import bivariate_cholesky, cholesky_corr, cholesky_corr_from_angles, to_correlation
from .stats import _as_tensor


@dataclass
class GaussianCopula:
    """Gaussian copula parametrized by the Cholesky factor of its correlation.

    Build it from a scalar correlation (``rho=``, bivariate) or from a lower
    Cholesky factor (``cholesky=``, any dimension). Parameters are validated
    once at construction and data on each call, according to ``controls``;
    the underlying kernels in :mod:`torchgausscop.kernels` skip all checks.

    Data passed to :meth:`loglik`, :meth:`log_pdf`, :meth:`pdf` and
    :meth:`cdf` has shape ``(n, d)``, one observation per row.

    A 2x2 factor built with ``check_parameters=False`` is used as given:
    :meth:`loglik` and :meth:`log_pdf` then go through the Cholesky kernels,
    so ``L[1, 1]`` is honoured even when the rows are not unit norm. ``rho``
    (and :meth:`cdf`) still read ``L[1, 0]``.
    """

    rho: Any = None
    cholesky: Any = None
    controls: ValidationControls = field(default_factory=ValidationControls)
    _rho: torch.Tensor | None = field(default=None, init=False, repr=False)
    _bivariate: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        if (self.rho is None) == (self.cholesky is None):
            raise ValueError("exactly one of rho or cholesky must be given")
        if self.controls is None:
            self.controls = ValidationControls()
        if self.rho is not None:
            rho = _as_tensor(self.rho)
            if rho.ndim != 0:
                raise ValueError("rho must be a scalar")
            if self.controls.check_parameters:
                checks.check_correlation(rho)
            self._rho = rho
            self.cholesky = bivariate_cholesky(rho)
            self._bivariate = True
        else:
            L = _as_tensor(self.cholesky)
            if self.controls.check_parameters:
                L = checks.check_cholesky_factor(L, tol=self.controls.corr_tol)
            elif L.ndim != 2 or L.shape[0] != L.shape[1]:
                raise ValueError("cholesky factor must be square (d,d)")
            self.cholesky = torch.tril(L)
            if self.cholesky.shape[0] == 2:
                self._rho = self.cholesky[1, 0]
                self._bivariate = self.controls.check_parameters
        self.rho = self._rho

    @classmethod
    def from_correlation(cls, R, controls: ValidationControls | None = None) -> "GaussianCopula":
        """Normalize ``R`` to a correlation matrix and factor it."""
        L = cholesky_corr(to_correlation(R))
        return cls(cholesky=L, controls=controls or ValidationControls())

    @classmethod
    def from_angles(cls, theta, controls: ValidationControls | None = None) -> "GaussianCopula":
        return cls(cholesky=cholesky_corr_from_angles(theta), controls=controls or ValidationControls())

    @property
    def dim(self) -> int:
        return int(self.cholesky.shape[0])

    @property
    def correlation(self) -> torch.Tensor:
        return self.cholesky @ self.cholesky.T

    def to(self, *args, **kwargs) -> "GaussianCopula":
        """Move parameters to device/dtype (in-place)."""
        self.cholesky = self.cholesky.to(*args, **kwargs)
        if self._rho is not None:
            self._rho = self._rho.to(*args, **kwargs)
            self.rho = self._rho
        return self

    def _prep(self, u) -> torch.Tensor:
        u = _as_tensor(u, device=self.cholesky.device)
        if u.ndim != 2:
            raise ValueError("u must be 2D (n,d)")
        if u.shape[1] != self.dim:
            raise ValueError(f"shape mismatch: u has {u.shape[1]} columns, copula has dimension {self.dim}")
        if self.controls.check_data:
            checks.check_unit_interval(u)
        return u

    def loglik(self, u) -> torch.Tensor:
        """Summed log-density over the rows of ``u``."""
        u = self._prep(u)
        if self._bivariate:
            return kernels.bivariate_lpdf_sum(u[:, 0], u[:, 1], self._rho)
        return kernels.multi_lpdf(u.T, self.cholesky)

    def log_pdf(self, u) -> torch.Tensor:
        """Pointwise log-densities, shape ``(n,)``."""
        u = self._prep(u)
        if self._bivariate:
            return kernels.bivariate_lpdf(u[:, 0], u[:, 1], self._rho)
        L = self.cholesky.to(dtype=u.dtype)
        return kernels.multi_lpdf_pointwise(u.T, L)

    def pdf(self, u) -> torch.Tensor:
        return torch.exp(self.log_pdf(u))

    def cdf(self, u) -> torch.Tensor:
        if self.dim != 2:
            raise NotImplementedError("cdf is only available for bivariate Gaussian copulas")
        u = self._prep(u)
        return kernels.bivariate_cdf(u, self._rho)

    def to_json(self) -> dict[str, Any]:
        return {
            "cholesky": self.cholesky.detach().cpu().tolist(),
        }

    @staticmethod
    def from_json(obj: dict[str, Any], controls: ValidationControls | None = None) -> "GaussianCopula":
        return GaussianCopula(
            cholesky=torch.as_tensor(obj["cholesky"], dtype=torch.float64),
            controls=controls or ValidationControls(),
        )

    def str(self) -> str:
        """Human-readable string representation."""
        parts = [f"<torchgausscop.GaussianCopula>"]
        parts.append(f"  dim: {self.dim}")
        if self._rho is not None:
            parts.append(f"  rho: {float(self._rho):.4f}")
        else:
            R = self.correlation
            idx = torch.tril_indices(self.dim, self.dim, offset=-1)
            rstr = ", ".join(f"{v:.4f}" for v in R[idx[0], idx[1]].tolist())
            parts.append(f"  correlations: [{rstr}]")
        return "\n".join(parts)
