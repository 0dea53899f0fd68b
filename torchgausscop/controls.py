"""Validation controls for the checked Gaussian copula entry points."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ValidationControls:
    check_parameters: bool = True  # validate rho / Cholesky factor at construction
    check_data: bool = True  # validate that data lies in (0,1) on every call
    corr_tol: float = 1e-8  # unit-diagonal tolerance of L @ L.T, floored at 10 eps of the dtype

    def __post_init__(self):
        if not (float(self.corr_tol) > 0.0):
            raise ValueError("corr_tol must be positive")

    def str(self) -> str:
        """Human-readable summary."""
        parts = [
            f"Check parameters: {self.check_parameters}",
            f"Check data: {self.check_data}",
            f"Correlation tolerance: {self.corr_tol}",
        ]
        return "\n".join(parts)
