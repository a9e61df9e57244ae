# src/quant_paths/sde/noise/gaussian.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from scipy.linalg import LinAlgError, cholesky

from quant_paths.errors import FactorizationError, InvalidParameter
from quant_paths.sde.random_source import RandomSource, SeedLike, as_source
from quant_paths.sde.schemas import CorrelationMatrix

CorrelationLike = Union[CorrelationMatrix, np.ndarray, list]


def _semidefinite_cholesky(c: np.ndarray, tol: float) -> np.ndarray:
    """
    Lower-triangular L with L @ L.T == c for singular PSD matrices.

    Zero pivots (within tol) give a zero column; a negative pivot or a
    non-zero residual under a zero pivot means c is not PSD.
    """
    d = c.shape[0]
    L = np.zeros_like(c)
    for j in range(d):
        pivot = c[j, j] - np.dot(L[j, :j], L[j, :j])
        if pivot < -tol:
            raise FactorizationError(
                f"Correlation matrix is not positive semi-definite (pivot {pivot:.3e} at {j})."
            )
        if pivot <= tol:
            resid = c[j + 1 :, j] - L[j + 1 :, :j] @ L[j, :j]
            if np.any(np.abs(resid) > math.sqrt(tol)):
                raise FactorizationError(
                    "Correlation matrix is not positive semi-definite "
                    f"(non-zero residual under zero pivot at {j})."
                )
            continue
        L[j, j] = math.sqrt(pivot)
        L[j + 1 :, j] = (c[j + 1 :, j] - L[j + 1 :, :j] @ L[j, :j]) / L[j, j]
    return L


def cholesky_factor(correlation: CorrelationLike, tol: float = 1e-10) -> np.ndarray:
    """
    Lower Cholesky factor L of a correlation matrix (L @ L.T = C).

    Raises
    ------
    FactorizationError
        If C is not symmetric, has a non-unit diagonal, an off-diagonal entry
        outside [-1, 1], or is not positive semi-definite.
    """
    c = CorrelationMatrix.coerce(correlation).values

    if not np.allclose(c, c.T, atol=tol, rtol=0.0):
        raise FactorizationError("Correlation matrix must be symmetric.")
    if not np.allclose(np.diag(c), 1.0, atol=tol, rtol=0.0):
        raise FactorizationError("Correlation matrix must have a unit diagonal.")
    if np.any(np.abs(c) > 1.0 + tol):
        raise FactorizationError(
            "Correlation matrix entries must lie in [-1, 1]; "
            f"got max |c_ij| = {float(np.max(np.abs(c))):.4f}."
        )

    try:
        L = cholesky(c, lower=True)
    except LinAlgError:
        L = _semidefinite_cholesky(c, tol)
    return np.asarray(L, dtype=float)


def independent_gaussian(
    n: int, source: Union[RandomSource, SeedLike] = None, dt: float = 1.0
) -> np.ndarray:
    """n independent N(0, dt) increments."""
    n = _check_length(n)
    return as_source(source).draw_standard_normal_vec(n) * math.sqrt(_check_dt(dt))


def correlated_gaussian(
    n: int,
    correlation: CorrelationLike,
    source: Union[RandomSource, SeedLike] = None,
    dt: float = 1.0,
    tol: float = 1e-10,
) -> np.ndarray:
    """
    n correlated d-vectors of N(0, dt) increments, shape (n, d).

    Each row is L @ z with z a vector of independent standard normals.
    """
    n = _check_length(n)
    L = cholesky_factor(correlation, tol=tol)
    z = as_source(source).draw_standard_normal_matrix((n, L.shape[0]))
    return (z @ L.T) * math.sqrt(_check_dt(dt))


@dataclass(frozen=True)
class GaussianNoise:
    """
    Brownian increment sampler for one ensemble.

    factor: lower Cholesky factor for correlated dimensions, or None for a
    single independent sequence.
    """

    n_steps: int
    dt: float
    factor: Optional[np.ndarray] = None

    @property
    def dimension(self) -> Optional[int]:
        return None if self.factor is None else int(self.factor.shape[0])

    def sample(self, source: RandomSource) -> np.ndarray:
        scale = math.sqrt(self.dt)
        if self.factor is None:
            return source.draw_standard_normal_vec(self.n_steps) * scale
        z = source.draw_standard_normal_matrix((self.n_steps, self.factor.shape[0]))
        return (z @ self.factor.T) * scale


def _check_length(n: int) -> int:
    if isinstance(n, bool) or int(n) != n or n < 1:
        raise InvalidParameter(f"noise length must be a positive integer, got {n!r}")
    return int(n)


def _check_dt(dt: float) -> float:
    dt = float(dt)
    if not dt > 0.0:
        raise InvalidParameter(f"dt must be positive, got {dt}")
    return dt
