# src/quant_paths/sde/noise/fractional.py
"""
Fractional Gaussian noise (fGn).

fGn is the increment sequence of fractional Brownian motion on a unit grid:

    gamma(k) = 0.5 * (|k+1|^{2H} - 2|k|^{2H} + |k-1|^{2H}),   gamma(0) = 1

Two generators are provided:

    exact     Cholesky factor of the n x n Toeplitz covariance. O(n^2) memory,
              O(n^3) set-up, exact for every n.
    spectral  Davies-Harte circulant embedding of size m = next power of two
              >= 2n, eigenvalues by FFT, synthesis by one FFT per draw.
              O(m log m).

Output is scaled by dt**H so that a sequence of n draws is the increment
sequence of an fBm sampled every dt. With H = 0.5 both methods reduce to
independent N(0, dt) noise.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional, Union

import numpy as np
from scipy import fft
from scipy.linalg import LinAlgError, cholesky, toeplitz

from quant_paths.errors import InvalidParameter, NonEmbeddableCovariance
from quant_paths.sde.noise.gaussian import (
    CorrelationLike,
    _check_dt,
    _check_length,
    _semidefinite_cholesky,
    cholesky_factor,
)
from quant_paths.sde.random_source import RandomSource, SeedLike, as_source
from quant_paths.sde.schemas import EngineConfig

LOGGER = logging.getLogger(__name__)

FGNMethod = Literal["auto", "exact", "spectral"]


def _check_hurst(hurst: float) -> float:
    hurst = float(hurst)
    if not (0.0 < hurst < 1.0):
        raise InvalidParameter(f"Hurst exponent must be in (0, 1), got {hurst}")
    return hurst


def fgn_autocovariance(n: int, hurst: float) -> np.ndarray:
    """gamma(0), ..., gamma(n-1) of unit-step fGn."""
    hurst = _check_hurst(hurst)
    k = np.arange(int(n), dtype=float)
    two_h = 2.0 * hurst
    gamma = 0.5 * (
        np.power(k + 1.0, two_h)
        - 2.0 * np.power(k, two_h)
        + np.power(np.abs(k - 1.0), two_h)
    )
    gamma[0] = 1.0
    return gamma


def fgn_covariance_matrix(n: int, hurst: float) -> np.ndarray:
    """Cov(i, j) = gamma(|i - j|), the n x n Toeplitz covariance of fGn."""
    return toeplitz(fgn_autocovariance(n, hurst))


def embedding_size(n: int) -> int:
    """Smallest power of two >= 2n."""
    return 1 << max(1, (2 * int(n) - 1).bit_length())


def circulant_sqrt_eigenvalues(
    autocovariance: np.ndarray, size: int, tol: float = 1e-10
) -> np.ndarray:
    """
    sqrt(lambda / size) of the circulant embedding of an autocovariance.

    The first row of the circulant is gamma(min(k, size - k)), with lags past
    the end of `autocovariance` set to zero.

    Raises
    ------
    NonEmbeddableCovariance
        If an eigenvalue is below -tol * max(lambda).
    """
    size = int(size)
    half = size // 2
    gamma = np.asarray(autocovariance, dtype=float)
    if size < 2 or gamma.size > half + 1:
        raise InvalidParameter(
            f"embedding size {size} too small for {gamma.size} autocovariance lags"
        )

    padded = np.zeros(half + 1, dtype=float)
    padded[: gamma.size] = gamma
    k = np.arange(size)
    row = padded[np.minimum(k, size - k)]

    lam = fft.fft(row).real
    floor = -tol * max(float(lam.max()), 1.0)
    if lam.min() < floor:
        raise NonEmbeddableCovariance(
            f"circulant embedding of size {size} has eigenvalue {lam.min():.3e} "
            f"< {floor:.3e}; increase the embedding size or use the exact method"
        )
    return np.sqrt(np.maximum(lam, 0.0) / size)


class FractionalNoise:
    """
    fGn sampler for one ensemble.

    The Cholesky factor (exact) or the circulant square-root eigenvalues
    (spectral) are computed once here and shared read-only by every path.
    With `factor` set, d independent fGn columns are mixed by the correlation
    factor at each time step.
    """

    def __init__(
        self,
        n_steps: int,
        hurst: float,
        dt: float = 1.0,
        method: FGNMethod = "auto",
        factor: Optional[np.ndarray] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        config = config or EngineConfig()
        self.n_steps = _check_length(n_steps)
        self.hurst = _check_hurst(hurst)
        self.dt = _check_dt(dt)
        self.factor = factor
        self.method = self._resolve_method(method, config)
        self.scale = self.dt**self.hurst

        self._lower: Optional[np.ndarray] = None
        self._sqrt_eigs: Optional[np.ndarray] = None
        if self.method == "exact":
            cov = fgn_covariance_matrix(self.n_steps, self.hurst)
            try:
                self._lower = cholesky(cov, lower=True)
            except LinAlgError:
                # numerically singular for H close to 1 and large n
                self._lower = _semidefinite_cholesky(
                    cov, config.correlation_tolerance
                )
        else:
            m = embedding_size(self.n_steps)
            gamma = fgn_autocovariance(m // 2 + 1, self.hurst)
            self._sqrt_eigs = circulant_sqrt_eigenvalues(
                gamma, m, tol=config.embedding_tolerance
            )
        LOGGER.debug(
            "fGn sampler ready: n=%d H=%.4f method=%s",
            self.n_steps,
            self.hurst,
            self.method,
        )

    def _resolve_method(self, method: Optional[str], config: EngineConfig) -> str:
        method = method or config.fgn_method
        if method not in ("auto", "exact", "spectral"):
            raise InvalidParameter(
                f"fgn method must be 'auto', 'exact' or 'spectral', got {method!r}"
            )
        if method == "auto":
            return "exact" if self.n_steps <= config.exact_fgn_threshold else "spectral"
        if method == "exact" and self.n_steps > config.exact_fgn_threshold:
            LOGGER.warning(
                "Exact fGn requested for n=%d above threshold %d: "
                "O(n^2) covariance allocation.",
                self.n_steps,
                config.exact_fgn_threshold,
            )
        return method

    @property
    def dimension(self) -> Optional[int]:
        return None if self.factor is None else int(self.factor.shape[0])

    def _unit_fgn(self, source: RandomSource, columns: int) -> np.ndarray:
        n = self.n_steps
        if self._lower is not None:
            z = source.draw_standard_normal_matrix((n, columns))
            return self._lower @ z

        m = self._sqrt_eigs.size
        w = source.draw_standard_normal_matrix((m, columns)) + 1j * (
            source.draw_standard_normal_matrix((m, columns))
        )
        y = fft.fft(self._sqrt_eigs[:, None] * w, axis=0)
        return y.real[:n]

    def sample(self, source: RandomSource) -> np.ndarray:
        if self.factor is None:
            return self._unit_fgn(source, 1)[:, 0] * self.scale
        x = self._unit_fgn(source, self.factor.shape[0])
        return (x @ self.factor.T) * self.scale


def fractional_gaussian(
    n: int,
    hurst: float,
    method: FGNMethod = "auto",
    source: Union[RandomSource, SeedLike] = None,
    dt: float = 1.0,
    config: Optional[EngineConfig] = None,
) -> np.ndarray:
    """
    n draws of fractional Gaussian noise with Hurst exponent `hurst`.

    Parameters
    ----------
    n : int
        Number of increments.
    hurst : float
        Hurst exponent in (0, 1).
    method : {"auto", "exact", "spectral"}
        "auto" picks exact up to config.exact_fgn_threshold, spectral above.
    source : RandomSource, int or None
        Random source or seed.
    dt : float
        Grid step; the output is scaled by dt**hurst.

    Returns
    -------
    np.ndarray, shape (n,)
    """
    sampler = FractionalNoise(n, hurst, dt=dt, method=method, config=config)
    return sampler.sample(as_source(source))


def correlated_fractional_gaussian(
    n: int,
    hurst: float,
    correlation: CorrelationLike,
    method: FGNMethod = "auto",
    source: Union[RandomSource, SeedLike] = None,
    dt: float = 1.0,
    config: Optional[EngineConfig] = None,
) -> np.ndarray:
    """d independent fGn sequences mixed by the correlation factor, shape (n, d)."""
    config = config or EngineConfig()
    factor = cholesky_factor(correlation, tol=config.correlation_tolerance)
    sampler = FractionalNoise(
        n, hurst, dt=dt, method=method, factor=factor, config=config
    )
    return sampler.sample(as_source(source))
