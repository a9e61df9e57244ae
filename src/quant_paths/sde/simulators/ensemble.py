# src/quant_paths/sde/simulators/ensemble.py
from __future__ import annotations

import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from numpy.random import SeedSequence

from quant_paths.errors import InvalidParameter
from quant_paths.sde.noise.fractional import FGNMethod, FractionalNoise
from quant_paths.sde.noise.gaussian import (
    CorrelationLike,
    GaussianNoise,
    cholesky_factor,
)
from quant_paths.sde.processes.base import ProcessSpec
from quant_paths.sde.random_source import RandomSource, root_sequence
from quant_paths.sde.schemas import CorrelationMatrix, EngineConfig, TimeGrid
from quant_paths.sde.simulators.euler import integrate_batch

LOGGER = logging.getLogger(__name__)

NoiseSampler = Union[GaussianNoise, FractionalNoise]


@dataclass(frozen=True, eq=False)
class Ensemble:
    """
    Result of one simulate call.

    paths: read-only array (n_paths, n_steps + 1) or (n_paths, n_steps + 1, d)
    times: grid points, shape (n_steps + 1,)
    """

    paths: np.ndarray
    times: np.ndarray
    kind: str
    seed: Optional[int] = None

    @property
    def n_paths(self) -> int:
        return int(self.paths.shape[0])

    @property
    def n_steps(self) -> int:
        return int(self.paths.shape[1]) - 1

    @property
    def dimension(self) -> int:
        return 1 if self.paths.ndim == 2 else int(self.paths.shape[2])

    def terminal(self) -> np.ndarray:
        return self.paths[:, -1]

    def increments(self) -> np.ndarray:
        return np.diff(self.paths, axis=1)

    def to_frame(self) -> pd.DataFrame:
        """
        Long-format table with columns path, step, time, [dim], value.
        """
        n_paths, n_points = self.paths.shape[:2]
        path_idx, step_idx = np.meshgrid(
            np.arange(n_paths), np.arange(n_points), indexing="ij"
        )
        if self.paths.ndim == 2:
            return pd.DataFrame(
                {
                    "path": path_idx.ravel(),
                    "step": step_idx.ravel(),
                    "time": self.times[step_idx.ravel()],
                    "value": self.paths.ravel(),
                }
            )
        d = self.paths.shape[2]
        return pd.DataFrame(
            {
                "path": np.repeat(path_idx.ravel(), d),
                "step": np.repeat(step_idx.ravel(), d),
                "time": np.repeat(self.times[step_idx.ravel()], d),
                "dim": np.tile(np.arange(d), n_paths * n_points),
                "value": self.paths.ravel(),
            }
        )

    def __len__(self) -> int:
        return self.n_paths

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.paths
        return self.paths.astype(dtype)


# ---------- parallel utilities ----------


def _split_batches(n: int, batch_size: int) -> List[Tuple[int, int]]:
    """Contiguous [start, stop) path-index blocks of at most batch_size."""
    batch_size = max(1, int(batch_size))
    return [(start, min(start + batch_size, n)) for start in range(0, n, batch_size)]


def _resolve_workers(config: EngineConfig) -> int:
    return int(config.max_workers or os.cpu_count() or 1)


def _simulate_block(
    start: int,
    stop: int,
    spec: ProcessSpec,
    grid: TimeGrid,
    initial_state: np.ndarray,
    sampler: Optional[NoiseSampler],
    root: SeedSequence,
    state_shape: Tuple[int, ...],
) -> np.ndarray:
    """Draw noise and jumps for paths start..stop-1, then integrate them together."""
    step_shape = (grid.n_steps,) + state_shape
    noises = []
    jumps = []
    for index in range(start, stop):
        source = RandomSource.for_path(root, index)
        if sampler is None:
            noises.append(np.zeros(step_shape))
        else:
            noises.append(sampler.sample(source))
        path_jumps = spec.jump_increments(source, step_shape, grid.step)
        if path_jumps is not None:
            jumps.append(path_jumps)

    jump_block = np.stack(jumps) if jumps else None
    return integrate_batch(spec, np.stack(noises), grid, initial_state, jump_block)


def _noise_sampler(
    spec: ProcessSpec,
    grid: TimeGrid,
    factor: Optional[np.ndarray],
    config: EngineConfig,
    fgn_method: Optional[FGNMethod],
) -> Optional[NoiseSampler]:
    if not spec.has_diffusion:
        return None
    hurst = spec.noise_hurst()
    if hurst is None:
        return GaussianNoise(grid.n_steps, grid.step, factor)
    return FractionalNoise(
        grid.n_steps,
        hurst,
        dt=grid.step,
        method=fgn_method or config.fgn_method,
        factor=factor,
        config=config,
    )


def simulate(
    spec: ProcessSpec,
    grid: TimeGrid,
    n_paths: int,
    initial_value: Any = 0.0,
    seed: Optional[int] = None,
    correlation: Optional[CorrelationLike] = None,
    config: Optional[EngineConfig] = None,
    fgn_method: Optional[FGNMethod] = None,
) -> Ensemble:
    """
    Simulate n_paths sample paths of `spec` on `grid`.

    Parameters
    ----------
    spec : ProcessSpec
        Process kind and parameters.
    grid : TimeGrid
        Shared time grid.
    n_paths : int
        Ensemble size.
    initial_value : float or array-like
        Initial state, broadcast to every path (for Heston/Bates: S0).
    seed : int or None
        Base seed. Path i uses a generator derived from (seed, i) only.
        None draws fresh OS entropy.
    correlation : CorrelationMatrix or array-like, optional
        d x d correlation; simulates d correlated copies of a 1-D process.
    config : EngineConfig, optional
        Worker pool, batching and fGn tunables.
    fgn_method : {"auto", "exact", "spectral"}, optional
        Overrides config.fgn_method for fractional kinds.

    Returns
    -------
    Ensemble
        paths of shape (n_paths, n_steps + 1) or (n_paths, n_steps + 1, d).

    Raises
    ------
    InvalidParameter, FactorizationError, NonEmbeddableCovariance
        Before any path is generated; no partial ensemble is returned.
    """
    config = config or EngineConfig()
    if not isinstance(spec, ProcessSpec):
        raise InvalidParameter(f"spec must be a ProcessSpec, got {type(spec).__name__}")
    if not isinstance(grid, TimeGrid):
        raise InvalidParameter(f"grid must be a TimeGrid, got {type(grid).__name__}")
    if isinstance(n_paths, bool) or int(n_paths) != n_paths or n_paths < 1:
        raise InvalidParameter(f"n_paths must be a positive integer, got {n_paths!r}")
    n_paths = int(n_paths)

    intrinsic = spec.noise_correlation()
    if intrinsic is not None and correlation is not None:
        raise InvalidParameter(
            f"{type(spec).__name__} correlates its own factors; "
            "an extra correlation matrix is not supported"
        )
    if correlation is not None and not spec.has_diffusion:
        raise InvalidParameter(
            f"{type(spec).__name__} has no Brownian driver to correlate"
        )

    matrix = intrinsic if intrinsic is not None else correlation
    factor = None
    state_shape: Tuple[int, ...] = ()
    if matrix is not None:
        matrix = CorrelationMatrix.coerce(matrix)
        factor = cholesky_factor(matrix, tol=config.correlation_tolerance)
        state_shape = (matrix.dim,)

    sampler = _noise_sampler(spec, grid, factor, config, fgn_method)
    x0 = spec.initial_state(initial_value, state_shape)
    root = root_sequence(seed)

    workers = _resolve_workers(config)
    batch_size = config.batch_size or math.ceil(n_paths / (4 * workers))
    blocks = _split_batches(n_paths, batch_size)
    workers = min(workers, len(blocks))

    LOGGER.info(
        "Simulating %d %s paths x %d steps (dim=%s) on %d workers in %d blocks.",
        n_paths,
        spec.kind,
        grid.n_steps,
        state_shape[0] if state_shape else 1,
        workers,
        len(blocks),
    )

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(
                _simulate_block,
                start,
                stop,
                spec,
                grid,
                x0,
                sampler,
                root,
                state_shape,
            )
            for start, stop in blocks
        ]
        try:
            results = [f.result() for f in futures]
        except Exception:
            for f in futures:
                f.cancel()
            raise

    paths = np.concatenate(results, axis=0)
    paths.setflags(write=False)
    LOGGER.info("Simulation finished: ensemble shape %s.", paths.shape)
    return Ensemble(paths=paths, times=grid.times, kind=spec.kind, seed=seed)
