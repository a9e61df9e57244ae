# src/quant_paths/sde/simulators/euler.py
from __future__ import annotations

from typing import Any, Optional, Union

import numpy as np

from quant_paths.errors import InvalidParameter
from quant_paths.sde.integrators import euler_maruyama_step
from quant_paths.sde.processes.base import ProcessSpec
from quant_paths.sde.random_source import RandomSource, SeedLike, as_source
from quant_paths.sde.schemas import TimeGrid


def integrate_batch(
    spec: ProcessSpec,
    noise: np.ndarray,
    grid: TimeGrid,
    initial_value: Any,
    jumps: Optional[np.ndarray] = None,
    source: Union[RandomSource, SeedLike] = None,
) -> np.ndarray:
    """
    Euler-Maruyama over a batch of paths.

    noise: (n_paths, n_steps) or (n_paths, n_steps, d) increments already
        scaled to the grid step.
    jumps: per-step jump totals with the same shape as noise, or None.
    source: RandomSource (or seed) the jump totals are drawn from when a jump
        kind is given no explicit jumps. Jump kinds without either raise
        InvalidParameter instead of integrating the diffusion part alone.

    Returns:
        X: np.ndarray shaped (n_paths, n_steps + 1[, d]) with X[:, 0] the
        initial state.
    """
    noise = np.asarray(noise, dtype=float)
    if noise.ndim < 2 or noise.shape[1] != grid.n_steps:
        raise InvalidParameter(
            f"noise of shape {noise.shape} does not match a grid of "
            f"{grid.n_steps} steps"
        )
    if jumps is not None and np.shape(jumps) != noise.shape:
        raise InvalidParameter(
            f"jumps of shape {np.shape(jumps)} do not match noise {noise.shape}"
        )

    n_paths, n_steps = noise.shape[:2]
    state_shape = noise.shape[2:]
    if spec.dimension > 1 and state_shape != (spec.dimension,):
        raise InvalidParameter(
            f"{type(spec).__name__} needs {spec.dimension}-dimensional noise, "
            f"got shape {noise.shape}"
        )
    if jumps is None and spec.has_jumps:
        if source is None:
            raise InvalidParameter(
                f"{type(spec).__name__} has jumps; pass jumps or a source to draw them from"
            )
        jumps = spec.jump_increments(as_source(source), noise.shape, grid.step)
    x0 = spec.initial_state(initial_value, state_shape)

    X = np.empty((n_paths, n_steps + 1) + state_shape, dtype=float)
    X[:, 0] = x0
    dt = grid.step
    times = grid.times

    for i in range(n_steps):
        x = X[:, i]
        t = times[i]
        x_next = euler_maruyama_step(
            x, spec.drift(x, t), spec.diffusion(x, t), dt, noise[:, i]
        )
        if jumps is not None:
            x_next = x_next + spec.jump_coefficient(x) * jumps[:, i]
        X[:, i + 1] = spec.apply_boundary(x_next)

    return X


def integrate(
    spec: ProcessSpec,
    noise: np.ndarray,
    grid: TimeGrid,
    initial_value: Any = 0.0,
    jumps: Optional[np.ndarray] = None,
    source: Union[RandomSource, SeedLike] = None,
) -> np.ndarray:
    """
    One sample path from one noise path.

    noise has shape (n_steps,) or (n_steps, d); the path has shape
    (n_steps + 1,) or (n_steps + 1, d).
    """
    noise = np.asarray(noise, dtype=float)
    batch_jumps = None if jumps is None else np.asarray(jumps, dtype=float)[None]
    return integrate_batch(
        spec, noise[None], grid, initial_value, batch_jumps, source
    )[0]
