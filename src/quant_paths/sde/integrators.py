# src/quant_paths/sde/integrators.py
from __future__ import annotations

import numpy as np


def euler_maruyama_step(
    x: np.ndarray, drift: np.ndarray, diffusion: np.ndarray, dt: float, dW: np.ndarray
) -> np.ndarray:
    """
    Single Euler-Maruyama step:
    X_{t+dt} = X_t + a(X_t)*dt + b(X_t)*dW
    Drift and diffusion are precomputed at (X_t, t).
    """
    return x + drift * dt + diffusion * dW


def full_truncation(x: np.ndarray) -> np.ndarray:
    """Floor at zero: max(x, 0)."""
    return np.maximum(x, 0.0)


def reflect_at_zero(x: np.ndarray) -> np.ndarray:
    """Symmetric scheme: |x|."""
    return np.abs(x)


def reflect_upper(x: np.ndarray, upper: float = 1.0) -> np.ndarray:
    """
    Fold values above `upper` back into [0, upper] by repeated reflection at
    both ends: x -> 2*upper - x for a single overshoot, and overshoots past
    2*upper keep folding instead of landing below zero.

    Values at or below `upper` are returned unchanged.
    """
    period = 2.0 * upper
    folded = np.mod(x, period)
    folded = np.where(folded > upper, period - folded, folded)
    return np.where(x > upper, folded, x)


def sqrt_positive(x: np.ndarray) -> np.ndarray:
    """sqrt(max(x, 0)), the diffusion coefficient of square-root processes."""
    return np.sqrt(np.maximum(x, 0.0))
