# src/quant_paths/sde/processes/base.py
from __future__ import annotations

from abc import abstractmethod
from typing import Any, ClassVar, Dict, Optional, Tuple, Type, TypeVar

import numpy as np
from pydantic import Field

from quant_paths.errors import InvalidParameter
from quant_paths.sde.random_source import RandomSource
from quant_paths.sde.schemas import CorrelationMatrix, ValidatedModel


class ProcessSpec(ValidatedModel):
    """
    Parameters and functional form of one process kind.

    The integrator only ever calls the methods below, so adding a kind means
    adding one subclass:

        drift(x, t), diffusion(x, t)          Euler coefficients
        jump_increments(source, shape, dt)    per-step jump totals J (kinds with has_jumps)
        jump_coefficient(x)                   multiplier of J at state x
        apply_boundary(x)                     truncation / reflection rule

    1-D kinds act elementwise, so the same spec drives d correlated copies.
    Multi-factor kinds (dimension > 1) act on the last axis of x.
    """

    kind: ClassVar[str] = ""
    dimension: ClassVar[int] = 1
    has_diffusion: ClassVar[bool] = True
    has_jumps: ClassVar[bool] = False

    @abstractmethod
    def drift(self, x: np.ndarray, t: float) -> np.ndarray:
        ...

    @abstractmethod
    def diffusion(self, x: np.ndarray, t: float) -> np.ndarray:
        ...

    def jump_increments(
        self, source: RandomSource, shape: Tuple[int, ...], dt: float
    ) -> Optional[np.ndarray]:
        return None

    def jump_coefficient(self, x: np.ndarray) -> np.ndarray:
        return np.ones_like(x)

    def apply_boundary(self, x: np.ndarray) -> np.ndarray:
        return x

    def noise_hurst(self) -> Optional[float]:
        """Hurst exponent of the driving noise; None for Brownian noise."""
        return None

    def noise_correlation(self) -> Optional[CorrelationMatrix]:
        """Correlation between the factors of a multi-factor kind."""
        return None

    def check_initial(self, x0: np.ndarray) -> None:
        """Raise InvalidParameter when x0 lies outside the state space."""
        return None

    def initial_state(
        self, initial_value: Any, state_shape: Tuple[int, ...]
    ) -> np.ndarray:
        x0 = np.asarray(initial_value, dtype=float)
        try:
            x0 = np.broadcast_to(x0, state_shape).copy()
        except ValueError as e:
            raise InvalidParameter(
                f"initial value of shape {np.shape(initial_value)} does not fit "
                f"state shape {state_shape} of {type(self).__name__}"
            ) from e
        if not np.isfinite(x0).all():
            raise InvalidParameter("initial value must be finite")
        self.check_initial(x0)
        return x0


class FractionalSpec(ProcessSpec):
    """Mixin for kinds driven by fractional Gaussian noise."""

    hurst: float = Field(..., gt=0.0, lt=1.0, description="Hurst exponent.")

    def noise_hurst(self) -> Optional[float]:
        return self.hurst


# ===============================================================
# Process Registry
# ===============================================================

PROCESS_REGISTRY: Dict[str, Type[ProcessSpec]] = {}

P = TypeVar("P", bound=Type[ProcessSpec])


def register_process(cls: P) -> P:
    """Class decorator: register a ProcessSpec subclass under its `kind`."""
    if not cls.kind:
        raise KeyError(f"{cls.__name__} has no kind")
    if cls.kind in PROCESS_REGISTRY:
        raise KeyError(f"Process kind '{cls.kind}' already registered.")
    PROCESS_REGISTRY[cls.kind] = cls
    return cls


def get_process_class(kind: str) -> Type[ProcessSpec]:
    if kind not in PROCESS_REGISTRY:
        raise InvalidParameter(
            f"Process kind '{kind}' not registered. "
            f"Available: {sorted(PROCESS_REGISTRY)}"
        )
    return PROCESS_REGISTRY[kind]
