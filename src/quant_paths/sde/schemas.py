# src/quant_paths/sde/schemas.py
from __future__ import annotations

from typing import Any, Literal, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quant_paths.errors import InvalidParameter


class ValidatedModel(BaseModel):
    """
    Frozen pydantic model whose validation failures surface as InvalidParameter.

    Every parameter object of the engine derives from this so that domain
    constraints are enforced once, at construction time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidParameter(f"Invalid {type(self).__name__}: {e}") from e


class TimeGrid(ValidatedModel):
    """
    Uniform simulation grid on [0, horizon].

    n_steps: number of time steps (paths have n_steps + 1 points including t=0)
    horizon: simulated time span (in years)
    """

    n_steps: int = Field(..., ge=1)
    horizon: float = Field(1.0, gt=0.0)

    @property
    def step(self) -> float:
        return self.horizon / self.n_steps

    @property
    def times(self) -> np.ndarray:
        return np.linspace(0.0, self.horizon, self.n_steps + 1)


class EngineConfig(ValidatedModel):
    """
    Tunables of the path-generation engine.

    None of these change the distribution of the generated paths; they trade
    memory against speed and set numerical tolerances.
    """

    max_workers: Optional[int] = Field(
        default=None, ge=1, description="Worker threads; None uses os.cpu_count()."
    )
    batch_size: Optional[int] = Field(
        default=None, ge=1, description="Paths integrated together per task."
    )
    fgn_method: Literal["auto", "exact", "spectral"] = "auto"
    exact_fgn_threshold: int = Field(
        default=1024,
        ge=1,
        description="Largest n for which 'auto' uses the O(n^2) Cholesky fGn method.",
    )
    embedding_tolerance: float = Field(
        default=1e-10,
        gt=0.0,
        description="Relative tolerance for negative circulant eigenvalues.",
    )
    correlation_tolerance: float = Field(
        default=1e-10,
        gt=0.0,
        description="Absolute tolerance used by the semidefinite Cholesky fallback.",
    )


class CorrelationMatrix:
    """
    d x d correlation matrix shared read-only by every path of an ensemble.

    Only the shape is checked here. Symmetry, unit diagonal, bounds and
    positive semi-definiteness are checked by the Cholesky factorization step
    (see quant_paths.sde.noise.gaussian.cholesky_factor).
    """

    def __init__(self, values) -> None:
        arr = np.array(values, dtype=float)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] < 1:
            raise InvalidParameter(
                f"Correlation matrix must be square and non-empty, got shape {arr.shape}."
            )
        if not np.isfinite(arr).all():
            raise InvalidParameter("Correlation matrix contains non-finite values.")
        arr.setflags(write=False)
        self._values = arr

    @classmethod
    def identity(cls, dim: int) -> "CorrelationMatrix":
        return cls(np.eye(int(dim)))

    @classmethod
    def from_rho(cls, rho: float, dim: int = 2) -> "CorrelationMatrix":
        """Equicorrelation matrix: ones on the diagonal, rho elsewhere."""
        dim = int(dim)
        if dim < 1:
            raise InvalidParameter("dim must be >= 1")
        values = np.full((dim, dim), float(rho))
        np.fill_diagonal(values, 1.0)
        return cls(values)

    @classmethod
    def coerce(cls, value) -> "CorrelationMatrix":
        if isinstance(value, cls):
            return value
        return cls(value)

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def dim(self) -> int:
        return int(self._values.shape[0])

    def __repr__(self) -> str:
        return f"CorrelationMatrix({self._values.tolist()!r})"
