# src/quant_paths/sde/processes/diffusions.py
from __future__ import annotations

from typing import ClassVar

import numpy as np
from pydantic import Field, model_validator

from quant_paths.errors import InvalidParameter
from quant_paths.sde.integrators import (
    full_truncation,
    reflect_at_zero,
    reflect_upper,
    sqrt_positive,
)
from quant_paths.sde.processes.base import ProcessSpec, register_process


@register_process
class BrownianMotion(ProcessSpec):
    """
    Arithmetic Brownian motion:

        dX_t = drift dt + volatility dW_t
    """

    kind: ClassVar[str] = "bm"

    drift_rate: float = Field(0.0, description="Constant drift per unit time.")
    volatility: float = Field(1.0, gt=0.0)

    def drift(self, x, t):
        return np.full_like(x, self.drift_rate)

    def diffusion(self, x, t):
        return np.full_like(x, self.volatility)


@register_process
class GeometricBrownianMotion(ProcessSpec):
    """
    Geometric Brownian motion, Euler-discretized:

        dS_t = mu S_t dt + sigma S_t dW_t
    """

    kind: ClassVar[str] = "gbm"

    mu: float
    sigma: float = Field(..., gt=0.0)

    def drift(self, x, t):
        return self.mu * x

    def diffusion(self, x, t):
        return self.sigma * x


@register_process
class OrnsteinUhlenbeck(ProcessSpec):
    """
    Ornstein-Uhlenbeck / mean-reverting process:

        dX_t = kappa (theta - X_t) dt + sigma dW_t

    with kappa = mean_reversion_speed, theta = long_run_mean, sigma = volatility.
    """

    kind: ClassVar[str] = "ou"

    mean_reversion_speed: float = Field(..., gt=0.0)
    long_run_mean: float
    volatility: float = Field(..., gt=0.0)

    def drift(self, x, t):
        return self.mean_reversion_speed * (self.long_run_mean - x)

    def diffusion(self, x, t):
        return np.full_like(x, self.volatility)


@register_process
class CoxIngersollRoss(ProcessSpec):
    """
    Cox-Ingersoll-Ross square-root process:

        dX_t = kappa (theta - X_t) dt + sigma sqrt(X_t) dW_t

    Full truncation: sqrt(max(X, 0)) in the diffusion and stored values
    floored at zero. use_reflection=True stores |X| instead.
    The Feller condition 2 kappa theta >= sigma^2 keeps the continuous
    process away from zero; require_feller=True rejects specs violating it.
    """

    kind: ClassVar[str] = "cir"

    mean_reversion_speed: float = Field(..., gt=0.0)
    long_run_mean: float = Field(..., gt=0.0)
    volatility: float = Field(..., gt=0.0)
    require_feller: bool = False
    use_reflection: bool = False

    @property
    def feller_condition(self) -> bool:
        return (
            2.0 * self.mean_reversion_speed * self.long_run_mean
            >= self.volatility**2
        )

    @model_validator(mode="after")
    def _check_feller(self):
        if self.require_feller and not self.feller_condition:
            raise ValueError(
                "Feller condition 2*kappa*theta >= sigma^2 violated: "
                f"2*{self.mean_reversion_speed}*{self.long_run_mean} < {self.volatility}^2"
            )
        return self

    def drift(self, x, t):
        return self.mean_reversion_speed * (self.long_run_mean - full_truncation(x))

    def diffusion(self, x, t):
        return self.volatility * sqrt_positive(x)

    def apply_boundary(self, x):
        return reflect_at_zero(x) if self.use_reflection else full_truncation(x)

    def check_initial(self, x0):
        if np.any(x0 < 0.0):
            raise InvalidParameter(f"{type(self).__name__} initial value must be >= 0")


@register_process
class Jacobi(ProcessSpec):
    """
    Jacobi process on [0, 1]:

        dX_t = (alpha - beta X_t) dt + sigma sqrt(X_t (1 - X_t)) dW_t

    Boundary: values above 1 are reflected (X -> 2 - X), folding again for
    overshoots past 2, then everything is clipped into [0, 1], so the lower
    bound is a full truncation at zero.
    """

    kind: ClassVar[str] = "jacobi"

    alpha: float = Field(..., gt=0.0)
    beta: float = Field(..., gt=0.0)
    sigma: float = Field(..., gt=0.0)

    @model_validator(mode="after")
    def _check_order(self):
        if not self.alpha < self.beta:
            raise ValueError(f"alpha must be less than beta ({self.alpha} >= {self.beta})")
        return self

    def drift(self, x, t):
        return self.alpha - self.beta * x

    def diffusion(self, x, t):
        xc = np.clip(x, 0.0, 1.0)
        return self.sigma * np.sqrt(xc * (1.0 - xc))

    def apply_boundary(self, x):
        return np.clip(reflect_upper(x, 1.0), 0.0, 1.0)

    def check_initial(self, x0):
        if np.any((x0 < 0.0) | (x0 > 1.0)):
            raise InvalidParameter(f"{type(self).__name__} initial value must lie in [0, 1]")


@register_process
class ConstantElasticityOfVariance(ProcessSpec):
    """
    CEV process:

        dS_t = mu S_t dt + sigma S_t^gamma dW_t

    gamma = 1 is GBM, gamma = 0.5 a square-root diffusion. Truncated at zero.
    """

    kind: ClassVar[str] = "cev"

    mu: float
    sigma: float = Field(..., gt=0.0)
    gamma: float = Field(..., ge=0.0)

    def drift(self, x, t):
        return self.mu * full_truncation(x)

    def diffusion(self, x, t):
        return self.sigma * np.power(full_truncation(x), self.gamma)

    def apply_boundary(self, x):
        return full_truncation(x)

    def check_initial(self, x0):
        if np.any(x0 < 0.0):
            raise InvalidParameter("CEV initial value must be >= 0")
