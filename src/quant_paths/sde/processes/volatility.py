# src/quant_paths/sde/processes/volatility.py
from __future__ import annotations

from typing import ClassVar, Literal

import numpy as np
from pydantic import Field, model_validator

from quant_paths.errors import InvalidParameter
from quant_paths.sde.integrators import full_truncation, reflect_at_zero
from quant_paths.sde.processes.base import ProcessSpec, register_process
from quant_paths.sde.processes.jumps import (
    JumpSizes,
    NormalJumps,
    compound_poisson_sums,
)
from quant_paths.sde.schemas import CorrelationMatrix


@register_process
class Heston(ProcessSpec):
    """
    Heston stochastic volatility, state x = (S, v):

        dS_t = mu S_t dt + sqrt(v_t) S_t dW^S_t
        dv_t = kappa (theta - v_t) dt + xi v_t^p dW^v_t
        Corr(dW^S, dW^v) = rho

    p = 1/2 (variance_power="sqrt") or 3/2 ("three_halves").
    Variance uses full truncation (or reflection with use_reflection=True).
    The scalar initial value is S0; v0 is a model parameter.
    """

    kind: ClassVar[str] = "heston"
    dimension: ClassVar[int] = 2

    mu: float = 0.0
    kappa: float = Field(..., gt=0.0)
    theta: float = Field(..., gt=0.0)
    xi: float = Field(..., gt=0.0, description="Volatility of variance.")
    rho: float = Field(..., ge=-1.0, le=1.0)
    v0: float = Field(..., ge=0.0)
    variance_power: Literal["sqrt", "three_halves"] = "sqrt"
    use_reflection: bool = False
    require_feller: bool = False

    @property
    def feller_condition(self) -> bool:
        return 2.0 * self.kappa * self.theta >= self.xi**2

    @model_validator(mode="after")
    def _check_feller(self):
        if self.require_feller and not self.feller_condition:
            raise ValueError(
                f"Feller condition 2*kappa*theta >= xi^2 violated: "
                f"2*{self.kappa}*{self.theta} < {self.xi}^2"
            )
        return self

    def _price_drift_rate(self) -> float:
        return self.mu

    def drift(self, x, t):
        s = x[..., 0]
        v = full_truncation(x[..., 1])
        return np.stack(
            [self._price_drift_rate() * s, self.kappa * (self.theta - v)], axis=-1
        )

    def diffusion(self, x, t):
        s = x[..., 0]
        v = full_truncation(x[..., 1])
        power = 0.5 if self.variance_power == "sqrt" else 1.5
        return np.stack([s * np.sqrt(v), self.xi * np.power(v, power)], axis=-1)

    def apply_boundary(self, x):
        out = np.array(x, copy=True)
        rule = reflect_at_zero if self.use_reflection else full_truncation
        out[..., 1] = rule(out[..., 1])
        return out

    def noise_correlation(self) -> CorrelationMatrix:
        return CorrelationMatrix.from_rho(self.rho, dim=2)

    def initial_state(self, initial_value, state_shape):
        if np.ndim(initial_value) == 0:
            initial_value = [float(initial_value), self.v0]
        return super().initial_state(initial_value, state_shape)

    def check_initial(self, x0):
        if np.any(x0[..., 1] < 0.0):
            raise InvalidParameter("Heston initial variance must be >= 0")


@register_process
class Bates(Heston):
    """
    Bates (1996): Heston with compensated jumps in the price,

        dS_t / S_t- = (mu - lambda k) dt + sqrt(v_t) dW^S_t + (e^Y - 1) dN_t

    k = E[e^Y] - 1. The variance factor does not jump.
    """

    kind: ClassVar[str] = "bates"
    has_jumps: ClassVar[bool] = True

    jump_intensity: float = Field(..., ge=0.0)
    jump_sizes: JumpSizes = Field(default_factory=NormalJumps)

    def _price_drift_rate(self) -> float:
        return self.mu - self.jump_intensity * self.jump_sizes.expected_exp_minus_one()

    def jump_increments(self, source, shape, dt):
        jumps = np.zeros(shape, dtype=float)
        log_jumps = compound_poisson_sums(
            source, self.jump_intensity, dt, shape[:-1], self.jump_sizes
        )
        jumps[..., 0] = np.expm1(log_jumps)
        return jumps

    def jump_coefficient(self, x):
        coef = np.zeros_like(x)
        coef[..., 0] = x[..., 0]
        return coef


@register_process
class SABR(ProcessSpec):
    """
    SABR stochastic volatility, state x = (F, sigma):

        dF_t = sigma_t F_t^beta dW^F_t
        dsigma_t = nu sigma_t dW^sigma_t
        Corr(dW^F, dW^sigma) = rho

    Both factors are floored at zero, so zero is absorbing for the forward.
    The scalar initial value is F0; alpha is the initial volatility.
    """

    kind: ClassVar[str] = "sabr"
    dimension: ClassVar[int] = 2

    alpha: float = Field(..., gt=0.0, description="Initial volatility.")
    beta: float = Field(..., ge=0.0, le=1.0)
    rho: float = Field(..., ge=-1.0, le=1.0)
    nu: float = Field(..., ge=0.0, description="Volatility of volatility.")

    def drift(self, x, t):
        return np.zeros_like(x)

    def diffusion(self, x, t):
        f = full_truncation(x[..., 0])
        sigma = full_truncation(x[..., 1])
        return np.stack(
            [sigma * np.power(f, self.beta), self.nu * sigma], axis=-1
        )

    def apply_boundary(self, x):
        return full_truncation(x)

    def noise_correlation(self) -> CorrelationMatrix:
        return CorrelationMatrix.from_rho(self.rho, dim=2)

    def initial_state(self, initial_value, state_shape):
        if np.ndim(initial_value) == 0:
            initial_value = [float(initial_value), self.alpha]
        return super().initial_state(initial_value, state_shape)

    def check_initial(self, x0):
        if np.any(x0 < 0.0):
            raise InvalidParameter("SABR initial forward and volatility must be >= 0")
