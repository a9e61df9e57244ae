# src/quant_paths/sde/processes/jumps.py
from __future__ import annotations

import math
from typing import Annotated, ClassVar, Literal, Tuple, Union

import numpy as np
from pydantic import Field

from quant_paths.sde.processes.base import ProcessSpec, register_process
from quant_paths.sde.random_source import RandomSource
from quant_paths.sde.schemas import ValidatedModel


# ============================================================
# Jump-size distributions
# ============================================================


class NormalJumps(ValidatedModel):
    """Gaussian jump sizes Y ~ N(mean, std^2) (log-normal price jumps in Merton/Bates)."""

    kind: Literal["normal"] = "normal"
    mean: float = 0.0
    std: float = Field(0.1, ge=0.0)

    def sample(self, source: RandomSource, n: int) -> np.ndarray:
        return self.mean + self.std * source.draw_standard_normal_vec(n)

    def expected_exp_minus_one(self) -> float:
        return math.exp(self.mean + 0.5 * self.std**2) - 1.0


class DoubleExponentialJumps(ValidatedModel):
    """
    Kou double-exponential jump sizes.

    With probability p_up, Y ~ Exp(eta_up); otherwise Y ~ -Exp(eta_down).
    eta_up > 1 keeps E[e^Y] finite.
    """

    kind: Literal["double_exponential"] = "double_exponential"
    p_up: float = Field(0.5, ge=0.0, le=1.0)
    eta_up: float = Field(..., gt=1.0)
    eta_down: float = Field(..., gt=0.0)

    def sample(self, source: RandomSource, n: int) -> np.ndarray:
        u = source.uniform(n)
        up = source.exponential(1.0 / self.eta_up, n)
        down = source.exponential(1.0 / self.eta_down, n)
        return np.where(u < self.p_up, up, -down)

    def expected_exp_minus_one(self) -> float:
        return (
            self.p_up * self.eta_up / (self.eta_up - 1.0)
            + (1.0 - self.p_up) * self.eta_down / (self.eta_down + 1.0)
            - 1.0
        )


class ConstantJumps(ValidatedModel):
    """Every jump has the same size."""

    kind: Literal["constant"] = "constant"
    value: float = 1.0

    def sample(self, source: RandomSource, n: int) -> np.ndarray:
        return np.full(int(n), self.value)

    def expected_exp_minus_one(self) -> float:
        return math.expm1(self.value)


JumpSizes = Annotated[
    Union[NormalJumps, DoubleExponentialJumps, ConstantJumps],
    Field(discriminator="kind"),
]


def compound_poisson_sums(
    source: RandomSource,
    intensity: float,
    dt: float,
    shape: Tuple[int, ...],
    sizes: JumpSizes,
) -> np.ndarray:
    """
    Per-step sum of i.i.d. jump sizes over a Poisson(intensity * dt) count.

    Returns an array of `shape`; steps without a jump are exactly 0.
    """
    counts = source.poisson(intensity * dt, shape)
    total = int(counts.sum())
    draws = sizes.sample(source, total)
    step_index = np.repeat(np.arange(counts.size), counts.ravel())
    sums = np.bincount(step_index, weights=draws, minlength=counts.size)
    return sums.reshape(shape)


# ============================================================
# Jump processes
# ============================================================


class _PureJump(ProcessSpec):
    has_diffusion: ClassVar[bool] = False
    has_jumps: ClassVar[bool] = True

    def drift(self, x, t):
        return np.zeros_like(x)

    def diffusion(self, x, t):
        return np.zeros_like(x)


@register_process
class Poisson(_PureJump):
    """Counting process N_t with rate jump_intensity."""

    kind: ClassVar[str] = "poisson"

    jump_intensity: float = Field(..., gt=0.0)

    def jump_increments(self, source, shape, dt):
        return source.poisson(self.jump_intensity * dt, shape).astype(float)


@register_process
class CompoundPoisson(_PureJump):
    """X_t = sum_{k <= N_t} Y_k with N a Poisson process and Y_k i.i.d. jump sizes."""

    kind: ClassVar[str] = "compound_poisson"

    jump_intensity: float = Field(..., gt=0.0)
    jump_sizes: JumpSizes = Field(default_factory=NormalJumps)

    def jump_increments(self, source, shape, dt):
        return compound_poisson_sums(
            source, self.jump_intensity, dt, shape, self.jump_sizes
        )


@register_process
class Merton(ProcessSpec):
    """
    Merton jump-diffusion on the price:

        dS_t / S_t- = (mu - lambda k) dt + sigma dW_t + (e^Y - 1) dN_t

    k = E[e^Y] - 1 compensates the jumps so mu stays the expected return.
    Several jumps in one step multiply: the step jump is expm1(sum Y).
    """

    kind: ClassVar[str] = "merton"
    has_jumps: ClassVar[bool] = True

    mu: float
    sigma: float = Field(..., gt=0.0)
    jump_intensity: float = Field(..., ge=0.0)
    jump_sizes: JumpSizes = Field(default_factory=NormalJumps)

    def drift(self, x, t):
        k = self.jump_sizes.expected_exp_minus_one()
        return (self.mu - self.jump_intensity * k) * x

    def diffusion(self, x, t):
        return self.sigma * x

    def jump_increments(self, source, shape, dt):
        log_jumps = compound_poisson_sums(
            source, self.jump_intensity, dt, shape, self.jump_sizes
        )
        return np.expm1(log_jumps)

    def jump_coefficient(self, x):
        return x


@register_process
class VarianceGamma(_PureJump):
    """
    Variance-gamma process: Brownian motion with drift theta and volatility
    sigma, time-changed by a gamma subordinator of variance rate nu:

        X_{t+dt} = X_t + theta G + sigma sqrt(G) Z,   G ~ Gamma(dt / nu, nu)
    """

    kind: ClassVar[str] = "variance_gamma"

    theta: float = 0.0
    sigma: float = Field(..., gt=0.0)
    nu: float = Field(..., gt=0.0)

    def jump_increments(self, source, shape, dt):
        g = source.gamma(dt / self.nu, self.nu, shape)
        z = source.draw_standard_normal_matrix(shape)
        return self.theta * g + self.sigma * np.sqrt(g) * z


def inverse_gaussian_increments(
    source: RandomSource,
    mean_rate: float,
    variance_rate: float,
    dt: float,
    shape: Tuple[int, ...],
) -> np.ndarray:
    """
    Increments of an inverse Gaussian subordinator over steps of length dt.

    G ~ IG(mean = mean_rate dt, shape = mean^3 / (variance_rate dt)), so that
    E[G] = mean_rate dt and Var[G] = variance_rate dt.
    """
    mean = mean_rate * dt
    return source.wald(mean, mean**3 / (variance_rate * dt), shape)


@register_process
class InverseGaussian(_PureJump):
    """
    Inverse Gaussian subordinator: non-decreasing, with IG-distributed
    increments of mean mean_rate dt and variance variance_rate dt.
    """

    kind: ClassVar[str] = "ig"

    mean_rate: float = Field(1.0, gt=0.0)
    variance_rate: float = Field(..., gt=0.0)

    def jump_increments(self, source, shape, dt):
        return inverse_gaussian_increments(
            source, self.mean_rate, self.variance_rate, dt, shape
        )


@register_process
class NormalInverseGaussian(_PureJump):
    """
    Normal inverse Gaussian process: Brownian motion with drift theta and
    volatility sigma, time-changed by a unit-mean IG subordinator of variance
    rate kappa:

        X_{t+dt} = X_t + theta G + sigma sqrt(G) Z,   E[G] = dt, Var[G] = kappa dt
    """

    kind: ClassVar[str] = "nig"

    theta: float = 0.0
    sigma: float = Field(..., gt=0.0)
    kappa: float = Field(..., gt=0.0)

    def jump_increments(self, source, shape, dt):
        g = inverse_gaussian_increments(source, 1.0, self.kappa, dt, shape)
        z = source.draw_standard_normal_matrix(shape)
        return self.theta * g + self.sigma * np.sqrt(g) * z
