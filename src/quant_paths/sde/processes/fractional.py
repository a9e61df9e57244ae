# src/quant_paths/sde/processes/fractional.py
"""
Fractional variants: the same drift/diffusion functionals as the Brownian
kinds, driven by fractional Gaussian noise with Hurst exponent `hurst`
instead of Brownian increments. hurst = 0.5 recovers the Brownian kind.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from quant_paths.sde.processes.base import FractionalSpec, register_process
from quant_paths.sde.processes.diffusions import (
    BrownianMotion,
    CoxIngersollRoss,
    GeometricBrownianMotion,
    Jacobi,
    OrnsteinUhlenbeck,
)
from quant_paths.sde.processes.interest import Vasicek
from quant_paths.sde.processes.jumps import (
    JumpSizes,
    NormalJumps,
    compound_poisson_sums,
)
from quant_paths.sde.processes.volatility import Heston


@register_process
class FractionalBrownianMotion(FractionalSpec, BrownianMotion):
    """fBm: X_t = drift_rate t + volatility B^H_t."""

    kind: ClassVar[str] = "fbm"


@register_process
class FractionalOrnsteinUhlenbeck(FractionalSpec, OrnsteinUhlenbeck):
    """fOU: dX_t = kappa (theta - X_t) dt + sigma dB^H_t."""

    kind: ClassVar[str] = "fou"


@register_process
class FractionalGeometricBrownianMotion(FractionalSpec, GeometricBrownianMotion):
    """fGBM: dS_t = mu S_t dt + sigma S_t dB^H_t."""

    kind: ClassVar[str] = "fgbm"


@register_process
class FractionalCoxIngersollRoss(FractionalSpec, CoxIngersollRoss):
    """fCIR: dX_t = kappa (theta - X_t) dt + sigma sqrt(X_t) dB^H_t, truncated at zero."""

    kind: ClassVar[str] = "fcir"


@register_process
class FractionalJacobi(FractionalSpec, Jacobi):
    """fJacobi on [0, 1], same boundary rule as Jacobi."""

    kind: ClassVar[str] = "fjacobi"


@register_process
class FractionalVasicek(FractionalSpec, Vasicek):
    """fVasicek: dr_t = kappa (theta - r_t) dt + sigma dB^H_t."""

    kind: ClassVar[str] = "fvasicek"


@register_process
class FractionalHeston(FractionalSpec, Heston):
    """
    Heston with both factors driven by fGn of the same Hurst exponent,
    correlated by rho at each step. hurst < 0.5 gives rough volatility paths.
    """

    kind: ClassVar[str] = "fheston"


@register_process
class JumpFractionalOrnsteinUhlenbeck(FractionalSpec, OrnsteinUhlenbeck):
    """
    fOU with additive compound Poisson jumps:

        dX_t = kappa (theta - X_t) dt + sigma dB^H_t + dJ_t
    """

    kind: ClassVar[str] = "jump_fou"
    has_jumps: ClassVar[bool] = True

    jump_intensity: float = Field(..., gt=0.0)
    jump_sizes: JumpSizes = Field(default_factory=NormalJumps)

    def jump_increments(self, source, shape, dt):
        return compound_poisson_sums(
            source, self.jump_intensity, dt, shape, self.jump_sizes
        )
