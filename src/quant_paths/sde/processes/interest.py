# src/quant_paths/sde/processes/interest.py
from __future__ import annotations

from typing import ClassVar

import numpy as np
from pydantic import Field

from quant_paths.sde.processes.base import ProcessSpec, register_process
from quant_paths.sde.processes.diffusions import OrnsteinUhlenbeck


@register_process
class Vasicek(OrnsteinUhlenbeck):
    """
    Vasicek short-rate model:

        dr_t = kappa (theta - r_t) dt + sigma dW_t
    """

    kind: ClassVar[str] = "vasicek"


@register_process
class HoLee(ProcessSpec):
    """Ho-Lee short rate with constant drift: dr_t = theta dt + sigma dW_t."""

    kind: ClassVar[str] = "ho_lee"

    theta: float
    sigma: float = Field(..., gt=0.0)

    def drift(self, x, t):
        return np.full_like(x, self.theta)

    def diffusion(self, x, t):
        return np.full_like(x, self.sigma)


@register_process
class HullWhite(ProcessSpec):
    """Hull-White short rate with constant theta: dr_t = (theta - alpha r_t) dt + sigma dW_t."""

    kind: ClassVar[str] = "hull_white"

    theta: float
    alpha: float = Field(..., gt=0.0)
    sigma: float = Field(..., gt=0.0)

    def drift(self, x, t):
        return self.theta - self.alpha * x

    def diffusion(self, x, t):
        return np.full_like(x, self.sigma)
