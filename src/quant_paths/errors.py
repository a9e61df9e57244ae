# src/quant_paths/errors.py
from __future__ import annotations


class SimulationError(Exception):
    """Base class for every error raised by the path-generation engine."""

    pass


class InvalidParameter(SimulationError, ValueError):
    """A process, grid, config or call argument violates its domain constraint."""

    pass


class FactorizationError(SimulationError, ValueError):
    """A correlation matrix could not be Cholesky-factorized (not PSD)."""

    pass


class NonEmbeddableCovariance(SimulationError):
    """
    Circulant embedding produced an eigenvalue below -tolerance.

    Retry with a larger embedding or use the exact (Cholesky) fGn method.
    """

    pass
