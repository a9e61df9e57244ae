# src/quant_paths/sde/random_source.py
from __future__ import annotations

from typing import Optional, Tuple, Union

import numpy as np
from numpy.random import SeedSequence

from quant_paths.errors import InvalidParameter

SeedLike = Union[int, SeedSequence, None]


def _check_seed(seed: SeedLike) -> SeedLike:
    if seed is None or isinstance(seed, SeedSequence):
        return seed
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        raise InvalidParameter(f"seed must be a non-negative integer, got {seed!r}")
    if seed < 0:
        raise InvalidParameter(f"seed must be non-negative, got {seed}")
    return int(seed)


def root_sequence(seed: Optional[int]) -> SeedSequence:
    """
    Root SeedSequence of one simulate call.

    With seed=None fresh OS entropy is drawn, so two unseeded calls differ.
    """
    seed = _check_seed(seed)
    if isinstance(seed, SeedSequence):
        return seed
    return SeedSequence(seed)


class RandomSource:
    """
    Seedable standard-normal source backed by a numpy Generator.

    One instance is owned per simulated path; instances never share state.
    """

    def __init__(self, seed: SeedLike = None) -> None:
        self.generator = np.random.default_rng(_check_seed(seed))

    @classmethod
    def for_path(cls, root: SeedSequence, index: int) -> "RandomSource":
        """
        Independent source of path `index`.

        Depends only on the root entropy and the index, so path i is identical
        whatever the ensemble size, chunking or worker count.
        """
        child = SeedSequence(root.entropy, spawn_key=(*root.spawn_key, int(index)))
        return cls(child)

    def draw_standard_normal(self) -> float:
        return float(self.generator.standard_normal())

    def draw_standard_normal_vec(self, n: int) -> np.ndarray:
        return self.generator.standard_normal(int(n))

    def draw_standard_normal_matrix(self, shape: Tuple[int, ...]) -> np.ndarray:
        return self.generator.standard_normal(shape)

    def poisson(self, lam: float, size) -> np.ndarray:
        return self.generator.poisson(lam, size=size)

    def gamma(self, shape: float, scale: float, size) -> np.ndarray:
        return self.generator.gamma(shape, scale, size=size)

    def exponential(self, scale: float, size) -> np.ndarray:
        return self.generator.exponential(scale, size=size)

    def uniform(self, size) -> np.ndarray:
        return self.generator.random(size)

    def wald(self, mean: float, scale: float, size) -> np.ndarray:
        """Inverse Gaussian draws with the given mean and shape parameter."""
        return self.generator.wald(mean, scale, size=size)


def as_source(source: Union[RandomSource, SeedLike]) -> RandomSource:
    """Accept an existing RandomSource or anything RandomSource() accepts."""
    if isinstance(source, RandomSource):
        return source
    return RandomSource(source)
