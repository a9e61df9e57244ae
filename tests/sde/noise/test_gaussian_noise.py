# tests/sde/noise/test_gaussian_noise.py
import numpy as np
import pytest

from quant_paths.errors import FactorizationError, InvalidParameter
from quant_paths.sde.noise.gaussian import (
    GaussianNoise,
    cholesky_factor,
    correlated_gaussian,
    independent_gaussian,
)
from quant_paths.sde.random_source import RandomSource
from quant_paths.sde.schemas import CorrelationMatrix


def test_independent_gaussian_moments():
    dt = 0.01
    z = independent_gaussian(20000, source=RandomSource(1), dt=dt)
    assert z.shape == (20000,)
    assert abs(z.mean()) < 0.005
    assert abs(z.var() / dt - 1.0) < 0.05


def test_independent_gaussian_reproducible_from_seed():
    a = independent_gaussian(100, source=123)
    b = independent_gaussian(100, source=123)
    assert np.array_equal(a, b)


def test_correlated_gaussian_identity_is_uncorrelated():
    z = correlated_gaussian(50000, CorrelationMatrix.identity(3), source=RandomSource(7))
    assert z.shape == (50000, 3)
    c = np.corrcoef(z, rowvar=False)
    off = c[~np.eye(3, dtype=bool)]
    assert np.all(np.abs(off) < 0.02)


def test_correlated_gaussian_target_correlation():
    z = correlated_gaussian(
        50000, CorrelationMatrix.from_rho(0.8), source=RandomSource(11), dt=0.5
    )
    assert abs(np.corrcoef(z[:, 0], z[:, 1])[0, 1] - 0.8) < 0.02
    assert np.allclose(z.var(axis=0), 0.5, rtol=0.05)


def test_cholesky_factor_reconstructs_matrix():
    c = np.array([[1.0, 0.3, -0.2], [0.3, 1.0, 0.5], [-0.2, 0.5, 1.0]])
    L = cholesky_factor(c)
    assert np.allclose(L, np.tril(L))
    assert np.allclose(L @ L.T, c)


def test_cholesky_factor_accepts_perfect_correlation():
    L = cholesky_factor(CorrelationMatrix.from_rho(1.0))
    assert np.allclose(L @ L.T, np.ones((2, 2)))

    z = correlated_gaussian(100, CorrelationMatrix.from_rho(1.0), source=RandomSource(3))
    assert np.allclose(z[:, 0], z[:, 1])


@pytest.mark.parametrize(
    "values",
    [
        [[1.0, 1.5], [1.5, 1.0]],
        [[1.0, 0.2], [0.3, 1.0]],
        [[2.0, 0.0], [0.0, 1.0]],
        [[1.0, 0.9, -0.9], [0.9, 1.0, 0.9], [-0.9, 0.9, 1.0]],
    ],
)
def test_cholesky_factor_rejects_invalid_correlation(values):
    with pytest.raises(FactorizationError):
        cholesky_factor(values)


def test_correlation_matrix_shape_is_checked():
    with pytest.raises(InvalidParameter):
        CorrelationMatrix([1.0, 0.5])
    with pytest.raises(InvalidParameter):
        CorrelationMatrix([[1.0, np.nan], [np.nan, 1.0]])


def test_gaussian_noise_sampler_matches_function():
    sampler = GaussianNoise(n_steps=50, dt=0.1)
    a = sampler.sample(RandomSource(5))
    b = independent_gaussian(50, source=RandomSource(5), dt=0.1)
    assert np.allclose(a, b)
    assert sampler.dimension is None


def test_noise_length_is_validated():
    with pytest.raises(InvalidParameter):
        independent_gaussian(0)
    with pytest.raises(InvalidParameter):
        independent_gaussian(10, dt=0.0)
