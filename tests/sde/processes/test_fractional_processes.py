# tests/sde/processes/test_fractional_processes.py
import numpy as np
import pytest

from quant_paths.errors import InvalidParameter
from quant_paths.sde.processes.diffusions import BrownianMotion
from quant_paths.sde.processes.fractional import (
    FractionalBrownianMotion,
    FractionalCoxIngersollRoss,
    FractionalGeometricBrownianMotion,
    FractionalHeston,
    FractionalJacobi,
    FractionalOrnsteinUhlenbeck,
    FractionalVasicek,
    JumpFractionalOrnsteinUhlenbeck,
)
from quant_paths.sde.processes.jumps import ConstantJumps
from quant_paths.sde.processes.volatility import Heston
from quant_paths.sde.schemas import CorrelationMatrix, TimeGrid
from quant_paths.sde.simulators.ensemble import simulate


def test_half_hurst_fbm_is_brownian_motion():
    grid = TimeGrid(n_steps=64, horizon=1.0)
    fbm = simulate(FractionalBrownianMotion(hurst=0.5), grid, n_paths=10, seed=3, fgn_method="exact")
    bm = simulate(BrownianMotion(), grid, n_paths=10, seed=3)
    assert np.allclose(fbm.paths, bm.paths)


@pytest.mark.parametrize("hurst", [0.3, 0.7])
def test_fbm_terminal_variance(hurst):
    # Var(B_H(T)) = T^{2H}
    grid = TimeGrid(n_steps=64, horizon=2.0)
    ens = simulate(FractionalBrownianMotion(hurst=hurst), grid, n_paths=4000, seed=11)
    assert ens.terminal().var() == pytest.approx(2.0 ** (2 * hurst), rel=0.1)


@pytest.mark.parametrize(
    "spec, x0",
    [
        (FractionalOrnsteinUhlenbeck(hurst=0.7, mean_reversion_speed=1.0, long_run_mean=0.0, volatility=0.2), 0.1),
        (FractionalGeometricBrownianMotion(hurst=0.6, mu=0.05, sigma=0.2), 100.0),
        (FractionalVasicek(hurst=0.4, mean_reversion_speed=0.8, long_run_mean=0.03, volatility=0.01), 0.02),
    ],
)
def test_fractional_kinds_shape_and_reproducibility(spec, x0):
    grid = TimeGrid(n_steps=100, horizon=1.0)
    a = simulate(spec, grid, n_paths=8, initial_value=x0, seed=21)
    b = simulate(spec, grid, n_paths=8, initial_value=x0, seed=21)
    assert a.paths.shape == (8, 101)
    assert np.all(a.paths[:, 0] == x0)
    assert np.array_equal(a.paths, b.paths)


def test_fractional_cir_and_jacobi_respect_state_space():
    grid = TimeGrid(n_steps=200, horizon=1.0)
    fcir = FractionalCoxIngersollRoss(hurst=0.3, mean_reversion_speed=0.5, long_run_mean=0.02, volatility=0.6)
    ens = simulate(fcir, grid, n_paths=100, initial_value=0.02, seed=1)
    assert np.all(ens.paths >= 0.0)

    fjac = FractionalJacobi(hurst=0.3, alpha=0.5, beta=1.0, sigma=1.5)
    ens = simulate(fjac, grid, n_paths=100, initial_value=0.5, seed=2)
    assert np.all((ens.paths >= 0.0) & (ens.paths <= 1.0))


def test_spectral_method_for_long_grids():
    grid = TimeGrid(n_steps=3000, horizon=1.0)
    ens = simulate(FractionalBrownianMotion(hurst=0.8), grid, n_paths=3, seed=4)
    assert ens.paths.shape == (3, 3001)
    assert np.all(np.isfinite(ens.paths))


def test_correlated_fractional_copies():
    grid = TimeGrid(n_steps=32, horizon=1.0)
    ens = simulate(
        FractionalBrownianMotion(hurst=0.7),
        grid,
        n_paths=3000,
        seed=8,
        correlation=CorrelationMatrix.from_rho(0.6),
    )
    assert ens.paths.shape == (3000, 33, 2)
    terminal = ens.terminal()
    assert np.corrcoef(terminal[:, 0], terminal[:, 1])[0, 1] == pytest.approx(0.6, abs=0.05)


@pytest.mark.parametrize("hurst", [0.0, 1.0, 1.2])
def test_hurst_is_validated(hurst):
    with pytest.raises(InvalidParameter):
        FractionalBrownianMotion(hurst=hurst)


def _heston_params():
    return dict(mu=0.0, kappa=2.0, theta=0.04, xi=0.3, rho=-0.7, v0=0.04)


def test_half_hurst_fractional_heston_is_heston():
    grid = TimeGrid(n_steps=40, horizon=1.0)
    fheston = simulate(
        FractionalHeston(hurst=0.5, **_heston_params()),
        grid,
        n_paths=10,
        initial_value=100.0,
        seed=5,
        fgn_method="exact",
    )
    heston = simulate(Heston(**_heston_params()), grid, n_paths=10, initial_value=100.0, seed=5)
    assert fheston.kind == "fheston"
    assert np.allclose(fheston.paths, heston.paths)


def test_rough_heston_variance_stays_non_negative():
    spec = FractionalHeston(hurst=0.3, **_heston_params())
    ens = simulate(spec, TimeGrid(n_steps=100, horizon=1.0), n_paths=200, initial_value=100.0, seed=6)
    assert ens.paths.shape == (200, 101, 2)
    assert np.all(ens.paths[..., 1] >= 0.0)
    assert np.all(np.isfinite(ens.paths))


def _fou_params():
    return dict(hurst=0.7, mean_reversion_speed=1.0, long_run_mean=0.0, volatility=0.2)


def test_jump_fou_adds_mean_reverting_jump_component():
    # with the same noise the difference solves dD = -kappa D dt + dJ,
    # so E[D_T] = lambda E[Y] (1 - e^{-kappa T}) / kappa
    grid = TimeGrid(n_steps=100, horizon=1.0)
    jump_fou = JumpFractionalOrnsteinUhlenbeck(
        jump_intensity=5.0, jump_sizes=ConstantJumps(value=1.0), **_fou_params()
    )
    with_jumps = simulate(jump_fou, grid, n_paths=500, seed=7)
    without = simulate(FractionalOrnsteinUhlenbeck(**_fou_params()), grid, n_paths=500, seed=7)

    diff = with_jumps.terminal() - without.terminal()
    assert diff.mean() == pytest.approx(5.0 * (1.0 - np.exp(-1.0)), abs=0.3)


def test_jump_fou_with_negligible_intensity_is_fou():
    grid = TimeGrid(n_steps=50, horizon=1.0)
    jump_fou = JumpFractionalOrnsteinUhlenbeck(jump_intensity=1e-12, **_fou_params())
    a = simulate(jump_fou, grid, n_paths=6, initial_value=0.1, seed=8)
    b = simulate(FractionalOrnsteinUhlenbeck(**_fou_params()), grid, n_paths=6, initial_value=0.1, seed=8)
    assert np.allclose(a.paths, b.paths)
    with pytest.raises(InvalidParameter):
        JumpFractionalOrnsteinUhlenbeck(jump_intensity=0.0, **_fou_params())
