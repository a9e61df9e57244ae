# tests/sde/test_schemas.py
import numpy as np
import pytest

from quant_paths.errors import InvalidParameter, SimulationError
from quant_paths.sde.schemas import CorrelationMatrix, EngineConfig, TimeGrid


def test_time_grid():
    grid = TimeGrid(n_steps=4, horizon=2.0)
    assert grid.step == 0.5
    assert np.allclose(grid.times, [0.0, 0.5, 1.0, 1.5, 2.0])
    assert TimeGrid(n_steps=10).horizon == 1.0


@pytest.mark.parametrize("params", [dict(n_steps=0), dict(n_steps=5, horizon=0.0), dict(n_steps=5, horizon=-1.0)])
def test_time_grid_validation(params):
    with pytest.raises(InvalidParameter):
        TimeGrid(**params)


def test_engine_config_defaults_and_validation():
    cfg = EngineConfig()
    assert cfg.max_workers is None
    assert cfg.fgn_method == "auto"
    assert cfg.exact_fgn_threshold == 1024

    with pytest.raises(InvalidParameter):
        EngineConfig(max_workers=0)
    with pytest.raises(InvalidParameter):
        EngineConfig(fgn_method="hosking")
    with pytest.raises(InvalidParameter):
        EngineConfig(threads=4)


def test_invalid_parameter_is_a_value_error():
    with pytest.raises(ValueError):
        TimeGrid(n_steps=-3)
    assert issubclass(InvalidParameter, SimulationError)


def test_correlation_matrix_constructors():
    c = CorrelationMatrix.from_rho(0.3, dim=3)
    assert c.dim == 3
    assert np.allclose(np.diag(c.values), 1.0)
    assert c.values[0, 2] == 0.3
    assert CorrelationMatrix.coerce(c) is c
    assert CorrelationMatrix.coerce([[1.0]]).dim == 1
    assert np.array_equal(CorrelationMatrix.identity(2).values, np.eye(2))


def test_correlation_matrix_is_read_only():
    c = CorrelationMatrix.identity(2)
    with pytest.raises(ValueError):
        c.values[0, 1] = 0.5


def test_correlation_matrix_shape_validation():
    with pytest.raises(InvalidParameter):
        CorrelationMatrix(np.ones((2, 3)))
    with pytest.raises(InvalidParameter):
        CorrelationMatrix(np.ones((0, 0)))
    with pytest.raises(InvalidParameter):
        CorrelationMatrix.from_rho(0.5, dim=0)
