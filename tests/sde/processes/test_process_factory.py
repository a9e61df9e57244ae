# tests/sde/processes/test_process_factory.py
import pytest

from quant_paths.errors import InvalidParameter
from quant_paths.sde.processes.diffusions import OrnsteinUhlenbeck
from quant_paths.sde.processes.factory import (
    available_processes,
    build_process,
    describe_process,
)
from quant_paths.sde.processes.jumps import DoubleExponentialJumps, Merton


def test_every_kind_is_registered():
    kinds = set(available_processes())
    assert {
        "bm", "gbm", "ou", "vasicek", "cir", "jacobi", "cev",
        "ho_lee", "hull_white", "heston", "bates", "merton",
        "poisson", "compound_poisson", "variance_gamma",
        "sabr", "nig", "ig",
        "fbm", "fou", "fgbm", "fcir", "fjacobi", "fvasicek", "fheston", "jump_fou",
    } <= kinds


def test_build_process_from_mapping():
    spec = build_process(
        "ou", {"mean_reversion_speed": 1.5, "long_run_mean": 0.0, "volatility": 0.2}
    )
    assert isinstance(spec, OrnsteinUhlenbeck)
    assert spec.kind == "ou"


def test_unknown_kind_and_bad_params():
    with pytest.raises(InvalidParameter):
        build_process("levy_flight", {})
    with pytest.raises(InvalidParameter):
        build_process("ou", {"mean_reversion_speed": 1.5})


def test_describe_round_trips():
    spec = Merton(
        mu=0.05,
        sigma=0.2,
        jump_intensity=0.5,
        jump_sizes=DoubleExponentialJumps(p_up=0.3, eta_up=5.0, eta_down=3.0),
    )
    desc = describe_process(spec)
    assert desc["kind"] == "merton"
    assert desc["params"]["jump_sizes"]["kind"] == "double_exponential"
    assert build_process(desc["kind"], desc["params"]) == spec
