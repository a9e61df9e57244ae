# src/quant_paths/sde/processes/factory.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping

# Import process modules at top so every kind is registered.
from quant_paths.sde.processes import diffusions  # noqa: F401
from quant_paths.sde.processes import fractional  # noqa: F401
from quant_paths.sde.processes import interest  # noqa: F401
from quant_paths.sde.processes import jumps  # noqa: F401
from quant_paths.sde.processes import volatility  # noqa: F401
from quant_paths.sde.processes.base import (
    PROCESS_REGISTRY,
    ProcessSpec,
    get_process_class,
)


def available_processes() -> List[str]:
    return sorted(PROCESS_REGISTRY)


def build_process(kind: str, params: Mapping[str, Any] | None = None) -> ProcessSpec:
    """
    Instantiate a registered process kind from a parameter mapping.

    Raises InvalidParameter for an unknown kind or invalid parameters.
    """
    cls = get_process_class(kind)
    return cls(**dict(params or {}))


def describe_process(spec: ProcessSpec) -> Dict[str, Any]:
    """{'kind': ..., 'params': {...}} round-trippable through build_process."""
    return {"kind": spec.kind, "params": spec.model_dump()}
