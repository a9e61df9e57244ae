from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from quant_paths.errors import InvalidParameter
from quant_paths.sde.processes.base import ProcessSpec
from quant_paths.sde.processes.factory import build_process
from quant_paths.sde.schemas import EngineConfig


def _read_mapping(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    text = path.read_text()

    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            raw = yaml.safe_load(text)
        elif path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raise InvalidParameter("Config path must be YAML or JSON.")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise InvalidParameter(f"Failed to parse config: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise InvalidParameter(f"Config root must be a mapping, got {type(raw).__name__}")
    return raw


def load_engine_config(path: str | Path) -> EngineConfig:
    """
    Load an EngineConfig from YAML or JSON.

    An `engine:` section is used when present, otherwise the whole document.
    """
    raw = _read_mapping(path)
    section = raw.get("engine", raw)
    try:
        return EngineConfig.model_validate(section)
    except ValidationError as e:
        raise InvalidParameter(f"Invalid EngineConfig: {e}") from e


def load_process(path: str | Path) -> ProcessSpec:
    """
    Load a process spec from a `process:` section:

        process:
          kind: ou
          params: {mean_reversion_speed: 1.5, long_run_mean: 0.0, volatility: 0.2}
    """
    raw = _read_mapping(path)
    section = raw.get("process")
    if not isinstance(section, dict) or "kind" not in section:
        raise InvalidParameter("Config must include process.kind")
    return build_process(section["kind"], section.get("params") or {})
