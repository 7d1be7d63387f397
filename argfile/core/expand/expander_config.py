from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

import yaml


ENV_DETECT_CYCLES = "ARGFILE_DETECT_CYCLES"
ENV_BASE_DIR = "ARGFILE_BASE_DIR"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ExpanderConfig:
    # Off restores unbounded recursion on self-referencing option files.
    detect_cycles: bool = True
    base_dir: Optional[str] = None


class ExpanderConfigError(ValueError):
    pass


def load_config_file(path: str | Path) -> ExpanderConfig:
    """Load expander settings from a YAML file.

    Format:
      detect_cycles: true
      base_dir: path/to/option/files

    Both keys are optional. An empty file yields the defaults.
    """
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        return ExpanderConfig()
    if not isinstance(raw, dict):
        raise ExpanderConfigError("config file must be a mapping")

    unknown = sorted(str(k) for k in raw if k not in ("detect_cycles", "base_dir"))
    if unknown:
        raise ExpanderConfigError(f"unknown config keys: {', '.join(unknown)}")

    config = ExpanderConfig()
    if "detect_cycles" in raw:
        if not isinstance(raw["detect_cycles"], bool):
            raise ExpanderConfigError("detect_cycles must be a boolean")
        config = replace(config, detect_cycles=raw["detect_cycles"])
    if "base_dir" in raw and raw["base_dir"] is not None:
        if not isinstance(raw["base_dir"], str) or not raw["base_dir"].strip():
            raise ExpanderConfigError("base_dir must be a non-empty string")
        config = replace(config, base_dir=raw["base_dir"].strip())
    return config


def _parse_bool(name: str, value: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ExpanderConfigError(f"{name} must be one of: {', '.join(sorted(_TRUE | _FALSE))}")


def apply_env_overrides(
    config: ExpanderConfig, environ: Optional[Mapping[str, str]] = None
) -> ExpanderConfig:
    """Return config with ARGFILE_* environment overrides applied.

    Resolution order:
      1) ARGFILE_DETECT_CYCLES / ARGFILE_BASE_DIR
      2) the given config
    """
    env = os.environ if environ is None else environ

    raw_cycles = (env.get(ENV_DETECT_CYCLES, "") or "").strip()
    if raw_cycles:
        config = replace(config, detect_cycles=_parse_bool(ENV_DETECT_CYCLES, raw_cycles))

    raw_base = (env.get(ENV_BASE_DIR, "") or "").strip()
    if raw_base:
        config = replace(config, base_dir=raw_base)
    return config


def load_and_merge(
    config_file: str | None, environ: Optional[Mapping[str, str]] = None
) -> ExpanderConfig:
    config = load_config_file(config_file) if config_file else ExpanderConfig()
    return apply_env_overrides(config, environ)
