"""Decoder output configuration."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict


class ConfigError(RuntimeError):
    """Raised for invalid decoder configuration."""


@dataclass(slots=True)
class DecoderConfig:
    """Output formatting and logging options."""

    mac_separator: str = " "
    data_separator: str = " "
    write_header: bool = True
    write_summary: bool = True
    log_level: str = "WARNING"


_STR_KEYS = ("mac_separator", "data_separator", "log_level")
_BOOL_KEYS = ("write_header", "write_summary")


def normalize_log_level(level: str) -> str:
    name = level.upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ConfigError(f"Unknown log_level '{level}'.")
    return name


def config_from_dict(raw: Dict[str, Any]) -> DecoderConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Decoder config must be a JSON object.")

    known = {f.name for f in fields(DecoderConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    for key in _STR_KEYS:
        if key in raw and not isinstance(raw[key], str):
            raise ConfigError(f"Config '{key}' must be a string.")
    for key in _BOOL_KEYS:
        if key in raw and not isinstance(raw[key], bool):
            raise ConfigError(f"Config '{key}' must be true or false.")

    cfg = DecoderConfig(**raw)
    cfg.log_level = normalize_log_level(cfg.log_level)
    return cfg


def load_config(path: str | Path) -> DecoderConfig:
    """Load a JSON config file into `DecoderConfig`."""

    try:
        with Path(path).open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config '{path}' is not valid JSON: {exc}") from exc

    return config_from_dict(raw)
