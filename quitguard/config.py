"""Configuration loading and validation for quitguard hosts."""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, MutableMapping, Tuple

import yaml

from .core.attributes import quit_byte_for

CONFIG_DIRNAME = "config"
CONFIG_FILENAME = "quitguard.yaml"
ENV_CONFIG_PATH = "QUITGUARD_CONFIG"


DEFAULT_CONFIG: Dict[str, Any] = {
    "terminal": {
        "remap_keystroke": True,
        "quit_key": "q",
    },
    "logging": {
        "console_level": "INFO",
        "file_level": "DEBUG",
        "json_logs": False,
        "color": True,
        "log_dir": None,
    },
    "demo": {
        "poll_interval": 0.1,
    },
}


@dataclass(frozen=True)
class ConfigLoadResult:
    """Container for the merged configuration."""

    config: Dict[str, Any]
    sources: Tuple[str, ...]


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, MutableMapping):
        raise ValueError(f"Configuration file {path} must contain a mapping at the root")
    return dict(data)


def _deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], MutableMapping)
            and isinstance(value, MutableMapping)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _collect_sources(
    base_dir: Path, override_paths: Iterable[str | Path] | None
) -> Iterator[Path]:
    yield base_dir / CONFIG_DIRNAME / CONFIG_FILENAME
    env_path = os.getenv(ENV_CONFIG_PATH)
    if env_path:
        yield Path(env_path).expanduser()
    for raw_path in override_paths or ():
        yield Path(raw_path).expanduser()


def _validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    terminal = config.get("terminal")
    if not isinstance(terminal, MutableMapping):
        raise ValueError("Configuration must define a 'terminal' section")
    if not isinstance(terminal.get("remap_keystroke"), bool):
        raise ValueError("terminal.remap_keystroke must be true or false")
    quit_key = terminal.get("quit_key")
    if not isinstance(quit_key, str):
        raise ValueError("terminal.quit_key must be a string")
    quit_byte_for(quit_key)
    for section in ("logging", "demo"):
        if not isinstance(config.get(section), MutableMapping):
            raise ValueError(f"Configuration section '{section}' must be a mapping")
    interval = config["demo"].get("poll_interval")
    if isinstance(interval, bool) or not isinstance(interval, (int, float)):
        raise ValueError("demo.poll_interval must be a number")
    if not math.isfinite(interval) or interval <= 0:
        raise ValueError("demo.poll_interval must be a finite number > 0")
    return config


def load_config(
    *,
    override_paths: Iterable[str | Path] | None = None,
    base_dir: str | Path | None = None,
    include_sources: bool = False,
) -> ConfigLoadResult | Dict[str, Any]:
    """Load defaults merged with YAML overrides, then validate them.

    Overrides are applied in order: ``config/quitguard.yaml`` under
    ``base_dir`` (the working directory by default), the file named by
    ``$QUITGUARD_CONFIG``, then ``override_paths``. Missing files are
    skipped, except for explicit ``override_paths``.
    """

    root = Path(base_dir) if base_dir is not None else Path.cwd()
    explicit = {Path(p).expanduser() for p in override_paths or ()}
    config: Dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG))
    sources: list[str] = []

    for path in _collect_sources(root, override_paths):
        if not path.exists():
            if path in explicit:
                raise FileNotFoundError(f"Configuration file not found: {path}")
            continue
        config = _deep_merge(config, _load_yaml(path))
        sources.append(str(path.resolve()))

    config = _validate_config(config)

    result = ConfigLoadResult(config=config, sources=tuple(sources))
    if include_sources:
        return result
    return result.config


__all__ = ["DEFAULT_CONFIG", "ENV_CONFIG_PATH", "ConfigLoadResult", "load_config"]
