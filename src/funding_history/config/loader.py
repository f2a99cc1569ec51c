"""Config loader — reads the config file, applies FUNDING_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from funding_history.config.schema import AppConfig
from funding_history.exceptions import ConfigError

# env var -> (section, key)
_ENV_OVERRIDES = {
    "FUNDING_LOG_LEVEL": ("logging", "level"),
    "FUNDING_LOG_FORMAT": ("logging", "format"),
    "FUNDING_NETWORK": ("hyperliquid", "network"),
    "FUNDING_OUTPUT_DIR": ("output", "directory"),
}


def _read_mapping(path: str | Path) -> dict:
    p = Path(path)
    try:
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {p}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read config file {p}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse config file {p}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"config file {p} must contain a mapping at the top level")
    return data


def load_config(path: str | Path) -> AppConfig:
    """Load config from a JSON (or YAML) file, then apply env var overrides.

    JSON documents are valid YAML, so ``config.json`` is read with the YAML
    parser and may equally be written as ``config.yaml``.

    Environment variable overrides:
        FUNDING_LOG_LEVEL   -> logging.level
        FUNDING_LOG_FORMAT  -> logging.format
        FUNDING_NETWORK     -> hyperliquid.network
        FUNDING_OUTPUT_DIR  -> output.directory

    Raises:
        ConfigError: the file is missing, unreadable, unparseable, or does
            not match the schema (e.g. no ``assets`` list).
    """
    data = _read_mapping(path)

    for env_var, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            target = data.setdefault(section, {})
            if not isinstance(target, dict):
                raise ConfigError(f"config section '{section}' must be a mapping")
            target[key] = value

    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid config file {path}: {exc}") from exc


def load_assets(path: str | Path) -> list[str]:
    """Return the asset identifiers listed in the config file, in file order."""
    return list(load_config(path).assets)
