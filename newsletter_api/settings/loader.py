import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from newsletter_api.settings.models import Settings

ENVIRONMENTS = ("local", "production")


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {path.name}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping at the top level")
    return data


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(config_dir: Path, environment: str | None = None) -> Settings:
    """
    Load and validate the service configuration.

    Layers, later wins: ``base.yaml``, ``<environment>.yaml``, then
    ``APP_<SECTION>__<KEY>`` environment variables.
    Raises FileNotFoundError if a layer file is missing.
    Raises ValueError if the environment is unknown or the schema invalid.
    """
    environment = (environment or os.environ.get("APP_ENVIRONMENT", "local")).lower()
    if environment not in ENVIRONMENTS:
        raise ValueError(
            f"{environment} is not a supported environment. "
            f"Use either {' or '.join(ENVIRONMENTS)}."
        )

    data = _read_yaml(config_dir / "base.yaml")
    data = _deep_merge(data, _read_yaml(config_dir / f"{environment}.yaml"))

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed:\n{e}") from e


def default_config_dir() -> Path:
    return Path(os.environ.get("APP_CONFIG_DIR", Path.cwd() / "configuration"))
