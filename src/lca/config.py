"""YAML config loader: reads lca.yml into AppConfig."""

from pathlib import Path

import yaml

from lca.schemas.config import AppConfig

DEFAULT_CONFIG_PATH = "lca.yml"


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load and validate a config file.

    Raises ``FileNotFoundError`` if the path doesn't exist and
    ``pydantic.ValidationError`` if the YAML content is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # A list with only commented-out items loads as None.
    ab_test = raw.get("ab_test")
    if isinstance(ab_test, dict):
        for key in ("models", "criteria"):
            if key in ab_test:
                if ab_test[key] is None:
                    del ab_test[key]
                elif isinstance(ab_test[key], list):
                    ab_test[key] = [item for item in ab_test[key] if item]
    elif ab_test is None:
        raw.pop("ab_test", None)
    if raw.get("defaults") is None:
        raw.pop("defaults", None)

    return AppConfig(**raw)
