"""YAML configuration loading utilities."""

from pathlib import Path

import yaml

from ojas_pulse.config.models import PulseConfig


def load_config(path: Path | str) -> PulseConfig:
    """Load configuration from a YAML file.

    An empty file yields the all-defaults configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        pydantic.ValidationError: If the config is invalid.
    """
    path = Path(path)
    with path.open() as f:
        raw = yaml.safe_load(f)

    return PulseConfig.model_validate(raw or {})


def get_default_config_path() -> Path:
    """Path to ``configs/default.yaml`` at the repository root."""
    return Path(__file__).resolve().parents[3] / "configs" / "default.yaml"
