"""Configuration loading utilities."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from year_builder.config.models import YearBuilderConfig

# Template topology shipped with the package (the 2025 template year)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


class ConfigLoadError(Exception):
    """Raised when configuration cannot be loaded or validated."""

    pass


def load_config(config_path: Optional[str] = None, require_token: bool = True) -> YearBuilderConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to configuration file. If None, the packaged
                    default configuration is used.
        require_token: Fail if the Notion token environment variable is unset

    Returns:
        Validated YearBuilderConfig instance

    Raises:
        ConfigLoadError: If file not found, invalid YAML, validation fails or
                        the token environment variable is missing
    """
    config_file = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not config_file.exists():
        raise ConfigLoadError(
            f"Configuration file not found: {config_file}\n"
            f"Run 'year-builder init' to write an editable copy of the default."
        )

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {config_file}: {e}") from e
    except OSError as e:
        raise ConfigLoadError(f"Failed to read {config_file}: {e}") from e

    if config_data is None:
        raise ConfigLoadError(f"Configuration file is empty: {config_file}")
    if not isinstance(config_data, dict):
        raise ConfigLoadError(f"Configuration must be a mapping: {config_file}")

    try:
        config = YearBuilderConfig(**config_data)
    except ValidationError as e:
        raise ConfigLoadError(f"Configuration validation failed:\n{e}") from e

    if require_token and not os.getenv(config.token_env):
        raise ConfigLoadError(
            f"Environment variable {config.token_env} not set "
            f"(required for the Notion integration token)"
        )

    return config


def create_example_config(output_path: str = ".year-builder/config.yaml", force: bool = False) -> Path:
    """Write an editable copy of the default configuration.

    Args:
        output_path: Where to write the config
        force: Overwrite an existing file

    Returns:
        Path of the written file

    Raises:
        ConfigLoadError: If the file exists (without force) or cannot be written
    """
    output_file = Path(output_path)
    if output_file.exists() and not force:
        raise ConfigLoadError(f"Configuration file already exists: {output_path}")

    output_file.parent.mkdir(parents=True, exist_ok=True)

    try:
        output_file.write_text(DEFAULT_CONFIG_PATH.read_text(encoding="utf-8"), encoding="utf-8")
    except OSError as e:
        raise ConfigLoadError(f"Failed to write example config to {output_path}: {e}") from e

    return output_file
