from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict

from gqmeta import log

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class RegistryConfig(BaseModel):
    """Settings of a Registry and of the annotation surface bound to it.

    Args:
        validate_on_collect: Run the consistency checker after each class is collected
        fail_on_error: Raise RegistryValidationError when that check finds errors
        log_level: Level of the ``gqmeta`` logger
    """

    model_config = ConfigDict(extra="forbid")

    validate_on_collect: bool = False
    fail_on_error: bool = False
    log_level: LogLevel = "INFO"


def load_registry_config(config_path: Path | None) -> RegistryConfig:
    """
    Load and validate a registry configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file, or None for defaults.

    Returns:
        A validated RegistryConfig.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        TypeError: If the YAML root is not a mapping.
        ValidationError: If validation against RegistryConfig fails.
    """
    if config_path is None:
        log.debug("No registry config provided, using defaults")
        return RegistryConfig()

    raw: Any
    with config_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    log.debug("Loaded registry config from %s", config_path)

    # Treat empty file or explicit YAML null as "defaults"
    if raw is None:
        return RegistryConfig()

    if not isinstance(raw, dict):
        raise TypeError(f"Registry config root must be a mapping, got {type(raw).__name__}")

    return RegistryConfig.model_validate(raw)
