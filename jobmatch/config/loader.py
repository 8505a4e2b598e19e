"""Configuration loader: YAML file plus environment variables."""

from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_CONFIG_CANDIDATES = (
    Path("config.yaml"),
    Path("config") / "config.yaml",
)


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """Load and validate configuration from YAML and the environment.

    Lookup order for the YAML file:
    1. ``config_path`` when given (it must exist)
    2. ``config.yaml`` in the working directory
    3. ``config/config.yaml``
    4. built-in defaults when neither file exists

    Raises:
        ConfigurationError: If the file is unreadable, malformed or fails
            validation, or if an environment variable is malformed.
    """
    config_file = _find_config_file(config_path)
    config_dict = _read_yaml(config_file) if config_file else {}

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping, got {type(config_dict).__name__}",
            suggestions=["Review config.example.yaml for the expected layout"],
        )

    warning_messages = check_for_warnings(config_dict)
    if warning_messages:
        emit_warnings(warning_messages)

    app_config = parse_app_config(config_dict)
    env_config = load_environment_config()
    return app_config, env_config


def parse_app_config(config_dict: dict) -> AppConfig:
    """Validate a raw dictionary, folding pydantic errors into one ConfigurationError."""
    try:
        return AppConfig.model_validate(config_dict)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            error_type = error["type"]
            if error_type == "missing":
                errors.append(f"Missing required field: {field_path}")
            elif error_type == "extra_forbidden":
                errors.append(f"Unknown setting: {field_path}")
            elif error_type in ("string_type", "int_type", "int_parsing", "bool_type", "bool_parsing", "list_type"):
                expected = error_type.split("_")[0]
                errors.append(
                    f"Invalid type for '{field_path}': expected {expected}, got {error.get('input')!r}"
                )
            else:
                errors.append(f"{field_path}: {error['msg']}")

        raise ConfigurationError(
            "Configuration validation failed",
            errors=errors,
            suggestions=[
                "Review config.example.yaml for correct format",
                "Verify field types match the expected schema",
            ],
        ) from e


def _read_yaml(config_file: Path) -> dict:
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} is readable"],
        ) from e

    # An empty file means "all defaults"
    return data if data is not None else {}


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    "Copy config.example.yaml to config.yaml",
                    "Check the --config path and try again",
                ],
            )
        return config_path

    for candidate in DEFAULT_CONFIG_CANDIDATES:
        if candidate.exists():
            return candidate
    return None


def validate_config_file(config_path: Optional[Path] = None) -> bool:
    """Validate a configuration file without touching the environment.

    Uses the same lookup as :func:`load_config`. Prints the outcome and returns
    True when the file is valid or when no file exists and defaults apply.
    """
    try:
        config_file = _find_config_file(config_path)
        if config_file is None:
            print("No configuration file found; built-in defaults apply")
            return True
        config_dict = _read_yaml(config_file)
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration root must be a mapping")
        parse_app_config(config_dict)
    except ConfigurationError as e:
        print(f"Configuration validation failed:\n{e}")
        return False
    print(f"Configuration file {config_file} is valid")
    return True
