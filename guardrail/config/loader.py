"""Configuration loading utilities."""

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import TypeAdapter, ValidationError
from pydantic_settings import SettingsError

from guardrail.config.schema import ExecToolConfig, GuardrailSettings
from guardrail.exec.types import DEFAULT_ALLOWED_COMMANDS


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case recursively."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def parse_list(value: str | None) -> list[str]:
    """Split a comma-separated CLI value, dropping empty entries."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read a JSON config file into snake_case keys.

    Missing, unreadable, or malformed files yield an empty dict.
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config {path}: expected a JSON object")
        return {}

    return convert_keys(data)


_STRING_LIST = TypeAdapter(list[str])


def _validate_section(name: str, validate, value: Any, default: Any) -> Any:
    if value is None:
        return default
    try:
        return validate(value)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid '{name}' setting: {e}")
        return default


def _fallback_settings(data: dict[str, Any]) -> GuardrailSettings:
    """
    Build settings from file and CLI values only, one section at a time.

    Environment values are skipped, and a bad section does not discard
    the valid ones.
    """
    return GuardrailSettings.model_construct(
        allowed_commands=_validate_section(
            "allowed_commands", _STRING_LIST.validate_python,
            data.get("allowed_commands"), list(DEFAULT_ALLOWED_COMMANDS),
        ),
        allowed_paths=_validate_section(
            "allowed_paths", _STRING_LIST.validate_python,
            data.get("allowed_paths"), [],
        ),
        exec=_validate_section(
            "exec", ExecToolConfig.model_validate,
            data.get("exec"), ExecToolConfig(),
        ),
    )


def load_config(
    config_path: Path | None = None,
    allowed_commands: str | None = None,
    allowed_paths: str | None = None,
) -> GuardrailSettings:
    """
    Build settings from an optional JSON file and CLI overrides.

    CLI values win over the file. An empty command list falls back to the
    defaults; an empty path list means no path restriction.
    """
    data = read_config_file(config_path) if config_path else {}

    commands = parse_list(allowed_commands)
    if commands:
        data["allowed_commands"] = commands
    paths = parse_list(allowed_paths)
    if paths:
        data["allowed_paths"] = paths

    try:
        settings = GuardrailSettings(**data)
    except (ValidationError, SettingsError) as e:
        logger.warning(f"Invalid config values, validating each section alone: {e}")
        settings = _fallback_settings(data)

    if not settings.allowed_commands:
        settings.allowed_commands = list(DEFAULT_ALLOWED_COMMANDS)

    return settings
