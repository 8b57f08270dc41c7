"""
Validation utilities for bson-to-json.
"""
import logging
from pathlib import Path
from typing import Any
from .exceptions import ConfigError

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_JSON_MODES = ['relaxed', 'canonical']
MAX_INDENT = 16

def validate_indent(indent: Any) -> int:
    """Validate the JSON indent width."""
    try:
        value = int(indent)
    except (TypeError, ValueError):
        raise ConfigError(f"Indent must be an integer, got {indent!r}")
    if isinstance(indent, bool) or value < 0 or value > MAX_INDENT:
        raise ConfigError(f"Indent must be between 0 and {MAX_INDENT}")
    return value

def validate_json_mode(mode: Any) -> str:
    """Validate the Extended JSON output mode."""
    if not isinstance(mode, str) or mode.lower() not in VALID_JSON_MODES:
        raise ConfigError(f"JSON mode must be one of: {', '.join(VALID_JSON_MODES)}")
    return mode.lower()

def validate_log_level(level: Any) -> str:
    """Validate a logging level name."""
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        raise ConfigError(f"Log level must be one of: {', '.join(VALID_LOG_LEVELS)}")
    return level.upper()

def validate_bool(value: Any) -> bool:
    """Accept booleans and the usual command-line spellings of them."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
    raise ConfigError(f"Expected a boolean value, got {value!r}")

def validate_extension(extension: Any) -> str:
    """Validate a file extension used for directory scans (without the dot)."""
    if not isinstance(extension, str):
        raise ConfigError("Extension must be a string")
    cleaned = extension.strip().lstrip('.').lower()
    if not cleaned:
        raise ConfigError("Extension cannot be empty")
    if any(char in cleaned for char in '/\\.'):
        raise ConfigError(f"Extension contains invalid characters: {extension}")
    return cleaned

def validate_directory(directory: str) -> Path:
    """Validate that a directory exists and return it."""
    path = Path(directory)
    if not path.exists():
        raise ConfigError(f"Directory does not exist: {path}")
    if not path.is_dir():
        raise ConfigError(f"Not a directory: {path}")
    logging.getLogger(__name__).debug(f"Validated directory {path}")
    return path
