"""
Configuration manager for bson-to-json.
"""
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from .exceptions import ConfigError
from .validators import (
    validate_bool, validate_extension, validate_indent, validate_json_mode,
    validate_log_level,
)

# Get logger for this module
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / '.bson-to-json'

class ConfigManager:
    """Manages persisted defaults for conversions and logging."""

    DEFAULTS: Dict[str, Any] = {
        'overwrite': False,
        'indent': 2,
        'json_mode': 'relaxed',
        'log_level': 'INFO',
        'log_to_file': False,
        'extension': 'bson'
    }

    VALIDATORS: Dict[str, Callable[[Any], Any]] = {
        'overwrite': validate_bool,
        'indent': validate_indent,
        'json_mode': validate_json_mode,
        'log_level': validate_log_level,
        'log_to_file': validate_bool,
        'extension': validate_extension
    }

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize the configuration manager."""
        self.config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        self.config_file = self.config_dir / 'config.json'
        self.config = dict(self.DEFAULTS)
        self.load_warnings: List[str] = []
        self._load()

    def _load(self):
        """Load configuration from file."""
        if not self.config_file.exists():
            return
        try:
            loaded_config = json.loads(self.config_file.read_text(encoding='utf-8'))
        except (json.JSONDecodeError, OSError) as e:
            self._warn(f"Ignoring unreadable config file {self.config_file}: {str(e)}")
            return
        if not isinstance(loaded_config, dict):
            self._warn(f"Ignoring config file {self.config_file}: expected a JSON object")
            return

        for key, value in loaded_config.items():
            if key not in self.VALIDATORS:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            try:
                self.config[key] = self.VALIDATORS[key](value)
            except ConfigError as e:
                self._warn(f"Ignoring invalid config value for {key}: {str(e)}")

    def _warn(self, message: str):
        """Keep a load problem until logging is set up to report it."""
        logger.debug(message)
        self.load_warnings.append(message)

    def _save(self):
        """Save configuration to file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(json.dumps(self.config, indent=2), encoding='utf-8')

    def get(self, key: str) -> Any:
        """Get a configuration value."""
        if key not in self.DEFAULTS:
            raise ConfigError(f"Unknown config key: {key}")
        return self.config.get(key, self.DEFAULTS[key])

    def set(self, key: str, value: Any) -> Any:
        """Validate, store and persist a configuration value."""
        if key not in self.VALIDATORS:
            raise ConfigError(f"Unknown config key: {key}. Valid keys: {', '.join(sorted(self.VALIDATORS))}")
        self.config[key] = self.VALIDATORS[key](value)
        self._save()
        return self.config[key]

    def as_dict(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return dict(self.config)

    def reset(self):
        """Reset configuration to defaults."""
        self.config = dict(self.DEFAULTS)
        self._save()
