"""
Logging system for bson-to-json.

This module provides:
- Console logging to stderr, so stdout stays free for JSON output
- Optional file logging with rotation
- Crash logging for unexpected exceptions
"""

import logging
import logging.handlers
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

APP_LOGGER_NAME = "bson_json_cli"


class ConverterLogger:
    """Logging system for bson-to-json."""

    def __init__(self, config_dir: str, log_level: str = "INFO", console_level: str = "WARNING",
                 log_to_file: bool = False):
        """
        Initialize the logging system.

        Args:
            config_dir: Configuration directory where logs will be stored
            log_level: Level for the log files (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            console_level: Level for messages echoed on stderr
            log_to_file: Write rotating log files under <config_dir>/logs
        """
        self.config_dir = Path(config_dir)
        self.log_level = getattr(logging, log_level.upper())
        self.console_level = getattr(logging, console_level.upper())
        self.log_to_file = log_to_file
        self.log_dir = self.config_dir / "logs"
        self._handlers = []

        # Error tracking
        self.error_count = 0
        self.crash_count = 0

        self._setup_loggers()
        self._setup_crash_logging()

    def _setup_loggers(self):
        """Setup the application logger with its handlers."""
        self.app_logger = logging.getLogger(APP_LOGGER_NAME)
        self.app_logger.setLevel(min(self.log_level, self.console_level))

        self._setup_console_handler()
        if self.log_to_file:
            self._setup_file_handlers()

    def _setup_file_handlers(self):
        """Setup file handlers with rotation."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        app_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / "bson-to-json.log",
            maxBytes=5*1024*1024,  # 5MB
            backupCount=3,
            encoding="utf-8"
        )
        app_handler.setLevel(self.log_level)
        app_handler.setFormatter(self._get_formatter())
        self._add_handler(self.app_logger, app_handler)

    def _setup_console_handler(self):
        """Setup console handler for immediate feedback."""
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(self._get_console_formatter())
        self._add_handler(self.app_logger, console_handler)

    def _add_handler(self, logger: logging.Logger, handler: logging.Handler):
        logger.addHandler(handler)
        self._handlers.append((logger, handler))

    def _get_formatter(self):
        """Get detailed formatter for file logging."""
        return logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )

    def _get_console_formatter(self):
        """Get simple formatter for console output."""
        return logging.Formatter('%(levelname)s: %(message)s')

    def _setup_crash_logging(self):
        """Setup crash logging system."""
        self.crash_logger = logging.getLogger(f"{APP_LOGGER_NAME}.crash")
        self.crash_logger.setLevel(logging.ERROR)

        if self.log_to_file:
            # Crash log handler (no rotation for crash logs)
            crash_handler = logging.FileHandler(self.log_dir / "crashes.log", encoding="utf-8")
            crash_handler.setFormatter(self._get_formatter())
            self._add_handler(self.crash_logger, crash_handler)

    def log_crash(self, error: Exception, context: str = ""):
        """Log an unexpected exception with its traceback."""
        self.crash_count += 1
        self.crash_logger.error(
            f"CRASH - {error}\n"
            f"Context: {context}\n"
            f"Timestamp: {datetime.now().isoformat()}\n"
            f"Traceback: {traceback.format_exc()}"
        )

    def log_conversion(self, source: str, destination: str, success: bool, reason: str = ""):
        """Log the outcome of one conversion."""
        if success:
            self.app_logger.info(f"Converted {source} -> {destination}")
        else:
            self.error_count += 1
            self.app_logger.info(f"Failed to convert {source}: {reason}")

    def get_log_summary(self) -> Dict[str, Any]:
        """Get a summary of all logging activity."""
        return {
            'error_count': self.error_count,
            'crash_count': self.crash_count,
            'log_files': {
                'main': str(self.log_dir / "bson-to-json.log"),
                'crashes': str(self.log_dir / "crashes.log")
            } if self.log_to_file else {}
        }

    def cleanup(self):
        """Detach and close the handlers installed by this instance."""
        for logger, handler in self._handlers:
            logger.removeHandler(handler)
            handler.close()
        self._handlers = []

# Global logger instance
_global_logger: Optional[ConverterLogger] = None

def get_logger() -> ConverterLogger:
    """Get the global logger instance."""
    global _global_logger
    if _global_logger is None:
        raise RuntimeError("Logger not initialized. Call setup_logging() first.")
    return _global_logger

def setup_logging(config_dir: str, log_level: str = "INFO", console_level: str = "WARNING",
                  log_to_file: bool = False) -> ConverterLogger:
    """Setup the global logging system, replacing any previous setup."""
    global _global_logger
    if _global_logger is not None:
        _global_logger.cleanup()
    _global_logger = ConverterLogger(config_dir, log_level, console_level, log_to_file)
    return _global_logger

def log_crash(error: Exception, context: str = ""):
    """Log a crash using the global logger, if one is set up."""
    if _global_logger is None:
        logging.getLogger(APP_LOGGER_NAME).exception(f"Unexpected error ({context}): {error}")
        return
    _global_logger.log_crash(error, context)
