"""
Custom exceptions for bson-to-json.
"""
from typing import Optional


class ConversionError(Exception):
    """Base exception for conversion errors."""
    pass


class InputError(ConversionError):
    """Exception raised when an input cannot be read or is empty."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class BSONValidationError(ConversionError):
    """Exception raised for structurally malformed BSON."""

    def __init__(self, position: Optional[int], key: Optional[str], reason: Optional[str],
                 path: Optional[str] = None):
        self.position = position
        self.key = key
        self.reason = reason
        self.path = path
        super().__init__(
            f"Invalid bson at pos {position if position is not None else -1}\n"
            f"Key: {key or 'N/A'}\n"
            f"Reason: {reason or 'N/A'}"
        )

    @classmethod
    def from_result(cls, result, path: Optional[str] = None) -> "BSONValidationError":
        """Build the exception from a failed ValidationResult."""
        return cls(result.error_position, result.key, result.reason, path)


class OutputError(ConversionError):
    """Exception raised when a destination cannot be created or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class OutputExistsError(OutputError):
    """Exception raised when a destination exists and overwrite is off."""
    pass


class EncodingError(ConversionError):
    """Exception raised when mapped values cannot be rendered as JSON."""
    pass


class ConfigError(Exception):
    """Exception raised for invalid configuration keys or values."""
    pass
