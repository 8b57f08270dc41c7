"""
Utility functions for bson-to-json.
"""
from .exceptions import (
    BSONValidationError, ConfigError, ConversionError, EncodingError,
    InputError, OutputError, OutputExistsError,
)
from .file_finder import convert_extension, list_files

__all__ = [
    'BSONValidationError',
    'ConfigError',
    'ConversionError',
    'EncodingError',
    'InputError',
    'OutputError',
    'OutputExistsError',
    'convert_extension',
    'list_files'
]
