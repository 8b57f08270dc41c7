"""
bson-to-json command modules.
This package contains all the command modules for the CLI.
"""

from . import convert      # Single-file / stdin conversion
from . import batch        # Batch conversion over files or a directory
from . import config       # Configuration management

__all__ = [
    'convert',
    'batch',
    'config'
]
