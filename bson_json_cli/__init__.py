"""
bson-to-json - A command-line tool for converting BSON documents to JSON.
"""

import logging

__version__ = "0.2.0"

# Library users see nothing unless they configure logging themselves
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ['__version__']
