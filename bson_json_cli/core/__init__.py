"""
Core BSON decoding and JSON transcoding for bson-to-json.
"""
from .decoder import BSONDecoder, decode_all, decode_document, validate
from .mapper import ExtendedJSONMapper, JSONMode, JSONObject, map_document, map_documents
from .renderer import render
from .types import BSONType, Document, ValidationResult

__all__ = [
    'BSONDecoder',
    'BSONType',
    'Document',
    'ExtendedJSONMapper',
    'JSONMode',
    'JSONObject',
    'ValidationResult',
    'decode_all',
    'decode_document',
    'map_document',
    'map_documents',
    'render',
    'validate'
]
