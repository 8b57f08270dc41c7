"""
BSON to Extended JSON value mapping.

Documents become ``JSONObject`` instances so that key order and repeated
keys survive until rendering. Types without a natural JSON form become the
single-key wrapper objects of MongoDB Extended JSON v2, in either relaxed or
canonical mode.
"""
import base64
import decimal
import logging
import math
import struct
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..utils.exceptions import EncodingError
from .types import (
    Array, Binary, Boolean, Code, CodeWithScope, DateTime, DBPointer,
    Decimal128, Document, Double, Int32, Int64, MaxKey, MinKey, Null,
    ObjectId, Regex, String, Symbol, Timestamp, Undefined, Value,
)

# Get logger for this module
logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# 9999-12-31T23:59:59.999Z, the last instant an ISO-8601 year can hold
MAX_ISO_DATE_MILLIS = 253402300799999

DECIMAL128_EXPONENT_BIAS = 6176
DECIMAL128_MAX_COEFFICIENT = 10 ** 34 - 1


class JSONMode(str, Enum):
    """Extended JSON v2 output flavours."""
    RELAXED = 'relaxed'
    CANONICAL = 'canonical'


class JSONObject:
    """Ordered (key, value) pairs of a JSON object. Repeated keys are kept."""

    __slots__ = ('pairs',)

    def __init__(self, pairs: Optional[Iterable[Tuple[str, Any]]] = None):
        self.pairs: List[Tuple[str, Any]] = list(pairs or [])

    def append(self, key: str, value: Any):
        self.pairs.append((key, value))

    def items(self) -> List[Tuple[str, Any]]:
        return list(self.pairs)

    def keys(self) -> List[str]:
        return [key for key, _ in self.pairs]

    def __iter__(self):
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def __eq__(self, other) -> bool:
        return isinstance(other, JSONObject) and self.pairs == other.pairs

    def __repr__(self) -> str:
        return f"JSONObject({self.pairs!r})"


def decimal128_to_string(raw: bytes) -> str:
    """Format a BID-encoded decimal128 the way Extended JSON expects."""
    low, high = struct.unpack('<QQ', raw)
    negative = bool(high >> 63)
    combination = (high >> 58) & 0x1F
    if combination == 0x1F:
        return 'NaN'
    if combination == 0x1E:
        return '-Infinity' if negative else 'Infinity'

    if (high >> 61) & 0x3 == 0x3:
        # This form can only hold coefficients above the maximum, which read as zero
        exponent = (high >> 47) & 0x3FFF
        coefficient = 0
    else:
        exponent = (high >> 49) & 0x3FFF
        coefficient = ((high & 0x1FFFFFFFFFFFF) << 64) | low
        if coefficient > DECIMAL128_MAX_COEFFICIENT:
            coefficient = 0

    digits = tuple(int(digit) for digit in str(coefficient))
    value = decimal.Decimal((int(negative), digits, exponent - DECIMAL128_EXPONENT_BIAS))
    return str(value)


def format_iso_date(millis: int) -> str:
    """Format epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS[.mmm]Z``."""
    moment = EPOCH + timedelta(milliseconds=millis)
    text = (f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
            f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}")
    if millis % 1000:
        text += f".{millis % 1000:03d}"
    return text + 'Z'


class ExtendedJSONMapper:
    """Maps decoded BSON values to JSON-compatible Python values."""

    def __init__(self, mode: JSONMode = JSONMode.RELAXED):
        self.mode = JSONMode(mode)
        self._handlers = {
            Double: self._map_double,
            String: lambda value: value.value,
            Document: self.map_document,
            Array: lambda value: [self.map_value(item) for item in value.items],
            Binary: self._map_binary,
            Undefined: lambda value: {'$undefined': True},
            ObjectId: lambda value: {'$oid': value.hex},
            Boolean: lambda value: value.value,
            DateTime: self._map_datetime,
            Null: lambda value: None,
            Regex: lambda value: {'$regularExpression': {'pattern': value.pattern, 'options': value.options}},
            DBPointer: lambda value: {'$dbPointer': {'$ref': value.namespace, '$id': {'$oid': value.oid.hex}}},
            Code: lambda value: {'$code': value.code},
            Symbol: lambda value: {'$symbol': value.value},
            CodeWithScope: self._map_code_with_scope,
            Int32: self._map_int32,
            Timestamp: lambda value: {'$timestamp': {'t': value.time, 'i': value.increment}},
            Int64: self._map_int64,
            Decimal128: lambda value: {'$numberDecimal': decimal128_to_string(value.raw)},
            MinKey: lambda value: {'$minKey': 1},
            MaxKey: lambda value: {'$maxKey': 1},
        }

    @property
    def canonical(self) -> bool:
        return self.mode is JSONMode.CANONICAL

    def map_document(self, document: Document) -> JSONObject:
        return JSONObject((key, self.map_value(value)) for key, value in document.elements)

    def map_value(self, value: Value) -> Any:
        handler = self._handlers.get(type(value))
        if handler is None:
            raise EncodingError(f"Cannot map value of type {type(value).__name__} to JSON")
        return handler(value)

    def _map_double(self, value: Double) -> Any:
        number = value.value
        if math.isnan(number):
            return {'$numberDouble': 'NaN'}
        if math.isinf(number):
            return {'$numberDouble': 'Infinity' if number > 0 else '-Infinity'}
        if self.canonical:
            return {'$numberDouble': repr(number)}
        return number

    def _map_int32(self, value: Int32) -> Any:
        if self.canonical:
            return {'$numberInt': str(value.value)}
        return value.value

    def _map_int64(self, value: Int64) -> Any:
        if self.canonical:
            return {'$numberLong': str(value.value)}
        return value.value

    def _map_binary(self, value: Binary) -> Dict[str, Any]:
        return {'$binary': {
            'base64': base64.b64encode(value.data).decode('ascii'),
            'subType': f"{value.subtype:02x}",
        }}

    def _map_datetime(self, value: DateTime) -> Dict[str, Any]:
        if not self.canonical and 0 <= value.millis <= MAX_ISO_DATE_MILLIS:
            return {'$date': format_iso_date(value.millis)}
        return {'$date': {'$numberLong': str(value.millis)}}

    def _map_code_with_scope(self, value: CodeWithScope) -> JSONObject:
        return JSONObject([('$code', value.code), ('$scope', self.map_document(value.scope))])


def map_document(document: Document, mode: JSONMode = JSONMode.RELAXED) -> JSONObject:
    """Map one decoded document to its Extended JSON tree."""
    return ExtendedJSONMapper(mode).map_document(document)


def map_documents(documents: Iterable[Document], mode: JSONMode = JSONMode.RELAXED) -> List[JSONObject]:
    """Map several documents, keeping their order, to a JSON array."""
    mapper = ExtendedJSONMapper(mode)
    return [mapper.map_document(document) for document in documents]
