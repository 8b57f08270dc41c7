"""
BSON decoder and structural validator.

The decoder walks a byte buffer with explicit offsets. Every read is checked
against the end of the enclosing document before it happens, so any byte
sequence yields either a ``Document`` or a ``ValidationResult`` describing the
first fault (offset, dotted key path, reason). Malformed input never raises
out of the public functions.
"""
import logging
import struct
from typing import Callable, Dict, List, Optional, Tuple

from .types import (
    Array, Binary, Boolean, BSONType, Code, CodeWithScope, DateTime,
    DBPointer, Decimal128, Document, Double, Int32, Int64, MaxKey, MinKey,
    Null, ObjectId, Regex, String, Symbol, Timestamp, Undefined,
    ValidationResult, Value,
)

# Get logger for this module
logger = logging.getLogger(__name__)

INT32_STRUCT = struct.Struct('<i')
UINT32_STRUCT = struct.Struct('<I')
INT64_STRUCT = struct.Struct('<q')
DOUBLE_STRUCT = struct.Struct('<d')

MIN_DOCUMENT_SIZE = 5
MIN_CODE_WITH_SCOPE_SIZE = 14
OBJECT_ID_SIZE = 12
DECIMAL128_SIZE = 16
OLD_BINARY_SUBTYPE = 0x02

# MongoDB refuses documents nested deeper than this, and so do we.
MAX_NESTING_DEPTH = 100


class _DecodeFault(Exception):
    """Raised internally at the first structural fault."""

    def __init__(self, position: int, reason: str, key: Optional[str] = None):
        super().__init__(reason)
        self.position = position
        self.reason = reason
        self.key = key


class BSONDecoder:
    """Decodes and validates BSON documents held entirely in memory."""

    def __init__(self, max_depth: int = MAX_NESTING_DEPTH):
        self.max_depth = max_depth
        self._data: bytes = b''
        self._path: List[str] = []
        self._readers: Dict[int, Callable[[int, int, int], Tuple[Value, int]]] = {
            BSONType.DOUBLE: self._read_double,
            BSONType.STRING: self._read_string_value,
            BSONType.DOCUMENT: self._read_embedded_document,
            BSONType.ARRAY: self._read_array,
            BSONType.BINARY: self._read_binary,
            BSONType.UNDEFINED: lambda offset, limit, depth: (Undefined(), offset),
            BSONType.OBJECT_ID: self._read_object_id_value,
            BSONType.BOOLEAN: self._read_boolean,
            BSONType.DATETIME: self._read_datetime,
            BSONType.NULL: lambda offset, limit, depth: (Null(), offset),
            BSONType.REGEX: self._read_regex,
            BSONType.DB_POINTER: self._read_db_pointer,
            BSONType.CODE: self._read_code,
            BSONType.SYMBOL: self._read_symbol,
            BSONType.CODE_WITH_SCOPE: self._read_code_with_scope,
            BSONType.INT32: self._read_int32,
            BSONType.TIMESTAMP: self._read_timestamp,
            BSONType.INT64: self._read_int64,
            BSONType.DECIMAL128: self._read_decimal128,
            BSONType.MAX_KEY: lambda offset, limit, depth: (MaxKey(), offset),
            BSONType.MIN_KEY: lambda offset, limit, depth: (MinKey(), offset),
        }

    def decode(self, data: bytes) -> Tuple[Optional[Document], ValidationResult]:
        """Decode a buffer that holds exactly one document."""
        self._reset(data)
        try:
            elements, end = self._read_document(0, len(self._data), 0)
            if end != len(self._data):
                raise self._fault(end, f"{len(self._data) - end} trailing bytes after document end at offset {end}")
        except _DecodeFault as fault:
            return None, self._failure(fault)
        return Document(tuple(elements)), ValidationResult.ok()

    def decode_all(self, data: bytes) -> Tuple[List[Document], ValidationResult]:
        """
        Decode a buffer of concatenated documents, as written by mongodump.

        Returns:
            tuple: documents decoded before the first fault, and the result
        """
        self._reset(data)
        documents: List[Document] = []
        offset = 0
        try:
            while offset < len(self._data):
                elements, offset = self._read_document(offset, len(self._data), 0)
                documents.append(Document(tuple(elements)))
        except _DecodeFault as fault:
            return documents, self._failure(fault)
        return documents, ValidationResult.ok()

    def _reset(self, data: bytes):
        self._data = bytes(data)
        self._path = []

    def _failure(self, fault: _DecodeFault) -> ValidationResult:
        logger.debug(f"Invalid BSON at offset {fault.position} (key: {fault.key}): {fault.reason}")
        return ValidationResult.failure(fault.position, fault.reason, fault.key)

    def _fault(self, position: int, reason: str) -> _DecodeFault:
        key = '.'.join(self._path) if self._path else None
        return _DecodeFault(position, reason, key)

    def _require(self, offset: int, size: int, limit: int, what: str):
        available = limit - offset
        if size > available:
            raise self._fault(offset, f"truncated {what}: needs {size} bytes, {max(available, 0)} available")

    def _read_document(self, start: int, limit: int, depth: int) -> Tuple[List[Tuple[str, Value]], int]:
        """Walk one length-prefixed document and return its elements and end offset."""
        if depth > self.max_depth:
            raise self._fault(start, f"document nesting exceeds {self.max_depth} levels")
        self._require(start, 4, limit, "document length prefix")
        length = INT32_STRUCT.unpack_from(self._data, start)[0]
        if length < MIN_DOCUMENT_SIZE:
            raise self._fault(start, f"invalid document length {length}")
        if length > limit - start:
            raise self._fault(start, f"declared document length {length} exceeds the {limit - start} bytes available")

        terminator = start + length - 1
        offset = start + 4
        elements = []
        while offset < terminator:
            tag_position = offset
            tag = self._data[offset]
            if tag == 0x00:
                raise self._fault(
                    tag_position,
                    f"unexpected document terminator at offset {tag_position}, declared length ends at {terminator}",
                )
            key, offset = self._read_cstring(offset + 1, terminator, "element key")
            self._path.append(key)
            reader = self._readers.get(tag)
            if reader is None:
                raise self._fault(tag_position, f"unknown element type 0x{tag:02x}")
            value, offset = reader(offset, terminator, depth)
            self._path.pop()
            elements.append((key, value))

        if self._data[terminator] != 0x00:
            raise self._fault(
                terminator,
                f"expected document terminator 0x00 at offset {terminator}, found 0x{self._data[terminator]:02x}",
            )
        return elements, terminator + 1

    def _read_cstring(self, offset: int, limit: int, what: str) -> Tuple[str, int]:
        end = self._data.find(b'\x00', offset, limit)
        if end < 0:
            raise self._fault(offset, f"{what} is not null-terminated")
        return self._decode_utf8(offset, end, what), end + 1

    def _read_string(self, offset: int, limit: int, what: str) -> Tuple[str, int]:
        """Read an int32 length-prefixed, null-terminated UTF-8 string."""
        self._require(offset, 4, limit, f"{what} length")
        length = INT32_STRUCT.unpack_from(self._data, offset)[0]
        if length < 1:
            raise self._fault(offset, f"invalid {what} length {length}")
        start = offset + 4
        self._require(start, length, limit, what)
        end = start + length - 1
        if self._data[end] != 0x00:
            raise self._fault(end, f"{what} of declared length {length} is not null-terminated at offset {end}")
        return self._decode_utf8(start, end, what), end + 1

    def _decode_utf8(self, start: int, end: int, what: str) -> str:
        try:
            return self._data[start:end].decode('utf-8')
        except UnicodeDecodeError as e:
            raise self._fault(start + e.start, f"invalid UTF-8 in {what}")

    def _read_double(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, 8, limit, "double")
        return Double(DOUBLE_STRUCT.unpack_from(self._data, offset)[0]), offset + 8

    def _read_string_value(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        value, offset = self._read_string(offset, limit, "string")
        return String(value), offset

    def _read_embedded_document(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        elements, offset = self._read_document(offset, limit, depth + 1)
        return Document(tuple(elements)), offset

    def _read_array(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        elements, offset = self._read_document(offset, limit, depth + 1)
        return Array(tuple(value for _, value in elements)), offset

    def _read_binary(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, 5, limit, "binary header")
        length = INT32_STRUCT.unpack_from(self._data, offset)[0]
        if length < 0:
            raise self._fault(offset, f"invalid binary length {length}")
        subtype = self._data[offset + 4]
        start = offset + 5
        self._require(start, length, limit, "binary data")
        end = start + length
        if subtype == OLD_BINARY_SUBTYPE:
            # Old binary repeats the payload length inside the payload.
            if length < 4:
                raise self._fault(start, f"old binary length {length} is too short for its inner length")
            inner = INT32_STRUCT.unpack_from(self._data, start)[0]
            if inner != length - 4:
                raise self._fault(start, f"old binary inner length {inner} does not match outer length {length}")
            start += 4
        return Binary(subtype, self._data[start:end]), end

    def _read_object_id(self, offset: int, limit: int) -> Tuple[ObjectId, int]:
        self._require(offset, OBJECT_ID_SIZE, limit, "ObjectId")
        return ObjectId(self._data[offset:offset + OBJECT_ID_SIZE]), offset + OBJECT_ID_SIZE

    def _read_object_id_value(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        return self._read_object_id(offset, limit)

    def _read_boolean(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, 1, limit, "boolean")
        byte = self._data[offset]
        if byte not in (0x00, 0x01):
            raise self._fault(offset, f"invalid boolean value 0x{byte:02x} at offset {offset}")
        return Boolean(byte == 0x01), offset + 1

    def _read_datetime(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, 8, limit, "datetime")
        return DateTime(INT64_STRUCT.unpack_from(self._data, offset)[0]), offset + 8

    def _read_regex(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        pattern, offset = self._read_cstring(offset, limit, "regex pattern")
        options, offset = self._read_cstring(offset, limit, "regex options")
        return Regex(pattern, options), offset

    def _read_db_pointer(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        namespace, offset = self._read_string(offset, limit, "DBPointer namespace")
        oid, offset = self._read_object_id(offset, limit)
        return DBPointer(namespace, oid), offset

    def _read_code(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        code, offset = self._read_string(offset, limit, "code")
        return Code(code), offset

    def _read_symbol(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        value, offset = self._read_string(offset, limit, "symbol")
        return Symbol(value), offset

    def _read_code_with_scope(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, 4, limit, "code with scope length")
        total = INT32_STRUCT.unpack_from(self._data, offset)[0]
        if total < MIN_CODE_WITH_SCOPE_SIZE:
            raise self._fault(offset, f"invalid code with scope length {total}")
        self._require(offset, total, limit, "code with scope")
        end = offset + total
        code, position = self._read_string(offset + 4, end, "code")
        elements, position = self._read_document(position, end, depth + 1)
        if position != end:
            raise self._fault(
                position,
                f"code with scope length {total} does not match its content ({position - offset} bytes)",
            )
        return CodeWithScope(code, Document(tuple(elements))), end

    def _read_int32(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, 4, limit, "int32")
        return Int32(INT32_STRUCT.unpack_from(self._data, offset)[0]), offset + 4

    def _read_timestamp(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, 8, limit, "timestamp")
        increment = UINT32_STRUCT.unpack_from(self._data, offset)[0]
        seconds = UINT32_STRUCT.unpack_from(self._data, offset + 4)[0]
        return Timestamp(seconds, increment), offset + 8

    def _read_int64(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, 8, limit, "int64")
        return Int64(INT64_STRUCT.unpack_from(self._data, offset)[0]), offset + 8

    def _read_decimal128(self, offset: int, limit: int, depth: int) -> Tuple[Value, int]:
        self._require(offset, DECIMAL128_SIZE, limit, "decimal128")
        return Decimal128(self._data[offset:offset + DECIMAL128_SIZE]), offset + DECIMAL128_SIZE


def decode_document(data: bytes) -> Tuple[Optional[Document], ValidationResult]:
    """Decode a single BSON document. The document is None when invalid."""
    return BSONDecoder().decode(data)


def decode_all(data: bytes) -> Tuple[List[Document], ValidationResult]:
    """Decode every concatenated document in ``data``."""
    return BSONDecoder().decode_all(data)


def validate(data: bytes) -> ValidationResult:
    """Check that ``data`` holds exactly one well-formed document."""
    _, result = decode_document(data)
    return result
