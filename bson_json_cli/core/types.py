"""
BSON value model.

Every BSON element type maps to exactly one frozen dataclass below, so a
decoded tree is a closed set of variants that callers dispatch on with
``isinstance`` or through ``value.bson_type``.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple, Union


class BSONType(IntEnum):
    """Element type tags as they appear on the wire."""
    DOUBLE = 0x01
    STRING = 0x02
    DOCUMENT = 0x03
    ARRAY = 0x04
    BINARY = 0x05
    UNDEFINED = 0x06
    OBJECT_ID = 0x07
    BOOLEAN = 0x08
    DATETIME = 0x09
    NULL = 0x0A
    REGEX = 0x0B
    DB_POINTER = 0x0C
    CODE = 0x0D
    SYMBOL = 0x0E
    CODE_WITH_SCOPE = 0x0F
    INT32 = 0x10
    TIMESTAMP = 0x11
    INT64 = 0x12
    DECIMAL128 = 0x13
    MAX_KEY = 0x7F
    MIN_KEY = 0xFF


@dataclass(frozen=True)
class Double:
    value: float
    bson_type = BSONType.DOUBLE


@dataclass(frozen=True)
class String:
    value: str
    bson_type = BSONType.STRING


@dataclass(frozen=True)
class Binary:
    subtype: int
    data: bytes
    bson_type = BSONType.BINARY


@dataclass(frozen=True)
class Undefined:
    bson_type = BSONType.UNDEFINED


@dataclass(frozen=True)
class ObjectId:
    raw: bytes
    bson_type = BSONType.OBJECT_ID

    @property
    def hex(self) -> str:
        return self.raw.hex()


@dataclass(frozen=True)
class Boolean:
    value: bool
    bson_type = BSONType.BOOLEAN


@dataclass(frozen=True)
class DateTime:
    """UTC datetime as signed milliseconds since the Unix epoch."""
    millis: int
    bson_type = BSONType.DATETIME


@dataclass(frozen=True)
class Null:
    bson_type = BSONType.NULL


@dataclass(frozen=True)
class Regex:
    pattern: str
    options: str
    bson_type = BSONType.REGEX


@dataclass(frozen=True)
class DBPointer:
    namespace: str
    oid: ObjectId
    bson_type = BSONType.DB_POINTER


@dataclass(frozen=True)
class Code:
    code: str
    bson_type = BSONType.CODE


@dataclass(frozen=True)
class Symbol:
    value: str
    bson_type = BSONType.SYMBOL


@dataclass(frozen=True)
class Int32:
    value: int
    bson_type = BSONType.INT32


@dataclass(frozen=True)
class Timestamp:
    time: int
    increment: int
    bson_type = BSONType.TIMESTAMP


@dataclass(frozen=True)
class Int64:
    value: int
    bson_type = BSONType.INT64


@dataclass(frozen=True)
class Decimal128:
    """IEEE 754-2008 decimal128 in BID encoding, kept as its 16 raw bytes."""
    raw: bytes
    bson_type = BSONType.DECIMAL128


@dataclass(frozen=True)
class MinKey:
    bson_type = BSONType.MIN_KEY


@dataclass(frozen=True)
class MaxKey:
    bson_type = BSONType.MAX_KEY


@dataclass(frozen=True)
class Document:
    """Ordered key/value pairs. Keys may repeat; order is preserved."""
    elements: Tuple[Tuple[str, "Value"], ...] = ()
    bson_type = BSONType.DOCUMENT

    def __iter__(self) -> Iterator[Tuple[str, "Value"]]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def keys(self) -> List[str]:
        return [key for key, _ in self.elements]

    def get(self, key: str, default: Optional["Value"] = None) -> Optional["Value"]:
        """Return the first value stored under ``key``."""
        for name, value in self.elements:
            if name == key:
                return value
        return default


@dataclass(frozen=True)
class Array:
    items: Tuple["Value", ...] = ()
    bson_type = BSONType.ARRAY

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class CodeWithScope:
    code: str
    scope: Document
    bson_type = BSONType.CODE_WITH_SCOPE


Value = Union[
    Double, String, Document, Array, Binary, Undefined, ObjectId, Boolean,
    DateTime, Null, Regex, DBPointer, Code, Symbol, CodeWithScope, Int32,
    Timestamp, Int64, Decimal128, MinKey, MaxKey,
]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of walking a BSON buffer."""
    is_valid: bool
    error_position: Optional[int] = None
    key: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def failure(cls, position: int, reason: str, key: Optional[str] = None) -> "ValidationResult":
        return cls(is_valid=False, error_position=position, key=key, reason=reason)
