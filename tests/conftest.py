"""Test configuration and fixtures."""
import struct

import pytest
from click.testing import CliRunner


class BSONBuilder:
    """Hand-assembles BSON bytes, including types no encoder writes any more."""

    @staticmethod
    def cstring(text: str) -> bytes:
        return text.encode('utf-8') + b'\x00'

    @staticmethod
    def string(text: str) -> bytes:
        data = text.encode('utf-8') + b'\x00'
        return struct.pack('<i', len(data)) + data

    @classmethod
    def element(cls, tag: int, key: str, payload: bytes = b'') -> bytes:
        return bytes([tag]) + cls.cstring(key) + payload

    @staticmethod
    def document(*elements: bytes) -> bytes:
        body = b''.join(elements)
        return struct.pack('<i', len(body) + 5) + body + b'\x00'

    @classmethod
    def int32(cls, key: str, value: int) -> bytes:
        return cls.element(0x10, key, struct.pack('<i', value))

    @classmethod
    def text(cls, key: str, value: str) -> bytes:
        return cls.element(0x02, key, cls.string(value))

    @classmethod
    def array(cls, key: str, *values: bytes) -> bytes:
        return cls.element(0x04, key, cls.document(*values))


@pytest.fixture
def builder():
    """Raw BSON byte builder."""
    return BSONBuilder


@pytest.fixture
def sample_bson(builder):
    """{"a": 1, "b": "two", "c": [1, 2, 3]} with int32 numbers."""
    return builder.document(
        builder.int32('a', 1),
        builder.text('b', 'two'),
        builder.array('c', builder.int32('0', 1), builder.int32('1', 2), builder.int32('2', 3)),
    )


@pytest.fixture
def runner():
    """Create a click test runner."""
    return CliRunner()


@pytest.fixture
def config_dir(tmp_path):
    """Isolated configuration directory."""
    path = tmp_path / 'config'
    path.mkdir()
    return path
