"""Tests for the BSON decoder and validator."""
import struct

import pytest

from bson_json_cli.core.decoder import (
    MAX_NESTING_DEPTH, BSONDecoder, decode_all, decode_document, validate,
)
from bson_json_cli.core.types import (
    Array, Binary, Boolean, BSONType, Code, CodeWithScope, DateTime,
    DBPointer, Decimal128, Document, Double, Int32, Int64, MaxKey, MinKey,
    Null, ObjectId, Regex, String, Symbol, Timestamp, Undefined,
)

OID = bytes.fromhex('507f1f77bcf86cd799439011')


def test_decode_sample_document(sample_bson):
    """Keys keep their order and values keep their types."""
    document, result = decode_document(sample_bson)

    assert result.is_valid
    assert result.error_position is None
    assert document.keys() == ['a', 'b', 'c']
    assert document.get('a') == Int32(1)
    assert document.get('b') == String('two')
    assert document.get('c') == Array((Int32(1), Int32(2), Int32(3)))


def test_decode_empty_document():
    document, result = decode_document(b'\x05\x00\x00\x00\x00')

    assert result.is_valid
    assert document == Document(())
    assert len(document) == 0


def test_decode_every_type(builder):
    scope = builder.document(builder.int32('x', 1))
    code_with_scope = builder.string('return x;') + scope
    data = builder.document(
        builder.element(0x01, 'double', struct.pack('<d', 1.5)),
        builder.text('string', 'héllo'),
        builder.element(0x03, 'doc', builder.document(builder.text('k', 'v'))),
        builder.array('array', builder.int32('0', 7)),
        builder.element(0x05, 'binary', struct.pack('<i', 3) + b'\x04' + b'abc'),
        builder.element(0x05, 'old_binary', struct.pack('<i', 6) + b'\x02' + struct.pack('<i', 2) + b'hi'),
        builder.element(0x06, 'undefined'),
        builder.element(0x07, 'oid', OID),
        builder.element(0x08, 'true', b'\x01'),
        builder.element(0x08, 'false', b'\x00'),
        builder.element(0x09, 'date', struct.pack('<q', 1577934245678)),
        builder.element(0x0A, 'null'),
        builder.element(0x0B, 'regex', builder.cstring('^a.*') + builder.cstring('im')),
        builder.element(0x0C, 'pointer', builder.string('db.coll') + OID),
        builder.element(0x0D, 'code', builder.string('function() {}')),
        builder.element(0x0E, 'symbol', builder.string('sym')),
        builder.element(0x0F, 'cws', struct.pack('<i', 4 + len(code_with_scope)) + code_with_scope),
        builder.int32('int32', -42),
        builder.element(0x11, 'timestamp', struct.pack('<II', 5, 1700000000)),
        builder.element(0x12, 'int64', struct.pack('<q', 2 ** 40)),
        builder.element(0x13, 'decimal', bytes(range(16))),
        builder.element(0xFF, 'min'),
        builder.element(0x7F, 'max'),
    )

    document, result = decode_document(data)

    assert result.is_valid, result
    values = dict(document.elements)
    assert values['double'] == Double(1.5)
    assert values['string'] == String('héllo')
    assert values['doc'] == Document((('k', String('v')),))
    assert values['array'] == Array((Int32(7),))
    assert values['binary'] == Binary(4, b'abc')
    assert values['old_binary'] == Binary(2, b'hi')
    assert values['undefined'] == Undefined()
    assert values['oid'] == ObjectId(OID)
    assert values['oid'].hex == '507f1f77bcf86cd799439011'
    assert values['true'] == Boolean(True)
    assert values['false'] == Boolean(False)
    assert values['date'] == DateTime(1577934245678)
    assert values['null'] == Null()
    assert values['regex'] == Regex('^a.*', 'im')
    assert values['pointer'] == DBPointer('db.coll', ObjectId(OID))
    assert values['code'] == Code('function() {}')
    assert values['symbol'] == Symbol('sym')
    assert values['cws'] == CodeWithScope('return x;', Document((('x', Int32(1)),)))
    assert values['int32'] == Int32(-42)
    assert values['timestamp'] == Timestamp(time=1700000000, increment=5)
    assert values['int64'] == Int64(2 ** 40)
    assert values['decimal'] == Decimal128(bytes(range(16)))
    assert values['min'] == MinKey()
    assert values['max'] == MaxKey()
    assert values['max'].bson_type is BSONType.MAX_KEY


def test_duplicate_keys_are_kept_in_order(builder):
    data = builder.document(builder.int32('k', 1), builder.int32('other', 2), builder.int32('k', 3))

    document, result = decode_document(data)

    assert result.is_valid
    assert document.keys() == ['k', 'other', 'k']
    assert document.get('k') == Int32(1)


def test_array_keys_are_not_enforced(builder):
    data = builder.document(builder.array('list', builder.int32('x', 1), builder.int32('y', 2)))

    document, result = decode_document(data)

    assert result.is_valid
    assert document.get('list') == Array((Int32(1), Int32(2)))


@pytest.mark.parametrize('data', [b'', b'\x05', b'\x05\x00\x00'])
def test_buffer_shorter_than_length_prefix(data):
    document, result = decode_document(data)

    assert document is None
    assert not result.is_valid
    assert result.error_position == 0
    assert result.error_position <= len(data)
    assert 'length prefix' in result.reason


def test_declared_length_exceeds_buffer(sample_bson):
    truncated = sample_bson[:30]

    document, result = decode_document(truncated)

    assert document is None
    assert result.error_position == 0
    assert 'exceeds' in result.reason
    assert '52' in result.reason


@pytest.mark.parametrize('length', [0, 4, -1])
def test_declared_length_too_small(length):
    data = struct.pack('<i', length) + b'\x00'

    result = validate(data)

    assert not result.is_valid
    assert result.error_position == 0
    assert f'invalid document length {length}' == result.reason


def test_invalid_boolean_reports_byte_position(builder):
    data = builder.document(builder.element(0x08, 'flag', b'\x02'))

    result = validate(data)

    assert not result.is_valid
    assert result.error_position == 10
    assert result.key == 'flag'
    assert '0x02' in result.reason
    assert 'offset 10' in result.reason


def test_nested_fault_reports_dotted_key(builder):
    data = builder.document(
        builder.element(0x03, 'outer', builder.document(builder.element(0x08, 'inner', b'\x07')))
    )

    result = validate(data)

    assert result.error_position == 22
    assert result.key == 'outer.inner'


def test_unknown_type_tag(builder):
    data = builder.document(builder.element(0x20, 'x'))

    result = validate(data)

    assert result.error_position == 4
    assert result.key == 'x'
    assert result.reason == 'unknown element type 0x20'


def test_string_without_null_at_declared_length(builder):
    data = builder.document(builder.element(0x02, 'name', struct.pack('<i', 3) + b'abc\x00'))

    result = validate(data)

    assert result.error_position == 16
    assert result.key == 'name'
    assert 'not null-terminated' in result.reason


def test_string_length_past_document_end(builder):
    data = builder.document(builder.element(0x02, 'name', struct.pack('<i', 100) + b'abc\x00'))

    result = validate(data)

    assert not result.is_valid
    assert result.key == 'name'
    assert result.reason.startswith('truncated string')


def test_zero_string_length_is_invalid(builder):
    data = builder.document(builder.element(0x02, 's', struct.pack('<i', 0)))

    result = validate(data)

    assert result.reason == 'invalid string length 0'


def test_invalid_utf8_in_string(builder):
    data = builder.document(builder.element(0x02, 's', struct.pack('<i', 3) + b'a\xff\x00'))

    result = validate(data)

    assert not result.is_valid
    assert result.error_position == 12
    assert result.reason == 'invalid UTF-8 in string'


def test_invalid_utf8_in_key():
    body = bytes([0x0A]) + b'\xff\x00'
    data = struct.pack('<i', len(body) + 5) + body + b'\x00'

    result = validate(data)

    assert result.error_position == 5
    assert result.key is None
    assert result.reason == 'invalid UTF-8 in element key'


def test_declared_length_longer_than_elements(builder):
    data = bytearray(builder.document(builder.int32('a', 1)) + b'\x00')
    data[0:4] = struct.pack('<i', len(data))

    result = validate(bytes(data))

    assert result.error_position == 11
    assert 'unexpected document terminator' in result.reason


def test_declared_length_shorter_than_elements(builder):
    data = bytearray(builder.document(builder.int32('a', 1)))
    data[0:4] = struct.pack('<i', len(data) - 1)

    result = validate(bytes(data))

    assert not result.is_valid
    assert result.key == 'a'
    assert result.reason.startswith('truncated int32')


def test_missing_terminator(builder):
    data = bytearray(builder.document(builder.int32('a', 1)))
    data[-1] = 0x01

    result = validate(bytes(data))

    assert result.error_position == len(data) - 1
    assert 'expected document terminator' in result.reason


def test_trailing_bytes_after_document(sample_bson):
    result = validate(sample_bson + b'\x00\x01')

    assert result.error_position == len(sample_bson)
    assert result.reason.startswith('2 trailing bytes')


def test_truncated_fixed_size_payloads(builder):
    data = builder.document(builder.element(0x07, 'oid', OID[:5]))

    result = validate(data)

    assert result.key == 'oid'
    assert result.reason == 'truncated ObjectId: needs 12 bytes, 5 available'


def test_negative_binary_length(builder):
    data = builder.document(builder.element(0x05, 'bin', struct.pack('<i', -1) + b'\x00'))

    result = validate(data)

    assert result.reason == 'invalid binary length -1'


def test_old_binary_inner_length_mismatch(builder):
    payload = struct.pack('<i', 6) + b'\x02' + struct.pack('<i', 5) + b'hi'
    data = builder.document(builder.element(0x05, 'bin', payload))

    result = validate(data)

    assert 'inner length 5' in result.reason


def test_code_with_scope_length_mismatch(builder):
    content = builder.string('x') + builder.document()
    data = builder.document(builder.element(0x0F, 'cws', struct.pack('<i', 4 + len(content) + 1) + content + b'\x00'))

    result = validate(data)

    assert result.key == 'cws'
    assert 'does not match its content' in result.reason


def test_code_with_scope_too_short(builder):
    data = builder.document(builder.element(0x0F, 'cws', struct.pack('<i', 8) + b'\x00' * 4))

    result = validate(data)

    assert result.reason == 'invalid code with scope length 8'


def test_regex_without_terminated_options(builder):
    data = builder.document(builder.element(0x0B, 're', builder.cstring('abc') + b'i'))

    result = validate(data)

    assert result.key == 're'
    assert result.reason == 'regex options is not null-terminated'


def _nested(builder, levels):
    data = builder.document()
    for _ in range(levels):
        data = builder.document(builder.element(0x03, 'n', data))
    return data


def test_nesting_at_limit_is_accepted(builder):
    assert validate(_nested(builder, MAX_NESTING_DEPTH)).is_valid


def test_nesting_beyond_limit_is_rejected(builder):
    result = validate(_nested(builder, MAX_NESTING_DEPTH + 1))

    assert not result.is_valid
    assert result.reason == f'document nesting exceeds {MAX_NESTING_DEPTH} levels'


def test_custom_depth_limit(builder):
    document, result = BSONDecoder(max_depth=1).decode(_nested(builder, 2))

    assert document is None
    assert result.key == 'n.n'


def test_decoder_instance_is_reusable(builder, sample_bson):
    decoder = BSONDecoder()

    _, bad = decoder.decode(builder.document(builder.element(0x08, 'flag', b'\x09')))
    document, good = decoder.decode(sample_bson)

    assert not bad.is_valid
    assert good.is_valid
    assert document.keys() == ['a', 'b', 'c']


def test_decode_all_concatenated(builder, sample_bson):
    second = builder.document(builder.text('name', 'second'))

    documents, result = decode_all(sample_bson + second)

    assert result.is_valid
    assert len(documents) == 2
    assert documents[1].get('name') == String('second')


def test_decode_all_stops_at_first_fault(sample_bson):
    documents, result = decode_all(sample_bson + sample_bson[:10])

    assert len(documents) == 1
    assert not result.is_valid
    assert result.error_position == len(sample_bson)


def test_decode_matches_pymongo_encoder():
    bson = pytest.importorskip('bson')
    raw = bson.encode({
        '_id': bson.ObjectId('507f1f77bcf86cd799439011'),
        'name': 'widget',
        'count': bson.Int64(3),
        'price': bson.Decimal128('9.99'),
        'tags': ['a', 'b'],
    })

    document, result = decode_document(raw)

    assert result.is_valid
    assert document.keys() == ['_id', 'name', 'count', 'price', 'tags']
    assert document.get('_id') == ObjectId(OID)
    assert document.get('count') == Int64(3)
    assert document.get('price') == Decimal128(bson.Decimal128('9.99').bid)
    assert document.get('tags') == Array((String('a'), String('b')))
