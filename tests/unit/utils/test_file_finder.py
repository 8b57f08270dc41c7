"""Tests for input discovery and output naming."""
from pathlib import Path

import pytest

from bson_json_cli.utils.file_finder import convert_extension, list_files


@pytest.mark.parametrize('source, expected', [
    ('data.bson', 'data.json'),
    ('dir/archive.tar.bson', 'dir/archive.tar.json'),
    ('noext', 'noext.json'),
    ('/abs/path/UPPER.BSON', '/abs/path/UPPER.json'),
])
def test_convert_extension(source, expected):
    assert convert_extension(Path(source)) == Path(expected)


def test_convert_extension_custom():
    assert convert_extension(Path('a.json'), 'txt') == Path('a.txt')


def test_list_files(tmp_path):
    for name in ('b.bson', 'a.BSON', 'c.json', 'd.bson.bak'):
        (tmp_path / name).write_bytes(b'')
    (tmp_path / 'sub.bson').mkdir()
    (tmp_path / 'sub.bson' / 'deep.bson').write_bytes(b'')

    assert [path.name for path in list_files(tmp_path)] == ['a.BSON', 'b.bson']


def test_list_files_other_extension(tmp_path):
    (tmp_path / 'x.dump').write_bytes(b'')
    (tmp_path / 'y.bson').write_bytes(b'')

    assert list_files(tmp_path, 'dump') == [tmp_path / 'x.dump']


def test_list_files_empty(tmp_path):
    assert list_files(tmp_path) == []
