"""
Pretty-printing JSON renderer.

Objects keep the order of their pairs, repeated keys included; scalar
escaping is delegated to the ``json`` module.
"""
import json
import math
from typing import Any, Iterator

from ..utils.exceptions import EncodingError
from .mapper import JSONObject

DEFAULT_INDENT = 2


def _scalar(value: Any) -> str:
    if isinstance(value, float) and not math.isfinite(value):
        raise EncodingError(f"Cannot render non-finite number {value!r} as JSON")
    return json.dumps(value, ensure_ascii=False, allow_nan=False)


def _iter_render(value: Any, indent: int, level: int) -> Iterator[str]:
    if isinstance(value, (JSONObject, dict)):
        pairs = list(value.items())
        if not pairs:
            yield '{}'
            return
        inner = '\n' + ' ' * (indent * (level + 1))
        yield '{'
        for index, (key, item) in enumerate(pairs):
            if not isinstance(key, str):
                raise EncodingError(f"JSON object keys must be strings, got {type(key).__name__}")
            yield (',' if index else '') + inner + _scalar(key) + ': '
            yield from _iter_render(item, indent, level + 1)
        yield '\n' + ' ' * (indent * level) + '}'
    elif isinstance(value, (list, tuple)):
        if not value:
            yield '[]'
            return
        inner = '\n' + ' ' * (indent * (level + 1))
        yield '['
        for index, item in enumerate(value):
            yield (',' if index else '') + inner
            yield from _iter_render(item, indent, level + 1)
        yield '\n' + ' ' * (indent * level) + ']'
    else:
        yield _scalar(value)


def render(value: Any, indent: int = DEFAULT_INDENT) -> bytes:
    """
    Serialize a mapped JSON tree to UTF-8 bytes.

    Args:
        value: JSONObject, dict, list or scalar produced by the mapper
        indent: Spaces per nesting level

    Returns:
        bytes: Pretty-printed JSON followed by a newline
    """
    if indent < 0:
        raise EncodingError(f"Indent must not be negative, got {indent}")
    try:
        text = ''.join(_iter_render(value, indent, 0))
        return (text + '\n').encode('utf-8')
    except EncodingError:
        raise
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Cannot render JSON: {str(e)}") from e
