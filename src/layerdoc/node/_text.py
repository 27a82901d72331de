"""
JSON text form of node trees.

Writing:
- compact: no whitespace at all
- pretty: tab-indented; nodes that are ``is_compact()`` stay on one line

Struct keys are written in sorted order. Children that carry flags are
written as ``"key#flag"`` so that override markers survive a round trip
through text.

Reading:
- ``parse()`` raises JsonSyntaxError on malformed input
- ``parse_with_validity()`` never raises for malformed input; it returns a
  best-effort tree (NULL when nothing could be read) and a validity flag

Keys of the form ``"name#flag1#flag2"`` attach flags to the child stored
under ``name``. Unknown flags are kept but make the text invalid.
"""

from __future__ import annotations

import json as _json
import logging as _logging
import typing as _typing

import layerdoc.constants as constants
import layerdoc.node._core as _core
import layerdoc.node._types as _types

_logger = _logging.getLogger(__name__)

_INDENT = "\t"


class JsonSyntaxError(ValueError):
    """Text could not be read as a JSON document."""

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"{message}{location}")


# =============================================================================
# Writing
# =============================================================================


def to_json(node: _core.JsonNode, compact: bool = False) -> str:
    """
    Serialize a tree to JSON text.

    Raises:
        ValueError: If the tree holds a NaN or infinite float, which JSON
            cannot represent.
    """
    parts: list[str] = []
    if compact:
        _write_compact(node, parts)
    else:
        _write_pretty(node, parts, 0)
    return "".join(parts)


def _scalar_text(node: _core.JsonNode) -> str:
    json_type = node.get_type()
    if json_type is _types.JsonType.NULL:
        return "null"
    if json_type is _types.JsonType.BOOL:
        return "true" if node.as_bool() else "false"
    if json_type is _types.JsonType.INTEGER:
        return str(node.as_integer())
    if json_type is _types.JsonType.FLOAT:
        return _json.dumps(node.as_float(), allow_nan=False)
    return _json.dumps(node.as_string(), ensure_ascii=False)


def _key_text(key: str, child: _core.JsonNode) -> str:
    if child.flags:
        key = constants.FLAG_SEPARATOR.join([key, *child.flags])
    return _json.dumps(key, ensure_ascii=False)


def _write_compact(node: _core.JsonNode, parts: list[str]) -> None:
    if node.is_vector():
        parts.append("[")
        for index, child in enumerate(node.as_vector()):
            if index:
                parts.append(",")
            _write_compact(child, parts)
        parts.append("]")
    elif node.is_struct():
        parts.append("{")
        for index, (key, child) in enumerate(node.as_struct().items()):
            if index:
                parts.append(",")
            parts.append(_key_text(key, child))
            parts.append(":")
            _write_compact(child, parts)
        parts.append("}")
    else:
        parts.append(_scalar_text(node))


def _write_inline(node: _core.JsonNode, parts: list[str]) -> None:
    """Single-line form with spacing, used for compact nodes in pretty mode."""
    if node.is_vector():
        children = node.as_vector()
        if not children:
            parts.append("[]")
            return
        parts.append("[ ")
        for index, child in enumerate(children):
            if index:
                parts.append(", ")
            _write_inline(child, parts)
        parts.append(" ]")
    elif node.is_struct():
        children = node.as_struct()
        if not children:
            parts.append("{}")
            return
        parts.append("{ ")
        for index, (key, child) in enumerate(children.items()):
            if index:
                parts.append(", ")
            parts.append(_key_text(key, child))
            parts.append(" : ")
            _write_inline(child, parts)
        parts.append(" }")
    else:
        parts.append(_scalar_text(node))


def _write_pretty(node: _core.JsonNode, parts: list[str], depth: int) -> None:
    if node.is_compact():
        _write_inline(node, parts)
        return

    inner = _INDENT * (depth + 1)
    if node.is_vector():
        parts.append("[\n")
        children = node.as_vector()
        for index, child in enumerate(children):
            parts.append(inner)
            _write_pretty(child, parts, depth + 1)
            parts.append(",\n" if index + 1 < len(children) else "\n")
        parts.append(_INDENT * depth + "]")
    else:
        parts.append("{\n")
        items = list(node.as_struct().items())
        for index, (key, child) in enumerate(items):
            parts.append(inner)
            parts.append(_key_text(key, child))
            parts.append(" : ")
            _write_pretty(child, parts, depth + 1)
            parts.append(",\n" if index + 1 < len(items) else "\n")
        parts.append(_INDENT * depth + "}")


# =============================================================================
# Reading
# =============================================================================


class _Pairs(list[tuple[str, _typing.Any]]):
    """Key/value pairs of one JSON object, in document order."""


def _decode(data: bytes | bytearray | str) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8-sig")
    return data


def parse(data: bytes | bytearray | str, *, meta: str = "") -> _core.JsonNode:
    """
    Parse JSON text into a tree.

    Args:
        data: UTF-8 bytes or text.
        meta: Provenance string set on every node of the result.

    Raises:
        JsonSyntaxError: If the text is not valid JSON or uses unknown flags.
    """
    node, problems = _parse(data, meta)
    if problems:
        raise JsonSyntaxError(problems[0])
    return node


def parse_with_validity(
    data: bytes | bytearray | str,
    *,
    meta: str = "",
) -> tuple[_core.JsonNode, bool]:
    """
    Parse JSON text without raising for malformed input.

    Problems are logged at WARNING level.

    Returns:
        Tuple of (tree, is_valid). On a syntax error the tree is NULL; with
        only unknown flags the tree is complete but is_valid is False.
    """
    try:
        node, problems = _parse(data, meta)
    except JsonSyntaxError as e:
        _logger.warning("Malformed JSON%s: %s", f" in {meta}" if meta else "", e)
        result = _core.JsonNode()
        result.meta = meta
        return result, False

    for problem in problems:
        _logger.warning("Invalid JSON%s: %s", f" in {meta}" if meta else "", problem)
    return node, not problems


def _parse(data: bytes | bytearray | str, meta: str) -> tuple[_core.JsonNode, list[str]]:
    try:
        text = _decode(data)
    except UnicodeDecodeError as e:
        raise JsonSyntaxError(f"invalid UTF-8: {e}") from e

    try:
        raw = _json.loads(text, object_pairs_hook=_Pairs, parse_constant=_reject_constant)
    except _json.JSONDecodeError as e:
        raise JsonSyntaxError(e.msg, line=e.lineno, column=e.colno) from e

    problems: list[str] = []
    node = _build(raw, meta, problems)
    return node, problems


def _reject_constant(name: str) -> _typing.NoReturn:
    raise JsonSyntaxError(f"{name} is not a JSON value")


def _build(raw: _typing.Any, meta: str, problems: list[str]) -> _core.JsonNode:
    if isinstance(raw, _Pairs):
        node = _core.JsonNode(_types.JsonType.STRUCT)
        node.meta = meta
        children = node.as_struct()
        for raw_key, raw_value in raw:
            key, *flags = raw_key.split(constants.FLAG_SEPARATOR)
            for flag in flags:
                if flag not in constants.KNOWN_FLAGS:
                    problems.append(f"unknown flag #{flag} on key {key!r}")
            child = _build(raw_value, meta, problems)
            child.flags = flags
            children[key] = child
        return node
    if isinstance(raw, list):
        node = _core.JsonNode(_types.JsonType.VECTOR)
        node.meta = meta
        node.as_vector().extend(_build(item, meta, problems) for item in raw)
        return node
    return _core.JsonNode.from_native(raw, meta=meta)
