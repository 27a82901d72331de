"""
YAML fragments for layered documents.

Fragments can also be written in YAML. Two tags map onto merge semantics:

- ``!delete``: a NULL tombstone; merging it deletes the key from the base
- ``!replace``: the value carries the override flag; merging it replaces
  the base value instead of deep-merging into it

Example:
    >>> node = load_yaml('''
    ... name: knight
    ... legacy: !delete
    ... army: !replace
    ...   - pikeman
    ... ''')
    >>> node["army"].flags
    ['override']
"""

from __future__ import annotations

import logging as _logging
import typing as _typing

import yaml as _yaml

import layerdoc.constants as constants
import layerdoc.node._core as _core
import layerdoc.node._text as _text

_logger = _logging.getLogger(__name__)

# =============================================================================
# Marker Types
# =============================================================================


class _DeleteMarker:
    """
    Sentinel produced by the !delete tag.

    There is only one instance; compare against DELETE with ``is``.
    """

    _instance: _DeleteMarker | None = None

    def __new__(cls) -> _DeleteMarker:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE"


DELETE = _DeleteMarker()


class ReplaceMarker:
    """
    Wrapper produced by the !replace tag.

    Use `.value` to access the wrapped value.
    """

    __slots__ = ("_value",)

    def __init__(self, value: _typing.Any) -> None:
        self._value = value

    @property
    def value(self) -> _typing.Any:
        return self._value

    def __repr__(self) -> str:
        return f"ReplaceMarker({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReplaceMarker):
            return bool(self._value == other._value)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]


# =============================================================================
# YAML Constructors
# =============================================================================


def _delete_constructor(
    loader: _yaml.SafeLoader,  # noqa: ARG001 - required by YAML constructor API
    node: _yaml.Node,  # noqa: ARG001 - required by YAML constructor API
) -> _DeleteMarker:
    """
    Construct a DELETE marker from the !delete tag.

    Any value after the tag is ignored:
        key: !delete
        key: !delete ~
    """
    return DELETE


def _replace_constructor(
    loader: _yaml.SafeLoader,
    node: _yaml.Node,
) -> ReplaceMarker:
    """
    Construct a ReplaceMarker from the !replace tag.

    The tag wraps whatever value follows:
        key: !replace value
        key: !replace
          nested: dict
        key: !replace [list, items]
    """
    value: _typing.Any
    if isinstance(node, _yaml.MappingNode):
        value = loader.construct_mapping(node, deep=True)
    elif isinstance(node, _yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    elif isinstance(node, _yaml.ScalarNode):
        # Re-resolve plain scalars so that numbers and booleans keep their type
        tag = loader.resolve(_yaml.ScalarNode, node.value, (node.style is None, False))
        value = loader.construct_object(
            _yaml.ScalarNode(tag, node.value, style=node.style), deep=True
        )
    else:
        value = None
    return ReplaceMarker(value)


class FragmentLoader(_yaml.SafeLoader):
    """
    YAML loader for document fragments.

    Extends SafeLoader with the `!delete` and `!replace` tags.
    """


FragmentLoader.add_constructor("!delete", _delete_constructor)
FragmentLoader.add_constructor("!replace", _replace_constructor)


# =============================================================================
# Conversion to nodes
# =============================================================================


def _to_node(value: _typing.Any, meta: str) -> _core.JsonNode:
    if value is DELETE:
        node = _core.JsonNode()
        node.meta = meta
        return node
    if isinstance(value, ReplaceMarker):
        node = _to_node(value.value, meta)
        if constants.OVERRIDE_FLAG not in node.flags:
            node.flags.append(constants.OVERRIDE_FLAG)
        return node
    if isinstance(value, dict):
        node = _core.JsonNode()
        node.meta = meta
        children = node.ensure_struct()
        for key, child in value.items():
            children[str(key)] = _to_node(child, meta)
        return node
    if isinstance(value, list):
        node = _core.JsonNode()
        node.meta = meta
        node.ensure_vector().extend(_to_node(item, meta) for item in value)
        return node
    if value is None or isinstance(value, (bool, int, float, str)):
        return _core.JsonNode.from_native(value, meta=meta)
    # timestamps and other YAML-only scalars are kept as text
    return _core.JsonNode.from_native(str(value), meta=meta)


def load_yaml(stream: _typing.Any, *, meta: str = "") -> _core.JsonNode:
    """
    Load a YAML fragment into a tree.

    Args:
        stream: YAML content (string, bytes, or file-like object).
        meta: Provenance string set on every node of the result.

    Raises:
        JsonSyntaxError: If the YAML is malformed.
    """
    try:
        value = _yaml.load(stream, Loader=FragmentLoader)  # noqa: S506 - SafeLoader subclass
    except _yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise _text.JsonSyntaxError(
            f"invalid YAML: {e}",
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
        ) from e
    return _to_node(value, meta)


def load_yaml_with_validity(
    stream: _typing.Any,
    *,
    meta: str = "",
) -> tuple[_core.JsonNode, bool]:
    """Load a YAML fragment; malformed input gives (NULL, False) and a warning."""
    try:
        return load_yaml(stream, meta=meta), True
    except _text.JsonSyntaxError as e:
        _logger.warning("Malformed YAML%s: %s", f" in {meta}" if meta else "", e)
        node = _core.JsonNode()
        node.meta = meta
        return node, False
