"""
Type tags and aliases for JsonNode.

This module provides:
- JsonType: the tag naming which payload a node holds
- JsonVector: alias for the payload of a VECTOR node
"""

from __future__ import annotations

import enum as _enum
import typing as _typing

if _typing.TYPE_CHECKING:
    import layerdoc.node._core as _core


class JsonType(_enum.Enum):
    """Payload tag of a JsonNode."""

    NULL = "null"
    BOOL = "bool"
    FLOAT = "float"
    STRING = "string"
    VECTOR = "vector"
    STRUCT = "struct"
    INTEGER = "integer"


NUMBER_TYPES = frozenset({JsonType.FLOAT, JsonType.INTEGER})

if _typing.TYPE_CHECKING:
    JsonVector: _typing.TypeAlias = list[_core.JsonNode]
else:
    JsonVector: _typing.TypeAlias = list
