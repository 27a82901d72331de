"""
Value tree for layered documents.

A JsonNode is a tagged value (null, bool, float, integer, string, vector,
struct) with provenance metadata and merge flags attached to every node.

Example:
    >>> from layerdoc.node import JsonNode
    >>> node = JsonNode.from_native({"items": [{"name": "sword"}]})
    >>> node.resolve_pointer("/items/0/name").as_string()
    'sword'
"""

from layerdoc.node._core import (
    NULL_NODE,
    JsonNode,
    JsonTypeError,
    bool_node,
    float_node,
    int_node,
    string_node,
)
from layerdoc.node._map import JsonMap
from layerdoc.node._pointer import PointerError
from layerdoc.node._text import JsonSyntaxError, parse, parse_with_validity
from layerdoc.node._types import JsonType, JsonVector
from layerdoc.node._yaml import (
    DELETE,
    FragmentLoader,
    ReplaceMarker,
    load_yaml,
    load_yaml_with_validity,
)

__all__ = [
    "DELETE",
    "NULL_NODE",
    "FragmentLoader",
    "JsonMap",
    "JsonNode",
    "JsonSyntaxError",
    "JsonType",
    "JsonTypeError",
    "JsonVector",
    "PointerError",
    "ReplaceMarker",
    "bool_node",
    "float_node",
    "int_node",
    "load_yaml",
    "load_yaml_with_validity",
    "parse",
    "parse_with_validity",
    "string_node",
]
