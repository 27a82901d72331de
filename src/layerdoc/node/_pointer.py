"""
Node pointers: "/"-separated paths into a tree.

Each segment indexes into the current node:
- STRUCT: the segment is a key (numeric-looking keys are still keys)
- VECTOR: the segment must be a base-10 index without leading zeros

The empty pointer is the node itself. There is no escaping, so keys that
contain "/" cannot be addressed.
"""

from __future__ import annotations

import re as _re

import layerdoc.constants as constants
import layerdoc.node._core as _core
import layerdoc.node._types as _types

_INDEX_PATTERN = _re.compile(r"0|[1-9][0-9]*")


class PointerError(LookupError):
    """A pointer segment could not be resolved."""

    def __init__(self, pointer: str, segment: str, reason: str) -> None:
        self.pointer = pointer
        self.segment = segment
        self.reason = reason
        super().__init__(f"Cannot resolve {pointer!r} at segment {segment!r}: {reason}")


def split(pointer: str) -> list[str]:
    """
    Split a pointer into segments.

    Raises:
        PointerError: If a non-empty pointer does not start with "/".
    """
    if not pointer:
        return []
    if not pointer.startswith(constants.POINTER_SEPARATOR):
        raise PointerError(pointer, pointer, "pointer must start with '/'")
    return pointer[1:].split(constants.POINTER_SEPARATOR)


def resolve(node: _core.JsonNode, pointer: str, *, create: bool = False) -> _core.JsonNode:
    """
    Walk a pointer from node.

    Args:
        node: Starting node.
        pointer: Pointer such as "/items/0/name".
        create: Create missing struct keys as NULL children; a NULL node met
            on the way becomes a STRUCT. Vector slots are never created.

    Returns:
        The node the pointer refers to (a live reference into the tree).

    Raises:
        PointerError: If a key is missing (and create is False), an index
            is malformed or out of range, or a scalar is indexed into.
    """
    current = node
    for segment in split(pointer):
        current = _step(current, segment, pointer, create)
    return current


def _step(
    current: _core.JsonNode,
    segment: str,
    pointer: str,
    create: bool,
) -> _core.JsonNode:
    json_type = current.get_type()

    if json_type is _types.JsonType.VECTOR:
        if not _INDEX_PATTERN.fullmatch(segment):
            raise PointerError(pointer, segment, "invalid vector index")
        index = int(segment)
        vector = current.as_vector()
        if index >= len(vector):
            raise PointerError(
                pointer, segment, f"index out of range (size {len(vector)})"
            )
        return vector[index]

    if json_type is _types.JsonType.STRUCT:
        children = current.as_struct()
        if segment in children:
            return children[segment]
        if create:
            return current[segment]
        raise PointerError(pointer, segment, "key not found")

    if json_type is _types.JsonType.NULL and create:
        return current[segment]

    raise PointerError(pointer, segment, f"cannot index into {json_type.value} node")
