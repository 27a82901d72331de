"""
JsonNode: a tagged value tree for layered documents.

Every node holds exactly one payload matching its type tag:

- NULL: None
- BOOL: bool
- FLOAT: float
- INTEGER: int (signed 64-bit)
- STRING: str
- VECTOR: list of child nodes
- STRUCT: JsonMap of child nodes (key-sorted)

Besides the payload, every node carries `meta` (an opaque provenance
string, usually the fragment it came from) and `flags` (markers such as
"override" that change merge behaviour). Equality only looks at type and
payload.

Accessors come in two families:

- ``as_*`` accessors read the payload and raise JsonTypeError when the tag
  does not match. ``as_float()`` also accepts INTEGER nodes.
- ``set_*`` and ``ensure_*`` accessors retype the node first when needed
  (dropping the old payload), which is how trees are built up in code:

    >>> node = JsonNode()
    >>> node.ensure_vector().append(JsonNode.from_native(1))
    >>> node.to_native()
    [1]

Ownership is whole-subtree: a child belongs to exactly one parent, and
trees never share nodes. Use ``copy()`` to duplicate a subtree.

Thread safety: NOT thread-safe. Mutating a tree requires exclusive access.
"""

from __future__ import annotations

import collections.abc as _abc
import typing as _typing

import layerdoc.constants as constants
import layerdoc.node._map as _map
import layerdoc.node._types as _types

JsonType = _types.JsonType


class JsonTypeError(TypeError):
    """
    A node was used as a type it does not hold.

    This is a programmer contract violation (reading a string out of an
    integer node, mutating the shared null node), not a data problem.
    """

    def __init__(self, expected: str, actual: JsonType) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} node, got {actual.value}")


def _default_payload(json_type: JsonType) -> _typing.Any:
    """Return a fresh default payload for a type tag."""
    if json_type is JsonType.NULL:
        return None
    if json_type is JsonType.BOOL:
        return False
    if json_type is JsonType.FLOAT:
        return 0.0
    if json_type is JsonType.INTEGER:
        return 0
    if json_type is JsonType.STRING:
        return ""
    if json_type is JsonType.VECTOR:
        return []
    if json_type is JsonType.STRUCT:
        return _map.JsonMap()
    raise TypeError(f"Unknown JsonType: {json_type!r}")


class JsonNode:
    """
    A single node of a document tree.

    Args:
        json_type: Type of the new node. Its payload starts out at the
            type's default (False, 0, "", empty container).
    """

    __slots__ = ("_type", "_data", "_frozen", "meta", "flags")

    def __init__(self, json_type: JsonType = JsonType.NULL) -> None:
        self._type = JsonType.NULL
        self._data: _typing.Any = None
        self._frozen = False
        self.meta: str = ""
        self.flags: list[str] = []
        if json_type is not JsonType.NULL:
            self.set_type(json_type)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def from_native(cls, value: _typing.Any, *, meta: str = "") -> JsonNode:
        """
        Build a tree from plain Python values.

        Mappings become STRUCT (keys must be strings), sequences other than
        str/bytes become VECTOR. Integers that do not fit in 64 bits are
        stored as FLOAT. A JsonNode argument is copied.

        Raises:
            TypeError: If a value has no JSON equivalent.
        """
        if isinstance(value, JsonNode):
            node = value.copy()
            if meta:
                node.set_meta(meta)
            return node

        node = cls()
        node.meta = meta
        if value is None:
            pass
        elif isinstance(value, bool):
            node.set_bool(value)
        elif isinstance(value, int):
            if constants.INT64_MIN <= value <= constants.INT64_MAX:
                node.set_integer(value)
            else:
                node.set_float(float(value))
        elif isinstance(value, float):
            node.set_float(value)
        elif isinstance(value, str):
            node.set_string(value)
        elif isinstance(value, _abc.Mapping):
            children = node.ensure_struct()
            for key, child in value.items():
                if not isinstance(key, str):
                    raise TypeError(
                        f"Struct keys must be strings, got {type(key).__name__}"
                    )
                children[key] = cls.from_native(child, meta=meta)
        elif isinstance(value, _abc.Sequence) and not isinstance(value, (bytes, bytearray)):
            node.ensure_vector().extend(cls.from_native(item, meta=meta) for item in value)
        else:
            raise TypeError(f"Cannot convert {type(value).__name__} to JsonNode")
        return node

    def copy(self) -> JsonNode:
        """Return an independent deep copy, including meta and flags."""
        new = JsonNode()
        new._type = self._type
        if self._type is JsonType.VECTOR:
            new._data = [child.copy() for child in self._data]
        elif self._type is JsonType.STRUCT:
            new._data = _map.JsonMap({k: v.copy() for k, v in self._data.items()})
        else:
            new._data = self._data
        new.meta = self.meta
        new.flags = list(self.flags)
        return new

    def __copy__(self) -> JsonNode:
        return self.copy()

    def __deepcopy__(self, memo: dict[int, _typing.Any]) -> JsonNode:
        return self.copy()

    def swap(self, other: JsonNode) -> None:
        """Exchange type, payload, meta and flags with another node."""
        self._check_mutable()
        other._check_mutable()
        self._type, other._type = other._type, self._type
        self._data, other._data = other._data, self._data
        self.meta, other.meta = other.meta, self.meta
        self.flags, other.flags = other.flags, self.flags

    # =========================================================================
    # Type tag
    # =========================================================================

    def get_type(self) -> JsonType:
        return self._type

    def set_type(self, json_type: JsonType) -> None:
        """
        Convert the node to another type.

        The previous payload is dropped and replaced by the new type's
        default. Setting the current type again keeps the payload.
        """
        self._check_mutable()
        if json_type is self._type:
            return
        self._data = _default_payload(json_type)
        self._type = json_type

    def clear(self) -> None:
        """Remove all data and make the node NULL."""
        self.set_type(JsonType.NULL)

    def is_null(self) -> bool:
        return self._type is JsonType.NULL

    def is_number(self) -> bool:
        return self._type in _types.NUMBER_TYPES

    def is_string(self) -> bool:
        return self._type is JsonType.STRING

    def is_vector(self) -> bool:
        return self._type is JsonType.VECTOR

    def is_struct(self) -> bool:
        return self._type is JsonType.STRUCT

    def contains_base_data(self) -> bool:
        """
        Whether the node holds data that merging cannot extend any further.

        NULL holds nothing. A STRUCT holds base data only through its
        children. Scalars and vectors (even empty ones) always count,
        because merge replaces rather than extends them.
        """
        if self._type is JsonType.NULL:
            return False
        if self._type is JsonType.STRUCT:
            return any(child.contains_base_data() for child in self._data.values())
        return True

    def is_compact(self) -> bool:
        """
        Whether the node can be written on a single line.

        Scalars are compact; a vector is compact when all its elements are;
        a struct is compact when empty or when its single child is compact.
        """
        if self._type is JsonType.VECTOR:
            return all(child.is_compact() for child in self._data)
        if self._type is JsonType.STRUCT:
            if not self._data:
                return True
            if len(self._data) == 1:
                (child,) = self._data.values()
                return bool(child.is_compact())
            return False
        return True

    # =========================================================================
    # Metadata and flags
    # =========================================================================

    def set_meta(self, metadata: str, recursive: bool = True) -> None:
        """Set provenance metadata on this node and, by default, all children."""
        self._check_mutable()
        self.meta = metadata
        if not recursive:
            return
        for child in self._children():
            child.set_meta(metadata)

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    # =========================================================================
    # Read accessors (raise on type mismatch)
    # =========================================================================

    def as_bool(self) -> bool:
        if self._type is not JsonType.BOOL:
            raise JsonTypeError("bool", self._type)
        return bool(self._data)

    def as_float(self) -> float:
        """Float payload; INTEGER nodes are widened."""
        if self._type is JsonType.FLOAT:
            return float(self._data)
        if self._type is JsonType.INTEGER:
            return float(self._data)
        raise JsonTypeError("float", self._type)

    def as_integer(self) -> int:
        """Integer payload; FLOAT nodes are rejected."""
        if self._type is not JsonType.INTEGER:
            raise JsonTypeError("integer", self._type)
        return int(self._data)

    def as_string(self) -> str:
        if self._type is not JsonType.STRING:
            raise JsonTypeError("string", self._type)
        return str(self._data)

    def as_vector(self) -> _types.JsonVector:
        """
        Children of a VECTOR node.

        Returns the live list; prefer ``ensure_vector()`` when mutating.
        """
        if self._type is not JsonType.VECTOR:
            raise JsonTypeError("vector", self._type)
        return _typing.cast(_types.JsonVector, self._data)

    def as_struct(self) -> _map.JsonMap:
        """
        Children of a STRUCT node.

        Returns the live mapping; prefer ``ensure_struct()`` when mutating.
        """
        if self._type is not JsonType.STRUCT:
            raise JsonTypeError("struct", self._type)
        return _typing.cast(_map.JsonMap, self._data)

    def try_bool_from_string(self) -> tuple[bool, bool]:
        """
        Interpret the node as a boolean.

        BOOL nodes give their value. STRING nodes are trimmed and
        lower-cased; "true" and "false" are recognized.

        Returns:
            Tuple of (value, success). value is False when success is False.
        """
        if self._type is JsonType.BOOL:
            return bool(self._data), True
        if self._type is JsonType.STRING:
            token = self._data.strip().lower()
            if token == "true":
                return True, True
            if token == "false":
                return False, True
        return False, False

    # =========================================================================
    # Write accessors (retype on mismatch)
    # =========================================================================

    def set_bool(self, value: bool) -> None:
        self.set_type(JsonType.BOOL)
        self._data = bool(value)

    def set_float(self, value: float) -> None:
        self.set_type(JsonType.FLOAT)
        self._data = float(value)

    def set_integer(self, value: int) -> None:
        if not constants.INT64_MIN <= value <= constants.INT64_MAX:
            raise OverflowError(f"Integer {value} does not fit in 64 bits")
        self.set_type(JsonType.INTEGER)
        self._data = int(value)

    def set_string(self, value: str) -> None:
        self.set_type(JsonType.STRING)
        self._data = str(value)

    def ensure_vector(self) -> _types.JsonVector:
        """Make the node a VECTOR if it is not one and return its children."""
        self.set_type(JsonType.VECTOR)
        return _typing.cast(_types.JsonVector, self._data)

    def ensure_struct(self) -> _map.JsonMap:
        """Make the node a STRUCT if it is not one and return its children."""
        self.set_type(JsonType.STRUCT)
        return _typing.cast(_map.JsonMap, self._data)

    # =========================================================================
    # Indexing
    # =========================================================================

    def __getitem__(self, key: str | int) -> JsonNode:
        """
        Child access that builds the tree as it goes.

        A string key makes the node a STRUCT and creates a NULL child if the
        key is missing. An integer key makes the node a VECTOR and indexes
        it (IndexError when out of range). Use ``get()`` for lookups that
        must not modify the tree.
        """
        if isinstance(key, str):
            children = self.ensure_struct()
            if key not in children:
                children[key] = JsonNode()
            return children[key]
        index = self._check_index(key)
        vector = self.ensure_vector()
        if index >= len(vector):
            raise IndexError(f"Vector index {index} out of range (size {len(vector)})")
        return vector[index]

    def __setitem__(self, key: str | int, value: _typing.Any) -> None:
        """Store a child. Non-node values go through ``from_native``."""
        node = value if isinstance(value, JsonNode) else JsonNode.from_native(value)
        if isinstance(key, str):
            self.ensure_struct()[key] = node
            return
        index = self._check_index(key)
        vector = self.ensure_vector()
        if index >= len(vector):
            raise IndexError(f"Vector index {index} out of range (size {len(vector)})")
        vector[index] = node

    def __delitem__(self, key: str | int) -> None:
        self._check_mutable()
        if isinstance(key, str):
            del self.as_struct()[key]
            return
        index = self._check_index(key)
        vector = self.as_vector()
        if index >= len(vector):
            raise IndexError(f"Vector index {index} out of range (size {len(vector)})")
        del vector[index]

    def __contains__(self, key: object) -> bool:
        """Struct key membership; False for every other type."""
        return self._type is JsonType.STRUCT and key in self._data

    def get(self, key: str | int) -> JsonNode:
        """
        Child lookup that never modifies the tree.

        Missing keys and out-of-range indices give the shared read-only
        NULL_NODE. A NULL node has no children, so every lookup on it gives
        NULL_NODE too.

        Raises:
            JsonTypeError: If a string key is used on a non-struct or an
                integer key on a non-vector (other than NULL).
        """
        if self._type is JsonType.NULL:
            return NULL_NODE
        if isinstance(key, str):
            return self.as_struct().get(key, NULL_NODE)
        index = self._check_index(key)
        vector = self.as_vector()
        if index < len(vector):
            return vector[index]
        return NULL_NODE

    @staticmethod
    def _check_index(key: object) -> int:
        if isinstance(key, bool) or not isinstance(key, int):
            raise TypeError(f"Node keys must be str or int, got {type(key).__name__}")
        if key < 0:
            raise IndexError(f"Negative vector index {key}")
        return key

    # =========================================================================
    # Comparison
    # =========================================================================

    def __eq__(self, other: object) -> bool:
        """Deep structural equality; meta and flags are ignored."""
        if not isinstance(other, JsonNode):
            return NotImplemented
        return self._type is other._type and bool(self._data == other._data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        try:
            return f"JsonNode({self.to_json(compact=True)})"
        except ValueError:
            return f"JsonNode({self.to_native()!r})"

    # =========================================================================
    # Delegated operations
    # =========================================================================

    def resolve_pointer(self, pointer: str, *, create: bool = False) -> JsonNode:
        """
        Resolve a path such as "/items/0/name" relative to this node.

        Args:
            pointer: "/"-separated path; "" is the node itself.
            create: Create missing struct keys (as NULL children) instead of
                failing. Vector slots are never created.

        Raises:
            PointerError: If a segment cannot be resolved.
        """
        import layerdoc.node._pointer as _pointer

        return _pointer.resolve(self, pointer, create=create)

    def convert_to(self, target: _typing.Any) -> _typing.Any:
        """
        Convert the tree into a native value of the requested shape.

        Example:
            >>> JsonNode.from_native({"a": [1, 2]}).convert_to(dict[str, list[int]])
            {'a': [1, 2]}
        """
        import layerdoc.node._convert as _convert

        return _convert.convert(self, target)

    def to_json(self, compact: bool = False) -> str:
        """Serialize to JSON text (tab-indented unless compact)."""
        import layerdoc.node._text as _text

        return _text.to_json(self, compact=compact)

    def to_native(self) -> _typing.Any:
        """Plain Python value of the tree (meta and flags are dropped)."""
        if self._type is JsonType.VECTOR:
            return [child.to_native() for child in self._data]
        if self._type is JsonType.STRUCT:
            return {key: child.to_native() for key, child in self._data.items()}
        return self._data

    # =========================================================================
    # Internals
    # =========================================================================

    def _children(self) -> _typing.Iterator[JsonNode]:
        if self._type is JsonType.VECTOR:
            yield from self._data
        elif self._type is JsonType.STRUCT:
            yield from self._data.values()

    def _check_mutable(self) -> None:
        if self._frozen:
            raise JsonTypeError("mutable", self._type)


def _make_null_node() -> JsonNode:
    node = JsonNode()
    node._frozen = True
    return node


NULL_NODE = _make_null_node()
"""Shared read-only NULL node returned by lookups that find nothing."""


def bool_node(value: bool) -> JsonNode:
    node = JsonNode()
    node.set_bool(value)
    return node


def float_node(value: float) -> JsonNode:
    node = JsonNode()
    node.set_float(value)
    return node


def int_node(value: int) -> JsonNode:
    node = JsonNode()
    node.set_integer(value)
    return node


def string_node(value: str) -> JsonNode:
    node = JsonNode()
    node.set_string(value)
    return node
