"""
JsonMap: the payload of a STRUCT node.

A MutableMapping from string keys to JsonNode children. Keys are unique
and iteration is always in sorted key order; insertion order carries no
meaning. Setting an existing key replaces its value.
"""

from __future__ import annotations

import collections.abc as _abc
import typing as _typing

if _typing.TYPE_CHECKING:
    import layerdoc.node._core as _core


class JsonMap(_abc.MutableMapping[str, "_core.JsonNode"]):
    """
    Key-sorted mapping of child nodes.

    Example:
        >>> m = JsonMap()
        >>> m["b"] = JsonNode.from_native(2)
        >>> m["a"] = JsonNode.from_native(1)
        >>> list(m)
        ['a', 'b']
    """

    __slots__ = ("_data",)

    def __init__(
        self,
        data: _abc.Mapping[str, _core.JsonNode] | None = None,
    ) -> None:
        self._data: dict[str, _core.JsonNode] = {}
        if data:
            for key, value in data.items():
                self[key] = value

    def __getitem__(self, key: str) -> _core.JsonNode:
        return self._data[key]

    def __setitem__(self, key: str, value: _core.JsonNode) -> None:
        if not isinstance(key, str):
            raise TypeError(f"Struct keys must be strings, got {type(key).__name__}")
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> _typing.Iterator[str]:
        """Iterate over keys in sorted order."""
        return iter(sorted(self._data))

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JsonMap):
            return self._data == other._data
        if isinstance(other, _abc.Mapping):
            return self._data == dict(other.items())
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"JsonMap({{{items}}})"
