"""
Conversion of node trees into native values of a requested shape.

The strategy is picked from the static target type, not from the node's
runtime tag; each strategy reads the node through the strict ``as_*``
accessors, so a tree that does not have the requested shape raises
JsonTypeError.

Supported targets:
- bool, str, float, int
- enum.Enum subclasses and other classes, built from the integer value
- dict[str, T] / Mapping[str, T]
- list[T] / Sequence[T], set[T], frozenset[T], tuple[T, ...] and fixed tuples
- T | None (NULL gives None)
- JsonNode (copy) and typing.Any (plain native value)
"""

from __future__ import annotations

import collections.abc as _abc
import types as _types_module
import typing as _typing

import layerdoc.node._core as _core
import layerdoc.node._types as _types

_Strategy = _typing.Callable[[_core.JsonNode, tuple[_typing.Any, ...]], _typing.Any]


def convert(node: _core.JsonNode, target: _typing.Any) -> _typing.Any:
    """
    Convert node into a value shaped like target.

    Raises:
        JsonTypeError: If the node's type cannot provide the target shape.
        TypeError: If target is not a supported type.
    """
    if target is _typing.Any:
        return node.to_native()
    if target is _core.JsonNode:
        return node.copy()

    origin = _typing.get_origin(target)
    if origin is None:
        if target in _BARE_CONTAINERS:
            return _STRATEGIES[target](node, ())
        return _convert_scalar(node, target)

    strategy = _STRATEGIES.get(origin)
    if strategy is None:
        raise TypeError(f"Unsupported conversion target: {target!r}")
    return strategy(node, _typing.get_args(target))


def _convert_scalar(node: _core.JsonNode, target: _typing.Any) -> _typing.Any:
    if target is bool:
        return node.as_bool()
    if target is str:
        return node.as_string()
    if target is float:
        return node.as_float()
    if target is int:
        return _integer_value(node)
    if isinstance(target, type):
        # enums and id-like classes are built from the integral value
        return target(_integer_value(node))
    raise TypeError(f"Unsupported conversion target: {target!r}")


def _integer_value(node: _core.JsonNode) -> int:
    if node.get_type() is _types.JsonType.INTEGER:
        return node.as_integer()
    return int(node.as_float())


def _to_mapping(node: _core.JsonNode, args: tuple[_typing.Any, ...]) -> dict[str, _typing.Any]:
    key_type, value_type = args if args else (str, _typing.Any)
    if key_type is not str:
        raise TypeError(f"Mapping keys must be str, got {key_type!r}")
    return {key: convert(child, value_type) for key, child in node.as_struct().items()}


def _element_type(args: tuple[_typing.Any, ...]) -> _typing.Any:
    return args[0] if args else _typing.Any


def _to_list(node: _core.JsonNode, args: tuple[_typing.Any, ...]) -> list[_typing.Any]:
    element_type = _element_type(args)
    return [convert(child, element_type) for child in node.as_vector()]


def _to_set(node: _core.JsonNode, args: tuple[_typing.Any, ...]) -> set[_typing.Any]:
    element_type = _element_type(args)
    return {convert(child, element_type) for child in node.as_vector()}


def _to_frozenset(
    node: _core.JsonNode, args: tuple[_typing.Any, ...]
) -> frozenset[_typing.Any]:
    return frozenset(_to_set(node, args))


def _to_tuple(node: _core.JsonNode, args: tuple[_typing.Any, ...]) -> tuple[_typing.Any, ...]:
    children = node.as_vector()
    if not args or (len(args) == 2 and args[1] is Ellipsis):
        element_type = _element_type(args)
        return tuple(convert(child, element_type) for child in children)
    if len(args) != len(children):
        raise ValueError(f"Expected {len(args)} elements, vector has {len(children)}")
    return tuple(convert(child, arg) for child, arg in zip(children, args, strict=True))


def _to_optional(node: _core.JsonNode, args: tuple[_typing.Any, ...]) -> _typing.Any:
    options = [arg for arg in args if arg is not type(None)]
    if len(options) != 1 or len(options) == len(args):
        raise TypeError(f"Only T | None unions are supported, got {args!r}")
    if node.is_null():
        return None
    return convert(node, options[0])


_STRATEGIES: dict[_typing.Any, _Strategy] = {
    dict: _to_mapping,
    _abc.Mapping: _to_mapping,
    _abc.MutableMapping: _to_mapping,
    list: _to_list,
    _abc.Sequence: _to_list,
    _abc.MutableSequence: _to_list,
    _abc.Iterable: _to_list,
    set: _to_set,
    _abc.Set: _to_set,
    _abc.MutableSet: _to_set,
    frozenset: _to_frozenset,
    tuple: _to_tuple,
    _typing.Union: _to_optional,
    _types_module.UnionType: _to_optional,
}

_BARE_CONTAINERS = frozenset({dict, list, set, frozenset, tuple})
