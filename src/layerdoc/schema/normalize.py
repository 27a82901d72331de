"""
Schema-driven normalization of trees.

- ``minimize`` removes required values that equal their schema default, so
  a fully expanded document shrinks back to the values that matter
- ``maximize`` inserts the default of every required value that is missing

For a document that validates and spells out every field,
``maximize(minimize(x))`` gives back ``x``.

Only ``type: object`` schemas are normalized, together with the element
schemas of arrays (``items``) and the schemas of their properties
(``properties``, ``additionalProperties``). ``$ref`` is followed through
the registry. Keys the schema does not describe are left alone.
"""

from __future__ import annotations

import logging as _logging
import typing as _typing

import layerdoc.node as node_module
import layerdoc.schema.registry as registry_module

_logger = _logging.getLogger(__name__)

_Schema = dict[str, _typing.Any]
_NO_DEFAULT = object()


# =============================================================================
# Schema walking
# =============================================================================


def _follow(schema: _Schema, registry: registry_module.SchemaRegistry) -> _Schema:
    """Follow $ref until a schema without one is reached."""
    seen: set[str] = set()
    while isinstance(schema.get("$ref"), str):
        ref = schema["$ref"]
        if ref in seen:
            raise registry_module.SchemaNotFoundError(ref, "circular $ref")
        seen.add(ref)
        schema = registry.resolve(ref)
    return schema


def _default(prop: _Schema, registry: registry_module.SchemaRegistry) -> _typing.Any:
    if "default" in prop:
        return prop["default"]
    return _follow(prop, registry).get("default", _NO_DEFAULT)


def _is_type(schema: _Schema, name: str) -> bool:
    declared = schema.get("type")
    if isinstance(declared, list):
        return name in declared
    return bool(declared == name)


def _property_schema(schema: _Schema, key: str) -> _Schema | None:
    properties = schema.get("properties") or {}
    if key in properties:
        return _typing.cast(_Schema, properties[key])
    additional = schema.get("additionalProperties")
    if isinstance(additional, dict):
        return _typing.cast(_Schema, additional)
    return None


def _items_schema(schema: _Schema) -> _Schema | None:
    items = schema.get("items")
    return _typing.cast(_Schema, items) if isinstance(items, dict) else None


# =============================================================================
# Minimize
# =============================================================================


def minimize(
    node: node_module.JsonNode,
    schema_name: str,
    *,
    registry: registry_module.SchemaRegistry,
) -> None:
    """
    Remove required values that equal their schema default, in place.

    The node should already validate against the schema.

    Raises:
        SchemaNotFoundError: If schema_name or a $ref is not registered.
    """
    removed = _minimize(node, registry.resolve(registry.uri(schema_name)), registry)
    _logger.debug("Minimized against %s: %d value(s) removed", schema_name, removed)


def _minimize(
    node: node_module.JsonNode,
    schema: _Schema,
    registry: registry_module.SchemaRegistry,
) -> int:
    schema = _follow(schema, registry)
    removed = 0

    if node.is_vector() and _is_type(schema, "array"):
        items = _items_schema(schema)
        if items is not None:
            for child in node.as_vector():
                removed += _minimize(child, items, registry)
        return removed

    if not (node.is_struct() and _is_type(schema, "object")):
        return removed

    children = node.as_struct()
    required = set(schema.get("required") or ())
    for key in list(children):
        prop = _property_schema(schema, key)
        if prop is None:
            continue
        child = children[key]
        if key in required:
            default = _default(prop, registry)
            if default is not _NO_DEFAULT and child == node_module.JsonNode.from_native(default):
                del children[key]
                removed += 1
                continue
        removed += _minimize(child, prop, registry)
    return removed


# =============================================================================
# Maximize
# =============================================================================


def maximize(
    node: node_module.JsonNode,
    schema_name: str,
    *,
    registry: registry_module.SchemaRegistry,
) -> None:
    """
    Insert the default of every missing required value, in place.

    A required property counts as missing when absent, or when NULL and its
    schema does not allow "null". Required object properties without a
    default of their own are built from the defaults of their properties
    and inserted when that gives anything.

    Raises:
        SchemaNotFoundError: If schema_name or a $ref is not registered.
    """
    inserted = _maximize(node, registry.resolve(registry.uri(schema_name)), registry)
    _logger.debug("Maximized against %s: %d value(s) inserted", schema_name, inserted)


def _maximize(
    node: node_module.JsonNode,
    schema: _Schema,
    registry: registry_module.SchemaRegistry,
) -> int:
    schema = _follow(schema, registry)
    inserted = 0

    if node.is_vector() and _is_type(schema, "array"):
        items = _items_schema(schema)
        if items is not None:
            for child in node.as_vector():
                inserted += _maximize(child, items, registry)
        return inserted

    if not (node.is_struct() and _is_type(schema, "object")):
        return inserted

    children = node.as_struct()
    for key in schema.get("required") or ():
        prop = _property_schema(schema, key)
        if prop is None:
            continue
        current = children.get(key)
        if current is not None and not current.is_null():
            continue
        if current is not None and _is_type(_follow(prop, registry), "null"):
            continue
        default = _default(prop, registry)
        if default is not _NO_DEFAULT:
            children[key] = node_module.JsonNode.from_native(default, meta=node.meta)
            inserted += 1
        elif _is_type(_follow(prop, registry), "object"):
            built = node_module.JsonNode(node_module.JsonType.STRUCT)
            built.meta = node.meta
            if _maximize(built, prop, registry):
                children[key] = built
                inserted += 1

    for key, child in children.items():
        prop = _property_schema(schema, key)
        if prop is not None:
            inserted += _maximize(child, prop, registry)
    return inserted
