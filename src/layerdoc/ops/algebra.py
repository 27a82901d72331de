"""
Set operations on document trees.

- ``intersect`` keeps what two trees agree on (common ancestor of variants)
- ``difference`` produces the minimal patch that turns a base into a node

Both are non-destructive: inputs are never modified and results never share
nodes with them.

The two are related to merge by the round-trip law:

    >>> patch = difference(node, base)
    >>> result = base.copy()
    >>> merge(result, patch)
    >>> result == node
    True

which holds for struct trees that carry no NULL values of their own.
"""

from __future__ import annotations

import logging as _logging
import typing as _typing

import layerdoc.constants as constants
import layerdoc.node as node_module

_logger = _logging.getLogger(__name__)

# =============================================================================
# Intersection
# =============================================================================


def intersect(
    a: node_module.JsonNode,
    b: node_module.JsonNode,
    *,
    prune_empty: bool = True,
) -> node_module.JsonNode:
    """
    Return the part of two trees that they have in common.

    Structs are intersected key by key over the keys present in both. Other
    nodes survive only when equal; an INTEGER and a FLOAT holding the same
    number count as equal and the result keeps a's representation.

    Args:
        a: First tree. Meta and flags of the result come from this one.
        b: Second tree.
        prune_empty: Drop struct children whose intersection holds no base
            data (NULL, or structs containing only such children).

    Returns:
        A new tree. NULL when nothing is shared.
    """
    if a.is_struct() and b.is_struct():
        result = node_module.JsonNode(node_module.JsonType.STRUCT)
        result.meta = a.meta
        b_children = b.as_struct()
        children = result.as_struct()
        for key, child in a.as_struct().items():
            other = b_children.get(key)
            if other is None:
                continue
            common = intersect(child, other, prune_empty=prune_empty)
            if prune_empty and not common.contains_base_data():
                continue
            children[key] = common
        return result

    if _numbers_equal(a, b) or a == b:
        return a.copy()
    return node_module.JsonNode()


def intersect_all(
    nodes: _typing.Iterable[node_module.JsonNode],
    *,
    prune_empty: bool = True,
) -> node_module.JsonNode:
    """
    Intersect any number of trees, left to right.

    Returns NULL for an empty input; stops as soon as the running result
    becomes NULL.
    """
    iterator = iter(nodes)
    first = next(iterator, None)
    if first is None:
        return node_module.JsonNode()

    result = first.copy()
    for count, node in enumerate(iterator, start=2):
        result = intersect(result, node, prune_empty=prune_empty)
        if result.is_null():
            _logger.debug("Intersection became empty after %d trees", count)
            break
    return result


def _numbers_equal(a: node_module.JsonNode, b: node_module.JsonNode) -> bool:
    if not (a.is_number() and b.is_number()) or a.get_type() is b.get_type():
        return False
    return a.as_float() == b.as_float()


# =============================================================================
# Difference
# =============================================================================


def difference(node: node_module.JsonNode, base: node_module.JsonNode) -> node_module.JsonNode:
    """
    Return the patch that, merged into a copy of base, reproduces node.

    For structs the patch holds:

    - keys only in node, copied
    - keys whose values differ, as their recursive difference
    - keys only in base, as NULL tombstones

    Equal keys are left out. For anything else the patch is NULL when the
    two are equal and a copy of node otherwise; a vector copy is flagged
    "override" so that merging it replaces the base vector instead of
    merging position by position.
    """
    if node.is_struct() and base.is_struct():
        result = node_module.JsonNode(node_module.JsonType.STRUCT)
        result.meta = node.meta
        children = result.as_struct()
        base_children = base.as_struct()

        for key, child in node.as_struct().items():
            base_child = base_children.get(key)
            if base_child is None:
                children[key] = child.copy()
                continue
            if child == base_child:
                continue
            patch = difference(child, base_child)
            if child.is_struct() and base_child.is_struct() and not patch.as_struct():
                continue
            children[key] = patch

        for key, base_child in base_children.items():
            if key not in node:
                tombstone = node_module.JsonNode()
                tombstone.meta = base_child.meta
                children[key] = tombstone
        return result

    if node == base:
        return node_module.JsonNode()

    result = node.copy()
    if result.is_vector() and not result.has_flag(constants.OVERRIDE_FLAG):
        result.flags.append(constants.OVERRIDE_FLAG)
    return result
