"""
Merging of document trees.

Rules, applied at every position (source = the fragment being merged in):

- struct : each key of source is merged recursively into dest
- vector : elements are merged position by position; extra source
  elements extend dest
- values : the source value replaces the dest value
- null   : a NULL in source deletes the dest entry (tombstone)
- override flag : a source node flagged "override" replaces the dest
  subtree instead of being merged into it

Override flags are merge instructions and are not kept on the nodes written
into dest.

``ignore_override=True`` disables both the override flag and null
tombstones (NULLs in source are then skipped).

Example:
    >>> dest = JsonNode.from_native({"a": 1, "b": 2})
    >>> merge_copy(dest, JsonNode.from_native({"b": None, "c": 3}))
    >>> dest.to_native()
    {'a': 1, 'c': 3}
"""

from __future__ import annotations

import logging as _logging

import layerdoc.constants as constants
import layerdoc.node as node_module

_logger = _logging.getLogger(__name__)


def merge(
    dest: node_module.JsonNode,
    source: node_module.JsonNode,
    *,
    ignore_override: bool = False,
    copy_meta: bool = False,
) -> None:
    """
    Merge source into dest, in place.

    Note:
        This consumes source: its subtrees are moved into dest and source is
        left NULL. Use merge_copy() to keep source intact.

    Args:
        dest: Tree to merge into.
        source: Tree to merge from (consumed).
        ignore_override: Ignore override flags and NULL tombstones.
        copy_meta: On replacement, also take source's meta. Without it,
            replaced nodes keep the meta they had in dest.
    """
    if source.is_null():
        if not ignore_override:
            dest.clear()
        return

    if dest.is_null():
        dest.swap(source)
        source.clear()
        _drop_override(dest)
        return

    if source.has_flag(constants.OVERRIDE_FLAG) and not ignore_override:
        _replace(dest, source, copy_meta)
    elif dest.is_struct() and source.is_struct():
        _merge_struct(dest, source, ignore_override, copy_meta)
    elif dest.is_vector() and source.is_vector():
        _merge_vector(dest, source, ignore_override, copy_meta)
    else:
        _replace(dest, source, copy_meta)


def merge_copy(
    dest: node_module.JsonNode,
    source: node_module.JsonNode,
    *,
    ignore_override: bool = False,
    copy_meta: bool = False,
) -> None:
    """Merge a copy of source into dest; source is left untouched."""
    merge(dest, source.copy(), ignore_override=ignore_override, copy_meta=copy_meta)


def inherit(descendant: node_module.JsonNode, base: node_module.JsonNode) -> None:
    """
    Make descendant inherit from base, in place.

    Afterwards descendant holds a copy of base with descendant's original
    fields merged on top: its values win, base fields it does not mention
    are kept, and NULLs in descendant delete inherited fields. Provenance
    follows the field's origin.
    """
    inherited = base.copy()
    merge(inherited, descendant, copy_meta=True)
    descendant.swap(inherited)


def _replace(dest: node_module.JsonNode, source: node_module.JsonNode, copy_meta: bool) -> None:
    meta = dest.meta
    dest.swap(source)
    if not copy_meta:
        dest.meta = meta
    source.clear()
    _drop_override(dest)


def _merge_struct(
    dest: node_module.JsonNode,
    source: node_module.JsonNode,
    ignore_override: bool,
    copy_meta: bool,
) -> None:
    if copy_meta:
        dest.meta = source.meta

    dest_children = dest.as_struct()
    for key, child in source.as_struct().items():
        if child.is_null():
            if not ignore_override and key in dest_children:
                del dest_children[key]
            continue
        target = dest_children.get(key)
        if target is None:
            dest_children[key] = target = node_module.JsonNode()
        merge(target, child, ignore_override=ignore_override, copy_meta=copy_meta)
    source.clear()


def _merge_vector(
    dest: node_module.JsonNode,
    source: node_module.JsonNode,
    ignore_override: bool,
    copy_meta: bool,
) -> None:
    if copy_meta:
        dest.meta = source.meta

    dest_children = dest.as_vector()
    original_size = len(dest_children)
    deleted: list[int] = []
    for index, child in enumerate(source.as_vector()):
        if child.is_null():
            if not ignore_override and index < original_size:
                deleted.append(index)
            continue
        if index < original_size:
            merge(dest_children[index], child, ignore_override=ignore_override, copy_meta=copy_meta)
        else:
            _drop_override(child)
            dest_children.append(child)

    # indices refer to positions before any deletion
    for index in reversed(deleted):
        del dest_children[index]
    if deleted:
        _logger.debug("Deleted %d vector element(s) during merge", len(deleted))
    source.clear()


def _drop_override(node: node_module.JsonNode) -> None:
    """Remove override flags from a subtree that now lives in dest."""
    if constants.OVERRIDE_FLAG in node.flags:
        node.flags = [flag for flag in node.flags if flag != constants.OVERRIDE_FLAG]
    if node.is_struct():
        for child in node.as_struct().values():
            _drop_override(child)
    elif node.is_vector():
        for child in node.as_vector():
            _drop_override(child)
