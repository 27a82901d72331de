"""
Assembly of one logical document from several fragments.

Fragments are fetched by name from a FragmentSource, parsed independently
and merged in order: later fragments override earlier ones.

    base.json        {"hp": 10, "skills": {"archery": 1}}
    mod/base.json    {"hp": 20, "skills": {"archery": null}}
    -> assembled     {"hp": 20, "skills": {}}

Fragments whose name ends in .yaml/.yml are read as YAML (with the !delete
and !replace tags), everything else as JSON. Every node of a fragment gets
the fragment name as its meta, so provenance survives the merge.

Malformed fragments never raise here: they are logged, skipped, and
reported through the validity flag.
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import layerdoc.constants as constants
import layerdoc.node as node_module
import layerdoc.ops.merge as merge_module

_logger = _logging.getLogger(__name__)


class FragmentNotFoundError(LookupError):
    """No fragment exists under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Fragment not found: {name}")


# =============================================================================
# Sources
# =============================================================================


@_typing.runtime_checkable
class FragmentSource(_typing.Protocol):
    """Where fragments come from."""

    def load(self, name: str) -> bytes:
        """
        Return the effective fragment for a name.

        Raises:
            FragmentNotFoundError: If no fragment has that name.
        """
        ...

    def load_all(self, name: str) -> list[bytes]:
        """
        Return every fragment sharing a name, lowest precedence first.

        Raises:
            FragmentNotFoundError: If no fragment has that name.
        """
        ...


class InMemorySource:
    """
    Fragments held in memory.

    Each name maps to one fragment or to a list of fragments (lowest
    precedence first). Text is encoded as UTF-8.
    """

    def __init__(
        self,
        fragments: _typing.Mapping[str, str | bytes | _typing.Sequence[str | bytes]] | None = None,
    ) -> None:
        self._fragments: dict[str, list[bytes]] = {}
        for name, content in (fragments or {}).items():
            if isinstance(content, (str, bytes)):
                self.add(name, content)
            else:
                for item in content:
                    self.add(name, item)

    def add(self, name: str, content: str | bytes) -> None:
        """Add a fragment with higher precedence than those already present."""
        data = content.encode("utf-8") if isinstance(content, str) else content
        self._fragments.setdefault(name, []).append(data)

    def load(self, name: str) -> bytes:
        return self.load_all(name)[-1]

    def load_all(self, name: str) -> list[bytes]:
        fragments = self._fragments.get(name)
        if not fragments:
            raise FragmentNotFoundError(name)
        return list(fragments)


class DirectorySource:
    """
    Fragments stored as files under a list of root directories.

    A fragment name is a path relative to each root. Roots are given lowest
    precedence first, so a file in a later root overrides the same name in
    an earlier one (the way a mod overrides the base game).

    Args:
        roots: Root directories, lowest precedence first.
    """

    def __init__(self, roots: _typing.Iterable[str | _pathlib.Path]) -> None:
        self._roots = [_pathlib.Path(root) for root in roots]

    @property
    def roots(self) -> list[_pathlib.Path]:
        return list(self._roots)

    def _paths(self, name: str) -> list[_pathlib.Path]:
        return [root / name for root in self._roots if (root / name).is_file()]

    def load(self, name: str) -> bytes:
        paths = self._paths(name)
        if not paths:
            raise FragmentNotFoundError(name)
        return paths[-1].read_bytes()

    def load_all(self, name: str) -> list[bytes]:
        paths = self._paths(name)
        if not paths:
            raise FragmentNotFoundError(name)
        return [path.read_bytes() for path in paths]


# =============================================================================
# Assembly
# =============================================================================


def parse_fragment(name: str, data: bytes) -> tuple[node_module.JsonNode, bool]:
    """
    Parse one fragment, choosing JSON or YAML by the name's suffix.

    Returns:
        Tuple of (tree, is_valid). The tree's meta is the fragment name.
    """
    if _pathlib.PurePosixPath(name).suffix.lower() in constants.YAML_SUFFIXES:
        return node_module.load_yaml_with_validity(data, meta=name)
    return node_module.parse_with_validity(data, meta=name)


def _merge_fragments(
    result: node_module.JsonNode,
    fragments: _typing.Iterable[tuple[str, bytes]],
) -> bool:
    is_valid = True
    for name, data in fragments:
        fragment, fragment_valid = parse_fragment(name, data)
        if not fragment_valid:
            is_valid = False
            if fragment.is_null():
                _logger.warning("Skipping unreadable fragment %s", name)
                continue
        _logger.debug("Merging fragment %s", name)
        merge_module.merge(result, fragment, copy_meta=True)
    return is_valid


def assemble_from_files(
    names: _typing.Iterable[str],
    source: FragmentSource,
) -> tuple[node_module.JsonNode, bool]:
    """
    Build one document from named fragments, merged in the given order.

    Args:
        names: Fragment names; later names override earlier ones.
        source: Where to fetch the fragments from.

    Returns:
        Tuple of (document, is_valid). is_valid is False when any fragment
        was malformed; readable parts of the other fragments are still
        merged.

    Raises:
        FragmentNotFoundError: If a name does not exist in source.
    """
    result = node_module.JsonNode()
    is_valid = _merge_fragments(result, ((name, source.load(name)) for name in names))
    return result, is_valid


def assemble_from_name(name: str, source: FragmentSource) -> node_module.JsonNode:
    """
    Build one document from every fragment sharing a name.

    Used when several roots each ship the same file and all of them should
    contribute, lowest precedence first. Malformed fragments are logged and
    skipped.

    Raises:
        FragmentNotFoundError: If no fragment has that name.
    """
    result = node_module.JsonNode()
    fragments = source.load_all(name)
    if not _merge_fragments(result, ((name, data) for data in fragments)):
        _logger.warning("Assembled %s from %d fragment(s) with errors", name, len(fragments))
    return result
