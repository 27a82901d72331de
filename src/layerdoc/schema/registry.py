"""
Registry of JSON schemas addressed by URI.

Schemas are registered under a name and addressed as

    <scheme>:<name>#<pointer>

e.g. ``layerdoc:hero#/properties/skills``. A bare ``hero`` gets the
registry's default scheme; the pointer part is optional.

Every ``$ref`` inside a registered schema is rewritten to an absolute URI
of this form when the schema is added (``#/definitions/x`` becomes
``layerdoc:hero#/definitions/x``, ``skill`` becomes ``layerdoc:skill``), so
references resolve the same way in the validator and in the normalizer.

The registry is plain state owned by the caller and passed explicitly to
validate/minimize/maximize.
"""

from __future__ import annotations

import collections.abc as _abc
import copy as _copy
import json as _json
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import referencing as _referencing
import referencing.jsonschema as _referencing_jsonschema

import layerdoc.constants as constants
import layerdoc.node as node_module

_logger = _logging.getLogger(__name__)

Schema = dict[str, _typing.Any]


class SchemaNotFoundError(KeyError):
    """A schema URI does not resolve to a registered schema."""

    def __init__(self, uri: str, reason: str = "no such schema") -> None:
        self.uri = uri
        self.reason = reason
        super().__init__(uri)

    def __str__(self) -> str:
        return f"Schema {self.uri!r} not found: {self.reason}"


# =============================================================================
# URIs
# =============================================================================


def split_uri(uri: str, default_scheme: str = constants.DEFAULT_SCHEMA_SCHEME) -> tuple[str, str, str]:
    """
    Split a schema URI into (scheme, name, pointer).

    Example:
        >>> split_uri("hero#/properties/name")
        ('layerdoc', 'hero', '/properties/name')
    """
    location, _, pointer = uri.partition("#")
    scheme, separator, name = location.partition(":")
    if not separator:
        scheme, name = default_scheme, location
    if name.endswith(constants.SCHEMA_FILE_SUFFIX):
        name = name[: -len(constants.SCHEMA_FILE_SUFFIX)]
    return scheme, name, pointer


def make_uri(scheme: str, name: str, pointer: str = "") -> str:
    uri = f"{scheme}:{name}"
    return f"{uri}#{pointer}" if pointer else uri


def absolute_ref(ref: str, scheme: str, current_name: str) -> str:
    """Rewrite a $ref found in schema current_name into an absolute URI."""
    if ref.startswith("#"):
        return make_uri(scheme, current_name, ref[1:])
    ref_scheme, name, pointer = split_uri(ref, scheme)
    return make_uri(ref_scheme, name, pointer)


def _absolutize(value: _typing.Any, scheme: str, current_name: str) -> _typing.Any:
    if isinstance(value, dict):
        result: Schema = {}
        for key, child in value.items():
            if key == "$ref" and isinstance(child, str):
                result[key] = absolute_ref(child, scheme, current_name)
            else:
                result[key] = _absolutize(child, scheme, current_name)
        return result
    if isinstance(value, list):
        return [_absolutize(item, scheme, current_name) for item in value]
    return value


# =============================================================================
# Registry
# =============================================================================


class SchemaRegistry:
    """
    Named JSON schemas.

    Args:
        scheme: Scheme used for bare names and for schemas added here.
    """

    def __init__(self, scheme: str = constants.DEFAULT_SCHEMA_SCHEME) -> None:
        self._scheme = scheme
        self._schemas: dict[str, Schema] = {}
        self._referencing_registry: _referencing.Registry[_typing.Any] | None = None

    @property
    def scheme(self) -> str:
        return self._scheme

    def uri(self, schema_name: str) -> str:
        """Absolute URI for a schema name or URI."""
        scheme, name, pointer = split_uri(schema_name, self._scheme)
        return make_uri(scheme, name, pointer)

    def add(self, name: str, document: _abc.Mapping[str, _typing.Any] | node_module.JsonNode) -> None:
        """
        Register a schema under a name, replacing any previous one.

        Args:
            name: Schema name, with or without the registry's scheme.
            document: The schema, as a mapping or a struct node.
        """
        native = document.to_native() if isinstance(document, node_module.JsonNode) else document
        if not isinstance(native, _abc.Mapping):
            raise TypeError(f"Schema {name!r} must be an object, got {type(native).__name__}")
        scheme, bare_name, _ = split_uri(name, self._scheme)
        if scheme != self._scheme:
            raise ValueError(f"Schema {name!r} does not use scheme {self._scheme!r}")
        self._schemas[bare_name] = _absolutize(_copy.deepcopy(dict(native)), self._scheme, bare_name)
        self._referencing_registry = None
        _logger.debug("Registered schema %s", make_uri(self._scheme, bare_name))

    def load_directory(self, path: str | _pathlib.Path) -> list[str]:
        """
        Register every *.json file below a directory.

        Schema names are the file paths relative to the directory, without
        suffix, e.g. ``objects/hero.json`` becomes ``objects/hero``.

        Returns:
            Names of the schemas loaded, sorted.

        Raises:
            ValueError: If a file is not a valid JSON object.
        """
        root = _pathlib.Path(path)
        loaded: list[str] = []
        for file_path in sorted(root.rglob(f"*{constants.SCHEMA_FILE_SUFFIX}")):
            name = file_path.relative_to(root).with_suffix("").as_posix()
            try:
                document = _json.loads(file_path.read_text(encoding="utf-8"))
            except _json.JSONDecodeError as e:
                raise ValueError(f"Invalid schema file {file_path}: {e}") from e
            self.add(name, document)
            loaded.append(name)
        _logger.debug("Loaded %d schema(s) from %s", len(loaded), root)
        return loaded

    def names(self) -> list[str]:
        return sorted(self._schemas)

    def __contains__(self, schema_name: object) -> bool:
        if not isinstance(schema_name, str):
            return False
        scheme, name, _ = split_uri(schema_name, self._scheme)
        return scheme == self._scheme and name in self._schemas

    def resolve(self, uri: str) -> Schema:
        """
        Return the (sub-)schema a URI points to, as a plain dict.

        The returned value is shared with the registry and must not be
        modified; use get_schema() for a private copy.

        Raises:
            SchemaNotFoundError: If the schema or the pointer does not exist.
        """
        scheme, name, pointer = split_uri(uri, self._scheme)
        if scheme != self._scheme:
            raise SchemaNotFoundError(uri, f"unknown scheme {scheme!r}")
        document = self._schemas.get(name)
        if document is None:
            raise SchemaNotFoundError(uri)

        value: _typing.Any = document
        if pointer:
            if not pointer.startswith(constants.POINTER_SEPARATOR):
                raise SchemaNotFoundError(uri, f"invalid pointer {pointer!r}")
            for segment in pointer.split(constants.POINTER_SEPARATOR)[1:]:
                if isinstance(value, dict) and segment in value:
                    value = value[segment]
                elif isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
                    value = value[int(segment)]
                else:
                    raise SchemaNotFoundError(uri, f"no segment {segment!r}")
        if not isinstance(value, dict):
            raise SchemaNotFoundError(uri, "pointer does not select a schema object")
        return _typing.cast(Schema, value)

    def get_schema(self, uri: str) -> node_module.JsonNode:
        """
        Return the (sub-)schema a URI points to, as a new tree.

        Raises:
            SchemaNotFoundError: If the schema or the pointer does not exist.
        """
        return node_module.JsonNode.from_native(self.resolve(uri), meta=self.uri(uri))

    def jsonschema_registry(self) -> _referencing.Registry[_typing.Any]:
        """All registered schemas as a ``referencing`` registry (Draft 4)."""
        if self._referencing_registry is None:
            resources = [
                (
                    make_uri(self._scheme, name),
                    _referencing.Resource.from_contents(
                        document,
                        default_specification=_referencing_jsonschema.DRAFT4,
                    ),
                )
                for name, document in self._schemas.items()
            ]
            self._referencing_registry = _referencing.Registry().with_resources(resources)
        return self._referencing_registry
