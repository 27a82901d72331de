"""
Validation of trees against registered schemas.

Schemas follow JSON Schema Draft 4 and are checked with ``jsonschema``.
Non-compliant data is a data-quality problem, not an error: validate()
reports violations through its return value and the log, and leaves the
decision to stop to the caller.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import typing as _typing

import jsonschema as _jsonschema
import referencing.exceptions as _referencing_exceptions

import layerdoc.node as node_module
import layerdoc.schema.registry as registry_module

_logger = _logging.getLogger(__name__)


@_dataclasses.dataclass(frozen=True)
class Violation:
    """
    One way in which a document fails its schema.

    Attributes:
        data_name: Name of the validated document (e.g. its fragment name).
        path: Location of the offending value, as a "/a/0/b" path.
        message: What is wrong.
        schema_path: Location of the failed rule inside the schema.
    """

    data_name: str
    path: str
    message: str
    schema_path: str = ""

    def __str__(self) -> str:
        location = self.path or "/"
        return f"{self.data_name}: {location}: {self.message}"


def _path_text(parts: _typing.Iterable[_typing.Any]) -> str:
    return "".join(f"/{part}" for part in parts)


def collect_violations(
    node: node_module.JsonNode,
    schema_name: str,
    data_name: str = "",
    *,
    registry: registry_module.SchemaRegistry,
) -> list[Violation]:
    """
    Check a tree against a schema and return every violation found.

    Args:
        node: Document to check.
        schema_name: Schema name or URI, e.g. "hero" or "layerdoc:hero#/definitions/skill".
        data_name: Name reported with each violation.
        registry: Schemas to resolve schema_name and $refs against.

    Returns:
        Violations ordered by their path in the document; empty when valid.

    Raises:
        SchemaNotFoundError: If schema_name is not registered.
    """
    uri = registry.uri(schema_name)
    registry.resolve(uri)

    validator = _jsonschema.Draft4Validator(
        {"$ref": uri},
        registry=registry.jsonschema_registry(),
    )
    violations: list[Violation] = []
    try:
        for error in validator.iter_errors(node.to_native()):
            violations.append(
                Violation(
                    data_name=data_name,
                    path=_path_text(error.absolute_path),
                    message=error.message,
                    schema_path=_path_text(error.absolute_schema_path),
                )
            )
    except _referencing_exceptions.Unresolvable as e:
        violations.append(
            Violation(data_name=data_name, path="", message=f"Unresolvable schema reference: {e}")
        )
    violations.sort(key=lambda violation: violation.path)
    return violations


def validate(
    node: node_module.JsonNode,
    schema_name: str,
    data_name: str = "",
    *,
    registry: registry_module.SchemaRegistry,
) -> bool:
    """
    Check a tree against a schema, logging every violation.

    Each violation is logged at WARNING level with data_name and the
    offending path, so the fragment can be located and fixed.

    Returns:
        True when the tree complies with the schema.

    Raises:
        SchemaNotFoundError: If schema_name is not registered.
    """
    violations = collect_violations(node, schema_name, data_name, registry=registry)
    for violation in violations:
        _logger.warning(
            "Data in %s is invalid at %s: %s",
            data_name or "<unnamed>",
            violation.path or "/",
            violation.message,
        )
    return not violations
