"""Configuration section types for layerdoc settings.

Each section is a Pydantic model nested within the main Settings class and
maps onto one top-level key of the YAML config files:

- SchemasConfig: schema scheme and schema search paths
- MergeConfig: default flags for merge, intersect and assembly
- OutputConfig: how trees are written by the CLI
- LoggingConfig: log level

All sections use `extra="allow"` so unknown keys are preserved and can be
reported (typos in config files) instead of silently dropped.
"""

import typing as _typing

import pydantic as _pydantic

import layerdoc.constants as constants

# =============================================================================
# Base class with introspection
# =============================================================================


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config sections.

    Unknown fields are kept in `model_extra` rather than dropped.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Return fields that were provided but are not part of the section."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(self, prefix: str = "") -> dict[str, _typing.Any]:
        """
        Recursively collect unknown fields as a flat dict keyed by dotted path.

        Example:
            {"merge.ignore_overide": True}
        """
        result: dict[str, _typing.Any] = {}
        for key, value in self.get_extra_fields().items():
            result[f"{prefix}.{key}" if prefix else key] = value

        for field_name in self.__class__.model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, ConfigBase):
                child_prefix = f"{prefix}.{field_name}" if prefix else field_name
                result.update(value.collect_all_extra_fields(child_prefix))
        return result


# =============================================================================
# Schema Settings
# =============================================================================


class SchemasConfig(ConfigBase):
    """
    Schema registry settings.

    YAML section: schemas.*
    """

    scheme: str = _pydantic.Field(default=constants.DEFAULT_SCHEMA_SCHEME, min_length=1)
    """URI scheme of registered schemas (bare names get this scheme)."""

    search_paths: list[str] = _pydantic.Field(default_factory=list)
    """Directories whose *.json files are registered as schemas."""

    @_pydantic.field_validator("scheme")
    @classmethod
    def _scheme_has_no_separators(cls, value: str) -> str:
        if ":" in value or "#" in value:
            raise ValueError(f"scheme must not contain ':' or '#': {value!r}")
        return value


# =============================================================================
# Merge Settings
# =============================================================================


class MergeConfig(ConfigBase):
    """
    Defaults for tree operations started from the CLI.

    YAML section: merge.*
    """

    ignore_override: bool = False
    """Ignore override flags and NULL tombstones when merging."""

    copy_meta: bool = True
    """Replaced values take the provenance of the fragment they came from."""

    prune_empty: bool = True
    """Drop struct children whose intersection holds no data."""


# =============================================================================
# Output Settings
# =============================================================================


class OutputConfig(ConfigBase):
    """
    Output settings.

    YAML section: output.*
    """

    compact: bool = False
    """Write JSON without whitespace instead of tab-indented."""


# =============================================================================
# Logging Settings
# =============================================================================


class LoggingConfig(ConfigBase):
    """
    Logging settings.

    YAML section: logging.*
    """

    level: _typing.Literal["debug", "info", "warning", "error"] = "warning"
    """Log level."""
