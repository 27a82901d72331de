"""
Shared constants for layerdoc.

This module provides a single source of truth for values that are used
across the node, merge and schema modules.
"""

# Node flags
OVERRIDE_FLAG = "override"
"""Flag that makes merge replace a subtree instead of deep-merging into it."""

KNOWN_FLAGS = frozenset({OVERRIDE_FLAG})
"""Flags accepted in `key#flag` syntax without a syntax warning."""

FLAG_SEPARATOR = "#"
"""Separator between a struct key and its flags in textual form."""

# Integer payload limits (signed 64-bit)
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Path syntax
POINTER_SEPARATOR = "/"
"""Separator between segments of a node pointer (e.g. /items/0/name)."""

# Schema URIs
DEFAULT_SCHEMA_SCHEME = "layerdoc"
"""Scheme used for schema URIs that do not name one (e.g. `settings`)."""

SCHEMA_FILE_SUFFIX = ".json"
"""Suffix of schema documents loaded from a directory."""

# Fragment formats
YAML_SUFFIXES = (".yaml", ".yml")
"""Fragment names with these suffixes are parsed as YAML rather than JSON."""
