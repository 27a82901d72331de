"""
Schema support: registry, validation and default-based normalization.
"""

import layerdoc.schema.normalize as normalize
import layerdoc.schema.registry as registry
import layerdoc.schema.validator as validator
from layerdoc.schema.normalize import maximize, minimize
from layerdoc.schema.registry import SchemaNotFoundError, SchemaRegistry, split_uri
from layerdoc.schema.validator import Violation, collect_violations, validate

__all__ = [
    "SchemaNotFoundError",
    "SchemaRegistry",
    "Violation",
    "collect_violations",
    "maximize",
    "minimize",
    "normalize",
    "registry",
    "split_uri",
    "validate",
    "validator",
]
