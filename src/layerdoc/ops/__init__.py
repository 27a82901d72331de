"""
Tree operations: merging, set algebra and fragment assembly.
"""

import layerdoc.ops.algebra as algebra
import layerdoc.ops.assemble as assemble
import layerdoc.ops.merge as merge
from layerdoc.ops.algebra import difference, intersect, intersect_all
from layerdoc.ops.assemble import (
    DirectorySource,
    FragmentNotFoundError,
    FragmentSource,
    InMemorySource,
    assemble_from_files,
    assemble_from_name,
    parse_fragment,
)
from layerdoc.ops.merge import inherit, merge_copy

__all__ = [
    "DirectorySource",
    "FragmentNotFoundError",
    "FragmentSource",
    "InMemorySource",
    "algebra",
    "assemble",
    "assemble_from_files",
    "assemble_from_name",
    "difference",
    "inherit",
    "intersect",
    "intersect_all",
    "merge",
    "merge_copy",
    "parse_fragment",
]
