"""
layerdoc - layered JSON documents

Tagged value trees assembled from fragments: merge with tombstones and
override flags, set algebra (intersect, difference), path lookup, schema
validation and default-based normalization.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("layerdoc")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)

from layerdoc.node import NULL_NODE, JsonNode, JsonType  # noqa: E402
from layerdoc.ops import difference, inherit, intersect, merge_copy  # noqa: E402
from layerdoc.schema import SchemaRegistry  # noqa: E402

__all__ = [
    "NULL_NODE",
    "JsonNode",
    "JsonType",
    "SchemaRegistry",
    "__version__",
    "__version_info__",
    "difference",
    "inherit",
    "intersect",
    "merge_copy",
]
