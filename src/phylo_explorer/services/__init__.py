"""Services for external collaborators: resource loading and tree building."""

from .loader import ResourceLoader, ResourceLoadError
from .tree_builder import (
    FastTreeBuilder,
    TreeBuildError,
    TreeBuilder,
    strip_header_fields,
)

__all__ = [
    "ResourceLoader",
    "ResourceLoadError",
    "FastTreeBuilder",
    "TreeBuildError",
    "TreeBuilder",
    "strip_header_fields",
]
