"""Page config derivation and hierarchy repair."""

from .builder import PageConfigBuilder, format_title, infer_type, page_name
from .hierarchy import HierarchyResolver, compute_depths

__all__ = [
    "HierarchyResolver",
    "PageConfigBuilder",
    "compute_depths",
    "format_title",
    "infer_type",
    "page_name",
]
