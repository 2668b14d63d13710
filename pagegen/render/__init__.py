"""Output document rendering."""

from .renderer import RenderError, TemplateRenderer, annotation_pairs

__all__ = ["RenderError", "TemplateRenderer", "annotation_pairs"]
