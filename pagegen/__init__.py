"""Incremental static page generator."""

__version__ = "0.3.0"
