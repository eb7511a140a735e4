"""Markdown preview server with line-anchored review comments."""

__version__ = "0.1.0"
