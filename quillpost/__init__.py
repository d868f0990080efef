"""Quillpost: blogging and profile API."""

__version__ = "1.0.0"
