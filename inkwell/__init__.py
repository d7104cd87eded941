"""Inkwell - a minimal blog service."""

__version__ = "0.1.0"
