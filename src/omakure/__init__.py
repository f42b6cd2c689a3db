"""Omakure: a terminal runner for schema-annotated scripts."""

__version__ = "0.4.0"
