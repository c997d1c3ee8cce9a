"""Persona-targeted content feed service."""

__version__ = "0.1.0"
