"""Flowise node catalog: schema extraction, normalization and flow validation."""

__version__ = "1.1.0"
