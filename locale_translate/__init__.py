"""Translate nested localization files (JSON, YAML, .strings) with Gemini."""

__version__ = "0.1.0"
