"""Preprocessor for per-machine configuration files."""

__version__ = "0.3.0"
