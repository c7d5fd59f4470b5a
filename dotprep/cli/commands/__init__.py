"""CLI command handlers."""

from .run import run_preprocessor
from .render import render_document

__all__ = ['run_preprocessor', 'render_document']
