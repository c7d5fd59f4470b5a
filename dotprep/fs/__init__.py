"""
Filesystem module.
Writes processed documents and links targets to them.
"""

from .linker import DocumentLinker

__all__ = [
    "DocumentLinker",
]
