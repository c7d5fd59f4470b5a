"""Document and run processing module."""

from .processor import DocumentProcessor
from .executor import RunExecutor, RunResult, DocumentResult, DocumentStatus

__all__ = ['DocumentProcessor', 'RunExecutor', 'RunResult', 'DocumentResult', 'DocumentStatus']
