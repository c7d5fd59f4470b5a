"""
Variable expansion and substitution module.
"""

from .expansion import Expander
from .substitution import Substitutor, merge_tables

__all__ = ['Expander', 'Substitutor', 'merge_tables']
