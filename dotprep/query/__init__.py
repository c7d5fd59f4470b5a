"""Query module: answer cache and interactive asker for ASK blocks."""

from .cache import QueryCache, QueryKey, QueryAnswer
from .asker import TerminalAsker

__all__ = ['QueryCache', 'QueryKey', 'QueryAnswer', 'TerminalAsker']
