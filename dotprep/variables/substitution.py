"""
Table-driven substitution of escaped keys.
Replaces <start>key<end> spans in surviving lines with configured values.
"""

import re
from typing import Dict, List, Mapping, Optional, Tuple

from ..exceptions import UnknownSubstitutionKeyError
from .expansion import Expander


class Substitutor:
    """
    Post-substitution pass over processed lines.

    A key found in the table is replaced by its value verbatim. A key missing
    from the table is expanded as an expression instead (so `{{$HOME}}` or
    `{{$(hostname)}}` work inside escapes), unless strict mode is on.
    An escape start preceded by a backslash is not substituted.
    """

    def __init__(
        self,
        escape: Optional[Tuple[str, str]],
        table: Optional[Mapping[str, str]] = None,
        expander: Optional[Expander] = None,
        strict: bool = False
    ):
        """
        Initialize the substitutor.

        Args:
            escape: (start, end) pair, or None to disable substitution
            table: Substitution table, read-only
            expander: Expander for keys missing from the table
            strict: Raise on keys missing from the table instead of expanding
        """
        self.escape = escape
        self.table: Mapping[str, str] = table if table is not None else {}
        self.expander = expander or Expander()
        self.strict = strict
        self.pattern = self.build_pattern(escape) if escape else None

    @staticmethod
    def build_pattern(escape: Tuple[str, str]) -> 're.Pattern[str]':
        """
        Build the span pattern for an escape pair.

        The key is the shortest non-empty text between start and end whose last
        character is not a backslash.
        """
        start, end = escape
        return re.compile(
            r'(?<!\\)' + re.escape(start) + r'(.*?[^\\])' + re.escape(end)
        )

    @property
    def enabled(self) -> bool:
        return self.pattern is not None

    def substitute_line(self, line: str) -> str:
        """Replace every escaped span in one line."""
        if self.pattern is None:
            return line
        return self.pattern.sub(self._replace, line)

    def substitute_lines(self, lines: List[str]) -> List[str]:
        return [self.substitute_line(line) for line in lines]

    def _replace(self, match: 're.Match[str]') -> str:
        key = match.group(1)
        if key in self.table:
            return self.table[key]
        if self.strict:
            raise UnknownSubstitutionKeyError(f"Unknown substitution key {key!r}")
        return self.expander.expand(key)


def merge_tables(*tables: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge substitution tables; later tables win."""
    merged: Dict[str, str] = {}
    for table in tables:
        if table:
            merged.update(table)
    return merged
