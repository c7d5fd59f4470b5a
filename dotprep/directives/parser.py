"""
Directive types and directive-line parsing.

A directive line starts, after leading whitespace, with the configured
prefix. Everything after the prefix is the payload:

    P #comment        comment
    P IF A == B       conditional block
    P IFDEF expr      definedness block
    P IFNDEF expr     negated definedness block
    P ELSE            flip the block verdict
    P ENDIF           close IF/IFDEF/IFNDEF
    P ASK question    query block
    P OPTION label    selectable option
    P ENDASK          close ASK

Keywords are case-insensitive.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from ..exceptions import MalformedDirectiveError


@dataclass(frozen=True)
class Comment:
    pass


@dataclass(frozen=True)
class If:
    left: str
    right: str


@dataclass(frozen=True)
class IfDef:
    expr: str


@dataclass(frozen=True)
class IfNDef:
    expr: str


@dataclass(frozen=True)
class Else:
    pass


@dataclass(frozen=True)
class EndIf:
    pass


@dataclass(frozen=True)
class Ask:
    question: str


@dataclass(frozen=True)
class Option:
    label: str


@dataclass(frozen=True)
class EndAsk:
    pass


Directive = Union[Comment, If, IfDef, IfNDef, Else, EndIf, Ask, Option, EndAsk]

_WS = r'[ \t]'
_IFDEF = re.compile(rf'IFDEF{_WS}+(?P<arg>.+)', re.IGNORECASE)
_IFNDEF = re.compile(rf'IFNDEF{_WS}+(?P<arg>.+)', re.IGNORECASE)
_IF = re.compile(rf'IF{_WS}+(?P<left>.*?)==(?P<right>.*)', re.IGNORECASE)
_ASK = re.compile(rf'ASK{_WS}+(?P<arg>.+)', re.IGNORECASE)
_OPTION = re.compile(rf'OPTION{_WS}+(?P<arg>.+)', re.IGNORECASE)
_ELSE = re.compile(rf'ELSE{_WS}*', re.IGNORECASE)
_ENDIF = re.compile(rf'ENDIF{_WS}*', re.IGNORECASE)
_ENDASK = re.compile(rf'ENDASK{_WS}*', re.IGNORECASE)


def directive_payload(prefix: str, line: str) -> Optional[str]:
    """
    Return the trimmed payload of a directive line, or None for content lines.
    """
    stripped = line.lstrip()
    if not prefix or not stripped.startswith(prefix):
        return None
    return stripped[len(prefix):].strip()


def parse_payload(payload: str) -> Directive:
    """
    Parse a directive payload.

    Raises:
        MalformedDirectiveError: If the payload matches no directive
    """
    if payload.startswith('#'):
        return Comment()

    match = _IFDEF.fullmatch(payload)
    if match:
        return IfDef(_argument(match, 'IFDEF'))

    match = _IFNDEF.fullmatch(payload)
    if match:
        return IfNDef(_argument(match, 'IFNDEF'))

    match = _IF.fullmatch(payload)
    if match:
        left = match.group('left').strip()
        right = match.group('right').strip()
        if not left or not right:
            raise MalformedDirectiveError(f"IF needs the form 'A == B', got {payload!r}")
        return If(left, right)

    match = _ASK.fullmatch(payload)
    if match:
        return Ask(_argument(match, 'ASK'))

    match = _OPTION.fullmatch(payload)
    if match:
        return Option(_argument(match, 'OPTION'))

    if _ELSE.fullmatch(payload):
        return Else()
    if _ENDIF.fullmatch(payload):
        return EndIf()
    if _ENDASK.fullmatch(payload):
        return EndAsk()

    raise MalformedDirectiveError(f"Unrecognized preprocessor instruction {payload!r}")


def parse_line(prefix: str, line: str) -> Optional[Directive]:
    """
    Parse a line into a Directive.

    Returns:
        The directive, or None if the line is a content line

    Raises:
        MalformedDirectiveError: If the line has the prefix but no valid directive
    """
    payload = directive_payload(prefix, line)
    if payload is None:
        return None
    return parse_payload(payload)


def _argument(match: 're.Match[str]', keyword: str) -> str:
    arg = match.group('arg').strip()
    if not arg:
        raise MalformedDirectiveError(f"{keyword} needs an argument")
    return arg
