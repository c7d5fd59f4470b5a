"""Directive parsing and evaluation module."""

from .parser import (
    Ask,
    Comment,
    Directive,
    Else,
    EndAsk,
    EndIf,
    If,
    IfDef,
    IfNDef,
    Option,
    parse_line,
    parse_payload,
)
from .conditions import ConditionEvaluator
from .evaluator import BlockContext, BlockKind, DirectiveEvaluator, SourceLine

__all__ = [
    'Ask', 'Comment', 'Directive', 'Else', 'EndAsk', 'EndIf', 'If', 'IfDef',
    'IfNDef', 'Option', 'parse_line', 'parse_payload',
    'ConditionEvaluator', 'BlockContext', 'BlockKind', 'DirectiveEvaluator', 'SourceLine',
]
