"""
Directive evaluation state machine.

Consumes a document line by line, keeps an explicit stack of open blocks and
decides for every line whether it survives into the output. A content line is
emitted only if every enclosing IF/IFDEF/IFNDEF block currently includes it.

ASK blocks cannot be decided until ENDASK, because the user chooses one of all
declared options. Lines inside an ASK block are therefore buffered in its
context, tagged with the option they fall under, and flushed to the enclosing
sink once the answer is known.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ..exceptions import (
    DuplicateElseError,
    PreprocessError,
    QueryInputError,
    UnmatchedElseError,
    UnmatchedEndError,
    UnmatchedOptionError,
    UnterminatedBlockError,
)
from ..query.cache import Asker, QueryAnswer, QueryCache, QueryKey
from ..variables.expansion import Expander
from .conditions import ConditionEvaluator
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
)

logger = logging.getLogger(__name__)

# Buffer tag for lines kept whatever option is chosen
ALWAYS = None


class SourceLine(NamedTuple):
    """A document line with its 1-based line number."""
    number: int
    text: str


class BlockKind(str, Enum):
    IF = "if"
    IFDEF = "ifdef"
    IFNDEF = "ifndef"
    ASK = "ask"


@dataclass
class OptionSpan:
    """An OPTION seen inside an ASK block."""
    label: str
    line_number: int
    included: bool = False


@dataclass
class BlockContext:
    """
    State of one open block.

    Attributes:
        kind: Directive that opened the block
        line_number: Line of the opening directive
        verdict: Current inclusion verdict (unused for ASK until resolved)
        else_seen: Whether ELSE was already seen
        question: Expanded question (ASK only)
        options: Options declared so far (ASK only)
        buffer: Buffered (option index or ALWAYS, line) pairs (ASK only)
    """
    kind: BlockKind
    line_number: int
    verdict: bool = True
    else_seen: bool = False
    question: str = ""
    options: List[OptionSpan] = field(default_factory=list)
    buffer: List[Tuple[Optional[int], 'SourceLine']] = field(default_factory=list)

    @property
    def is_conditional(self) -> bool:
        return self.kind is not BlockKind.ASK

    @property
    def current_option(self) -> int:
        """Index of the option whose span is open; -1 before the first OPTION."""
        return len(self.options) - 1


_CONDITIONAL_KINDS = {If: BlockKind.IF, IfDef: BlockKind.IFDEF, IfNDef: BlockKind.IFNDEF}


class DirectiveEvaluator:
    """
    Evaluates the directives of one document.

    Conditions are always evaluated, even inside excluded blocks; only the
    emission of lines is gated by the enclosing verdicts.
    """

    def __init__(
        self,
        prefix: str,
        expander: Expander,
        query_cache: QueryCache,
        asker: Asker,
        remove_instructions: bool = True
    ):
        """
        Initialize the evaluator.

        Args:
            prefix: Directive line prefix
            expander: Expander for directive arguments
            query_cache: Run-wide answer cache, shared between documents
            asker: Capability used on cache misses
            remove_instructions: Drop directive lines from the output
        """
        self.prefix = prefix
        self.expander = expander
        self.query_cache = query_cache
        self.asker = asker
        self.remove_instructions = remove_instructions
        self.conditions = ConditionEvaluator(expander)
        self._stack: List[BlockContext] = []
        self._output: List[SourceLine] = []

    def evaluate(self, lines: Iterable[str]) -> List[str]:
        """
        Evaluate a document and return the surviving lines.

        Raises:
            DirectiveStructureError: On malformed, unmatched or unterminated blocks
            ExpansionError: If a directive argument cannot be expanded
            QueryInputError: If a query cannot be answered
        """
        return [line.text for line in self.evaluate_numbered(lines)]

    def evaluate_numbered(self, lines: Iterable[str]) -> List[SourceLine]:
        """Like evaluate, but keeps the source line number of every surviving line."""
        self._stack = []
        self._output = []

        for line_number, line in enumerate(lines, start=1):
            try:
                self._process_line(line_number, SourceLine(line_number, line))
            except PreprocessError as e:
                if e.line_number is None:
                    e.line_number = line_number
                raise

        if self._stack:
            top = self._stack[-1]
            open_lines = ", ".join(str(ctx.line_number) for ctx in self._stack)
            raise UnterminatedBlockError(
                f"{top.kind.value.upper()} block is never closed (open blocks at lines {open_lines})",
                line_number=top.line_number
            )

        return self._output

    def _process_line(self, line_number: int, line: SourceLine):
        directive = parse_line(self.prefix, line.text)
        if directive is None:
            if self._included(self._stack):
                self._emit(line, self._stack)
            return
        self._dispatch(directive, line_number, line)

    def _dispatch(self, directive: Directive, line_number: int, line: SourceLine):
        if isinstance(directive, Comment):
            self._echo(line, self._stack)
        elif isinstance(directive, (If, IfDef, IfNDef)):
            self._open_conditional(directive, line_number, line)
        elif isinstance(directive, Else):
            self._else(line)
        elif isinstance(directive, EndIf):
            self._end_if(line)
        elif isinstance(directive, Ask):
            self._open_ask(directive, line_number, line)
        elif isinstance(directive, Option):
            self._option(directive, line_number, line)
        elif isinstance(directive, EndAsk):
            self._end_ask(line)
        else:
            raise TypeError(f"Unhandled directive: {directive!r}")

    def _open_conditional(self, directive, line_number: int, line: SourceLine):
        verdict = self.conditions.evaluate(directive)
        kind = _CONDITIONAL_KINDS[type(directive)]
        logger.debug(f"Line {line_number}: {kind.value.upper()} evaluated to {verdict}")
        self._echo(line, self._stack)
        self._stack.append(BlockContext(kind=kind, line_number=line_number, verdict=verdict))

    def _else(self, line: SourceLine):
        if not self._stack or not self._stack[-1].is_conditional:
            raise UnmatchedElseError("ELSE without an open IF/IFDEF/IFNDEF block")

        top = self._stack[-1]
        if top.else_seen:
            raise DuplicateElseError(
                f"Second ELSE in the {top.kind.value.upper()} block opened on line {top.line_number}"
            )
        top.else_seen = True
        top.verdict = not top.verdict
        self._echo(line, self._stack[:-1])

    def _end_if(self, line: SourceLine):
        if not self._stack:
            raise UnmatchedEndError("ENDIF without an open block")
        top = self._stack[-1]
        if not top.is_conditional:
            raise UnmatchedEndError(f"ENDIF closes the ASK block opened on line {top.line_number}")
        self._stack.pop()
        self._echo(line, self._stack)

    def _open_ask(self, directive: Ask, line_number: int, line: SourceLine):
        question = self.expander.expand(directive.question)
        self._echo(line, self._stack)
        self._stack.append(BlockContext(kind=BlockKind.ASK, line_number=line_number, question=question))

    def _option(self, directive: Option, line_number: int, line: SourceLine):
        if not self._stack or self._stack[-1].kind is not BlockKind.ASK:
            raise UnmatchedOptionError("OPTION outside of an ASK block")
        self._stack[-1].options.append(OptionSpan(label=directive.label, line_number=line_number))
        self._echo(line, self._stack, keep_always=True)

    def _end_ask(self, line: SourceLine):
        if not self._stack:
            raise UnmatchedEndError("ENDASK without an open block")
        top = self._stack[-1]
        if top.kind is not BlockKind.ASK:
            raise UnmatchedEndError(
                f"ENDASK closes the {top.kind.value.upper()} block opened on line {top.line_number}"
            )

        context = self._stack.pop()
        selected = self._resolve(context)
        for tag, buffered in context.buffer:
            if tag is ALWAYS or tag in selected:
                self._emit(buffered, self._stack)
        self._echo(line, self._stack)

    def _resolve(self, context: BlockContext) -> Sequence[int]:
        """
        Resolve an ASK block through the query cache.

        Returns:
            The buffer tags whose lines are kept
        """
        key = QueryKey.build(context.question, [option.label for option in context.options])
        answer: QueryAnswer = self.query_cache.resolve(key, self.asker)

        if not context.options:
            context.verdict = bool(answer)
            return [-1] if context.verdict else []

        if isinstance(answer, bool) or not 0 <= answer < len(context.options):
            raise QueryInputError(f"Answer {answer!r} does not select one of {len(context.options)} options")

        context.options[answer].included = True
        logger.debug(f"ASK {context.question!r} resolved to option {context.options[answer].label!r}")
        return [answer]

    def _included(self, contexts: Sequence[BlockContext]) -> bool:
        return all(ctx.verdict for ctx in contexts if ctx.is_conditional)

    def _emit(self, line: SourceLine, contexts: Sequence[BlockContext], keep_always: bool = False):
        """Send a line to the innermost ASK buffer, or to the output if there is none."""
        for ctx in reversed(contexts):
            if ctx.kind is BlockKind.ASK:
                ctx.buffer.append((ALWAYS if keep_always else ctx.current_option, line))
                return
        self._output.append(line)

    def _echo(self, line: SourceLine, contexts: Sequence[BlockContext], keep_always: bool = False):
        """Re-emit a directive line verbatim when instructions are kept."""
        if not self.remove_instructions and self._included(contexts):
            self._emit(line, contexts, keep_always)
