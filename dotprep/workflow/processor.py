"""
Single-document processing: directive evaluation, then post-substitution.
"""

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from ..directives.evaluator import DirectiveEvaluator, SourceLine
from ..exceptions import PreprocessError
from ..loader import DocumentConfig
from ..query.cache import Asker, QueryCache
from ..variables.expansion import Expander
from ..variables.substitution import Substitutor

logger = logging.getLogger(__name__)


def split_lines(text: str) -> List[str]:
    """
    Split text into lines at `\\n` only; a trailing `\\r` is dropped per line.

    Form feeds and Unicode line separators stay inside their line.
    """
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class DocumentProcessor:
    """
    Turns the text of one document into its processed form.

    The expander, query cache and asker are shared across the documents of a
    run; the substitution table is read-only.
    """

    def __init__(
        self,
        expander: Expander,
        query_cache: QueryCache,
        asker: Asker,
        substitutions: Optional[Mapping[str, str]] = None,
        strict_substitutions: bool = False
    ):
        self.expander = expander
        self.query_cache = query_cache
        self.asker = asker
        self.substitutions = substitutions or {}
        self.strict_substitutions = strict_substitutions

    def process(
        self,
        text: str,
        prefix: Optional[str] = None,
        escape: Optional[Tuple[str, str]] = None,
        remove_instructions: bool = True
    ) -> str:
        """
        Process document text.

        Args:
            text: Raw document
            prefix: Directive prefix; None skips directive evaluation
            escape: (start, end) escapes; None skips substitution
            remove_instructions: Drop directive lines from the output

        Returns:
            Processed document; a trailing newline in text is kept

        Raises:
            PreprocessError: On any directive or expansion failure
        """
        lines = [SourceLine(number, line) for number, line in enumerate(split_lines(text), start=1)]

        if prefix:
            evaluator = DirectiveEvaluator(
                prefix=prefix,
                expander=self.expander,
                query_cache=self.query_cache,
                asker=self.asker,
                remove_instructions=remove_instructions
            )
            lines = evaluator.evaluate_numbered(line.text for line in lines)
        else:
            logger.debug("No prefix defined, no directives will be evaluated")

        substitutor = Substitutor(
            escape,
            table=self.substitutions,
            expander=self.expander,
            strict=self.strict_substitutions
        )
        if substitutor.enabled:
            output = self._substitute(substitutor, lines)
        else:
            logger.info("No escape characters defined, no substitution will be made")
            output = [line.text for line in lines]

        result = "\n".join(output)
        if output and text.endswith("\n"):
            result += "\n"
        return result

    def process_document(self, document: DocumentConfig) -> str:
        """Read a configured document's source and process it."""
        text = Path(document.source).read_text(encoding='utf-8')
        return self.process(
            text,
            prefix=document.prefix,
            escape=document.escape,
            remove_instructions=document.remove_instructions
        )

    def _substitute(self, substitutor: Substitutor, lines: List[SourceLine]) -> List[str]:
        output = []
        for line in lines:
            try:
                output.append(substitutor.substitute_line(line.text))
            except PreprocessError as e:
                if e.line_number is None:
                    e.line_number = line.number
                raise
        return output
