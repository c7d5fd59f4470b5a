"""
Per-run cache of answers to ASK queries.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Protocol, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

# Option index (0-based) for ASK blocks with options, yes/no for the others.
QueryAnswer = Union[int, bool]


@dataclass(frozen=True)
class QueryKey:
    """
    Identity of a query.

    Two keys are equal only if the question text and the option labels match
    exactly, in the same order. A yes/no query has no options.
    """
    question: str
    options: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, question: str, options: Sequence[str]) -> 'QueryKey':
        return cls(question=question, options=tuple(options))

    @property
    def is_yes_no(self) -> bool:
        return not self.options


class Asker(Protocol):
    """Capability that puts a query to the user."""

    def ask(self, question: str, options: List[str]) -> QueryAnswer:
        ...


class QueryCache:
    """
    Records the answer chosen for each query during one run.

    Entries are only ever added; a fresh cache is created for every run.
    Not thread-safe: documents are processed sequentially.
    """

    def __init__(self):
        self._answers: Dict[QueryKey, QueryAnswer] = {}

    def resolve(self, key: QueryKey, asker: Asker) -> QueryAnswer:
        """
        Return the cached answer for key, asking only on a miss.

        Args:
            key: Query identity
            asker: Capability used when the key has not been seen yet

        Returns:
            Option index for option queries, bool for yes/no queries
        """
        if key in self._answers:
            answer = self._answers[key]
            logger.debug(f"Reusing answer {answer!r} for question {key.question!r}")
            return answer

        answer = asker.ask(key.question, list(key.options))
        self._answers[key] = answer
        logger.debug(f"Recorded answer {answer!r} for question {key.question!r}")
        return answer

    def get(self, key: QueryKey):
        return self._answers.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[QueryKey]:
        return iter(self._answers)
