"""
Interactive prompting for ASK blocks.
"""

import sys
from typing import List, Optional, TextIO

from ..exceptions import QueryInputError
from .cache import QueryAnswer


class TerminalAsker:
    """
    Asks queries on a text stream pair (stdin/stdout by default).

    Option queries print a numbered list and accept a number in [1, N];
    the returned answer is the 0-based index. Yes/no queries accept
    y/yes/n/no in any case. Invalid input is asked again.
    """

    YES = {'y', 'yes'}
    NO = {'n', 'no'}

    def __init__(self, input_stream: Optional[TextIO] = None, output_stream: Optional[TextIO] = None):
        self.input_stream = input_stream or sys.stdin
        self.output_stream = output_stream or sys.stdout

    def ask(self, question: str, options: List[str]) -> QueryAnswer:
        if not options:
            return self._ask_yes_no(question)
        return self._ask_option(question, options)

    def _ask_yes_no(self, question: str) -> bool:
        while True:
            answer = self._read(f"ASK  - {question} (y/n) ").lower()
            if answer in self.YES:
                return True
            if answer in self.NO:
                return False

    def _ask_option(self, question: str, options: List[str]) -> int:
        self._write(f"ASK  - {question}\n")
        for number, label in enumerate(options, start=1):
            self._write(f"     | {number:>2}> {label}\n")

        while True:
            answer = self._read("     | Please enter a number: ")
            if answer.isdecimal() and 1 <= int(answer) <= len(options):
                return int(answer) - 1

    def _write(self, text: str):
        self.output_stream.write(text)
        self.output_stream.flush()

    def _read(self, prompt: str) -> str:
        self._write(prompt)
        line = self.input_stream.readline()
        if not line:
            raise QueryInputError("Input ended before a valid answer was given")
        return line.strip()
