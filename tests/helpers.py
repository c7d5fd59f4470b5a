"""Deterministic stand-ins for the command runner and the asker."""

from typing import Dict, List, Optional, Tuple

from dotprep.exceptions import CommandExecutionError


class FakeRunner:
    """Command runner returning canned output instead of spawning processes."""

    def __init__(self, outputs: Optional[Dict[str, str]] = None, failing: Optional[set] = None):
        self.outputs = outputs or {}
        self.failing = failing or set()
        self.calls: List[str] = []

    def run(self, command: str) -> str:
        self.calls.append(command)
        if command in self.failing:
            raise CommandExecutionError(f"Command {command!r} exited with status 1",
                                        command=command, exit_code=1)
        return self.outputs.get(command, "")


class ScriptedAsker:
    """Asker that replays answers in order and records each query."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.calls: List[Tuple[str, List[str]]] = []

    def ask(self, question: str, options: List[str]):
        self.calls.append((question, list(options)))
        if not self.answers:
            raise AssertionError(f"Unexpected question: {question!r}")
        return self.answers.pop(0)
