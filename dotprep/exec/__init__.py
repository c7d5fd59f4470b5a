"""
Execution module for the preprocessor.
Handles subprocess execution for command substitution.
"""

from .command_runner import CommandRunner, CommandResult

__all__ = [
    "CommandRunner",
    "CommandResult",
]
