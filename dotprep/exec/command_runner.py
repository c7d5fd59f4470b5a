"""
Command runner for $(...) command substitution.
Runs a command through the shell, blocks until it exits and returns its stdout.
"""

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Dict, Optional
from dataclasses import dataclass

from ..exceptions import CommandExecutionError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of one command execution."""
    command: str
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int


class CommandRunner:
    """
    Executes substitution commands with `sh -c`.

    There is no timeout unless one is configured; a hung command hangs the
    whole run.
    """

    SHELL = ["sh", "-c"]

    def __init__(
        self,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        timeout_sec: Optional[float] = None
    ):
        """
        Initialize command runner.

        Args:
            cwd: Working directory for commands (default: current directory)
            env: Environment for the child process (default: inherited)
            timeout_sec: Optional timeout in seconds
        """
        self.cwd = cwd
        self.env = env
        self.timeout_sec = timeout_sec

    def execute(self, command: str) -> CommandResult:
        """
        Execute a command and capture its output.

        Args:
            command: Shell command text

        Returns:
            CommandResult for the finished process

        Raises:
            CommandExecutionError: If the process cannot be spawned or times out
        """
        start_time = time.time()

        try:
            result = subprocess.run(
                self.SHELL + [command],
                cwd=str(self.cwd) if self.cwd else None,
                env=self.env if self.env is not None else os.environ.copy(),
                capture_output=True,
                timeout=self.timeout_sec,
            )
        except subprocess.TimeoutExpired:
            raise CommandExecutionError(
                f"Command timed out after {self.timeout_sec} seconds: {command}",
                command=command
            )
        except OSError as e:
            raise CommandExecutionError(
                f"Failed to execute command {command!r}: {e}",
                command=command
            )

        duration_ms = int((time.time() - start_time) * 1000)
        command_result = CommandResult(
            command=command,
            exit_code=result.returncode,
            stdout=result.stdout.decode('utf-8', errors='replace'),
            stderr=result.stderr.decode('utf-8', errors='replace'),
            duration_ms=duration_ms,
        )
        logger.debug(f"Command {command!r} exited with {result.returncode} in {duration_ms}ms")
        return command_result

    def run(self, command: str) -> str:
        """
        Run a command and return its stdout with trailing newlines removed.

        Raises:
            CommandExecutionError: On spawn failure or non-zero exit status
        """
        result = self.execute(command)
        if result.exit_code != 0:
            stderr = result.stderr.strip()
            message = f"Command {command!r} exited with status {result.exit_code}"
            if stderr:
                message += f": {stderr}"
            raise CommandExecutionError(
                message,
                command=command,
                exit_code=result.exit_code,
                stderr=result.stderr
            )
        return result.stdout.rstrip('\n')
