"""
Expansion of environment and command references.
Handles $NAME, ${NAME} and $(COMMAND) in a single left-to-right pass.
"""

import os
import re
from typing import Mapping, Optional, Tuple

from ..exceptions import InvalidEnvNameError, UnescapedParenError
from ..exec.command_runner import CommandRunner


class Expander:
    """
    Expands references inside arbitrary strings.

    Supports:
    - $NAME and ${NAME}: environment value, empty string when undefined
    - $(COMMAND): stdout of COMMAND run through the shell, trailing newlines removed

    NAME matches [A-Za-z_]+ only. A `$` preceded by a backslash is left alone,
    as is a `$` not followed by a name, `{` or `(`. Produced text is never
    expanded again.
    """

    NAME_PATTERN = re.compile(r'[A-Za-z_]+')

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        runner: Optional[CommandRunner] = None
    ):
        """
        Initialize the expander.

        Args:
            environ: Variable source (default: the live process environment)
            runner: Command runner for $(...) (default: a plain CommandRunner)
        """
        self._environ = environ
        self.runner = runner or CommandRunner()

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def expand(self, text: str) -> str:
        """
        Expand environment and command references in text.

        Raises:
            InvalidEnvNameError: On a malformed ${...} reference
            UnescapedParenError: On an unterminated or ambiguous $(...)
            CommandExecutionError: If a command fails
        """
        return self._expand(text, run_commands=True)

    def expand_env(self, text: str) -> str:
        """Expand environment references only; $(...) is left untouched."""
        return self._expand(text, run_commands=False)

    def _expand(self, text: str, run_commands: bool) -> str:
        result = []
        i = 0
        length = len(text)

        while i < length:
            char = text[i]

            if char == '\\' and text.startswith('$', i + 1):
                result.append('\\$')
                i += 2
                continue

            if char != '$':
                result.append(char)
                i += 1
                continue

            following = text[i + 1] if i + 1 < length else ''

            if following == '{':
                name, i = self._read_braced_name(text, i + 2)
                result.append(self._lookup(name))
            elif following == '(' and run_commands:
                command, i = self._read_command(text, i + 2)
                result.append(self.runner.run(command))
            else:
                match = self.NAME_PATTERN.match(text, i + 1)
                if match:
                    result.append(self._lookup(match.group(0)))
                    i = match.end()
                else:
                    # Bare dollar sign stays literal
                    result.append(char)
                    i += 1

        return ''.join(result)

    def _lookup(self, name: str) -> str:
        return self.environ.get(name, '')

    def _read_braced_name(self, text: str, start: int) -> Tuple[str, int]:
        """Read NAME from `${NAME}`; start points just past the brace."""
        end = text.find('}', start)
        if end == -1:
            raise InvalidEnvNameError(f"Unterminated variable reference '${{{text[start:]}'")

        name = text[start:end]
        if not self.NAME_PATTERN.fullmatch(name):
            raise InvalidEnvNameError(
                f"Invalid environment variable name {name!r}: only letters and '_' are allowed"
            )
        return name, end + 1

    def _read_command(self, text: str, start: int) -> Tuple[str, int]:
        """
        Read COMMAND from `$(COMMAND)`; start points just past the parenthesis.

        The token ends at the first unescaped `)`. `\\)` and `\\(` are unescaped
        in the returned command. An unescaped `(` in the body must be balanced by
        an escaped `\\)`, otherwise the terminating `)` was probably meant
        literally and the reference is rejected.

        Returns:
            Tuple of (command, index just past the closing parenthesis)
        """
        body = []
        open_parens = 0
        escaped_closes = 0
        i = start

        while i < len(text):
            char = text[i]
            if char == '\\' and i + 1 < len(text) and text[i + 1] in '()':
                if text[i + 1] == ')':
                    escaped_closes += 1
                body.append(text[i + 1])
                i += 2
                continue
            if char == '(':
                open_parens += 1
            elif char == ')':
                if open_parens > escaped_closes:
                    raise UnescapedParenError(
                        f"Ambiguous ')' in command substitution '$({text[start:i + 1]}': "
                        f"write a literal ')' as '\\)'"
                    )
                return ''.join(body), i + 1
            body.append(char)
            i += 1

        raise UnescapedParenError(f"Missing closing ')' in command substitution '$({text[start:]}'")
