"""Preprocessor exceptions."""

from typing import List, Optional
from dataclasses import dataclass


@dataclass
class ValidationError:
    """Single configuration validation error."""
    message: str
    path: str = ""
    exit_code: int = 2


class ConfigValidationError(Exception):
    """Raised when the configuration file fails validation.

    The loader collects every problem first so the CLI can report them
    all at once and map the failure to exit code 2.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        self.exit_code = 2

        messages = []
        for error in errors:
            if error.path:
                messages.append(f"Validation error at '{error.path}': {error.message}")
            else:
                messages.append(f"Validation error: {error.message}")

        super().__init__("\n".join(messages))


class PreprocessError(Exception):
    """Base class for errors raised while processing a document.

    The line number is 1-based and may be filled in later by the caller
    that knows which line was being processed.
    """

    kind = "preprocess_error"

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.message = message
        self.line_number = line_number
        super().__init__(message)

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


# Directive structure

class DirectiveStructureError(PreprocessError):
    kind = "directive_structure"


class MalformedDirectiveError(DirectiveStructureError):
    """Payload after the prefix matches no known directive."""
    kind = "malformed_directive"


class UnterminatedBlockError(DirectiveStructureError):
    """Document ended while blocks were still open."""
    kind = "unterminated_block"


class UnmatchedElseError(DirectiveStructureError):
    kind = "unmatched_else"


class DuplicateElseError(DirectiveStructureError):
    kind = "duplicate_else"


class UnmatchedEndError(DirectiveStructureError):
    """ENDIF/ENDASK with no open block, or closing the wrong kind of block."""
    kind = "unmatched_end"


class UnmatchedOptionError(DirectiveStructureError):
    """OPTION whose innermost open block is not an ASK block."""
    kind = "unmatched_option"


# Expression evaluation

class ExpansionError(PreprocessError):
    kind = "expansion"


class InvalidEnvNameError(ExpansionError):
    kind = "invalid_env_name"


class UnescapedParenError(ExpansionError):
    kind = "unescaped_paren"


class CommandExecutionError(ExpansionError):
    """Command substitution failed to spawn or exited non-zero."""

    kind = "command_execution"

    def __init__(
        self,
        message: str,
        command: str = "",
        exit_code: Optional[int] = None,
        stderr: str = "",
        line_number: Optional[int] = None
    ):
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message, line_number)


class UnknownSubstitutionKeyError(PreprocessError):
    """Escaped key missing from the substitution table (strict mode only)."""
    kind = "unknown_substitution_key"


class QueryInputError(PreprocessError):
    """Input ended before the user gave a valid answer."""
    kind = "query_input"


# Filesystem

class TargetExistsError(Exception):
    """Link target exists and is not a symlink."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Target {target!r} already exists and is not a symlink")
