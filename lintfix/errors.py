"""Exception hierarchy for lint-fix runs.

Every stage fails fast: errors propagate unchanged apart from message
enrichment, and the CLI turns any ``LintFixError`` into exit code 1.
"""
from __future__ import annotations


class LintFixError(Exception):
    """Base class for all lint-fix failures."""


class ConfigurationError(LintFixError):
    """Missing lint command or an invalid concurrency value."""


class InvalidCommandError(LintFixError):
    """A command string that is empty after trimming."""


class LintCommandError(LintFixError):
    """The lint command exited with a non-zero status."""

    def __init__(self, message: str, exit_code: int | None = None, output: str = '') -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class ModelInvocationError(LintFixError):
    """The opencode process could not be launched or exited non-zero."""

    def __init__(self, message: str, exit_code: int | None = None, output: str = '') -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class SchemaValidationError(LintFixError):
    """Model output did not match the expected JSON shape."""


class LintParsingError(SchemaValidationError):
    """Lint output could not be normalized into a list of issues."""
