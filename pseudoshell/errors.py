"""Error taxonomy for shell commands.

Every error is recovered inside the interpreter and rendered as a single
error line; none of them ends a session.
"""

from __future__ import annotations


class ShellError(Exception):
    """Base class for recoverable command errors.

    The exception message is the exact text shown to the user.
    """

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ShellError):
    """Path or file is absent from the virtual filesystem."""

    kind = "not_found"


class PermissionDeniedError(ShellError):
    """File exists but a prerequisite has not been met."""

    kind = "permission_denied"


class InvalidArgumentError(ShellError):
    """A required operand is missing or malformed."""

    kind = "invalid_argument"


class BadCredentialError(ShellError):
    """Wrong escalation secret, cipher or flag."""

    kind = "bad_credential"


class UnknownCommandError(ShellError):
    """Command name is not part of the shell's command set."""

    kind = "unknown_command"


__all__ = [
    "ShellError",
    "NotFoundError",
    "PermissionDeniedError",
    "InvalidArgumentError",
    "BadCredentialError",
    "UnknownCommandError",
]
