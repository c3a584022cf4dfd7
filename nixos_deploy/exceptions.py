"""
nixos-deploy Exception Hierarchy

Clean exception hierarchy for consistent error handling across the CLI.
"""

import shlex
from typing import Optional, Sequence


class NixosDeployError(Exception):
    """Base exception for all nixos-deploy errors."""

    exit_code = 1

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(NixosDeployError):
    """Raised when configuration is invalid or missing."""

    pass


class CommandError(NixosDeployError):
    """Raised when an external command exits non-zero."""

    def __init__(self, argv: Sequence[str], returncode: int, message: Optional[str] = None):
        self.argv = list(argv)
        self.returncode = returncode
        # Propagate the failing tool's status as our own
        if returncode > 0:
            self.exit_code = returncode
        elif returncode < 0:
            # Killed by signal -returncode, reported the way a shell does
            self.exit_code = 128 - returncode
        else:
            self.exit_code = 1
        message = message or f"Command '{self.argv[0]}' failed with exit code {returncode}"
        super().__init__(message, context=f"Command: {shlex.join(self.argv)}")


class SSHError(CommandError):
    """Raised when a remote command or the SSH transport fails."""

    pass


class BuildError(CommandError):
    """Raised when a local build or closure transfer fails."""

    pass
