from collections.abc import Sequence
from pathlib import Path

from click import ClickException


class BaseEnvFileError(Exception):
    """Base exception for all envfile errors."""


class EnvFileError(ClickException, BaseEnvFileError):
    """Base exception for all user-facing envfile errors.

    Subclasses can provide a user_help_text attribute with additional context to help the
    user understand and resolve the error. The CLI appends it to the error message.
    """

    user_help_text: str | None = None

    def format_message(self) -> str:
        if self.user_help_text:
            return f"{self.message}\n{self.user_help_text}"
        return self.message


class ConfigError(EnvFileError):
    """Raised when configuration from the environment is invalid."""


class KeyNotFoundError(EnvFileError, KeyError):
    """No assignment in the file matched the requested key(s)."""

    def __init__(self, keys: Sequence[str], path: Path | None = None) -> None:
        self.keys = tuple(keys)
        self.path = path
        where = f" in {path}" if path is not None else ""
        if self.keys:
            message = f"Key not found{where}: {', '.join(self.keys)}"
        else:
            message = f"No keys found{where}"
        super().__init__(message)


class InvalidKeyError(EnvFileError, ValueError):
    """Raised when a key cannot be used as an environment variable name."""

    user_help_text = "Environment variable names must match [A-Za-z_][A-Za-z0-9_]*."

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Invalid environment variable name: {key!r}")


class InvalidValueError(EnvFileError, ValueError):
    """Raised when a value or raw line would not fit on a single line of the file."""


class OperationParseError(EnvFileError, ValueError):
    """Raised when a set/unset argument cannot be turned into a key operation."""

    user_help_text = "Use KEY=VALUE to set, +KEY=VALUE to set only if absent, or KEY to delete."


class SubprocessFailureError(EnvFileError):
    """Raised when the command run by generate fails to start or exits non-zero."""

    def __init__(self, command: Sequence[str], reason: str, returncode: int | None = None) -> None:
        self.command = tuple(command)
        self.reason = reason
        self.returncode = returncode
        super().__init__(f"Command {' '.join(self.command)!r} failed: {reason}")


class EnvFileAccessError(EnvFileError):
    """Raised at the CLI boundary when the env file cannot be read or written."""

    def __init__(self, path: Path, error: OSError) -> None:
        self.path = path
        self.error = error
        super().__init__(f"Cannot access {path}: {error.strerror or error}")
