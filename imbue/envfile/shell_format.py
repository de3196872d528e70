"""Presentation of env file contents for a POSIX shell.

This is kept apart from the parser and patcher: values in the file are verbatim, and quoting
only happens when they are printed for a shell to evaluate.
"""

import re
import shlex
from collections.abc import Iterable
from typing import Final

import deal

from imbue.envfile.data_types import EnvPair
from imbue.envfile.errors import InvalidKeyError

_ENV_KEY_PATTERN: Final[re.Pattern[str]] = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@deal.has()
def is_valid_env_key(key: str) -> bool:
    """Check whether key can be used as an environment variable name."""
    return _ENV_KEY_PATTERN.fullmatch(key) is not None


@deal.has()
def validate_env_keys(pairs: Iterable[EnvPair]) -> None:
    """Raise InvalidKeyError for the first pair whose key is not a valid variable name."""
    for pair in pairs:
        if not is_valid_env_key(pair.key):
            raise InvalidKeyError(pair.key)


@deal.has()
def shell_quote_env_value(value: str) -> str:
    """Quote a value so that a POSIX shell reads it back unchanged."""
    return shlex.quote(value)


@deal.has()
def format_export_line(pair: EnvPair) -> str:
    """Format a pair as an `export` statement suitable for `eval`."""
    if not is_valid_env_key(pair.key):
        raise InvalidKeyError(pair.key)
    return f"export {pair.key}={shell_quote_env_value(pair.value)}"


@deal.has()
def format_assignment_line(pair: EnvPair) -> str:
    """Format a pair the way it appears in an env file."""
    return f"{pair.key}={pair.value}"
