from collections.abc import Iterable

import deal

from imbue.envfile.data_types import KeyOperation
from imbue.envfile.errors import InvalidValueError
from imbue.envfile.errors import OperationParseError
from imbue.envfile.primitives import EnvKey
from imbue.envfile.primitives import OperationMode

SET_IF_ABSENT_PREFIX = "+"


@deal.has()
def _validate_key(key: str, arg: str) -> EnvKey:
    if not key:
        raise OperationParseError(f"Missing key in {arg!r}")
    if key.startswith("#"):
        raise OperationParseError(f"Key cannot start with '#': {arg!r}")
    if "=" in key:
        raise OperationParseError(f"Key cannot contain '=': {arg!r}")
    if any(character.isspace() for character in key):
        raise OperationParseError(f"Key cannot contain whitespace: {arg!r}")
    return EnvKey(key)


@deal.has()
def validate_key(key: str) -> EnvKey:
    """Check that key can be the target of an operation."""
    return _validate_key(key.strip(), key)


@deal.has()
def ensure_single_line(text: str, what: str) -> None:
    """Reject text that would spill onto a second line of the file."""
    if "\n" in text:
        raise InvalidValueError(f"{what} cannot contain line breaks: {text!r}")


@deal.has()
def parse_operation_arg(arg: str) -> KeyOperation:
    """Turn one command-line argument into a key operation.

    KEY=VALUE sets the key, +KEY=VALUE sets it only if it is not already in the file, and a
    bare KEY deletes it. Everything after the first '=' is the value.
    """
    is_default = arg.startswith(SET_IF_ABSENT_PREFIX)
    body = arg[len(SET_IF_ABSENT_PREFIX) :] if is_default else arg
    key, separator, value = body.partition("=")
    env_key = _validate_key(key.strip(), arg)

    if not separator:
        if is_default:
            raise OperationParseError(f"Missing '=VALUE' in {arg!r}")
        return KeyOperation(key=env_key, mode=OperationMode.DELETE)

    ensure_single_line(value, "Value")
    mode = OperationMode.SET_IF_ABSENT if is_default else OperationMode.SET_VALUE
    return KeyOperation(key=env_key, mode=mode, value=value)


@deal.has()
def parse_operation_args(args: Iterable[str]) -> list[KeyOperation]:
    return [parse_operation_arg(arg) for arg in args]


@deal.has()
def delete_operations(keys: Iterable[str]) -> list[KeyOperation]:
    """Build DELETE operations for a list of bare keys."""
    return [KeyOperation(key=_validate_key(key.strip(), key), mode=OperationMode.DELETE) for key in keys]
