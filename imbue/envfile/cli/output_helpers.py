import json
from typing import Any

import click


def write_human_line(message: str, *args: Any) -> None:
    """Write a line of human-readable output to stdout.

    The message is only treated as a format string when args are given, so values read from a
    file can be passed as args without their braces being interpreted.
    """
    click.echo(message.format(*args) if args else message)


def emit_final_json(data: dict[str, Any]) -> None:
    """Write one compact JSON object as a single line to stdout."""
    click.echo(json.dumps(data, separators=(",", ":")))
