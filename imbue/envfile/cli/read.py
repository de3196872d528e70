from collections.abc import Callable
from typing import assert_never

import click

from imbue.envfile.cli.common_opts import OutputOptions
from imbue.envfile.cli.common_opts import add_common_options
from imbue.envfile.cli.common_opts import open_session
from imbue.envfile.cli.common_opts import setup_command_context
from imbue.envfile.cli.group import envfile
from imbue.envfile.cli.output_helpers import emit_final_json
from imbue.envfile.cli.output_helpers import write_human_line
from imbue.envfile.data_types import EnvPair
from imbue.envfile.primitives import OutputFormat
from imbue.envfile.shell_format import format_assignment_line
from imbue.envfile.shell_format import format_export_line
from imbue.envfile.shell_format import validate_env_keys


@envfile.command(name="get")
@click.argument("key")
@add_common_options
@click.pass_context
def get_command(ctx: click.Context, key: str, output_format: str | None) -> None:
    """Print the value of KEY (its first assignment, if there are several).

    Exits with status 1 if KEY is not assigned anywhere in the file.

    \b
    Examples:
      envfile get DATABASE_URL
      envfile -f prod.env get PORT --format json
    """
    cli_ctx, output_opts = setup_command_context(ctx, output_format)
    value = open_session(cli_ctx).get(key)
    match output_opts.output_format:
        case OutputFormat.JSON:
            emit_final_json({"key": key, "value": value})
        case OutputFormat.JSONL:
            emit_final_json({"event": "value", "key": key, "value": value})
        case OutputFormat.HUMAN:
            write_human_line("{}", value)
        case _ as unreachable:
            assert_never(unreachable)


@envfile.command(name="parse")
@click.argument("keys", nargs=-1)
@add_common_options
@click.pass_context
def parse_command(ctx: click.Context, keys: tuple[str, ...], output_format: str | None) -> None:
    """Print KEY=VALUE for every assignment, or only for the given KEYS.

    Pairs are printed in file order. A key assigned more than once is printed once per
    assignment. Exits with status 1 if nothing matches.

    \b
    Examples:
      envfile parse
      envfile parse HOST PORT --format json
    """
    cli_ctx, output_opts = setup_command_context(ctx, output_format)
    pairs = open_session(cli_ctx).parse(keys or None)
    _emit_pairs(pairs, output_opts, "pair", format_assignment_line)


@envfile.command(name="export")
@click.argument("keys", nargs=-1)
@add_common_options
@click.pass_context
def export_command(ctx: click.Context, keys: tuple[str, ...], output_format: str | None) -> None:
    """Print shell 'export' statements for every assignment, or only for the given KEYS.

    Values are quoted so that the shell reads them back unchanged. Exits with status 1 if
    nothing matches or if a key is not a valid environment variable name.

    \b
    Examples:
      eval "$(envfile export)"
      eval "$(envfile export AWS_ACCESS_KEY_ID AWS_SECRET_ACCESS_KEY)"
    """
    cli_ctx, output_opts = setup_command_context(ctx, output_format)
    pairs = open_session(cli_ctx).parse(keys or None)
    # nothing is printed unless every key can be exported
    validate_env_keys(pairs)
    _emit_pairs(pairs, output_opts, "export", format_export_line)


def _emit_pairs(
    pairs: list[EnvPair],
    output_opts: OutputOptions,
    event_name: str,
    format_line: Callable[[EnvPair], str],
) -> None:
    match output_opts.output_format:
        case OutputFormat.JSON:
            emit_final_json({"pairs": [pair.model_dump(mode="json") for pair in pairs]})
        case OutputFormat.JSONL:
            for pair in pairs:
                emit_final_json({"event": event_name, **pair.model_dump(mode="json")})
        case OutputFormat.HUMAN:
            for pair in pairs:
                write_human_line("{}", format_line(pair))
        case _ as unreachable:
            assert_never(unreachable)
