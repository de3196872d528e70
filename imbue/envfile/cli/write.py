from pathlib import Path
from typing import assert_never

import click

from imbue.envfile.cli.common_opts import OutputOptions
from imbue.envfile.cli.common_opts import add_common_options
from imbue.envfile.cli.common_opts import env_file_access
from imbue.envfile.cli.common_opts import open_session
from imbue.envfile.cli.common_opts import setup_command_context
from imbue.envfile.cli.group import envfile
from imbue.envfile.cli.output_helpers import emit_final_json
from imbue.envfile.cli.output_helpers import write_human_line
from imbue.envfile.operations import delete_operations
from imbue.envfile.operations import parse_operation_args
from imbue.envfile.primitives import OutputFormat


@envfile.command(name="set")
@click.argument("operations", nargs=-1, required=True)
@add_common_options
@click.pass_context
def set_command(ctx: click.Context, operations: tuple[str, ...], output_format: str | None) -> None:
    """Set, default or delete keys in one atomic edit.

    \b
    Each OPERATION is one of:
      KEY=VALUE    set KEY to VALUE, adding it at the end if it is missing
      +KEY=VALUE   add KEY=VALUE only if KEY is not in the file yet
      KEY          delete every assignment to KEY

    Existing lines keep their indentation and spacing; only the value changes. The file is
    only rewritten if something actually changed.

    \b
    Examples:
      envfile set PORT=8080
      envfile set +SECRET_KEY=changeme DEBUG
    """
    cli_ctx, output_opts = setup_command_context(ctx, output_format)
    key_operations = parse_operation_args(operations)
    session = open_session(cli_ctx)
    with env_file_access(session.path):
        is_changed = session.apply(key_operations)
    _emit_write_result("set", session.path, is_changed, output_opts)


@envfile.command(name="unset")
@click.argument("keys", nargs=-1, required=True)
@add_common_options
@click.pass_context
def unset_command(ctx: click.Context, keys: tuple[str, ...], output_format: str | None) -> None:
    """Delete every assignment to each of KEYS.

    Keys that are not in the file are ignored.

    \b
    Examples:
      envfile unset OLD_TOKEN LEGACY_URL
    """
    cli_ctx, output_opts = setup_command_context(ctx, output_format)
    key_operations = delete_operations(keys)
    session = open_session(cli_ctx)
    with env_file_access(session.path):
        is_changed = session.apply(key_operations)
    _emit_write_result("unset", session.path, is_changed, output_opts)


@envfile.command(name="puts")
@click.argument("line")
@add_common_options
@click.pass_context
def puts_command(ctx: click.Context, line: str, output_format: str | None) -> None:
    """Append LINE to the file exactly as given.

    Useful for comments and section headers. The file is always rewritten.

    \b
    Examples:
      envfile puts '# Added by the deploy script'
    """
    cli_ctx, output_opts = setup_command_context(ctx, output_format)
    session = open_session(cli_ctx)
    with env_file_access(session.path):
        session.puts(line)
    _emit_write_result("puts", session.path, True, output_opts)


@envfile.command(name="generate", context_settings={"ignore_unknown_options": True})
@click.argument("key")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@add_common_options
@click.pass_context
def generate_command(ctx: click.Context, key: str, command: tuple[str, ...], output_format: str | None) -> None:
    """Print the value of KEY, running COMMAND to create it first if it is missing.

    COMMAND's standard output (without trailing newlines) becomes the value and is saved to
    the file. If KEY already has a value, COMMAND is not run. If COMMAND fails, the file is
    left untouched and envfile exits with status 1.

    \b
    Examples:
      envfile generate SECRET_KEY -- openssl rand -hex 32
      envfile generate DB_PASSWORD -- pwgen -s 24 1
    """
    cli_ctx, output_opts = setup_command_context(ctx, output_format)
    session = open_session(cli_ctx)
    with env_file_access(session.path):
        value = session.generate(key, command)
    match output_opts.output_format:
        case OutputFormat.JSON:
            emit_final_json({"key": key, "value": value})
        case OutputFormat.JSONL:
            emit_final_json({"event": "value", "key": key, "value": value})
        case OutputFormat.HUMAN:
            write_human_line("{}", value)
        case _ as unreachable:
            assert_never(unreachable)


def _emit_write_result(command_name: str, path: Path, is_changed: bool, output_opts: OutputOptions) -> None:
    match output_opts.output_format:
        case OutputFormat.JSON:
            emit_final_json({"path": str(path), "changed": is_changed})
        case OutputFormat.JSONL:
            emit_final_json({"event": command_name, "path": str(path), "changed": is_changed})
        case OutputFormat.HUMAN:
            if is_changed:
                write_human_line("Updated {}", path)
            else:
                write_human_line("No changes to {}", path)
        case _ as unreachable:
            assert_never(unreachable)
