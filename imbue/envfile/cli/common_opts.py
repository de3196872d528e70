from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any
from typing import TypeVar

import click
from click_option_group import optgroup
from pydantic import Field

from imbue.envfile.data_types import EnvFileConfig
from imbue.envfile.data_types import FrozenModel
from imbue.envfile.errors import EnvFileAccessError
from imbue.envfile.primitives import OutputFormat
from imbue.envfile.session import EnvFileSession

TCommand = TypeVar("TCommand", bound=Any)


class CliContext(FrozenModel):
    """State shared by every subcommand, set up by the top-level group."""

    config: EnvFileConfig = Field(description="Configuration resolved from the environment")
    env_file_path: Path = Field(description="Env file selected by --file or the configuration")


class OutputOptions(FrozenModel):
    """How a subcommand should present its results."""

    output_format: OutputFormat = Field(description="Human, JSON or JSON lines output")


def add_common_options(command: TCommand) -> TCommand:
    """Add the options every subcommand accepts."""
    # Applied in reverse order (bottom-up per click convention)
    command = optgroup.option(
        "--format",
        "output_format",
        type=click.Choice([fmt.value.lower() for fmt in OutputFormat], case_sensitive=False),
        default=None,
        help="Output format. Defaults to $ENVFILE_FORMAT, or 'human'.",
    )(command)
    command = optgroup.group("Common")(command)
    return command


def setup_command_context(ctx: click.Context, output_format: str | None) -> tuple[CliContext, OutputOptions]:
    """Resolve the shared context and output options for a subcommand."""
    cli_ctx = ctx.find_object(CliContext)
    if cli_ctx is None:
        raise click.UsageError("envfile subcommands must be run through the envfile command group")
    resolved_format = OutputFormat(output_format.upper()) if output_format else cli_ctx.config.output_format
    return cli_ctx, OutputOptions(output_format=resolved_format)


@contextmanager
def env_file_access(path: Path) -> Iterator[None]:
    """Turn filesystem errors on the env file into user-facing errors."""
    try:
        yield
    except OSError as e:
        raise EnvFileAccessError(path, e) from e


def open_session(cli_ctx: CliContext) -> EnvFileSession:
    with env_file_access(cli_ctx.env_file_path):
        return EnvFileSession.open(cli_ctx.env_file_path)
