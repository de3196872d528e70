import os
from pathlib import Path

import click

from imbue.envfile.cli.common_opts import CliContext
from imbue.envfile.config import load_config
from imbue.envfile.logging import setup_logging
from imbue.envfile.primitives import LogLevel


@click.group(name="envfile")
@click.option(
    "-f",
    "--file",
    "env_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Env file to read or edit. Defaults to $ENVFILE_PATH, or .env in the current directory.",
)
@click.option(
    "--log-level",
    type=click.Choice([level.value.lower() for level in LogLevel], case_sensitive=False),
    default=None,
    help="Console log verbosity. Defaults to $ENVFILE_LOG_LEVEL, or 'warn'.",
)
@click.version_option(package_name="imbue-envfile", prog_name="envfile", message="%(prog)s %(version)s")
@click.pass_context
def envfile(ctx: click.Context, env_file: Path | None, log_level: str | None) -> None:
    """Read and edit .env files without disturbing comments, ordering or indentation.

    Lines are KEY=VALUE assignments; blank lines, '#' comments and lines without '=' are
    left exactly as they are. Values are taken verbatim: no quotes are removed and nothing
    is expanded.

    \b
    Examples:
      envfile get DATABASE_URL
      envfile parse HOST PORT
      eval "$(envfile export)"
      envfile set PORT=8080 +HOST=localhost OLD_KEY
      envfile generate SECRET_KEY -- openssl rand -hex 32
    """
    config = load_config(os.environ)
    setup_logging(LogLevel(log_level.upper()) if log_level else config.log_level)
    ctx.obj = CliContext(
        config=config,
        env_file_path=env_file if env_file is not None else config.env_file_path,
    )
