# Import command modules to register subcommands on the envfile group.
import imbue.envfile.cli.read as _read  # noqa: F401
import imbue.envfile.cli.write as _write  # noqa: F401
from imbue.envfile.cli.group import envfile

cli = envfile


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
