import os
import subprocess
from collections.abc import Iterable
from collections.abc import MutableMapping
from collections.abc import Sequence
from pathlib import Path
from typing import Self

from loguru import logger
from pydantic import Field

from imbue.envfile.data_types import EnvPair
from imbue.envfile.data_types import FileImage
from imbue.envfile.data_types import KeyOperation
from imbue.envfile.data_types import MutableModel
from imbue.envfile.errors import InvalidValueError
from imbue.envfile.errors import KeyNotFoundError
from imbue.envfile.errors import SubprocessFailureError
from imbue.envfile.file_utils import atomic_write
from imbue.envfile.file_utils import load_file_image
from imbue.envfile.file_utils import write_file_image
from imbue.envfile.logging import log_span
from imbue.envfile.operations import delete_operations
from imbue.envfile.operations import ensure_single_line
from imbue.envfile.operations import parse_operation_args
from imbue.envfile.operations import validate_key
from imbue.envfile.parser import classify_line
from imbue.envfile.parser import get_value
from imbue.envfile.parser import lookup_pairs
from imbue.envfile.patcher import apply_operations
from imbue.envfile.patcher import render_for_write
from imbue.envfile.primitives import OperationMode
from imbue.envfile.shell_format import validate_env_keys


class EnvFileSession(MutableModel):
    """The env file currently being worked on, and the parsed image of it.

    A session is owned by a single caller and is not thread-safe. The image is only ever
    replaced wholesale: by select_file(), by the reload that precedes every write, and by a
    successful write.
    """

    path: Path = Field(description="Env file this session operates on")
    image: FileImage = Field(description="Most recently loaded or written content of the file")

    @classmethod
    def open(cls, path: Path) -> Self:
        """Create a session for path, loading the file (a missing file is empty)."""
        return cls(path=path, image=load_file_image(path))

    def select_file(self, path: Path) -> None:
        """Switch to a different file (or reload the current one) from disk."""
        self.image = load_file_image(path)
        self.path = path

    def reload(self) -> None:
        self.select_file(self.path)

    # === Reads ===

    def get(self, key: str) -> str:
        """Return the value of the first assignment to key."""
        value = get_value(self.image, key)
        if value is None:
            raise KeyNotFoundError([key], self.path)
        return value

    def parse(self, keys: Sequence[str] | None = None) -> list[EnvPair]:
        """Return matching pairs in file order, one per assignment line (duplicates included)."""
        pairs = lookup_pairs(self.image, keys)
        if not pairs:
            raise KeyNotFoundError(keys or (), self.path)
        return pairs

    def export(
        self,
        keys: Sequence[str] | None = None,
        environ: MutableMapping[str, str] | None = None,
    ) -> list[EnvPair]:
        """Install matching pairs into environ (os.environ by default) and return them.

        Every key is validated before anything is installed, so an invalid key leaves environ
        untouched. When a key appears more than once, the last assignment is what remains.
        """
        pairs = self.parse(keys)
        validate_env_keys(pairs)
        target = os.environ if environ is None else environ
        for pair in pairs:
            target[pair.key] = pair.value
        return pairs

    # === Writes ===

    def apply(self, operations: Sequence[KeyOperation]) -> bool:
        """Reload the file, apply operations, and write it back if anything changed.

        Returns whether the file was changed.
        """
        with log_span("Applying {} operation(s) to {}", len(operations), self.path):
            self.reload()
            patch_result = apply_operations(self.image, operations)
            self.image = write_file_image(self.path, patch_result)
        return patch_result.is_changed

    def set(self, args: Iterable[str]) -> bool:
        """Apply KEY=VALUE (set), +KEY=VALUE (set if absent) and KEY (delete) arguments."""
        return self.apply(parse_operation_args(args))

    def unset(self, keys: Iterable[str]) -> bool:
        return self.apply(delete_operations(keys))

    def puts(self, line: str) -> None:
        """Append a raw line to the file, whatever it contains, and always write."""
        ensure_single_line(line, "Line")
        with log_span("Appending a raw line to {}", self.path):
            self.reload()
            image = FileImage(
                path=self.path,
                lines=self.image.lines + (classify_line(line),),
                is_newline_terminated=True,
            )
            atomic_write(self.path, render_for_write(image))
            self.image = image

    def generate(self, key: str, command: Sequence[str]) -> str:
        """Return the value of key, running command to produce and store it if it is missing.

        The command's standard output, minus trailing newlines, becomes the value. If the
        command fails, the file is left untouched.
        """
        env_key = validate_key(key)
        self.reload()
        existing_value = get_value(self.image, env_key)
        if existing_value is not None:
            logger.debug("{} already has a value in {}, not running {}", key, self.path, command)
            return existing_value

        value = _run_value_command(command)
        ensure_single_line(value, "Generated value")
        operation = KeyOperation(key=env_key, mode=OperationMode.SET_VALUE, value=value)
        self.image = write_file_image(self.path, apply_operations(self.image, [operation]))
        assert operation.value is not None
        return operation.value


def _run_value_command(command: Sequence[str]) -> str:
    """Run command and return its standard output without trailing newlines."""
    if not command:
        raise InvalidValueError("generate requires a command to produce the value")
    with log_span("Running {}", command[0]):
        try:
            completed = subprocess.run(list(command), capture_output=True, text=True, check=False)
        except OSError as e:
            raise SubprocessFailureError(command, e.strerror or str(e)) from e
    if completed.returncode != 0:
        stderr = completed.stderr.strip()
        reason = f"exited with status {completed.returncode}"
        if stderr:
            reason = f"{reason}: {stderr}"
        raise SubprocessFailureError(command, reason, completed.returncode)
    return completed.stdout.rstrip("\n")
