import os
import stat
import tempfile
from pathlib import Path
from typing import Final

from loguru import logger

from imbue.envfile.data_types import FileImage
from imbue.envfile.data_types import PatchResult
from imbue.envfile.parser import parse_env_text
from imbue.envfile.patcher import render_for_write

# Env files are treated as opaque text: bytes that are not valid UTF-8 survive a read/write cycle
ENV_FILE_ENCODING: Final[str] = "utf-8"
ENV_FILE_ERRORS: Final[str] = "surrogateescape"


def read_env_text(path: Path) -> str:
    """Read the raw text of an env file.

    A missing file reads as empty text. Any other OSError (permissions, a directory in the
    way, I/O failure) propagates to the caller.
    """
    try:
        with open(path, encoding=ENV_FILE_ENCODING, errors=ENV_FILE_ERRORS, newline="") as f:
            return f.read()
    except FileNotFoundError:
        logger.debug("Env file {} does not exist, treating it as empty", path)
        return ""


def load_file_image(path: Path) -> FileImage:
    """Load and parse an env file from disk."""
    image = parse_env_text(read_env_text(path), path)
    logger.debug("Loaded {} lines from {}", len(image.lines), path)
    return image


def atomic_write(path: Path, content: str) -> None:
    """Write content to a file atomically using a temp file and rename.

    Writes to a temporary file in the same directory, flushes to disk with fsync, then
    atomically replaces the target file. Readers never see a partially-written file, and a
    crash leaves either the old or the new content in place.

    If the target file already exists, its permissions are preserved on the new file.
    Otherwise the file is created with the temp file's default permissions (0600).

    The caller is responsible for catching OSError if the write fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    existing_mode: int | None = None
    try:
        existing_mode = path.stat().st_mode
    except FileNotFoundError:
        pass

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding=ENV_FILE_ENCODING,
        errors=ENV_FILE_ERRORS,
        newline="",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp_file:
        tmp_path = Path(tmp_file.name)
        try:
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        except OSError:
            tmp_file.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        if existing_mode is not None:
            os.chmod(tmp_path, stat.S_IMODE(existing_mode))
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


def write_file_image(path: Path, patch_result: PatchResult) -> FileImage:
    """Persist a patch result if it changed anything, returning the image that is now current."""
    if not patch_result.is_changed:
        logger.debug("No changes for {}, leaving the file untouched", path)
        return patch_result.image
    atomic_write(path, render_for_write(patch_result.image))
    logger.debug("Wrote {} lines to {}", len(patch_result.image.lines), path)
    return patch_result.image.model_copy(update={"path": path})
