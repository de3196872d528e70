"""Line-oriented parsing of env files.

Every physical line is classified exactly once, when the text is parsed. The raw text of each
line is kept as-is so that untouched lines can be written back byte-for-byte.
"""

from collections.abc import Collection
from pathlib import Path

import deal

from imbue.envfile.data_types import EnvPair
from imbue.envfile.data_types import FileImage
from imbue.envfile.data_types import LineRecord
from imbue.envfile.primitives import LineKind


@deal.has()
def classify_line(raw: str) -> LineRecord:
    """Classify a single line (without its newline) as a comment or an assignment.

    Blank lines, lines starting with '#' and lines without any '=' are comments. Comments are
    never targeted by key operations, so a malformed line is simply carried along unchanged.
    """
    stripped = raw.strip()
    if not stripped or stripped.startswith("#") or "=" not in raw:
        return LineRecord(raw=raw, kind=LineKind.COMMENT)
    key, _, value = raw.partition("=")
    return LineRecord(
        raw=raw,
        kind=LineKind.ASSIGNMENT,
        key=key.strip(),
        value=value.rstrip(),
    )


@deal.has()
def parse_env_text(text: str, path: Path | None = None) -> FileImage:
    """Parse the full text of an env file into a FileImage.

    Lines are split on '\\n' only, so any '\\r' stays part of the raw line. A trailing newline
    does not produce an extra empty line; it is recorded on the image instead.
    """
    if not text:
        return FileImage(path=path)
    segments = text.split("\n")
    is_newline_terminated = segments[-1] == ""
    if is_newline_terminated:
        segments.pop()
    return FileImage(
        path=path,
        lines=tuple(classify_line(segment) for segment in segments),
        is_newline_terminated=is_newline_terminated,
    )


@deal.has()
def render_text(image: FileImage) -> str:
    """Reproduce the text an image was parsed from."""
    if not image.lines:
        return ""
    text = "\n".join(line.raw for line in image.lines)
    if image.is_newline_terminated:
        text += "\n"
    return text


@deal.has()
def lookup_pairs(image: FileImage, keys: Collection[str] | None = None) -> list[EnvPair]:
    """Return (key, value) pairs in file order.

    With keys=None every assignment is returned. Otherwise only assignments whose key is in
    keys are returned. Duplicate keys in the file are reported once per occurrence.
    """
    wanted = None if keys is None else frozenset(keys)
    pairs: list[EnvPair] = []
    for line in image.lines:
        if not line.is_assignment:
            continue
        assert line.key is not None and line.value is not None
        if wanted is not None and line.key not in wanted:
            continue
        pairs.append(EnvPair(key=line.key, value=line.value))
    return pairs


@deal.has()
def get_value(image: FileImage, key: str) -> str | None:
    """Return the value of the first assignment to key, or None if the key is not assigned."""
    for line in image.lines:
        if line.is_assignment and line.key == key:
            return line.value
    return None
