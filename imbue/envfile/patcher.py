"""Apply key operations to a parsed env file while leaving unrelated lines untouched."""

from collections.abc import Sequence
from typing import assert_never

import deal

from imbue.envfile.data_types import FileImage
from imbue.envfile.data_types import KeyOperation
from imbue.envfile.data_types import LineRecord
from imbue.envfile.data_types import PatchResult
from imbue.envfile.data_types import ResolvedOperation
from imbue.envfile.parser import classify_line
from imbue.envfile.primitives import OperationMode


@deal.has()
def _combine_operations(earlier: ResolvedOperation, later: KeyOperation) -> ResolvedOperation:
    """Fold a later operation on a key into what the earlier ones resolved to."""
    if later.mode == OperationMode.DELETE:
        return ResolvedOperation(operation=later)
    match earlier.operation.mode:
        case OperationMode.DELETE:
            # the key is gone, so a default applies just like a set
            return ResolvedOperation(
                operation=KeyOperation(key=later.key, mode=OperationMode.SET_VALUE, value=later.value),
                is_replacing=True,
            )
        case OperationMode.SET_VALUE | OperationMode.SET_IF_ABSENT:
            if later.mode == OperationMode.SET_IF_ABSENT:
                # the key is present once the earlier operation has run
                return earlier
            return ResolvedOperation(operation=later, is_replacing=earlier.is_replacing)
        case _ as unreachable:
            assert_never(unreachable)


@deal.has()
def resolve_operations(ops: Sequence[KeyOperation]) -> dict[str, ResolvedOperation]:
    """Collapse an ordered operation list into one resolved operation per key.

    Applying the result in a single pass over the file gives the same lines as applying ops
    one at a time. The returned dict iterates in the order missing keys get appended: a key's
    first mention, or the point where it is set again after a delete.
    """
    effective: dict[str, ResolvedOperation] = {}
    for op in ops:
        existing = effective.get(op.key)
        resolved = ResolvedOperation(operation=op) if existing is None else _combine_operations(existing, op)
        if existing is not None and existing.operation.mode == OperationMode.DELETE:
            del effective[op.key]
        effective[op.key] = resolved
    return effective


@deal.has()
def _rewrite_value(line: LineRecord, value: str) -> LineRecord:
    """Swap the value of an assignment line, keeping everything up to and including the first '='.

    A trailing '\\r' on the original line is kept so CRLF files keep their line endings.
    """
    prefix, _, _ = line.raw.partition("=")
    line_ending = "\r" if line.raw.endswith("\r") else ""
    return classify_line(f"{prefix}={value}{line_ending}")


@deal.has()
def apply_operations(image: FileImage, ops: Sequence[KeyOperation]) -> PatchResult:
    """Apply ops to image, changing only the lines that must change.

    Every assignment line whose key has an operation is handled by it, including duplicate
    keys. SET_VALUE and SET_IF_ABSENT keys that never appear in the file are appended as
    KEY=VALUE lines. A key that is deleted and then set again loses its existing lines and is
    appended. Deleting a key that is not in the file does nothing.

    When the resulting lines equal the original ones, the input image itself is returned.
    """
    effective = resolve_operations(ops)
    matched_keys: set[str] = set()
    new_lines: list[LineRecord] = []

    for line in image.lines:
        resolved = effective.get(line.key) if line.is_assignment and line.key is not None else None
        if resolved is None:
            new_lines.append(line)
            continue
        matched_keys.add(resolved.operation.key)
        if resolved.is_replacing:
            continue
        op = resolved.operation
        match op.mode:
            case OperationMode.DELETE:
                pass
            case OperationMode.SET_VALUE:
                assert op.value is not None
                new_lines.append(line if op.value == line.value else _rewrite_value(line, op.value))
            case OperationMode.SET_IF_ABSENT:
                new_lines.append(line)
            case _ as unreachable:
                assert_never(unreachable)

    for key, resolved in effective.items():
        op = resolved.operation
        if op.mode == OperationMode.DELETE or (key in matched_keys and not resolved.is_replacing):
            continue
        new_lines.append(classify_line(f"{key}={op.value}"))

    if tuple(new_lines) == image.lines:
        return PatchResult(image=image, is_changed=False)
    return PatchResult(
        image=FileImage(path=image.path, lines=tuple(new_lines), is_newline_terminated=True),
        is_changed=True,
    )


@deal.has()
def render_for_write(image: FileImage) -> str:
    """Render an image the way it is persisted: every line followed by a newline."""
    return "".join(f"{line.raw}\n" for line in image.lines)
