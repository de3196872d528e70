from pathlib import Path
from typing import Self

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

from imbue.envfile.primitives import EnvKey
from imbue.envfile.primitives import LineKind
from imbue.envfile.primitives import LogLevel
from imbue.envfile.primitives import OperationMode
from imbue.envfile.primitives import OutputFormat


class FrozenModel(BaseModel):
    """Base class for immutable pydantic models that prevent attribute mutation after construction."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=False,
    )


class MutableModel(BaseModel):
    """Base class for mutable pydantic models that allow attribute mutation after construction."""

    model_config = ConfigDict(
        frozen=False,
        extra="forbid",
        arbitrary_types_allowed=False,
    )


class LineRecord(FrozenModel):
    """One physical line of an env file, classified once at parse time.

    Comment records (blank lines, '#' lines and lines without '=') carry only the raw text.
    Assignment records also carry the parsed key and value.
    """

    raw: str = Field(description="Exact original text of the line, without the trailing newline")
    kind: LineKind = Field(description="Whether this line is inert content or a key assignment")
    key: str | None = Field(default=None, description="Text before the first '=', stripped on both sides")
    value: str | None = Field(default=None, description="Text after the first '=', stripped on the right only")

    @model_validator(mode="after")
    def _check_fields_match_kind(self) -> Self:
        is_assignment = self.kind == LineKind.ASSIGNMENT
        if is_assignment and (self.key is None or self.value is None):
            raise ValueError("Assignment lines require both key and value")
        if not is_assignment and (self.key is not None or self.value is not None):
            raise ValueError("Comment lines cannot carry a key or value")
        return self

    @property
    def is_assignment(self) -> bool:
        return self.kind == LineKind.ASSIGNMENT


class FileImage(FrozenModel):
    """The full parsed content of one env file.

    A FileImage is never mutated: reloading or writing the file produces a new one.
    """

    path: Path | None = Field(default=None, description="File this image was loaded from, if any")
    lines: tuple[LineRecord, ...] = Field(default=(), description="Every physical line, in file order")
    is_newline_terminated: bool = Field(
        default=True,
        description="Whether the source text ended with a newline (only meaningful when lines is non-empty)",
    )


class KeyOperation(FrozenModel):
    """One requested mutation of a key."""

    key: EnvKey = Field(description="Key the operation targets")
    mode: OperationMode = Field(description="Whether to set, set if absent, or delete the key")
    value: str | None = Field(default=None, description="New value for the set modes; always None for DELETE")

    @field_validator("value")
    @classmethod
    def _strip_trailing_whitespace(cls, value: str | None) -> str | None:
        # the file only ever yields right-stripped values, so store them that way
        return None if value is None else value.rstrip()

    @model_validator(mode="after")
    def _check_value_matches_mode(self) -> Self:
        if self.mode == OperationMode.DELETE:
            if self.value is not None:
                raise ValueError("DELETE operations cannot carry a value")
        elif self.value is None:
            raise ValueError(f"{self.mode} operations require a value")
        return self


class EnvPair(FrozenModel):
    """A (key, value) pair read from an env file."""

    key: str = Field(description="Assignment key")
    value: str = Field(description="Assignment value, taken verbatim")


class ResolvedOperation(FrozenModel):
    """The single operation left for a key once all of its operations have been combined."""

    operation: KeyOperation = Field(description="Operation to apply to the key")
    is_replacing: bool = Field(
        default=False,
        description="Whether the key was deleted before being set, so existing lines go and the key is appended",
    )


class PatchResult(FrozenModel):
    """The output of applying key operations to a FileImage."""

    image: FileImage = Field(description="The image after applying the operations")
    is_changed: bool = Field(description="Whether any line was added, removed or altered")


class EnvFileConfig(FrozenModel):
    """Settings that apply to every command, resolved from the environment."""

    env_file_path: Path = Field(default=Path(".env"), description="Env file to operate on")
    log_level: LogLevel = Field(default=LogLevel.WARN, description="Console log verbosity")
    output_format: OutputFormat = Field(default=OutputFormat.HUMAN, description="Default output format")
