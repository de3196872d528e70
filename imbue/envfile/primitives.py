from enum import StrEnum
from enum import auto
from typing import Any
from typing import Self

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema
from pydantic_core import core_schema


class UpperCaseStrEnum(StrEnum):
    """A StrEnum that automatically converts enum member names to uppercase values."""

    @staticmethod
    def _generate_next_value_(
        name: str,
        start: int,
        count: int,
        last_values: list[str],
    ) -> str:
        return name.upper()


# === Enums ===


class LineKind(UpperCaseStrEnum):
    """How a physical line of an env file was classified at parse time."""

    COMMENT = auto()
    ASSIGNMENT = auto()


class OperationMode(UpperCaseStrEnum):
    """What a single key operation does to the file."""

    SET_VALUE = auto()
    SET_IF_ABSENT = auto()
    DELETE = auto()


class OutputFormat(UpperCaseStrEnum):
    """Output format mode."""

    HUMAN = auto()
    JSON = auto()
    JSONL = auto()


class LogLevel(UpperCaseStrEnum):
    """Log verbosity level."""

    TRACE = auto()
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()
    NONE = auto()


# === String types ===


class EnvKey(str):
    """A key as it appears on the left side of an assignment: non-empty, no surrounding whitespace."""

    def __new__(cls, value: str) -> Self:
        stripped = value.strip()
        if not stripped:
            raise ValueError(f"{cls.__name__} cannot be empty")
        return super().__new__(cls, stripped)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.str_schema(min_length=1),
            serialization=core_schema.to_string_ser_schema(),
        )
