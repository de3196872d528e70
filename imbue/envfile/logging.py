import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from typing import Final

from loguru import logger

from imbue.envfile.primitives import LogLevel

_LOGURU_LEVEL_BY_LOG_LEVEL: Final[dict[LogLevel, str]] = {
    LogLevel.TRACE: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARN: "WARNING",
    LogLevel.ERROR: "ERROR",
}

_STDERR_FORMAT: Final[str] = (
    "<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: LogLevel = LogLevel.WARN) -> None:
    """Configure loguru to log to stderr at the given level.

    Removes any previously installed handlers, so calling this more than once is safe.
    LogLevel.NONE leaves no handler installed at all.
    """
    logger.remove()
    if level == LogLevel.NONE:
        return
    logger.add(
        sys.stderr,
        level=_LOGURU_LEVEL_BY_LOG_LEVEL[level],
        format=_STDERR_FORMAT,
    )


@contextmanager
def log_span(message: str, *args: Any, **context: Any) -> Iterator[None]:
    """Context manager that logs a debug message on entry and a trace message with timing on exit.

    Keyword arguments are passed to logger.contextualize so that all log messages
    within the span include the extra context fields.
    """
    with logger.contextualize(**context):
        logger.debug(message, *args)
        start_time = time.monotonic()
        try:
            yield
        except BaseException:
            elapsed = time.monotonic() - start_time
            logger.trace(message + " [failed after {:.5f} sec]", *args, elapsed)
            raise
        else:
            elapsed = time.monotonic() - start_time
            logger.trace(message + " [done in {:.5f} sec]", *args, elapsed)
