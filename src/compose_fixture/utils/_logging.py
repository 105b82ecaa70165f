"""structlog loggers for compose projects.

Every compose project gets its own logger, built with ``structlog.wrap_logger``
rather than through ``structlog.configure``. Test suites that configure
structlog themselves are therefore left alone, and two projects started in
the same process can log to different files.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "COMPOSE_FIXTURE_DEBUG"


def log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Map a level name such as ``"warning"`` to its ``logging`` constant.

    Unknown names map to INFO. With ``respect_env``, a non-empty
    COMPOSE_FIXTURE_DEBUG forces DEBUG.
    """
    if respect_env and getenv(DEBUG_ENV_VAR):
        return logging.DEBUG
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _processors(log_format: LogFormatType) -> "list[Processor]":
    chain: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        chain += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=False))
    return chain


def create_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "text",
    log_file: str | Path | None = None,
    stream: TextIO | None = None,
    **context: object,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Build a standalone logger for one compose project.

    Args:
        level: Minimum level name; COMPOSE_FIXTURE_DEBUG overrides it.
        log_format: ``"text"`` for key=value lines, ``"json"`` for one JSON
            object per line.
        log_file: File to append to. Its parent directories are created.
            Wins over ``stream``.
        stream: Destination when no file is given; stderr by default.
        **context: Values bound to every event, e.g. ``project="orders"``.

    Returns:
        The bound logger.
    """
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        destination: TextIO = path.open("a")
    else:
        destination = stream or sys.stderr

    logger = cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.WriteLogger(destination),
            processors=_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(
                log_level_from_string(level, respect_env=True)
            ),
            context_class=dict,
        ),
    )
    return logger.bind(**context) if context else logger
