"""Utilities shared across compose-fixture."""

from ._exec import (
    ERROR_LINE_PREFIXES,
    CommandResult,
    process_group_kwargs,
    run_command,
    scrape_error_lines,
)
from ._files import write_file, write_temp_file
from ._host import (
    DOCKER_HOST_ENV_VAR,
    LOOPBACK_HOST,
    infer_docker_host,
    must_infer_docker_host,
)
from ._logging import LogFormatType, create_logger, log_level_from_string

__all__ = [
    "DOCKER_HOST_ENV_VAR",
    "ERROR_LINE_PREFIXES",
    "LOOPBACK_HOST",
    "CommandResult",
    "LogFormatType",
    "create_logger",
    "infer_docker_host",
    "log_level_from_string",
    "must_infer_docker_host",
    "process_group_kwargs",
    "run_command",
    "scrape_error_lines",
    "write_file",
    "write_temp_file",
]
