# pyright: reportAny=false, reportExplicitAny=false
"""Environment-driven settings.

Settings control which executables are invoked and how logging behaves.
They are read from ``COMPOSE_FIXTURE_*`` environment variables:

    COMPOSE_FIXTURE_COMPOSE_COMMAND -> compose_command (shell-split)
    COMPOSE_FIXTURE_DOCKER_COMMAND  -> docker_command (shell-split)
    COMPOSE_FIXTURE_COMMAND_TIMEOUT -> command_timeout (seconds)
    COMPOSE_FIXTURE_LOG_LEVEL       -> log_level
    COMPOSE_FIXTURE_LOG_FORMAT      -> log_format
    COMPOSE_FIXTURE_LOG_FILE        -> log_file
"""

import os
import shlex
from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from compose_fixture.exceptions import ConfigValidationError
from compose_fixture.utils import create_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

ENV_PREFIX = "COMPOSE_FIXTURE_"

DEFAULT_COMPOSE_COMMAND: tuple[str, ...] = ("docker-compose",)
DEFAULT_DOCKER_COMMAND: tuple[str, ...] = ("docker",)


class LogLevel(StrEnum):
    """Log level threshold values."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class Settings(BaseModel):
    """Process-level settings for launcher invocation and logging.

    Attributes:
        compose_command: Launcher argv prefix, e.g. ("docker", "compose").
        docker_command: Container runtime argv prefix.
        command_timeout: Seconds before an external command is killed, or
            None to wait for it indefinitely.
        log_level: Log level threshold.
        log_format: Log output format.
        log_file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    compose_command: tuple[str, ...] = DEFAULT_COMPOSE_COMMAND
    docker_command: tuple[str, ...] = DEFAULT_DOCKER_COMMAND
    command_timeout: float | None = None
    log_level: LogLevel = LogLevel.INFO
    log_format: LogFormat = LogFormat.TEXT
    log_file: str = ""

    @field_validator("compose_command", "docker_command", mode="before")
    @classmethod
    def _split_command(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(shlex.split(value))
        return value

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def _lower_enum_value(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("compose_command", "docker_command")
    @classmethod
    def _require_command(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            msg = "command must not be empty"
            raise ValueError(msg)
        return value

    @field_validator("command_timeout")
    @classmethod
    def _positive_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":  # noqa: UP037
        """Load settings from ``COMPOSE_FIXTURE_*`` environment variables.

        Args:
            env: Environment to read from (default: os.environ).

        Returns:
            Settings with environment overrides applied to the defaults.

        Raises:
            ConfigValidationError: If a variable holds an invalid value.
        """
        values = parse_env_vars(env)
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            error = e.errors()[0]
            key = str(error["loc"][0]) if error["loc"] else ""
            msg = f"invalid value for {ENV_PREFIX}{key.upper()}: {error['msg']}"
            raise ConfigValidationError(
                msg,
                key=key,
                value=values.get(key),
                expected=error["type"],
            ) from e

    def create_logger(self, **context: object) -> "FilteringBoundLogger":  # noqa: UP037
        """Create a standalone logger configured by these settings.

        Args:
            **context: Key-value pairs bound to every log entry.

        Returns:
            A FilteringBoundLogger instance.
        """
        return create_logger(
            level=self.log_level.value,
            log_format="json" if self.log_format is LogFormat.JSON else "text",
            log_file=self.log_file or None,
            **context,
        )


def parse_env_vars(
    env: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Collect prefixed environment variables into a settings dictionary.

    Args:
        env: Environment to read from (default: os.environ).
        prefix: Environment variable prefix.

    Returns:
        Dictionary mapping lower-cased setting names to raw string values.
        Empty values are treated as unset.
    """
    environ = os.environ if env is None else env
    result: dict[str, Any] = {}

    for key, value in environ.items():
        if not key.startswith(prefix) or not value:
            continue

        # COMPOSE_FIXTURE_LOG_LEVEL -> log_level
        setting = key[len(prefix) :].lower()
        if setting:
            result[setting] = value

    return result
