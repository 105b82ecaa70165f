"""compose-fixture configuration.

This package holds both kinds of configuration the fixture deals with: the
compose project definition handed to the launcher, and the process-level
settings read from the environment.

Example:
    >>> from compose_fixture.config import ComposeConfig
    >>> config = ComposeConfig.from_yaml("services: {web: {image: nginx}}")
    >>> config.service_names
    ['web']
"""

from compose_fixture.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._compose import ComposeConfig, HealthCheck, Service, Volume
from ._settings import (
    DEFAULT_COMPOSE_COMMAND,
    DEFAULT_DOCKER_COMMAND,
    ENV_PREFIX,
    LogFormat,
    LogLevel,
    Settings,
    parse_env_vars,
)

__all__ = [
    "DEFAULT_COMPOSE_COMMAND",
    "DEFAULT_DOCKER_COMMAND",
    "ENV_PREFIX",
    "ComposeConfig",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "HealthCheck",
    "LogFormat",
    "LogLevel",
    "Service",
    "Settings",
    "Volume",
    "parse_env_vars",
]
