"""Docker host inference from the DOCKER_HOST environment variable."""

import os
import re
from collections.abc import Mapping

from compose_fixture.exceptions import DockerHostParseError, FixtureAbort

DOCKER_HOST_ENV_VAR = "DOCKER_HOST"
LOOPBACK_HOST = "127.0.0.1"

_DOCKER_HOST_PATTERN = re.compile(r"://([^:]+):")


def infer_docker_host(env: Mapping[str, str] | None = None) -> str:
    """Return the host published container ports are reachable on.

    Args:
        env: Environment to read from (default: os.environ).

    Returns:
        The host component of DOCKER_HOST, or 127.0.0.1 when it is unset.

    Raises:
        DockerHostParseError: If DOCKER_HOST is set but has no single
            ``scheme://host:port`` host segment.
    """
    environ = os.environ if env is None else env
    value = environ.get(DOCKER_HOST_ENV_VAR, "")
    if not value:
        return LOOPBACK_HOST

    matches = _DOCKER_HOST_PATTERN.findall(value)
    if len(matches) != 1:
        msg = f"cannot parse DOCKER_HOST '{value}'"
        raise DockerHostParseError(msg, value=value)
    return matches[0]


def must_infer_docker_host(env: Mapping[str, str] | None = None) -> str:
    """Like infer_docker_host, but aborts the fixture on error.

    Raises:
        FixtureAbort: If DOCKER_HOST cannot be parsed.
    """
    try:
        return infer_docker_host(env)
    except DockerHostParseError as e:
        raise FixtureAbort(e) from e
