"""Compose project lifecycle management.

Key Components:
    - Compose: A started compose project
    - start / must_start: Bring a project up
    - cleanup_project: Best-effort teardown protocol
    - ComposeOptions: Lifecycle options
    - ComposeLauncher: Launcher and runtime command lines for a project
    - ContainerInfo: Immutable container snapshot
    - IdentityResolver: Maps launcher output to service names

Example:
    >>> from compose_fixture.compose import ComposeOptions, start
    >>> with start(config, ComposeOptions(project_name="orders")) as compose:
    ...     port = compose.get_container("db").first_public_port(5432)
"""

from ._compose import Compose, cleanup_project, must_start, start
from ._identity import DEFAULT_ID_PATTERN, IdentityResolver, check_service_names
from ._inspect import (
    ContainerInfo,
    ContainerState,
    PortBinding,
    inspect_container,
    must_inspect_container,
    parse_inspect_output,
)
from ._launcher import RUNTIME_RETRY_ATTEMPTS, RUNTIME_RETRY_DELAY, ComposeLauncher
from ._options import (
    DEFAULT_PROJECT_NAME,
    DEFAULT_START_RETRIES,
    DEFAULT_START_RETRY_DELAY,
    ComposeOptions,
    normalize_project_name,
)

__all__ = [
    "DEFAULT_ID_PATTERN",
    "DEFAULT_PROJECT_NAME",
    "DEFAULT_START_RETRIES",
    "DEFAULT_START_RETRY_DELAY",
    "RUNTIME_RETRY_ATTEMPTS",
    "RUNTIME_RETRY_DELAY",
    "Compose",
    "ComposeLauncher",
    "ComposeOptions",
    "ContainerInfo",
    "ContainerState",
    "IdentityResolver",
    "PortBinding",
    "check_service_names",
    "cleanup_project",
    "inspect_container",
    "must_inspect_container",
    "must_start",
    "normalize_project_name",
    "parse_inspect_output",
    "start",
]
