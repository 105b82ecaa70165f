"""Docker Compose projects as test fixtures.

Start a compose project, look up its containers by service name, wait for
services to become ready and tear everything down again.

Example:
    >>> from compose_fixture import (
    ...     ComposeConfig,
    ...     ComposeOptions,
    ...     SimpleRetryPolicy,
    ...     must_infer_docker_host,
    ...     must_start,
    ... )
    >>> config = ComposeConfig.from_file("docker-compose.yaml")
    >>> compose = must_start(config, ComposeOptions(project_name="it"))
    >>> port = compose.must_get_container("web").must_first_public_port(3000)
    >>> compose.connect(
    ...     SimpleRetryPolicy(max_retries=3, wait=1.0),
    ...     lambda: urlopen(f"http://{must_infer_docker_host()}:{port}"),
    ... )
    >>> compose.must_cleanup()
"""

from .compose import (
    Compose,
    ComposeLauncher,
    ComposeOptions,
    ContainerInfo,
    IdentityResolver,
    cleanup_project,
    inspect_container,
    must_inspect_container,
    must_start,
    start,
)
from .config import ComposeConfig, HealthCheck, Service, Settings, Volume
from .exceptions import (
    CleanupError,
    ComposeFixtureError,
    ComposeStartError,
    ContainerNotFoundError,
    FixtureAbort,
)
from .retry import (
    ExponentialBackoffRetryPolicy,
    RetryPolicy,
    SimpleRetryPolicy,
    connect,
    retry_operation,
)
from .utils import infer_docker_host, must_infer_docker_host

__all__ = [
    "CleanupError",
    "Compose",
    "ComposeConfig",
    "ComposeFixtureError",
    "ComposeLauncher",
    "ComposeOptions",
    "ComposeStartError",
    "ContainerInfo",
    "ContainerNotFoundError",
    "ExponentialBackoffRetryPolicy",
    "FixtureAbort",
    "HealthCheck",
    "IdentityResolver",
    "RetryPolicy",
    "Service",
    "Settings",
    "SimpleRetryPolicy",
    "Volume",
    "cleanup_project",
    "connect",
    "infer_docker_host",
    "inspect_container",
    "must_infer_docker_host",
    "must_inspect_container",
    "must_start",
    "retry_operation",
    "start",
]
