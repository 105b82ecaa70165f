"""Launcher and runtime command invocation.

This module provides the ComposeLauncher class that builds the exact
command lines run against the external launcher (``docker-compose``) and the
container runtime (``docker``) for one project, and wraps their failures
with the operation that was attempted.
"""

from collections.abc import Sequence
from pathlib import Path
from threading import Event
from typing import TYPE_CHECKING, final

from compose_fixture.config import DEFAULT_COMPOSE_COMMAND, DEFAULT_DOCKER_COMMAND
from compose_fixture.exceptions import CommandError, ComposeCommandError
from compose_fixture.retry import retry_operation
from compose_fixture.utils import create_logger, run_command

from ._inspect import ContainerInfo, inspect_container

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

# Runtime cleanup commands are retried with a doubling delay
RUNTIME_RETRY_ATTEMPTS: int = 3
RUNTIME_RETRY_DELAY: float = 2.0


@final
class ComposeLauncher:
    """Runs launcher and runtime commands for a single compose project.

    Attributes:
        config_file: Rendered compose file passed with ``-f``.
        project_name: Project namespace passed with ``-p``.
        compose_command: Launcher argv prefix.
        docker_command: Container runtime argv prefix.
        timeout: Seconds before a command is killed, or None.
    """

    __slots__ = (
        "_cancel",
        "_logger",
        "compose_command",
        "config_file",
        "docker_command",
        "project_name",
        "timeout",
    )

    def __init__(
        self,
        config_file: str | Path,
        project_name: str,
        *,
        compose_command: Sequence[str] = DEFAULT_COMPOSE_COMMAND,
        docker_command: Sequence[str] = DEFAULT_DOCKER_COMMAND,
        timeout: float | None = None,
        logger: "FilteringBoundLogger | None" = None,
        cancel: Event | None = None,
    ) -> None:
        """Initialize the launcher.

        Args:
            config_file: Rendered compose file.
            project_name: Normalized project name.
            compose_command: Launcher argv prefix.
            docker_command: Container runtime argv prefix.
            timeout: Seconds before a command is killed, or None.
            logger: Logger for command tracing. Creates one if None.
            cancel: Event that interrupts retry waits.
        """
        self.config_file = Path(config_file)
        self.project_name = project_name
        self.compose_command = tuple(compose_command)
        self.docker_command = tuple(docker_command)
        self.timeout = timeout
        self._logger: FilteringBoundLogger = logger or create_logger(
            project=project_name
        )
        self._cancel = cancel

    def compose_argv(self, *args: str) -> list[str]:
        """Build a launcher command line for this project."""
        return [
            *self.compose_command,
            "-f",
            str(self.config_file),
            "-p",
            self.project_name,
            *args,
        ]

    def docker_argv(self, *args: str) -> list[str]:
        """Build a container runtime command line."""
        return [*self.docker_command, *args]

    def _run(self, argv: list[str]) -> str:
        self._logger.debug("running_command", argv=argv)
        return run_command(argv, timeout=self.timeout).output

    def _compose(self, operation: str, description: str, *args: str) -> str:
        try:
            return self._run(self.compose_argv(*args))
        except CommandError as e:
            msg = f"error {description}: {e}"
            raise ComposeCommandError(
                msg, operation=operation, project_name=self.project_name
            ) from e

    def _docker_with_retry(self, operation: str, description: str, *args: str) -> str:
        argv = self.docker_argv(*args)
        try:
            return retry_operation(
                RUNTIME_RETRY_ATTEMPTS,
                RUNTIME_RETRY_DELAY,
                lambda: self._run(argv),
                cancel=self._cancel,
            )
        except CommandError as e:
            msg = f"error {description}: {e}"
            raise ComposeCommandError(
                msg, operation=operation, project_name=self.project_name
            ) from e

    def pull(self) -> str:
        """Pull the images of every service.

        Raises:
            ComposeCommandError: If the launcher fails.
        """
        return self._compose("pull", "pulling images", "pull")

    def kill(self) -> str:
        """Kill the project's containers.

        Raises:
            ComposeCommandError: If the launcher fails.
        """
        return self._compose("kill", "killing stale containers", "kill")

    def rm(self) -> str:
        """Remove the project's stopped containers and their anonymous volumes.

        Raises:
            ComposeCommandError: If the launcher fails.
        """
        return self._compose("rm", "removing stale containers", "rm", "--force", "-v")

    def up(self) -> str:
        """Create and start the project's containers detached.

        Returns:
            The launcher's verbose output, from which container identifiers
            are recovered.

        Raises:
            ComposeCommandError: If the launcher fails.
        """
        return self._compose("up", "bringing containers up", "--verbose", "up", "-d")

    def stop(self) -> str:
        """Stop the project's containers.

        Raises:
            ComposeCommandError: If the launcher fails.
        """
        return self._compose("stop", "stopping stale containers", "stop")

    def down(self) -> str:
        """Remove containers, volumes, default network and orphans.

        Raises:
            ComposeCommandError: If the launcher fails.
        """
        return self._compose(
            "down", "downing stale containers", "down", "-v", "--remove-orphans"
        )

    def prune_volumes(self) -> str:
        """Prune dangling volumes, host-wide.

        Raises:
            ComposeCommandError: If every attempt fails.
        """
        return self._docker_with_retry(
            "volume prune", "pruning volumes", "volume", "prune", "-f"
        )

    def remove_network(self, network_name: str) -> str:
        """Remove a network by name.

        Raises:
            ComposeCommandError: If every attempt fails.
        """
        return self._docker_with_retry(
            "network rm",
            f"removing network {network_name}",
            "network",
            "rm",
            network_name,
        )

    def inspect(self, container_id: str) -> ContainerInfo:
        """Inspect a container with this launcher's runtime command.

        Raises:
            InspectError: If the container cannot be inspected.
        """
        self._logger.debug("inspecting_container", container_id=container_id)
        return inspect_container(
            container_id, docker_command=self.docker_command, timeout=self.timeout
        )
