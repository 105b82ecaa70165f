"""Lifecycle orchestration for a compose project.

This module provides the Compose class, which brings a compose project up,
maps the containers the launcher created back to their logical service
names, and tears the project down again.

Startup converges in attempts: each attempt runs the launcher's ``up``,
recovers container identifiers from its output and inspects every
container. A container that cannot be inspected or mapped yet fails the
whole attempt, which is then retried with a doubling delay.
"""

import contextlib
from collections.abc import Callable
from pathlib import Path
from threading import Event
from types import TracebackType
from typing import TYPE_CHECKING, final

from compose_fixture.config import ComposeConfig, Settings
from compose_fixture.exceptions import (
    CleanupError,
    ComposeFixtureError,
    ComposeStartError,
    ContainerNotFoundError,
    FixtureAbort,
)
from compose_fixture.retry import RetryPolicy, connect, retry_operation
from compose_fixture.utils import create_logger, write_file, write_temp_file

from ._identity import check_service_names
from ._inspect import ContainerInfo
from ._launcher import ComposeLauncher
from ._options import ComposeOptions

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


@final
class Compose:
    """A running compose project.

    Instances are created by ``start``; a Compose is only ever handed out
    fully started. Each instance owns its project state and shares nothing
    with other instances, so projects with distinct names can run in
    parallel. ``get_container`` and ``cleanup`` must not be called
    concurrently on the same instance; ``connect`` may be.

    Use as a context manager to clean up on exit::

        with start(config, ComposeOptions(project_name="it")) as compose:
            db = compose.get_container("db")

    When the body raises, a failed cleanup is logged instead of replacing
    the body's exception.
    """

    __slots__ = (
        "_config",
        "_config_file",
        "_container_ids",
        "_containers",
        "_launcher",
        "_logger",
        "_options",
        "_owns_config_file",
    )

    def __init__(
        self,
        config: ComposeConfig,
        config_file: Path,
        options: ComposeOptions,
        launcher: ComposeLauncher,
        logger: "FilteringBoundLogger",
        *,
        owns_config_file: bool = False,
    ) -> None:
        """Initialize project state. Use ``start`` to bring a project up.

        Args:
            config: Effective configuration, as rendered to ``config_file``.
            config_file: Rendered compose file.
            options: Lifecycle options.
            launcher: Command runner bound to this project.
            logger: Logger bound to this project.
            owns_config_file: Whether cleanup may delete ``config_file``.
        """
        self._config = config
        self._config_file = config_file
        self._options = options
        self._launcher = launcher
        self._logger = logger
        self._owns_config_file = owns_config_file
        self._container_ids: list[str] = []
        self._containers: dict[str, ContainerInfo] = {}

    @classmethod
    def start(
        cls,
        config: ComposeConfig,
        options: ComposeOptions | None = None,
    ) -> "Compose":  # noqa: UP037
        """Render ``config``, bring the project up and map its containers.

        The caller's configuration is never modified. Network declarations
        are dropped from the rendered copy so that every service joins the
        project's default network.

        If starting fails, an owned temporary compose file is deleted, but
        containers may still have been created; run ``cleanup_project`` or
        the launcher's ``down`` to remove them.

        Args:
            config: Project definition.
            options: Lifecycle options (defaults if None).

        Returns:
            A fully started Compose.

        Raises:
            ServiceNameConflictError: If strict service names are enabled and
                one service name is a substring of another.
            ComposeFixtureError: If the compose file cannot be written.
            ComposeStartError: If pulling, removing leftovers or converging
                on running containers fails.
        """
        options = options or ComposeOptions()
        project_name = options.project_name
        settings = Settings.from_env()

        if options.logger is not None:
            logger = options.logger.bind(project=project_name)
        else:
            logger = settings.create_logger(project=project_name)

        logger.info("initializing")

        effective = config.without_networks()
        if options.strict_service_names:
            check_service_names(effective.service_names)

        rendered = effective.to_yaml()
        if options.output_file:
            config_file = write_file(options.output_file, rendered)
            owns_config_file = False
        else:
            config_file = write_temp_file(rendered)
            owns_config_file = True
        logger.info("wrote_compose_file", path=str(config_file))

        launcher = ComposeLauncher(
            config_file,
            project_name,
            compose_command=options.compose_command or settings.compose_command,
            docker_command=options.docker_command or settings.docker_command,
            timeout=options.command_timeout or settings.command_timeout,
            logger=logger,
            cancel=options.cancel,
        )
        compose = cls(
            effective,
            config_file,
            options,
            launcher,
            logger,
            owns_config_file=owns_config_file,
        )

        try:
            compose._bring_up()  # noqa: SLF001
        except ComposeStartError:
            # No Compose is handed out, so nothing else could delete the file
            if owns_config_file:
                config_file.unlink(missing_ok=True)
            raise

        service_names = list(compose._containers)  # noqa: SLF001
        logger.info("done_initializing", services=service_names)
        logger.info(
            "tail_logs_hint",
            command=" ".join(
                [
                    *launcher.compose_argv("logs", "-f"),
                    *service_names,
                ]
            ),
        )
        return compose

    @property
    def project_name(self) -> str:
        """Return the normalized project name."""
        return self._options.project_name

    @property
    def config(self) -> ComposeConfig:
        """Return the effective configuration the project was started with."""
        return self._config

    @property
    def config_file(self) -> Path:
        """Return the path of the rendered compose file."""
        return self._config_file

    @property
    def options(self) -> ComposeOptions:
        """Return the lifecycle options."""
        return self._options

    @property
    def launcher(self) -> ComposeLauncher:
        """Return the command runner bound to this project."""
        return self._launcher

    @property
    def container_ids(self) -> tuple[str, ...]:
        """Return the runtime identifiers discovered at startup."""
        return tuple(self._container_ids)

    @property
    def containers(self) -> dict[str, ContainerInfo]:
        """Return the last known containers keyed by service name.

        The snapshots are not refreshed; use ``get_container`` for current
        state.
        """
        return dict(self._containers)

    def _bring_up(self) -> None:
        options = self._options
        try:
            if options.force_pull:
                self._logger.info("pulling_images")
                _ = self._launcher.pull()

            if options.rm_first:
                self._logger.warning("rm_first_is_slow")
                self._logger.info("removing_stale_containers")
                _ = self._launcher.kill()
                _ = self._launcher.rm()
        except ComposeFixtureError as e:
            raise ComposeStartError(str(e), project_name=self.project_name) from e

        try:
            retry_operation(
                options.start_retries,
                options.start_retry_delay,
                self._converge,
                cancel=options.cancel,
            )
        except ComposeFixtureError as e:
            msg = f"error starting containers: {e}"
            raise ComposeStartError(msg, project_name=self.project_name) from e

    def _converge(self) -> None:
        try:
            output = self._launcher.up()
            self._logger.info("containers_started")
            self._container_ids = self._options.resolver.extract_ids(output)
            self._refresh()
        except ComposeFixtureError as e:
            self._logger.warning("start_attempt_failed", error=str(e))
            raise

    def _refresh(self) -> None:
        service_names = self._config.service_names
        containers: dict[str, ContainerInfo] = {}
        for container_id in self._container_ids:
            info = self._launcher.inspect(container_id)
            key = self._options.resolver.resolve_service(
                info.name, service_names, project_name=self.project_name
            )
            containers[key] = info
        self._containers = containers

    def get_container(self, service_name: str) -> ContainerInfo:
        """Return a fresh snapshot of a service's container.

        Every tracked container is re-inspected, not only the requested one.

        Args:
            service_name: Logical service name.

        Returns:
            The container's current state.

        Raises:
            InspectError: If a tracked container cannot be inspected.
            ServiceMappingError: If a tracked container no longer maps to a
                service.
            ContainerNotFoundError: If no container runs for the service.
        """
        self._refresh()
        container = self._containers.get(service_name)
        if container is None:
            msg = f"no container {service_name} found"
            raise ContainerNotFoundError(msg, service_name=service_name)
        return container

    def must_get_container(self, service_name: str) -> ContainerInfo:
        """Like get_container, but aborts the fixture on error.

        Raises:
            FixtureAbort: If the container cannot be retrieved.
        """
        try:
            return self.get_container(service_name)
        except ComposeFixtureError as e:
            raise FixtureAbort(e) from e

    def connect(
        self,
        policy: RetryPolicy,
        probe: Callable[[], object],
        *,
        cancel: Event | None = None,
    ) -> None:
        """Probe until the caller's readiness check passes.

        Args:
            policy: A fresh retry policy for this sequence.
            probe: Callable that raises while the service is not ready.
            cancel: Event that aborts the loop while waiting. Defaults to
                the project's cancel event.

        Raises:
            RetryPolicyReusedError: If ``policy`` has already counted attempts.
            RetryCancelledError: If ``cancel`` is set while waiting.
            Exception: The probe's last failure once the policy declines.
        """
        connect(
            policy,
            probe,
            cancel=cancel if cancel is not None else self._options.cancel,
            logger=self._logger,
        )

    def must_connect(
        self,
        policy: RetryPolicy,
        probe: Callable[[], object],
        *,
        cancel: Event | None = None,
    ) -> None:
        """Like connect, but aborts the fixture when the probe never passes.

        Raises:
            FixtureAbort: If the service never became ready.
        """
        try:
            self.connect(policy, probe, cancel=cancel)
        except ComposeFixtureError as e:
            raise FixtureAbort(e) from e
        except Exception as e:
            msg = f"service did not become ready: {e}"
            raise FixtureAbort(ComposeFixtureError(msg)) from e

    def cleanup(self) -> None:
        """Stop and remove the project, attempting every step.

        Runs ``cleanup_project`` with this project's ``keep_around`` and
        ``prevent_stop`` options. The rendered compose file is deleted if the
        project owns it, nothing was kept around and every step succeeded.

        Raises:
            CleanupError: Combining the failures of every failed step.
        """
        cleanup_project(
            self._launcher,
            keep_around=self._options.keep_around,
            prevent_stop=self._options.prevent_stop,
            logger=self._logger,
        )

        if self._owns_config_file and not self._options.keep_around:
            with contextlib.suppress(OSError):
                self._config_file.unlink()

    def must_cleanup(self) -> None:
        """Like cleanup, but aborts the fixture on error.

        Raises:
            FixtureAbort: If any cleanup step failed.
        """
        try:
            self.cleanup()
        except CleanupError as e:
            raise FixtureAbort(e) from e

    def remove_default_network(self) -> None:
        """Remove the project's default network.

        ``down`` already removes it; this is for networks left behind by
        interrupted runs.

        Raises:
            ComposeCommandError: If every removal attempt fails.
        """
        _ = self._launcher.remove_network(f"{self.project_name}_default")

    def __enter__(self) -> "Compose":  # noqa: UP037
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.cleanup()
            return
        # Keep the body's exception as the one reported
        try:
            self.cleanup()
        except CleanupError as e:
            self._logger.warning("cleanup_after_error_failed", error=str(e))

    def __repr__(self) -> str:
        return (
            f"Compose(project_name={self.project_name!r}, "
            f"services={sorted(self._containers)!r})"
        )


def start(config: ComposeConfig, options: ComposeOptions | None = None) -> Compose:
    """Start a compose project. See ``Compose.start``."""
    return Compose.start(config, options)


def must_start(config: ComposeConfig, options: ComposeOptions | None = None) -> Compose:
    """Like start, but aborts the fixture on error.

    Raises:
        FixtureAbort: If the project cannot be started.
    """
    try:
        return Compose.start(config, options)
    except ComposeFixtureError as e:
        raise FixtureAbort(e) from e


def cleanup_project(
    launcher: ComposeLauncher,
    *,
    keep_around: bool = False,
    prevent_stop: bool = False,
    logger: "FilteringBoundLogger | None" = None,
) -> None:
    """Tear a project down, attempting every enabled step.

    Unless ``prevent_stop`` is set the containers are stopped. With
    ``keep_around`` nothing is removed. Otherwise the containers are killed,
    the project is brought down with its volumes and orphans, and dangling
    volumes are pruned, each regardless of whether an earlier step failed.

    Args:
        launcher: Command runner bound to the project.
        keep_around: Stop but do not remove anything.
        prevent_stop: Skip stopping the containers.
        logger: Logger for cleanup events. Creates one if None.

    Raises:
        CleanupError: Combining the failures of every failed step.
    """
    log = logger or create_logger(project=launcher.project_name)
    errors: list[ComposeFixtureError] = []

    def attempt(step: str, operation: Callable[[], object]) -> None:
        try:
            _ = operation()
        except ComposeFixtureError as e:
            log.warning("cleanup_step_failed", step=step, error=str(e))
            errors.append(e)

    if not prevent_stop:
        log.info("cleanup_stopping")
        attempt("stop", launcher.stop)

    if keep_around:
        log.info("cleanup_keeping_containers")
    else:
        log.info("cleanup_removing")
        attempt("kill", launcher.kill)
        attempt("down", launcher.down)
        attempt("volume prune", launcher.prune_volumes)

    if errors:
        raise CleanupError(errors)
    log.info("cleanup_done")
