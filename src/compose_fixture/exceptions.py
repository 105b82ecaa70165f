"""compose-fixture exceptions."""

from collections.abc import Sequence
from pathlib import Path
from typing import Any


class ComposeFixtureError(Exception):
    """Base exception for compose-fixture errors."""


class FixtureAbort(BaseException):  # noqa: N818
    """Unrecoverable test-fixture failure raised by the ``must_*`` wrappers.

    Derives from BaseException so that ``except Exception`` blocks in test
    code do not swallow a failed fixture setup.

    Attributes:
        cause: The fixture error that triggered the abort.
    """

    def __init__(self, cause: ComposeFixtureError) -> None:
        """Initialize with the error being escalated."""
        super().__init__(str(cause))
        self.cause: ComposeFixtureError = cause


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(ComposeFixtureError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a compose configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when a setting fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected


class DockerHostParseError(ConfigError):
    """Raised when DOCKER_HOST has no recognizable host segment.

    Attributes:
        value: The raw DOCKER_HOST value.
    """

    def __init__(self, message: str, *, value: str) -> None:
        """Initialize with error message and the offending value."""
        super().__init__(message)
        self.value: str = value


class ServiceNameConflictError(ConfigError):
    """Raised when one service name is a substring of another.

    Runtime names are mapped back to services by substring match, so such a
    pair cannot be resolved reliably.

    Attributes:
        names: The conflicting (contained, containing) service names.
    """

    def __init__(self, message: str, *, names: tuple[str, str]) -> None:
        """Initialize with error message and the conflicting pair."""
        super().__init__(message)
        self.names: tuple[str, str] = names


# =============================================================================
# Command Exceptions
# =============================================================================


class CommandError(ComposeFixtureError):
    """Raised when an external command exits unsuccessfully.

    Attributes:
        argv: The full command line that was executed.
        output: Combined stdout and stderr of the process.
        exit_code: Process exit code, or None if it never ran to completion.
        details: Diagnostic lines scraped from the output.
    """

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str],
        output: str = "",
        exit_code: int | None = None,
        details: Sequence[str] = (),
    ) -> None:
        """Initialize with error message and process context."""
        super().__init__(message)
        self.argv: tuple[str, ...] = tuple(argv)
        self.output: str = output
        self.exit_code: int | None = exit_code
        self.details: tuple[str, ...] = tuple(details)


class CommandNotFoundError(CommandError):
    """Raised when the executable of a command does not exist."""


class CommandTimeoutError(CommandError):
    """Raised when a command exceeds its timeout.

    Attributes:
        timeout: The timeout in seconds that was exceeded.
    """

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str],
        timeout: float,
        output: str = "",
    ) -> None:
        """Initialize with error message, command and timeout."""
        super().__init__(message, argv=argv, output=output)
        self.timeout: float = timeout


class ComposeCommandError(ComposeFixtureError):
    """Raised when a launcher or runtime operation fails.

    Attributes:
        operation: Short name of the failed operation (pull, kill, ...).
        project_name: Project the operation ran against, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        project_name: str | None = None,
    ) -> None:
        """Initialize with error message and operation context."""
        super().__init__(message)
        self.operation: str = operation
        self.project_name: str | None = project_name


# =============================================================================
# Container Exceptions
# =============================================================================


class InspectError(ComposeFixtureError):
    """Raised when a container cannot be inspected.

    Attributes:
        container_id: The runtime identifier that was inspected.
    """

    def __init__(self, message: str, *, container_id: str) -> None:
        """Initialize with error message and container context."""
        super().__init__(message)
        self.container_id: str = container_id


class ServiceMappingError(ComposeFixtureError):
    """Raised when a container cannot be mapped to a declared service.

    Attributes:
        container_name: Runtime name of the unmapped container.
    """

    def __init__(self, message: str, *, container_name: str) -> None:
        """Initialize with error message and container context."""
        super().__init__(message)
        self.container_name: str = container_name


class ContainerNotFoundError(ComposeFixtureError, KeyError):
    """Raised when no container is tracked for a service name.

    Attributes:
        service_name: The logical service name that was requested.
    """

    def __init__(self, message: str, *, service_name: str) -> None:
        """Initialize with error message and service context."""
        super().__init__(message)
        self.service_name: str = service_name

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class PortNotPublishedError(ComposeFixtureError, LookupError):
    """Raised when a container port has no public binding.

    Attributes:
        port: The private port number.
        protocol: The port protocol (tcp, udp).
    """

    def __init__(self, message: str, *, port: int, protocol: str) -> None:
        """Initialize with error message and port context."""
        super().__init__(message)
        self.port: int = port
        self.protocol: str = protocol


# =============================================================================
# Lifecycle Exceptions
# =============================================================================


class ComposeStartError(ComposeFixtureError):
    """Raised when a compose project fails to start.

    Attributes:
        project_name: The project that failed to start.
    """

    def __init__(self, message: str, *, project_name: str) -> None:
        """Initialize with error message and project context."""
        super().__init__(message)
        self.project_name: str = project_name


class CleanupError(ComposeFixtureError):
    """Raised when one or more teardown steps fail.

    The message joins the text of every individual failure, so no step's
    error hides another's.

    Attributes:
        errors: The individual failures, in the order the steps ran.
    """

    def __init__(self, errors: Sequence[BaseException]) -> None:
        """Initialize from the individual step failures."""
        super().__init__(combine_messages(errors))
        self.errors: tuple[BaseException, ...] = tuple(errors)


# =============================================================================
# Retry Exceptions
# =============================================================================


class RetryCancelledError(ComposeFixtureError):
    """Raised when a retry wait is interrupted by its cancel event.

    Attributes:
        attempts: Number of attempts made before cancellation.
    """

    def __init__(self, message: str, *, attempts: int) -> None:
        """Initialize with error message and attempt count."""
        super().__init__(message)
        self.attempts: int = attempts


class RetryPolicyReusedError(ComposeFixtureError, ValueError):
    """Raised when a retry policy that already counted attempts is reused."""


def combine_messages(errors: Sequence[BaseException | None]) -> str:
    """Join the messages of several errors into one string.

    ``None`` entries are skipped, so callers can pass the raw outcome of
    every step.

    Args:
        errors: Errors to combine.

    Returns:
        The messages joined with ``": "``, or an empty string.
    """
    return ": ".join(str(e) for e in errors if e is not None)
