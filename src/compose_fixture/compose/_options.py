"""Lifecycle options for a compose project."""

from dataclasses import dataclass, field
from pathlib import Path
from threading import Event
from typing import TYPE_CHECKING

from ._identity import IdentityResolver

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

DEFAULT_PROJECT_NAME = "composefixture"
DEFAULT_START_RETRIES = 3
DEFAULT_START_RETRY_DELAY = 2.0


def normalize_project_name(name: str) -> str:
    """Normalize a project name the way the launcher namespaces resources.

    Lower-cases the name and strips every underscore. An empty name falls
    back to the default project name.

    Args:
        name: Caller-chosen project name.

    Returns:
        The normalized project name.
    """
    normalized = name.lower().replace("_", "")
    return normalized or DEFAULT_PROJECT_NAME


@dataclass(frozen=True, slots=True)
class ComposeOptions:
    """Options controlling how a compose project is started and torn down.

    Attributes:
        project_name: Launcher project namespace; normalized on creation.
        force_pull: Pull images before starting.
        rm_first: Kill and remove leftover containers before starting.
        keep_around: Stop but do not remove anything during cleanup.
        prevent_stop: Do not stop containers during cleanup.
        start_retries: Attempts of the start convergence loop.
        start_retry_delay: Seconds waited after the first failed start
            attempt; doubled after each further failure.
        output_file: Write the rendered compose file here instead of a
            temporary file owned by the project.
        logger: Logger for lifecycle events. Created from the environment
            settings if None.
        compose_command: Launcher argv prefix. Taken from the environment
            settings if None.
        docker_command: Container runtime argv prefix. Taken from the
            environment settings if None.
        command_timeout: Seconds before an external command is killed.
            Taken from the environment settings if None.
        strict_service_names: Reject service sets where one name is a
            substring of another.
        resolver: Extracts container identifiers from launcher output.
        cancel: Event that interrupts every retry wait of the project.
    """

    project_name: str = DEFAULT_PROJECT_NAME
    force_pull: bool = False
    rm_first: bool = False
    keep_around: bool = False
    prevent_stop: bool = False
    start_retries: int = DEFAULT_START_RETRIES
    start_retry_delay: float = DEFAULT_START_RETRY_DELAY
    output_file: str | Path | None = None
    logger: "FilteringBoundLogger | None" = None
    compose_command: tuple[str, ...] | None = None
    docker_command: tuple[str, ...] | None = None
    command_timeout: float | None = None
    strict_service_names: bool = True
    resolver: IdentityResolver = field(default_factory=IdentityResolver)
    cancel: Event | None = None

    def __post_init__(self) -> None:
        if self.start_retries < 1:
            msg = f"start_retries must be at least 1, got {self.start_retries}"
            raise ValueError(msg)
        object.__setattr__(
            self, "project_name", normalize_project_name(self.project_name)
        )
