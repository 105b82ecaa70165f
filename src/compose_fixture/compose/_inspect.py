# pyright: reportAny=false, reportExplicitAny=false
"""Container inspection.

Turns a runtime container identifier into an immutable ContainerInfo
snapshot by parsing ``docker inspect`` output. Snapshots are never updated
in place; refreshing a container means inspecting it again.
"""

from collections.abc import Sequence
from typing import Any, ClassVar

import orjson
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from compose_fixture.config import DEFAULT_DOCKER_COMMAND
from compose_fixture.exceptions import (
    CommandError,
    FixtureAbort,
    InspectError,
    PortNotPublishedError,
)
from compose_fixture.utils import run_command


class PortBinding(BaseModel):
    """A published host address for a container port."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore"
    )

    host_ip: str = Field(default="", alias="HostIp")
    host_port: int = Field(default=0, alias="HostPort")

    @field_validator("host_port", mode="before")
    @classmethod
    def _empty_port(cls, value: Any) -> Any:
        if value in ("", None):
            return 0
        return value


class ContainerState(BaseModel):
    """Runtime state of a container."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore"
    )

    status: str = Field(default="", alias="Status")
    running: bool = Field(default=False, alias="Running")
    exit_code: int = Field(default=0, alias="ExitCode")
    health: str | None = Field(default=None, alias="Health")

    @field_validator("health", mode="before")
    @classmethod
    def _health_status(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("Status")
        return value


class ContainerInfo(BaseModel):
    """Snapshot of a container as reported by the runtime.

    Attributes:
        id: Runtime identifier.
        name: Runtime name, with the runtime's leading "/".
        image: Image reference the container was created from.
        state: Runtime state at inspection time.
        ports: Published bindings keyed by "<port>/<protocol>".
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore"
    )

    id: str = Field(alias="Id")
    name: str = Field(alias="Name")
    image: str = Field(default="", alias="Image")
    state: ContainerState = Field(default_factory=ContainerState, alias="State")
    ports: dict[str, tuple[PortBinding, ...]] = Field(
        default_factory=dict, alias="Ports"
    )

    @model_validator(mode="before")
    @classmethod
    def _flatten_inspect_output(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "NetworkSettings" not in data:
            return data

        config = data.get("Config") or {}
        network = data.get("NetworkSettings") or {}
        return {
            "Id": data.get("Id"),
            "Name": data.get("Name"),
            "Image": config.get("Image") or data.get("Image", ""),
            "State": data.get("State") or {},
            "Ports": network.get("Ports") or {},
        }

    @field_validator("ports", mode="before")
    @classmethod
    def _unpublished_ports(cls, value: Any) -> Any:
        # Exposed but unpublished ports are reported with a null binding list
        if isinstance(value, dict):
            return {key: bindings or () for key, bindings in value.items()}
        return value

    @property
    def is_running(self) -> bool:
        """Return whether the container was running when inspected."""
        return self.state.running

    def public_ports(self, port: int, protocol: str = "tcp") -> list[int]:
        """Return every host port a container port is published on.

        Args:
            port: Container (private) port number.
            protocol: Port protocol.

        Returns:
            Published host ports, in runtime order; empty if unpublished.
        """
        bindings = self.ports.get(f"{port}/{protocol}", ())
        return [b.host_port for b in bindings if b.host_port]

    def first_public_port(self, port: int, protocol: str = "tcp") -> int:
        """Return the first host port a container port is published on.

        Raises:
            PortNotPublishedError: If the port has no public binding.
        """
        ports = self.public_ports(port, protocol)
        if not ports:
            msg = f"port {port}/{protocol} of container {self.name} is not published"
            raise PortNotPublishedError(msg, port=port, protocol=protocol)
        return ports[0]

    def must_first_public_port(self, port: int, protocol: str = "tcp") -> int:
        """Like first_public_port, but aborts the fixture on error.

        Raises:
            FixtureAbort: If the port has no public binding.
        """
        try:
            return self.first_public_port(port, protocol)
        except PortNotPublishedError as e:
            raise FixtureAbort(e) from e


def parse_inspect_output(container_id: str, output: str | bytes) -> ContainerInfo:
    """Parse ``docker inspect`` JSON output for a single container.

    Args:
        container_id: The identifier that was inspected, for error context.
        output: Raw JSON output.

    Returns:
        The first inspected container.

    Raises:
        InspectError: If the output is not valid inspect JSON or is empty.
    """
    try:
        data = orjson.loads(output)
    except orjson.JSONDecodeError as e:
        msg = f"error decoding inspect output for container {container_id}: {e}"
        raise InspectError(msg, container_id=container_id) from e

    if not isinstance(data, list) or not data:
        msg = f"no inspect result for container {container_id}"
        raise InspectError(msg, container_id=container_id)

    try:
        return ContainerInfo.model_validate(data[0])
    except ValidationError as e:
        msg = f"unexpected inspect output for container {container_id}: {e}"
        raise InspectError(msg, container_id=container_id) from e


def inspect_container(
    container_id: str,
    *,
    docker_command: Sequence[str] = DEFAULT_DOCKER_COMMAND,
    timeout: float | None = None,
) -> ContainerInfo:
    """Inspect a container by runtime identifier.

    Args:
        container_id: Runtime identifier or name.
        docker_command: Container runtime argv prefix.
        timeout: Seconds before the inspect process is killed.

    Returns:
        A fresh ContainerInfo snapshot.

    Raises:
        InspectError: If the container cannot be inspected.
    """
    try:
        result = run_command(
            [*docker_command, "inspect", container_id], timeout=timeout
        )
    except CommandError as e:
        msg = f"error inspecting container {container_id}: {e}"
        raise InspectError(msg, container_id=container_id) from e
    return parse_inspect_output(container_id, result.output)


def must_inspect_container(
    container_id: str,
    *,
    docker_command: Sequence[str] = DEFAULT_DOCKER_COMMAND,
    timeout: float | None = None,
) -> ContainerInfo:
    """Like inspect_container, but aborts the fixture on error.

    Raises:
        FixtureAbort: If the container cannot be inspected.
    """
    try:
        return inspect_container(
            container_id, docker_command=docker_command, timeout=timeout
        )
    except InspectError as e:
        raise FixtureAbort(e) from e
