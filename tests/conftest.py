"""Shared test fixtures for compose-fixture tests."""

import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import orjson
import pytest
from rich.console import Console

from compose_fixture.exceptions import CommandError
from compose_fixture.utils import CommandResult

if TYPE_CHECKING:
    from unittest.mock import MagicMock

    from pytest_mock import MockerFixture

Outcome = str | Exception


def _command_error(argv: tuple[str, ...], message: str) -> CommandError:
    name, *args = argv
    return CommandError(
        f"failed running {name} {args}: exit status 1: {message}",
        argv=argv,
        output=message,
        exit_code=1,
        details=[message],
    )


@dataclass
class FakeRunner:
    """Stands in for run_command, scripting outcomes per operation.

    Outcomes are keyed by operation: the launcher subcommand ("up", "stop",
    ...), "inspect <id>", "volume prune" or "network rm". Each key holds a
    queue whose last outcome repeats once the others are used up. Unscripted
    operations succeed with empty output. A scripted exception that is not
    already a CommandError fails the command with its message.
    """

    outcomes: dict[str, list[Outcome]] = field(default_factory=dict)
    calls: list[tuple[str, ...]] = field(default_factory=list)

    @staticmethod
    def operation(argv: Sequence[str]) -> str:
        if argv[0] == "docker-compose":
            args = [a for a in argv[5:] if a != "--verbose"]
            return args[0]
        args = list(argv[1:])
        if args[0] == "inspect":
            return f"inspect {args[1]}"
        return " ".join(args[:2])

    @staticmethod
    def inspect_payload(
        container_id: str,
        name: str,
        *,
        image: str = "busybox",
        running: bool = True,
        ports: dict[str, list[dict[str, str]] | None] | None = None,
    ) -> str:
        """Render ``docker inspect`` JSON for one container."""
        return orjson.dumps(
            [
                {
                    "Id": container_id,
                    "Name": name,
                    "Config": {"Image": image},
                    "State": {
                        "Status": "running" if running else "exited",
                        "Running": running,
                        "ExitCode": 0,
                    },
                    "NetworkSettings": {"Ports": ports or {}},
                }
            ]
        ).decode("utf-8")

    @staticmethod
    def up_output(*container_ids: str) -> str:
        """Render verbose launcher ``up`` output announcing containers."""
        lines = ["compose.cli.command.get_client: docker-compose version 1.29.2"]
        for container_id in container_ids:
            lines.append(
                "compose.cli.verbose_proxy.proxy_callable: "
                f"docker inspect_container <- ('{container_id}')"
            )
            lines.append(
                "compose.cli.verbose_proxy.proxy_callable: "
                f"docker start <- ('{container_id}')"
            )
        return "\n".join(lines)

    def script(self, operation: str, *outcomes: Outcome) -> None:
        self.outcomes[operation] = list(outcomes)

    def add_container(
        self,
        container_id: str,
        name: str,
        *,
        running: bool = True,
        ports: dict[str, list[dict[str, str]] | None] | None = None,
    ) -> None:
        self.script(
            f"inspect {container_id}",
            self.inspect_payload(container_id, name, running=running, ports=ports),
        )

    def operations(self) -> list[str]:
        return [self.operation(argv) for argv in self.calls]

    def __call__(
        self,
        argv: Sequence[str],
        *,
        timeout: float | None = None,  # noqa: ARG002
        env: dict[str, str] | None = None,  # noqa: ARG002
    ) -> CommandResult:
        command = tuple(argv)
        self.calls.append(command)
        queue = self.outcomes.get(self.operation(command), [""])
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, CommandError):
            raise outcome
        if isinstance(outcome, Exception):
            raise _command_error(command, str(outcome))
        return CommandResult(argv=command, output=outcome)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's COMPOSE_FIXTURE_* and DOCKER_HOST out of tests."""
    for key in list(os.environ):
        if key.startswith("COMPOSE_FIXTURE_") or key == "DOCKER_HOST":
            monkeypatch.delenv(key)


@pytest.fixture
def fake_runner(mocker: "MockerFixture") -> FakeRunner:
    """Replace every external command with a scripted FakeRunner."""
    runner = FakeRunner()
    _ = mocker.patch("compose_fixture.compose._launcher.run_command", runner)
    _ = mocker.patch("compose_fixture.compose._inspect.run_command", runner)
    return runner


@pytest.fixture
def no_sleep(mocker: "MockerFixture") -> "MagicMock":
    """Make retry waits return immediately, recording the delays."""
    return mocker.patch("compose_fixture.retry._operation.time.sleep")


@pytest.fixture
def console() -> Console:
    return Console(
        width=200,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
