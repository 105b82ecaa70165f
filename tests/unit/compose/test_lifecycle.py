"""Unit tests for starting compose projects and looking up containers."""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import yaml

from compose_fixture.compose import Compose, ComposeOptions, must_start, start
from compose_fixture.compose import _compose as compose_module
from compose_fixture.config import ComposeConfig, Service
from compose_fixture.exceptions import (
    ComposeCommandError,
    ComposeStartError,
    ContainerNotFoundError,
    FixtureAbort,
    ServiceNameConflictError,
)
from compose_fixture.retry import SimpleRetryPolicy

if TYPE_CHECKING:
    from unittest.mock import MagicMock

    from conftest import FakeRunner
    from pytest_mock import MockerFixture


@pytest.fixture
def config() -> ComposeConfig:
    return ComposeConfig(
        services={"svcA": Service(image="X"), "svcB": Service(image="Y")},
    )


@pytest.fixture
def running(fake_runner: "FakeRunner") -> "FakeRunner":
    """Script a launcher that brings both services up on the first call."""
    fake_runner.script("up", fake_runner.up_output("id-a", "id-b"))
    fake_runner.add_container(
        "id-a",
        "/composefixture_svcA_1",
        ports={"80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "49153"}]},
    )
    fake_runner.add_container("id-b", "/composefixture_svcB_1")
    return fake_runner


@pytest.fixture
def options(tmp_path: Path) -> ComposeOptions:
    return ComposeOptions(start_retries=2, output_file=tmp_path / "dc.yaml")


class TestStart:
    def test_maps_every_service(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        compose = start(config, options)

        assert sorted(compose.containers) == ["svcA", "svcB"]
        assert compose.get_container("svcA").id == "id-a"
        assert compose.get_container("svcB").id == "id-b"
        assert compose.container_ids == ("id-a", "id-b")

    def test_runs_only_up_and_inspect_by_default(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        _ = start(config, options)

        assert running.operations() == ["up", "inspect id-a", "inspect id-b"]
        assert running.calls[0] == (
            "docker-compose",
            "-f",
            str(options.output_file),
            "-p",
            "composefixture",
            "--verbose",
            "up",
            "-d",
        )

    def test_force_pull_and_rm_first(
        self, config: ComposeConfig, tmp_path: Path, running: "FakeRunner"
    ) -> None:
        options = ComposeOptions(
            force_pull=True, rm_first=True, output_file=tmp_path / "dc.yaml"
        )

        _ = start(config, options)

        assert running.operations()[:4] == ["pull", "kill", "rm", "up"]

    def test_uses_normalized_project_name(
        self, config: ComposeConfig, tmp_path: Path, running: "FakeRunner"
    ) -> None:
        compose = start(
            config,
            ComposeOptions(project_name="Orders_IT", output_file=tmp_path / "dc.yaml"),
        )

        assert compose.project_name == "ordersit"
        assert running.calls[0][4] == "ordersit"

    def test_writes_config_without_networks(
        self, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        config = ComposeConfig.from_yaml(
            "services:\n"
            "  svcA: {image: X, networks: [back]}\n"
            "  svcB: {image: Y}\n"
            "networks:\n"
            "  back: {}\n"
        )

        compose = start(config, options)

        rendered = yaml.safe_load(Path(str(options.output_file)).read_text())
        assert rendered == {"services": {"svcA": {"image": "X"}, "svcB": {"image": "Y"}}}
        assert compose.config_file == options.output_file
        assert config.networks == {"back": {}}

    def test_retries_until_up_succeeds(
        self,
        config: ComposeConfig,
        tmp_path: Path,
        running: "FakeRunner",
        no_sleep: "MagicMock",
    ) -> None:
        running.script(
            "up",
            RuntimeError("ERROR: attempt one"),
            RuntimeError("ERROR: attempt two"),
            running.up_output("id-a", "id-b"),
        )

        compose = start(
            config, ComposeOptions(start_retries=3, output_file=tmp_path / "dc.yaml")
        )

        assert sorted(compose.containers) == ["svcA", "svcB"]
        assert running.operations().count("up") == 3
        assert [c.args[0] for c in no_sleep.call_args_list] == [2.0, 4.0]

    def test_returns_last_error_when_retries_run_out(
        self,
        config: ComposeConfig,
        options: ComposeOptions,
        running: "FakeRunner",
        no_sleep: "MagicMock",
    ) -> None:
        running.script(
            "up",
            RuntimeError("ERROR: attempt one"),
            RuntimeError("ERROR: attempt two"),
            running.up_output("id-a", "id-b"),
        )

        with pytest.raises(ComposeStartError) as exc_info:
            _ = start(config, options)

        error = exc_info.value
        assert "ERROR: attempt two" in str(error)
        assert "attempt one" not in str(error)
        assert str(error).startswith("error starting containers: ")
        assert error.project_name == "composefixture"
        assert isinstance(error.__cause__, ComposeCommandError)
        assert running.operations().count("up") == 2

    def test_unmapped_container_fails_attempt(
        self,
        config: ComposeConfig,
        options: ComposeOptions,
        running: "FakeRunner",
        no_sleep: "MagicMock",
    ) -> None:
        running.script("up", running.up_output("id-a", "id-x"))
        running.add_container("id-x", "/composefixture_stray_1")

        with pytest.raises(ComposeStartError, match="could not map container"):
            _ = start(config, options)

        assert running.operations().count("up") == 2

    def test_pull_failure(
        self, config: ComposeConfig, tmp_path: Path, running: "FakeRunner"
    ) -> None:
        running.script("pull", RuntimeError("ERROR: pull access denied"))

        with pytest.raises(ComposeStartError, match="error pulling images"):
            _ = start(
                config,
                ComposeOptions(force_pull=True, output_file=tmp_path / "dc.yaml"),
            )

        assert "up" not in running.operations()

    def test_rejects_ambiguous_service_names(
        self, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        config = ComposeConfig(
            services={"db": Service(image="X"), "db-replica": Service(image="Y")}
        )

        with pytest.raises(ServiceNameConflictError):
            _ = start(config, options)

        assert running.calls == []

    def test_ambiguous_names_map_to_first_match_when_not_strict(
        self, tmp_path: Path, running: "FakeRunner"
    ) -> None:
        config = ComposeConfig(
            services={"db": Service(image="X"), "db-replica": Service(image="Y")}
        )
        running.script("up", running.up_output("id-a", "id-b"))
        running.add_container("id-a", "/composefixture_db_1")
        running.add_container("id-b", "/composefixture_db-replica_1")

        compose = start(
            config,
            ComposeOptions(
                strict_service_names=False, output_file=tmp_path / "dc.yaml"
            ),
        )

        assert list(compose.containers) == ["db"]
        assert compose.containers["db"].id == "id-b"

    def test_uses_injected_logger(
        self,
        config: ComposeConfig,
        options: ComposeOptions,
        running: "FakeRunner",
        mocker: "MockerFixture",
    ) -> None:
        logger = mocker.Mock()
        bound = logger.bind.return_value

        _ = start(config, ComposeOptions(logger=logger, output_file=options.output_file))

        logger.bind.assert_called_once_with(project="composefixture")
        events = [c.args[0] for c in bound.info.call_args_list]
        assert events[0] == "initializing"
        assert "containers_started" in events
        assert "done_initializing" in events

    def test_temp_file_is_owned(
        self, config: ComposeConfig, running: "FakeRunner"
    ) -> None:
        compose = start(config)

        assert compose.config_file.exists()
        compose.cleanup()
        assert not compose.config_file.exists()

    def test_owned_temp_file_removed_when_start_fails(
        self,
        config: ComposeConfig,
        running: "FakeRunner",
        mocker: "MockerFixture",
        no_sleep: "MagicMock",
    ) -> None:
        written = mocker.spy(compose_module, "write_temp_file")
        running.script("up", RuntimeError("ERROR: port is already allocated"))

        with pytest.raises(ComposeStartError):
            _ = start(config, ComposeOptions(start_retries=2))

        assert not written.spy_return.exists()

    def test_owned_temp_file_removed_when_pull_fails(
        self,
        config: ComposeConfig,
        running: "FakeRunner",
        mocker: "MockerFixture",
    ) -> None:
        written = mocker.spy(compose_module, "write_temp_file")
        running.script("pull", RuntimeError("ERROR: pull access denied"))

        with pytest.raises(ComposeStartError):
            _ = start(config, ComposeOptions(force_pull=True))

        assert not written.spy_return.exists()

    def test_output_file_kept_when_start_fails(
        self,
        config: ComposeConfig,
        options: ComposeOptions,
        running: "FakeRunner",
        no_sleep: "MagicMock",
    ) -> None:
        running.script("up", RuntimeError("ERROR: port is already allocated"))

        with pytest.raises(ComposeStartError):
            _ = start(config, options)

        assert Path(str(options.output_file)).exists()

    def test_service_name_inside_project_name(
        self, tmp_path: Path, running: "FakeRunner"
    ) -> None:
        config = ComposeConfig(
            services={"db": Service(image="postgres"), "web": Service(image="nginx")}
        )
        running.script("up", running.up_output("id-db", "id-web"))
        running.add_container("id-db", "/testdbready_db_1")
        running.add_container("id-web", "/testdbready_web_1")

        compose = start(
            config,
            ComposeOptions(project_name="testdbready", output_file=tmp_path / "dc.yaml"),
        )

        assert sorted(compose.containers) == ["db", "web"]
        assert compose.get_container("web").id == "id-web"
        assert compose.get_container("db").id == "id-db"

    def test_must_start_aborts(
        self,
        config: ComposeConfig,
        options: ComposeOptions,
        running: "FakeRunner",
        no_sleep: "MagicMock",
    ) -> None:
        running.script("up", RuntimeError("ERROR: no space left on device"))

        with pytest.raises(FixtureAbort) as exc_info:
            _ = must_start(config, options)

        assert isinstance(exc_info.value.cause, ComposeStartError)

    def test_classmethod_and_function_agree(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        compose = Compose.start(config, options)

        assert isinstance(compose, Compose)
        assert "svcA" in repr(compose)


class TestGetContainer:
    def test_refreshes_state(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        compose = start(config, options)
        running.add_container("id-a", "/composefixture_svcA_1", running=False)

        container = compose.get_container("svcA")

        assert container.is_running is False
        assert compose.containers["svcA"].is_running is False

    def test_refreshes_every_container(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        compose = start(config, options)
        running.calls.clear()

        _ = compose.get_container("svcA")

        assert running.operations() == ["inspect id-a", "inspect id-b"]

    def test_published_port(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        compose = start(config, options)

        assert compose.get_container("svcA").first_public_port(80) == 49153

    def test_unknown_service(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        compose = start(config, options)

        with pytest.raises(ContainerNotFoundError) as exc_info:
            _ = compose.get_container("svcC")

        assert str(exc_info.value) == "no container svcC found"
        assert isinstance(exc_info.value, KeyError)

    def test_must_get_container_aborts(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        compose = start(config, options)

        with pytest.raises(FixtureAbort):
            _ = compose.must_get_container("svcC")

    def test_containers_is_a_copy(
        self, config: ComposeConfig, options: ComposeOptions, running: "FakeRunner"
    ) -> None:
        compose = start(config, options)

        compose.containers.clear()

        assert len(compose.containers) == 2


class TestConnect:
    def test_probes_until_ready(
        self,
        config: ComposeConfig,
        options: ComposeOptions,
        running: "FakeRunner",
        mocker: "MockerFixture",
        no_sleep: "MagicMock",
    ) -> None:
        compose = start(config, options)
        probe = mocker.Mock(side_effect=[ConnectionRefusedError(), None])

        compose.connect(SimpleRetryPolicy(max_retries=2, wait=0.5), probe)

        assert probe.call_count == 2
        no_sleep.assert_called_once_with(0.5)

    def test_must_connect_aborts(
        self,
        config: ComposeConfig,
        options: ComposeOptions,
        running: "FakeRunner",
        mocker: "MockerFixture",
        no_sleep: "MagicMock",
    ) -> None:
        compose = start(config, options)
        probe = mocker.Mock(side_effect=ConnectionRefusedError("refused"))

        with pytest.raises(FixtureAbort, match="service did not become ready"):
            compose.must_connect(SimpleRetryPolicy(max_retries=1, wait=0.0), probe)
