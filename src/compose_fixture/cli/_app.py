"""The command-line interface for compose-fixture."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
# pyright: reportUnusedFunction=false

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from cyclopts import App, Parameter
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from compose_fixture.compose import (
    DEFAULT_PROJECT_NAME,
    DEFAULT_START_RETRIES,
    ComposeLauncher,
    ComposeOptions,
    ContainerInfo,
    cleanup_project,
    normalize_project_name,
    start,
)
from compose_fixture.config import ComposeConfig, ConfigError, Settings
from compose_fixture.exceptions import ComposeFixtureError
from compose_fixture.utils import infer_docker_host, write_temp_file

from ._shared import ExitCode, exit_with_error, format_json

if TYPE_CHECKING:
    from compose_fixture.compose import Compose

_HELP = "Run Docker Compose projects the way test fixtures do."


def _load_settings(error_console: Console) -> Settings:
    try:
        return Settings.from_env()
    except ConfigError as e:
        exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)


def _load_config(file: Path, error_console: Console) -> ComposeConfig:
    try:
        return ComposeConfig.from_file(file)
    except ConfigError as e:
        exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)


def _format_ports(info: ContainerInfo) -> str:
    published = [
        f"{binding.host_ip or '0.0.0.0'}:{binding.host_port}->{port}"  # noqa: S104
        for port, bindings in sorted(info.ports.items())
        for binding in bindings
        if binding.host_port
    ]
    return ", ".join(published)


def _containers_table(compose: "Compose") -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Service", style="cyan")
    table.add_column("Container")
    table.add_column("State")
    table.add_column("Ports")

    for service, info in sorted(compose.containers.items()):
        state = info.state.status or ("running" if info.is_running else "")
        table.add_row(
            service,
            info.name.removeprefix("/"),
            f"[green]{state}[/green]" if info.is_running else f"[red]{state}[/red]",
            _format_ports(info),
        )
    return table


def _containers_json(compose: "Compose") -> str:
    return format_json(
        {
            "project": compose.project_name,
            "config_file": str(compose.config_file),
            "containers": {
                service: info.model_dump(mode="json")
                for service, info in sorted(compose.containers.items())
            },
        }
    )


def register_commands(app: App, console: Console, error_console: Console) -> None:
    """Register the compose-fixture commands on ``app``.

    Args:
        app: Application to register on.
        console: Console for regular output.
        error_console: Console for error output.
    """

    @app.command
    def up(
        file: Annotated[Path, Parameter(help="Compose file to start")],
        /,
        *,
        project_name: Annotated[
            str, Parameter(name=["-p", "--project-name"], help="Project name")
        ] = DEFAULT_PROJECT_NAME,
        pull: Annotated[
            bool, Parameter(help="Pull images before starting")
        ] = False,
        rm_first: Annotated[
            bool,
            Parameter(
                name="--rm-first",
                help="Kill and remove leftover containers before starting",
            ),
        ] = False,
        retries: Annotated[
            int, Parameter(help="Attempts of the start loop")
        ] = DEFAULT_START_RETRIES,
        output: Annotated[
            Path | None,
            Parameter(name=["-o", "--output"], help="Write the rendered file here"),
        ] = None,
        json: Annotated[
            bool, Parameter(help="Print containers as JSON")
        ] = False,
    ) -> None:
        """Start a compose project and leave it running.

        Exit codes:
            0: Success
            1: Invalid compose file, options or settings
            2: Starting the project failed
        """
        settings = _load_settings(error_console)
        config = _load_config(file, error_console)

        try:
            options = ComposeOptions(
                project_name=project_name,
                force_pull=pull,
                rm_first=rm_first,
                start_retries=retries,
                output_file=output,
                logger=settings.create_logger(command="up"),
            )
        except ValueError as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)

        try:
            compose = start(config, options)
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)
        except ComposeFixtureError as e:
            exit_with_error(str(e), ExitCode.COMMAND_ERROR, console=error_console)

        if json:
            console.print(
                _containers_json(compose), markup=False, highlight=False, soft_wrap=True
            )
            return

        console.print(
            f"[bold blue]{compose.project_name}[/bold blue] "
            f"({len(compose.containers)} containers)"
        )
        console.print(_containers_table(compose))
        console.print(
            f"[dim]Stop with: compose-fixture down {escape(str(file))} "
            f"--project-name {compose.project_name}[/dim]",
            soft_wrap=True,
        )

    @app.command
    def down(
        file: Annotated[Path, Parameter(help="Compose file the project runs")],
        /,
        *,
        project_name: Annotated[
            str, Parameter(name=["-p", "--project-name"], help="Project name")
        ] = DEFAULT_PROJECT_NAME,
        keep_around: Annotated[
            bool,
            Parameter(name="--keep-around", help="Stop but do not remove anything"),
        ] = False,
        prevent_stop: Annotated[
            bool,
            Parameter(name="--prevent-stop", help="Do not stop the containers"),
        ] = False,
    ) -> None:
        """Stop and remove a running compose project.

        Exit codes:
            0: Success
            1: Invalid compose file or settings
            2: A cleanup step failed
        """
        settings = _load_settings(error_console)
        config = _load_config(file, error_console)
        normalized = normalize_project_name(project_name)

        try:
            config_file = write_temp_file(config.without_networks().to_yaml())
        except ComposeFixtureError as e:
            exit_with_error(str(e), ExitCode.COMMAND_ERROR, console=error_console)

        logger = settings.create_logger(command="down", project=normalized)
        launcher = ComposeLauncher(
            config_file,
            normalized,
            compose_command=settings.compose_command,
            docker_command=settings.docker_command,
            timeout=settings.command_timeout,
            logger=logger,
        )
        try:
            cleanup_project(
                launcher,
                keep_around=keep_around,
                prevent_stop=prevent_stop,
                logger=logger,
            )
        except ComposeFixtureError as e:
            exit_with_error(str(e), ExitCode.COMMAND_ERROR, console=error_console)
        finally:
            config_file.unlink(missing_ok=True)

        console.print(f"[green]Cleaned up[/green] {normalized}")

    @app.command
    def host() -> None:
        """Print the host running the docker daemon.

        Exit codes:
            0: Success
            1: DOCKER_HOST cannot be parsed
        """
        try:
            console.print(infer_docker_host(), markup=False, highlight=False)
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="compose-fixture",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    register_commands(app, console, error_console)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `compose-fixture` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
