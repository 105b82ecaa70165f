"""Exit codes and output helpers for the compose-fixture commands."""

from enum import IntEnum
from typing import Any, Never

import orjson
from rich.console import Console
from rich.markup import escape

# JSON documents emitted by ``up --json``
JsonDocument = dict[str, Any]  # pyright: ignore[reportExplicitAny]


class ExitCode(IntEnum):
    """Process exit status of a compose-fixture command.

    CONFIG_ERROR covers unreadable compose files, bad settings and an
    unparsable DOCKER_HOST. COMMAND_ERROR covers launcher and runtime
    failures while starting or cleaning up a project.
    """

    SUCCESS = 0
    CONFIG_ERROR = 1
    COMMAND_ERROR = 2


def format_json(document: JsonDocument, *, indent: bool = True) -> str:
    """Serialize a project report with orjson, two-space indented by default."""
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(document, option=option).decode()


def get_error_console() -> Console:
    """Return a console that writes to stderr."""
    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.COMMAND_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Report a failed command and terminate.

    The message is printed unwrapped with markup escaped, so launcher output
    such as ``[Errno 13]`` survives intact.

    Args:
        message: Failure description, usually ``str()`` of the exception.
        code: Exit status to terminate with.
        console: Where to print; stderr when omitted.

    Raises:
        SystemExit: Carrying ``code``.
    """
    out = console or get_error_console()
    out.print(
        f"[red]Error:[/red] {escape(message)}",
        highlight=False,
        soft_wrap=True,
    )
    raise SystemExit(code)
