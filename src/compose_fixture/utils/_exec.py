"""Execution utilities for launcher and runtime commands.

This module runs external commands to completion with stdout and stderr
captured into one combined buffer, and turns failures into CommandError
instances carrying the diagnostic lines worth showing. Launcher output is
very noisy, so only lines carrying a known error marker are kept as details.
"""

import os
import subprocess
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from compose_fixture.exceptions import (
    CommandError,
    CommandNotFoundError,
    CommandTimeoutError,
)

# Output line prefixes that carry meaningful launcher error messages
ERROR_LINE_PREFIXES: tuple[str, ...] = ("ERROR:", "compose.cli.errors")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result from a successful command execution.

    Attributes:
        argv: The full command line that was executed.
        output: Combined stdout and stderr.
        exit_code: Process exit code.
    """

    argv: tuple[str, ...]
    output: str
    exit_code: int = 0


def process_group_kwargs() -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Return subprocess keyword arguments placing the child in a new group.

    Keeps signals aimed at the caller's process group (e.g. Ctrl-C in a test
    run) from reaching launcher processes halfway through a state change.

    Returns:
        Keyword arguments for subprocess.run or subprocess.Popen.
    """
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def scrape_error_lines(output: str) -> list[str]:
    """Extract the diagnostic lines from command output.

    Args:
        output: Combined command output.

    Returns:
        Lines starting with a known error marker, in output order.
    """
    return [
        line for line in output.splitlines() if line.startswith(ERROR_LINE_PREFIXES)
    ]


def _failure_message(argv: Sequence[str], exit_code: int, details: list[str]) -> str:
    name, *args = argv
    parts = [f"failed running {name} {args}: exit status {exit_code}", *details]
    return ": ".join(parts)


def run_command(
    argv: Sequence[str],
    *,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command to completion and capture its combined output.

    Args:
        argv: Command and arguments. Must not be empty.
        timeout: Seconds before the process is killed; None waits forever.
        env: Additional environment variables to set.

    Returns:
        CommandResult for a zero exit status.

    Raises:
        ValueError: If ``argv`` is empty.
        CommandNotFoundError: If the executable does not exist.
        CommandTimeoutError: If the process exceeds ``timeout``.
        CommandError: If the process exits with a non-zero status. Its details
            hold the scraped error lines, or the entire output if none match.
    """
    if not argv:
        msg = "No command specified"
        raise ValueError(msg)

    command = tuple(argv)
    full_env = {**os.environ, **env} if env else None

    try:
        result = subprocess.run(  # noqa: S603
            command,
            env=full_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
            check=False,
            **process_group_kwargs(),
        )
    except FileNotFoundError as e:
        msg = f"failed running {command[0]}: {e}"
        raise CommandNotFoundError(msg, argv=command) from e
    except subprocess.TimeoutExpired as e:
        partial = e.output.decode("utf-8", errors="replace") if e.output else ""
        msg = f"failed running {command[0]}: timed out after {timeout}s"
        raise CommandTimeoutError(
            msg, argv=command, timeout=timeout or 0.0, output=partial
        ) from e

    output = result.stdout.decode("utf-8", errors="replace")
    if result.returncode == 0:
        return CommandResult(argv=command, output=output)

    details = scrape_error_lines(output) or [output]
    raise CommandError(
        _failure_message(command, result.returncode, details),
        argv=command,
        output=output,
        exit_code=result.returncode,
        details=details,
    )
