"""The compose-fixture command-line interface."""

from ._app import app, create_app, main, register_commands
from ._shared import ExitCode, exit_with_error, format_json, get_error_console

__all__ = [
    "ExitCode",
    "app",
    "create_app",
    "exit_with_error",
    "format_json",
    "get_error_console",
    "main",
    "register_commands",
]
