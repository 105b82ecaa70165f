"""File helpers for rendered compose configurations."""

import tempfile
from pathlib import Path

from compose_fixture.exceptions import ComposeFixtureError


def write_temp_file(
    content: str,
    *,
    prefix: str = "docker-compose-",
    suffix: str = ".yaml",
) -> Path:
    """Write content to a new temporary file that outlives this call.

    Args:
        content: Text to write.
        prefix: File name prefix.
        suffix: File name suffix.

    Returns:
        Path of the written file. The caller owns and removes it.

    Raises:
        ComposeFixtureError: If the file cannot be created or written.
    """
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", prefix=prefix, suffix=suffix, delete=False, encoding="utf-8"
        ) as f:
            _ = f.write(content)
    except OSError as e:
        msg = f"error creating temp file: {e}"
        raise ComposeFixtureError(msg) from e
    return Path(f.name)


def write_file(path: str | Path, content: str) -> Path:
    """Write content to ``path``, replacing any existing file.

    Raises:
        ComposeFixtureError: If the file cannot be written.
    """
    target = Path(path)
    try:
        _ = target.write_text(content, encoding="utf-8")
    except OSError as e:
        msg = f"error writing compose file {target}: {e}"
        raise ComposeFixtureError(msg) from e
    return target
