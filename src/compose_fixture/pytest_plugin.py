"""pytest plugin providing compose projects as fixtures.

Registered through the ``pytest11`` entry point, so installing the package is
enough to make the ``compose_project`` fixture available::

    def test_orders(compose_project):
        compose = compose_project(ComposeConfig.from_file("compose.yaml"))
        port = compose.get_container("db").first_public_port(5432)
"""

import re
from collections.abc import Iterator
from typing import Any, final

import pytest

from compose_fixture.compose import Compose, ComposeOptions, start
from compose_fixture.config import ComposeConfig
from compose_fixture.exceptions import CleanupError

_PROJECT_NAME_CHARS = re.compile(r"[^a-z0-9]")


def project_name_for(node_name: str) -> str:
    """Derive a launcher project name from a test's node name."""
    return _PROJECT_NAME_CHARS.sub("", node_name.lower())


@final
class ComposeProjects:
    """Starts compose projects and cleans all of them up together.

    Attributes:
        default_project_name: Project name used when a call gives none.
    """

    __slots__ = ("_started", "default_project_name")

    def __init__(self, default_project_name: str) -> None:
        self.default_project_name = default_project_name
        self._started: list[Compose] = []

    def __call__(self, config: ComposeConfig, **option_overrides: Any) -> Compose:  # pyright: ignore[reportExplicitAny]
        """Start a project; keyword arguments override ComposeOptions fields."""
        _ = option_overrides.setdefault("project_name", self.default_project_name)
        compose = start(config, ComposeOptions(**option_overrides))
        self._started.append(compose)
        return compose

    @property
    def started(self) -> tuple[Compose, ...]:
        """Return the projects started so far, oldest first."""
        return tuple(self._started)

    def cleanup_all(self) -> None:
        """Clean up every started project, newest first.

        Raises:
            CleanupError: Combining the failures of every project that did
                not clean up.
        """
        errors: list[CleanupError] = []
        while self._started:
            compose = self._started.pop()
            try:
                compose.cleanup()
            except CleanupError as e:
                errors.append(e)
        if errors:
            raise CleanupError(errors)


@pytest.fixture
def compose_project(request: pytest.FixtureRequest) -> Iterator[ComposeProjects]:
    """Start compose projects that are cleaned up when the test finishes.

    Yields a factory ``(config, **option_overrides) -> Compose``. The
    overrides are ``ComposeOptions`` fields; ``project_name`` defaults to
    one derived from the test name. Teardown fails if any cleanup step did.
    """
    projects = ComposeProjects(project_name_for(request.node.name))
    yield projects
    projects.cleanup_all()
