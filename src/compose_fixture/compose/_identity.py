"""Container identity resolution.

The launcher reports the containers it creates only through its verbose log
output. This module scrapes runtime identifiers from that output and maps
runtime container names back to logical service names.

Runtime names embed the service name (``/<project>_<service>_1``), so the
mapping is a substring match. It is only reliable when no service name is a
substring of another; ``check_service_names`` rejects such sets up front.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from compose_fixture.exceptions import ServiceMappingError, ServiceNameConflictError

# Matches the launcher's container start and inspect log lines. Only the
# inspect lines carry an identifier in the capture group.
DEFAULT_ID_PATTERN: re.Pattern[str] = re.compile(
    r"(?m)docker start|inspect_container <-.*\(u?'(.*)'\)"
)


@dataclass(frozen=True, slots=True)
class IdentityResolver:
    """Extracts container identifiers and maps them to service names.

    Attributes:
        pattern: Regular expression whose first group captures a runtime
            identifier. Matches with an empty group are ignored.
    """

    pattern: re.Pattern[str] = DEFAULT_ID_PATTERN

    def extract_ids(self, output: str) -> list[str]:
        """Extract runtime identifiers from launcher output.

        Args:
            output: Combined output of the launcher's verbose ``up`` call.

        Returns:
            Identifiers in order of first appearance, without duplicates.
        """
        ids: list[str] = []
        seen: set[str] = set()
        for match in self.pattern.finditer(output):
            container_id = match.group(1)
            if not container_id or container_id in seen:
                continue
            seen.add(container_id)
            ids.append(container_id)
        return ids

    def find_service(
        self,
        container_name: str,
        service_names: Iterable[str],
        *,
        project_name: str | None = None,
    ) -> str | None:
        """Find the service a runtime container name belongs to.

        Args:
            container_name: Runtime name, with or without its leading "/".
            service_names: Candidate logical names, scanned in order.
            project_name: Project the container belongs to. Its
                "<project>_" or "<project>-" prefix is removed before
                matching, so service names inside the project name do not
                capture every container.

        Returns:
            The first service name contained in the runtime name, or None.
        """
        name = container_name.removeprefix("/")
        if project_name:
            for separator in ("_", "-"):
                prefix = f"{project_name}{separator}"
                if name.startswith(prefix):
                    name = name.removeprefix(prefix)
                    break
        for service_name in service_names:
            if service_name in name:
                return service_name
        return None

    def resolve_service(
        self,
        container_name: str,
        service_names: Iterable[str],
        *,
        project_name: str | None = None,
    ) -> str:
        """Like find_service, but raises when nothing matches.

        Raises:
            ServiceMappingError: If no service name matches.
        """
        service_name = self.find_service(
            container_name, service_names, project_name=project_name
        )
        if service_name is None:
            msg = f"could not map container {container_name} to list of services"
            raise ServiceMappingError(msg, container_name=container_name)
        return service_name


def check_service_names(service_names: Iterable[str]) -> None:
    """Reject service names that cannot be told apart by substring match.

    Args:
        service_names: Logical service names of one project.

    Raises:
        ServiceNameConflictError: If a name is contained in another name.
    """
    names = list(service_names)
    for name in names:
        for other in names:
            if name != other and name in other:
                msg = (
                    f"service name '{name}' is a substring of '{other}'; "
                    "containers cannot be mapped back to services unambiguously"
                )
                raise ServiceNameConflictError(msg, names=(name, other))
