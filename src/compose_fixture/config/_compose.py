# pyright: reportAny=false, reportExplicitAny=false, reportUnknownVariableType=false
"""Compose file models.

Pydantic models for the subset of the compose file format the fixture needs
to understand. Unknown keys are kept and written back out unchanged, so any
compose feature the launcher supports can pass through.
"""

from pathlib import Path
from typing import Any, ClassVar

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    ValidationError,
    field_validator,
    model_serializer,
    model_validator,
)

from compose_fixture.exceptions import ConfigLoadError

# Number of ":"-separated parts in short volume syntax (source:target[:mode])
_SHORT_VOLUME_PARTS: tuple[int, ...] = (2, 3)


class HealthCheck(BaseModel):
    """Container health check directive.

    Attributes:
        test: Command run to check health, as a string or exec list.
        interval: Time between checks (e.g. "30s").
        timeout: Time before a check is considered hung.
        start_period: Grace period before failures count.
        retries: Consecutive failures needed to report unhealthy.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    test: str | list[str] | None = None
    interval: str | None = None
    timeout: str | None = None
    start_period: str | None = None
    retries: int | str | None = None


class Volume(BaseModel):
    """Service volume mount in short or long syntax.

    Short syntax (``"source:target"`` or ``"source:target:mode"``) is parsed
    into ``source``, ``target`` and ``mode`` and written back in short form.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    type: str | None = None
    source: str | None = None
    target: str | None = None
    mode: str | None = None
    read_only: bool | None = None
    volume: dict[str, Any] | None = None
    short_syntax: bool = Field(default=False, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _parse_short_syntax(cls, data: Any) -> Any:
        if not isinstance(data, str):
            return data

        parts = data.split(":")
        if len(parts) not in _SHORT_VOLUME_PARTS:
            msg = f"invalid format: {data}"
            raise ValueError(msg)  # noqa: TRY004
        return {
            "source": parts[0],
            "target": parts[1],
            "mode": parts[2] if len(parts) == 3 else None,  # noqa: PLR2004
            "short_syntax": True,
        }

    @model_serializer(mode="wrap")
    def _serialize(self, handler: SerializerFunctionWrapHandler) -> Any:
        if self.short_syntax:
            parts = [self.source or "", self.target or ""]
            if self.mode:
                parts.append(self.mode)
            return ":".join(parts)
        return handler(self)


class Service(BaseModel):
    """A declared service of a compose project.

    The service's key in ``ComposeConfig.services`` is its logical name.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    image: str | None = None
    entrypoint: str | list[str] | None = None
    networks: list[str] | dict[str, Any] | None = None
    hostname: str | None = None
    ports: list[str] | None = None
    volumes: list[Volume] | None = None
    command: str | list[str] | None = None
    healthcheck: HealthCheck | None = None
    depends_on: list[str] | dict[str, Any] | None = None
    environment: list[str] | None = None
    deploy: dict[str, Any] | None = None

    @field_validator("ports", mode="before")
    @classmethod
    def _ports_as_strings(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(p) if isinstance(p, int) else p for p in value]
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def _environment_as_list(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return [k if v is None else f"{k}={v}" for k, v in value.items()]
        return value


class ComposeConfig(BaseModel):
    """A compose project definition.

    Attributes:
        version: Compose file format version.
        services: Declared services keyed by logical name.
        networks: Project-level network declarations.
        volumes: Project-level named volume declarations.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    version: str | None = None
    services: dict[str, Service] = Field(default_factory=dict)
    networks: dict[str, Any] | None = None
    volumes: dict[str, Any] | None = None

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        if isinstance(value, int | float):
            return str(value)
        return value

    @property
    def service_names(self) -> list[str]:
        """Return the logical service names in declaration order."""
        return list(self.services)

    @classmethod
    def from_yaml(cls, text: str, *, path: Path | None = None) -> "ComposeConfig":  # noqa: UP037
        """Parse a compose file from YAML text.

        Args:
            text: YAML document.
            path: Source file, used for error context only.

        Returns:
            The parsed configuration.

        Raises:
            ConfigLoadError: If the YAML is malformed or does not describe a
                compose project.
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            msg = f"Failed to parse compose YAML: {e}"
            raise ConfigLoadError(
                msg,
                path=path,
                line=mark.line + 1 if mark is not None else None,
                column=mark.column + 1 if mark is not None else None,
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            msg = f"Compose file must be a mapping, got {type(data).__name__}"
            raise ConfigLoadError(msg, path=path)

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid compose configuration: {e}"
            raise ConfigLoadError(msg, path=path) from e

    @classmethod
    def from_file(cls, path: str | Path) -> "ComposeConfig":  # noqa: UP037
        """Load a compose file from disk.

        Raises:
            ConfigLoadError: If the file cannot be read or parsed.
        """
        file_path = Path(path)
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Failed to read compose file: {e}"
            raise ConfigLoadError(msg, path=file_path) from e
        return cls.from_yaml(text, path=file_path)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as plain data, omitting unset keys."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_yaml(self) -> str:
        """Render the configuration as a YAML document."""
        return yaml.safe_dump(
            self.to_dict(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )

    def without_networks(self) -> "ComposeConfig":  # noqa: UP037
        """Return a deep copy with every network declaration removed.

        Drops both the project-level ``networks`` and each service's
        ``networks`` so all services join the project's default network.
        This instance is left untouched.
        """
        services = {
            name: service.model_copy(update={"networks": None}, deep=True)
            for name, service in self.services.items()
        }
        return self.model_copy(
            update={"networks": None, "services": services},
            deep=True,
        )
