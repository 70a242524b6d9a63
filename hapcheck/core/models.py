"""Records, requests and results for one check run."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterable


class ConfigurationConflict(Exception):
    """Mutually exclusive options were requested together."""

    pass


class EntityKind(Enum):
    """What a stats row describes."""

    BACKEND = "backend"
    FRONTEND = "frontend"
    SERVER = "server"

    @classmethod
    def from_service_name(cls, service_name: str) -> "EntityKind":
        """Derive the kind from the raw ``svname`` field."""
        if service_name == "BACKEND":
            return cls.BACKEND
        if service_name == "FRONTEND":
            return cls.FRONTEND
        return cls.SERVER


class Scope(Enum):
    """Which entity kinds a run evaluates."""

    ALL = "all"
    BACKENDS = "backends"
    SERVERS = "servers"


class Severity(IntEnum):
    """Check state; the value doubles as the process exit code."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


@dataclass(frozen=True)
class StatusRecord:
    """One stats row for one proxy or server."""

    proxy_name: str
    service_name: str
    status: str
    kind: EntityKind

    @classmethod
    def from_fields(cls, proxy_name: str, service_name: str, status: str) -> "StatusRecord":
        return cls(
            proxy_name=proxy_name,
            service_name=service_name,
            status=status,
            kind=EntityKind.from_service_name(service_name),
        )

    @property
    def is_down(self) -> bool:
        # Only the literal token counts; MAINT, DRAIN, NOLB etc. are healthy here.
        return self.status == "DOWN"


@dataclass(frozen=True)
class EvaluationRequest:
    """Immutable input to one evaluation."""

    scope: Scope = Scope.ALL
    backend: str | None = None
    server: str | None = None
    expected: frozenset[str] = field(default_factory=frozenset)
    list_only: bool = False

    @classmethod
    def from_flags(
        cls,
        backends: bool = False,
        servers: bool = False,
        backend: str | None = None,
        server: str | None = None,
        expected: Iterable[str] | None = None,
        list_only: bool = False,
    ) -> "EvaluationRequest":
        """
        Build a request from option values.

        Raises:
            ConfigurationConflict: If both backends-only and servers-only are set
        """
        if backends and servers:
            raise ConfigurationConflict("--backends and --servers are mutually exclusive")

        if backends:
            scope = Scope.BACKENDS
        elif servers:
            scope = Scope.SERVERS
        else:
            scope = Scope.ALL

        return cls(
            scope=scope,
            backend=backend or None,
            server=server or None,
            expected=frozenset(name for name in (expected or []) if name),
            list_only=list_only,
        )


@dataclass(frozen=True)
class MissingDiff:
    """Discrepancy between expected and observed entity names."""

    expected: tuple[str, ...]
    observed: tuple[str, ...]
    missing: tuple[str, ...]
    unexpected: tuple[str, ...]

    @property
    def text(self) -> str:
        """Render both sides as a diff block, lines sorted by name."""
        expected = set(self.expected)
        observed = set(self.observed)
        lines = ["--- expected", "+++ observed"]
        for name in sorted(expected | observed):
            if name not in observed:
                lines.append(f"-{name}")
            elif name not in expected:
                lines.append(f"+{name}")
            else:
                lines.append(f" {name}")
        return "\n".join(lines)


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one evaluation."""

    severity: Severity
    findings: tuple[str, ...] = ()
    missing_diff: MissingDiff | None = None
    backends_down: int = 0
    servers_down: int = 0
    entities: tuple[str, ...] = ()
