"""Core hapcheck functionality."""

from hapcheck.core.config import CheckSettings, ConfigError, resolve_settings
from hapcheck.core.context import Context
from hapcheck.core.engine import evaluate
from hapcheck.core.models import (
    ConfigurationConflict,
    EntityKind,
    EvaluationRequest,
    EvaluationResult,
    MissingDiff,
    Scope,
    Severity,
    StatusRecord,
)
from hapcheck.core.output import Output

__all__ = [
    "CheckSettings",
    "ConfigError",
    "ConfigurationConflict",
    "Context",
    "EntityKind",
    "EvaluationRequest",
    "EvaluationResult",
    "MissingDiff",
    "Output",
    "Scope",
    "Severity",
    "StatusRecord",
    "evaluate",
    "resolve_settings",
]
