"""Status evaluation over one stats snapshot."""

from typing import Iterable

from hapcheck.core.models import (
    EntityKind,
    EvaluationRequest,
    EvaluationResult,
    MissingDiff,
    Scope,
    Severity,
    StatusRecord,
)


HEALTHY_FINDING = "all systems UP"


def in_scope(record: StatusRecord, scope: Scope) -> bool:
    """Check whether a record is selected by the scope."""
    if record.kind == EntityKind.BACKEND:
        return scope in (Scope.ALL, Scope.BACKENDS)
    if record.kind == EntityKind.SERVER:
        return scope in (Scope.ALL, Scope.SERVERS)
    return False


def entity_identity(record: StatusRecord) -> str:
    """Name an entity is known by: proxy for backends, server otherwise."""
    if record.kind == EntityKind.BACKEND:
        return record.proxy_name
    return record.service_name


def diff_entities(expected: Iterable[str], observed: Iterable[str]) -> MissingDiff:
    """
    Compare expected and observed names as unordered sets.

    Duplicates on either side are ignored.
    """
    expected_set = set(expected)
    observed_set = set(observed)
    return MissingDiff(
        expected=tuple(sorted(expected_set)),
        observed=tuple(sorted(observed_set)),
        missing=tuple(sorted(expected_set - observed_set)),
        unexpected=tuple(sorted(observed_set - expected_set)),
    )


def classify_down(record: StatusRecord, request: EvaluationRequest) -> str | None:
    """
    Return a finding if the record is DOWN and passes its filter.

    Args:
        record: In-scope record
        request: Evaluation request holding the filters

    Returns:
        Finding text, or None if the record does not count
    """
    if not record.is_down:
        return None

    if record.kind == EntityKind.BACKEND:
        if request.backend is not None and request.backend != record.proxy_name:
            return None
        return f"service {record.proxy_name} is DOWN"

    if request.server is not None and request.server != record.service_name:
        return None
    return f"backend server {record.service_name} for service {record.proxy_name} is DOWN"


def evaluate(records: Iterable[StatusRecord], request: EvaluationRequest) -> EvaluationResult:
    """
    Reduce a snapshot to a severity and findings.

    Findings appear in scan order; presence-check findings follow, sorted.
    Any DOWN entity or presence mismatch is CRITICAL.

    Args:
        records: Decoded stats rows for one snapshot
        request: What to evaluate and how

    Returns:
        EvaluationResult
    """
    findings: list[str] = []
    entities: list[str] = []
    seen: set[str] = set()
    listed: set[tuple[EntityKind, str]] = set()
    backends_down = 0
    servers_down = 0

    for record in records:
        if not in_scope(record, request.scope):
            continue

        identity = entity_identity(record)
        seen.add(identity)
        if (record.kind, identity) not in listed:
            listed.add((record.kind, identity))
            entities.append(identity)
            if request.list_only:
                findings.append(identity)

        if request.list_only:
            continue

        finding = classify_down(record, request)
        if finding is None:
            continue
        findings.append(finding)
        if record.kind == EntityKind.BACKEND:
            backends_down += 1
        else:
            servers_down += 1

    missing_diff = None
    presence_failed = False
    if request.expected:
        missing_diff = diff_entities(request.expected, seen)
        for name in missing_diff.missing:
            findings.append(f"expected entity {name} is missing")
        for name in missing_diff.unexpected:
            findings.append(f"unexpected entity {name}")
        presence_failed = bool(missing_diff.missing or missing_diff.unexpected)

    if backends_down or servers_down or presence_failed:
        severity = Severity.CRITICAL
    else:
        severity = Severity.OK
        if not request.list_only:
            findings.append(HEALTHY_FINDING)

    return EvaluationResult(
        severity=severity,
        findings=tuple(findings),
        missing_diff=missing_diff,
        backends_down=backends_down,
        servers_down=servers_down,
        entities=tuple(entities),
    )
