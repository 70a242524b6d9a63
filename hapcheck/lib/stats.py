"""Decoding of HAProxy stats payloads into status records."""

import csv
import io
import json
from typing import Any

from hapcheck.core.models import StatusRecord


class StatsError(Exception):
    """A stats snapshot could not be acquired or decoded.

    ``unavailable`` marks failures where no query was possible at all
    (missing tool, no target) as opposed to a failed query.
    """

    def __init__(self, message: str, unavailable: bool = False):
        super().__init__(message)
        self.unavailable = unavailable


def parse_csv_stats(csv_data: str) -> list[dict[str, Any]]:
    """Parse HAProxy CSV stats output."""
    stats = []

    # Remove leading # from header if present
    lines = csv_data.strip().split("\n")
    if lines and lines[0].startswith("#"):
        lines[0] = lines[0].lstrip("#").lstrip()

    reader = csv.DictReader(io.StringIO("\n".join(lines)))

    for row in reader:
        cleaned = {k.strip(): v.strip() if v else "" for k, v in row.items() if k}
        if cleaned:
            stats.append(cleaned)

    return stats


def _field_value(item: dict[str, Any]) -> tuple[str | None, Any]:
    """
    Pull (name, value) out of one typed JSON field object.

    Raises:
        StatsError: If the field descriptor or its name is malformed
    """
    field = item.get("field")
    if field is None:
        return None, None
    if not isinstance(field, dict):
        raise StatsError(f"Malformed JSON stats field: {field!r}")

    name = field.get("name")
    if name is not None and not isinstance(name, str):
        raise StatsError(f"Malformed JSON stats field name: {name!r}")

    value = item.get("value")
    if isinstance(value, dict):
        value = value.get("value")
    return name, value


def parse_json_stats(json_data: str) -> list[dict[str, Any]]:
    """
    Parse HAProxy JSON stats output.

    Accepts the typed format emitted by ``show stat json`` and the ``;json``
    stats page: a list of rows, each row a list of field objects like
    ``{"field": {"name": "pxname"}, "value": {"type": "str", "value": "web"}}``.
    Rows that are already flat mappings are taken as is.

    Raises:
        StatsError: If the payload is not JSON or not a list of rows
    """
    try:
        data = json.loads(json_data)
    except json.JSONDecodeError as e:
        raise StatsError(f"Invalid JSON stats payload: {e}")

    if not isinstance(data, list):
        raise StatsError("JSON stats payload must be a list of rows")

    stats = []
    for row in data:
        if isinstance(row, dict):
            stats.append({str(k): "" if v is None else str(v) for k, v in row.items()})
            continue
        if not isinstance(row, list):
            raise StatsError(f"Unexpected JSON stats row: {row!r}")

        entry: dict[str, Any] = {}
        for item in row:
            if not isinstance(item, dict):
                continue
            name, value = _field_value(item)
            if name:
                entry[name] = "" if value is None else str(value)
        if entry:
            stats.append(entry)

    return stats


def parse_stats(payload: str) -> list[dict[str, Any]]:
    """Parse a stats payload, JSON or CSV, by its first character."""
    stripped = payload.lstrip()
    if stripped.startswith(("[", "{")):
        return parse_json_stats(stripped)
    return parse_csv_stats(payload)


def decode_records(stats: list[dict[str, Any]]) -> list[StatusRecord]:
    """Turn parsed rows into status records, skipping incomplete rows."""
    records = []
    for entry in stats:
        pxname = entry.get("pxname", "")
        svname = entry.get("svname", "")
        if not pxname or not svname:
            continue
        records.append(StatusRecord.from_fields(pxname, svname, entry.get("status", "")))
    return records
