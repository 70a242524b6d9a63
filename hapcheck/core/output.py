"""Structured output helper for check results."""

import json
import sys
from typing import Any


class Output:
    """Collects check data and renders it for the monitoring pipeline."""

    def __init__(self):
        self.data: dict[str, Any] = {}
        self.errors: list[str] = []
        self._summary: str | None = None
        self._printed: bool = False

    def emit(self, data: dict[str, Any]) -> None:
        """Store structured output data."""
        self.data.update(data)

    def error(self, message: str) -> None:
        """Record an error message."""
        self.errors.append(message)

    def set_summary(self, summary: str) -> None:
        """Set a one-line summary."""
        self._summary = summary

    @property
    def summary(self) -> str:
        """Get summary or generate from data."""
        if self._summary:
            return self._summary
        if self.errors:
            return f"Error: {self.errors[0]}"
        return "ok"

    @property
    def findings(self) -> list[str]:
        return self.data.get("findings", [])

    def to_json(self) -> str:
        """Return data (and errors, if any) as JSON string."""
        payload = dict(self.data)
        if self.errors:
            payload["errors"] = self.errors
        return json.dumps(payload, indent=2, default=str)

    def to_plain(self) -> str:
        """
        Return data as plain text.

        Status line first, then the presence diff, then one finding per line.
        """
        lines = []

        severity = self.data.get("severity")
        if severity:
            lines.append(f"[{severity}] {self.summary}")

        diff = self.data.get("diff")
        if diff:
            lines.append(diff)

        lines.extend(self.findings)
        return "\n".join(lines)

    def render(self, format: str = "plain", warn_only: bool = False) -> None:
        """Print output in the specified format.

        Args:
            format: Output format - "json" or "plain"
            warn_only: If True, only print when the severity is not OK
        """
        if self._printed:
            return
        self._printed = True

        if warn_only and self.data.get("severity") == "OK" and not self.errors:
            return

        if format == "json":
            print(self.to_json())
            return

        text = self.to_plain()
        if text:
            print(text)
        for message in self.errors:
            print(f"Error: {message}", file=sys.stderr)
