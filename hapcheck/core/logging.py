"""JSONL run log for haproxy checks.

Each check run appends entries to ``{base}/{date}/{check}.jsonl``. The
file is only created once something is logged, so a run that never logs
leaves no trace on disk.
"""

import json
import os
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any


def get_log_path(script_name: str, base_path: Path | None = None) -> Path:
    """
    Get the run log path for a check.

    Args:
        script_name: Name of the check, used as the file stem
        base_path: Log directory (default: ~/var/log/hapcheck)

    Returns:
        Path to the log file: {base}/{date}/{check}.jsonl
    """
    if base_path is None:
        home = Path(os.environ.get("HOME", "/tmp"))
        base_path = home / "var" / "log" / "hapcheck"

    return base_path / date.today().isoformat() / f"{script_name}.jsonl"


class ScriptLogger:
    """Appends one JSON object per line for each event of a check run."""

    def __init__(self, script_name: str, log_path: Path | None = None):
        self.script_name = script_name
        self.log_path = log_path or get_log_path(script_name)
        self._file = None

    def _write(self, level: str, message: str, extra: dict[str, Any]) -> None:
        if self._file is None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.log_path, "a")

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "script": self.script_name,
            "message": message,
        }
        entry.update(extra)
        # Severity enums and paths land here via ``extra``
        self._file.write(json.dumps(entry, default=str) + "\n")
        self._file.flush()

    def debug(self, message: str, **extra: Any) -> None:
        """Record snapshot acquisition details."""
        self._write("debug", message, extra)

    def info(self, message: str, **extra: Any) -> None:
        """Record the evaluation outcome."""
        self._write("info", message, extra)

    def error(self, message: str, **extra: Any) -> None:
        """Record a failed acquisition or a configuration conflict."""
        self._write("error", message, extra)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None


class NullLogger:
    """Stands in for ScriptLogger when run logging is off."""

    def debug(self, message: str, **extra: Any) -> None:
        pass

    def info(self, message: str, **extra: Any) -> None:
        pass

    def error(self, message: str, **extra: Any) -> None:
        pass

    def close(self) -> None:
        pass
