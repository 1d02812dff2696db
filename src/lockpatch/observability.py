"""Structured logging and observability helpers."""

from __future__ import annotations

import json
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

LOG_PREFIX = "[lock-patcher]"


@dataclass(slots=True)
class StructuredLogger:
    """Collects log records and echoes them as human-readable lines.

    Info records go to ``stdout`` and error records to ``stderr``. Either
    stream may be ``None`` to keep the records in memory only.
    """

    stdout: TextIO | None = None
    stderr: TextIO | None = None
    records: list[dict[str, Any]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def for_console(cls) -> StructuredLogger:
        return cls(stdout=sys.stdout, stderr=sys.stderr)

    def log(
        self,
        *,
        operation: str,
        message: str,
        lockfile: str | None = None,
        package: str | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "lockfile": lockfile,
            "package": package,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        stream = self.stderr if level == "error" else self.stdout
        with self._lock:
            self.records.append(record)
            if stream is not None:
                stream.write(f"{LOG_PREFIX} {message}\n")
                stream.flush()

    def info(self, *, operation: str, message: str, **kwargs: Any) -> None:
        self.log(operation=operation, message=message, level="info", **kwargs)

    def error(self, *, operation: str, message: str, **kwargs: Any) -> None:
        self.log(operation=operation, message=message, level="error", **kwargs)

    def records_for_operation(self, operation: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("operation") == operation]

    def records_for_lockfile(self, lockfile: str | Path) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("lockfile") == str(lockfile)]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path
