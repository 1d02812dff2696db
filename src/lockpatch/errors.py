"""Errors raised while patching lockfiles.

Each class maps to one failure scope: ``UsageError`` and ``SnapshotError``
abort the run, ``LockfileError`` drops a single lockfile and
``IntegrityError`` leaves a single entry's integrity untouched. The ``code``
is what the run report and JSON log records carry.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    USAGE = "E_USAGE"
    SNAPSHOT = "E_SNAPSHOT"
    LOCKFILE = "E_LOCKFILE"
    INTEGRITY = "E_INTEGRITY"


class LockPatchError(Exception):
    error_code: ClassVar[ErrorCode]

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = self.error_code.value
        self.hint = hint
        self.context: dict[str, str] = dict(context or {})

    def __str__(self) -> str:
        lines = [super().__str__()]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        lines.extend(f"  {key}: {value}" for key, value in self.context.items() if value)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class UsageError(LockPatchError):
    error_code = ErrorCode.USAGE


class SnapshotError(LockPatchError):
    error_code = ErrorCode.SNAPSHOT


class LockfileError(LockPatchError):
    error_code = ErrorCode.LOCKFILE


class IntegrityError(LockPatchError):
    error_code = ErrorCode.INTEGRITY


__all__ = [
    "ErrorCode",
    "IntegrityError",
    "LockPatchError",
    "LockfileError",
    "SnapshotError",
    "UsageError",
]
