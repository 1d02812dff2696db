"""Public package entrypoint for the package-lock integrity patcher."""

from .config import PatchConfig
from .errors import (
    ErrorCode,
    IntegrityError,
    LockfileError,
    LockPatchError,
    SnapshotError,
    UsageError,
)
from .integrity import IntegrityValue, file_integrity, parse_integrity
from .lockfile import Lockfile, LockfilePatch, discover_lockfiles, read_lockfile
from .observability import StructuredLogger
from .patcher import RunReport, patch_lockfile, patch_lockfiles, run
from .rewrite import rewrite_lockfile
from .snapshot import Snapshot, load_snapshot

__version__ = "0.3.0"

__all__ = [
    "ErrorCode",
    "IntegrityError",
    "IntegrityValue",
    "LockPatchError",
    "Lockfile",
    "LockfileError",
    "LockfilePatch",
    "PatchConfig",
    "RunReport",
    "Snapshot",
    "SnapshotError",
    "StructuredLogger",
    "UsageError",
    "discover_lockfiles",
    "file_integrity",
    "load_snapshot",
    "parse_integrity",
    "patch_lockfile",
    "patch_lockfiles",
    "read_lockfile",
    "rewrite_lockfile",
    "run",
]
