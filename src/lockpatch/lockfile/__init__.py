"""Lockfile model, discovery and serialization."""

from lockpatch.lockfile.io import (
    discover_lockfiles,
    load_lockfiles,
    parse_lockfile,
    read_lockfile,
    serialize_lockfile,
    write_lockfile,
)
from lockpatch.lockfile.model import (
    LOCKFILE_NAME,
    EntryChange,
    EntryFailure,
    FlatTree,
    LegacyTree,
    Lockfile,
    LockfileFailure,
    LockfilePatch,
    LockTree,
    package_name_for_path,
)

__all__ = [
    "EntryChange",
    "EntryFailure",
    "FlatTree",
    "LOCKFILE_NAME",
    "LegacyTree",
    "LockTree",
    "Lockfile",
    "LockfileFailure",
    "LockfilePatch",
    "discover_lockfiles",
    "load_lockfiles",
    "package_name_for_path",
    "parse_lockfile",
    "read_lockfile",
    "serialize_lockfile",
    "write_lockfile",
]
