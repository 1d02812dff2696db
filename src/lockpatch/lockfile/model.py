"""Lockfile typed model."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

LOCKFILE_NAME = "package-lock.json"

# Trailing `node_modules/<name>` or `node_modules/@scope/<name>` of a flat-map key.
PACKAGE_PATH_PATTERN = re.compile(r"(?:^|/)node_modules/((?:@[^/]+/)?[^/]+)$")


@dataclass(frozen=True, slots=True)
class LegacyTree:
    """``dependencies``: name -> entry, nested through entry ``dependencies``."""

    entries: dict[str, Any]
    kind: Literal["dependencies"] = "dependencies"


@dataclass(frozen=True, slots=True)
class FlatTree:
    """``packages``: node_modules-relative path -> entry."""

    entries: dict[str, Any]
    kind: Literal["packages"] = "packages"


LockTree = LegacyTree | FlatTree


@dataclass(frozen=True, slots=True)
class Lockfile:
    path: Path
    payload: dict[str, Any]

    def trees(self) -> list[LockTree]:
        found: list[LockTree] = []
        packages = self.payload.get("packages")
        if isinstance(packages, dict):
            found.append(FlatTree(entries=packages))
        dependencies = self.payload.get("dependencies")
        if isinstance(dependencies, dict):
            found.append(LegacyTree(entries=dependencies))
        return found


@dataclass(frozen=True, slots=True)
class EntryChange:
    package: str
    version: str
    old: str
    new: str


@dataclass(frozen=True, slots=True)
class EntryFailure:
    package: str
    version: str
    code: str
    message: str
    context: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class LockfilePatch:
    lockfile: Lockfile
    payload: dict[str, Any]
    changes: list[EntryChange] = field(default_factory=list)
    failures: list[EntryFailure] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def package_name_for_path(key: str, entry: dict[str, Any]) -> str | None:
    """Recover the package name of a flat-map entry.

    Keys that are not under ``node_modules`` (the root project ``""`` and
    workspace folders) fall back to the entry's own ``name`` field.
    """
    match = PACKAGE_PATH_PATTERN.search(key)
    if match is not None:
        return match.group(1)
    if key:
        name = entry.get("name")
        if isinstance(name, str) and name:
            return name
    return None


@dataclass(frozen=True, slots=True)
class LockfileFailure:
    path: Path
    operation: Literal["load", "write"]
    code: str
    message: str
