"""Snapshot loader: package name -> version -> on-disk artifact path."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from lockpatch.errors import IntegrityError, SnapshotError


@dataclass(frozen=True, slots=True)
class Snapshot:
    packages: Mapping[str, Mapping[str, str]]

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def __len__(self) -> int:
        return len(self.packages)

    def resolve(self, name: str, version: str) -> Path:
        """Return the artifact path for ``name@version``."""
        versions = self.packages.get(name)
        if versions is None:
            raise IntegrityError(
                "Package is not present in the snapshot.",
                context=self.describe(name, version),
            )
        target = versions.get(version)
        if target is None:
            raise IntegrityError(
                "Package version is not present in the snapshot.",
                context=self.describe(name, version),
            )
        return Path(target)

    def describe(self, name: str, version: str) -> dict[str, str]:
        versions = self.packages.get(name)
        entry = json.dumps(dict(versions), sort_keys=True) if versions is not None else "null"
        return {"package": name, "version": version, "snapshot_entry": entry}


def parse_snapshot(raw: str, *, path: str | Path | None = None) -> Snapshot:
    context = {"path": str(path)} if path is not None else {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SnapshotError("Invalid snapshot JSON.", hint=str(exc), context=context) from exc
    except RecursionError as exc:
        raise SnapshotError("Snapshot is nested too deeply to decode.", context=context) from exc
    return Snapshot(packages=_freeze(payload, context))


def load_snapshot(path: str | Path) -> Snapshot:
    snapshot_path = Path(path)
    try:
        raw = snapshot_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SnapshotError(
            "Snapshot file does not exist.",
            hint="Pass the path of the JSON snapshot produced by the package build.",
            context={"path": str(snapshot_path)},
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise SnapshotError(
            "Snapshot file could not be read.",
            hint=str(exc),
            context={"path": str(snapshot_path)},
        ) from exc
    return parse_snapshot(raw, path=snapshot_path)


def _freeze(payload: Any, context: dict[str, str]) -> Mapping[str, Mapping[str, str]]:
    if not isinstance(payload, dict):
        raise SnapshotError(
            "Invalid snapshot payload type.",
            hint="Expected a JSON object.",
            context=context,
        )
    packages: dict[str, Mapping[str, str]] = {}
    for name, versions in payload.items():
        if not isinstance(versions, dict):
            raise SnapshotError(
                "Invalid snapshot package entry.",
                hint="Expected an object mapping versions to paths.",
                context={**context, "package": name},
            )
        for version, target in versions.items():
            if not isinstance(target, str) or not target:
                raise SnapshotError(
                    "Invalid snapshot artifact path.",
                    context={**context, "package": name, "version": version},
                )
        packages[name] = MappingProxyType(dict(versions))
    return MappingProxyType(packages)
