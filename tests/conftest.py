"""Shared test fixtures."""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from lockpatch.observability import StructuredLogger
from lockpatch.snapshot import Snapshot, parse_snapshot


def sri(algorithm: str, payload: bytes) -> str:
    digest = hashlib.new(algorithm, payload).digest()
    return f"{algorithm}-{base64.b64encode(digest).decode('ascii')}"


@dataclass(slots=True)
class ArtifactStore:
    """Writes fake package tarballs and the snapshot that points at them."""

    root: Path
    packages: dict[str, dict[str, str]] = field(default_factory=dict)

    def add(self, name: str, version: str, payload: bytes | None = None) -> bytes:
        payload = payload if payload is not None else f"{name}@{version}".encode()
        target = self.root / "store" / name.replace("/", "+") / f"{version}.tgz"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
        self.packages.setdefault(name, {})[version] = str(target)
        return payload

    def snapshot(self) -> Snapshot:
        return parse_snapshot(json.dumps(self.packages))

    def write_snapshot(self) -> Path:
        path = self.root / "snapshot.json"
        path.write_text(json.dumps(self.packages), encoding="utf-8")
        return path


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(root=tmp_path)


@pytest.fixture
def logger() -> StructuredLogger:
    """In-memory logger; records are inspected instead of console output."""
    return StructuredLogger()


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return path
