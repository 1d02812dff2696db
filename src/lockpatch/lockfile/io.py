"""Lockfile discovery, parser and serializer."""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from lockpatch.errors import LockfileError
from lockpatch.lockfile.model import LOCKFILE_NAME, Lockfile, LockfileFailure
from lockpatch.observability import StructuredLogger


def discover_lockfiles(
    root: str | Path,
    *,
    logger: StructuredLogger | None = None,
) -> list[Path]:
    """Return every ``package-lock.json`` below ``root``, sorted.

    Symlinked directories are followed; each directory is visited once,
    keyed by device and inode, so symlink cycles terminate.
    """
    found: list[Path] = []
    visited: set[tuple[int, int]] = set()
    stack = [Path(root)]
    while stack:
        directory = stack.pop()
        try:
            identity = directory.stat()
            key = (identity.st_dev, identity.st_ino)
            if key in visited:
                continue
            visited.add(key)
            children = sorted(directory.iterdir())
        except OSError as exc:
            if logger is not None:
                logger.error(
                    operation="discover",
                    message=f"Could not read directory {directory}: {exc}",
                    extra={"path": str(directory)},
                )
            continue

        for child in children:
            if child.is_dir():
                stack.append(child)
            elif child.name == LOCKFILE_NAME and child.is_file():
                found.append(child)
    return sorted(found)


def serialize_lockfile(payload: dict[str, Any], *, indent: int | None = 2) -> str:
    if indent is None:
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(payload, ensure_ascii=False, indent=indent) + "\n"


def parse_lockfile(raw: str, *, path: str | Path) -> Lockfile:
    lock_path = Path(path)
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LockfileError(
            "Invalid lockfile JSON.",
            hint=str(exc),
            context={"path": str(lock_path)},
        ) from exc
    except RecursionError as exc:
        raise LockfileError(
            "Lockfile is nested too deeply to decode.",
            context={"path": str(lock_path)},
        ) from exc

    if not isinstance(payload, dict):
        raise LockfileError(
            "Invalid lockfile payload type.",
            hint="Expected a JSON object at the top level.",
            context={"path": str(lock_path)},
        )
    return Lockfile(path=lock_path, payload=payload)


def read_lockfile(path: str | Path) -> Lockfile:
    lock_path = Path(path)
    try:
        raw = lock_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise LockfileError(
            "Lockfile does not exist.",
            context={"path": str(lock_path)},
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LockfileError(
            "Lockfile could not be read.",
            hint=str(exc),
            context={"path": str(lock_path)},
        ) from exc
    return parse_lockfile(raw, path=lock_path)


def load_lockfiles(
    paths: Iterable[str | Path],
    *,
    logger: StructuredLogger,
) -> tuple[list[Lockfile], list[LockfileFailure]]:
    """Load every path, excluding (and reporting) the ones that fail."""
    loaded: list[Lockfile] = []
    failures: list[LockfileFailure] = []
    for path in paths:
        try:
            loaded.append(read_lockfile(path))
        except LockfileError as exc:
            logger.error(
                operation="load",
                lockfile=str(path),
                message=f"Could not load: {path}\n{exc}",
                extra=exc.to_dict(),
            )
            failures.append(
                LockfileFailure(
                    path=Path(path),
                    operation="load",
                    code=exc.code,
                    message=str(exc),
                )
            )
    return loaded, failures


def write_lockfile(
    lockfile: Lockfile,
    payload: dict[str, Any],
    *,
    indent: int | None = 2,
) -> Path:
    """Replace ``lockfile.path`` with ``payload`` via a sibling temp file."""
    lock_path = lockfile.path
    try:
        encoded = serialize_lockfile(payload, indent=indent)
    except RecursionError as exc:
        raise LockfileError(
            "Lockfile is nested too deeply to encode.",
            context={"path": str(lock_path)},
        ) from exc
    temp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=lock_path.parent,
            prefix=f".{lock_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_name = handle.name
            handle.write(encoded)
        if lock_path.exists():
            os.chmod(temp_name, lock_path.stat().st_mode & 0o7777)
        os.replace(temp_name, lock_path)
    except OSError as exc:
        if temp_name is not None and os.path.exists(temp_name):
            os.unlink(temp_name)
        raise LockfileError(
            "Lockfile could not be written.",
            hint=exc.strerror or str(exc),
            context={"path": str(lock_path)},
        ) from exc
    return lock_path
