"""Integrity value parsing and streamed file digests."""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from pathlib import Path

from lockpatch.errors import IntegrityError

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class IntegrityValue:
    algorithm: str
    digest: str

    def render(self) -> str:
        return f"{self.algorithm}-{self.digest}"


def parse_integrity(value: str) -> IntegrityValue:
    """Split ``<algorithm>-<digest>`` at the first dash."""
    algorithm, sep, digest = value.partition("-")
    if not sep or not algorithm:
        raise IntegrityError(
            "Integrity value has no algorithm prefix.",
            context={"integrity": value},
        )
    return IntegrityValue(algorithm=algorithm, digest=digest)


def file_integrity(algorithm: str, path: str | Path) -> IntegrityValue:
    """Hash ``path`` with ``algorithm`` and return the base64 integrity value."""
    try:
        hasher = hashlib.new(algorithm)
    except ValueError as exc:
        raise IntegrityError(
            "Unsupported integrity algorithm.",
            hint="Use an algorithm supported by hashlib, such as sha512.",
            context={"algorithm": algorithm},
        ) from exc
    # shake_* digests take a length; lockfiles never use them.
    if hasher.digest_size == 0:
        raise IntegrityError(
            "Unsupported integrity algorithm.",
            context={"algorithm": algorithm},
        )

    artifact_path = Path(path)
    try:
        with artifact_path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
                hasher.update(chunk)
    except (OSError, ValueError) as exc:
        # ValueError: paths open() rejects outright, e.g. with an embedded NUL.
        raise IntegrityError(
            "Artifact could not be read.",
            hint=getattr(exc, "strerror", None) or str(exc),
            context={"path": str(artifact_path)},
        ) from exc
    digest = base64.b64encode(hasher.digest()).decode("ascii")
    return IntegrityValue(algorithm=algorithm, digest=digest)
