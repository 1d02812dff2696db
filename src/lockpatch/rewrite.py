"""Integrity rewriting for legacy (``dependencies``) and flat (``packages``) trees.

Rewriting a lockfile happens in two passes. The planning pass walks every
tree the lockfile carries and collects the distinct ``(package, version,
algorithm)`` triples whose digest is needed. Those digests are computed on
the shared executor, then the rebuild pass produces a new payload in which
only ``integrity`` values differ from the loaded one.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from typing import Any

from lockpatch.errors import IntegrityError
from lockpatch.integrity import file_integrity, parse_integrity
from lockpatch.lockfile.model import (
    EntryChange,
    EntryFailure,
    FlatTree,
    LegacyTree,
    Lockfile,
    LockfilePatch,
    LockTree,
    package_name_for_path,
)
from lockpatch.observability import StructuredLogger
from lockpatch.snapshot import Snapshot

DigestKey = tuple[str, str, str]


def digest_key(package: str, entry: dict[str, Any]) -> DigestKey | None:
    """Return the digest needed to refresh ``entry``, or None if it has no integrity."""
    integrity = entry.get("integrity")
    if not isinstance(integrity, str):
        return None
    version = entry.get("version")
    if not isinstance(version, str) or not version:
        raise IntegrityError(
            "Entry has an integrity value but no version.",
            context={"package": package},
        )
    algorithm = parse_integrity(integrity).algorithm
    return (package, version, algorithm)


def compute_digest(snapshot: Snapshot, key: DigestKey) -> str:
    package, version, algorithm = key
    target = snapshot.resolve(package, version)
    try:
        return file_integrity(algorithm, target).render()
    except IntegrityError as exc:
        raise IntegrityError(
            str(exc.args[0]),
            hint=exc.hint,
            context={**snapshot.describe(package, version), **exc.context},
        ) from exc


def plan_digests(trees: list[LockTree]) -> set[DigestKey]:
    keys: set[DigestKey] = set()
    for tree in trees:
        if isinstance(tree, FlatTree):
            for path, entry in tree.entries.items():
                if not isinstance(entry, dict):
                    continue
                package = package_name_for_path(path, entry)
                if package is not None:
                    _collect(keys, package, entry)
            continue

        stack: list[dict[str, Any]] = [tree.entries]
        while stack:
            entries = stack.pop()
            for package, entry in entries.items():
                if not isinstance(entry, dict):
                    continue
                _collect(keys, package, entry)
                nested = entry.get("dependencies")
                if isinstance(nested, dict):
                    stack.append(nested)
    return keys


def _collect(keys: set[DigestKey], package: str, entry: dict[str, Any]) -> None:
    try:
        key = digest_key(package, entry)
    except IntegrityError:
        # Reported once per entry by the rebuild pass.
        return
    if key is not None:
        keys.add(key)


@dataclass(slots=True)
class _Rebuild:
    snapshot: Snapshot
    digests: dict[DigestKey, str | IntegrityError]
    logger: StructuredLogger
    patch: LockfilePatch
    lockfile: str = field(init=False)

    def __post_init__(self) -> None:
        self.lockfile = str(self.patch.lockfile.path)

    def entry(self, package: str | None, entry: dict[str, Any]) -> dict[str, Any]:
        updated = dict(entry)
        old = entry.get("integrity")
        if not isinstance(old, str):
            return updated
        version = str(entry.get("version", ""))
        if package is None:
            self._fail(
                "?",
                version,
                IntegrityError(
                    "Package name could not be recovered from the lockfile path.",
                    context={"version": version},
                ),
            )
            return updated

        try:
            key = digest_key(package, entry)
        except IntegrityError as exc:
            self._fail(package, version, exc)
            return updated
        if key is None:
            return updated

        result = self.digests[key]
        if isinstance(result, IntegrityError):
            self._fail(package, version, result)
            return updated

        updated["integrity"] = result
        if result != old:
            self.patch.changes.append(
                EntryChange(package=package, version=version, old=old, new=result)
            )
            self.logger.info(
                operation="rewrite",
                lockfile=self.lockfile,
                package=package,
                message=f"{package}-{version}: {old} -> {result}",
            )
        return updated

    def legacy(self, entries: dict[str, Any]) -> dict[str, Any]:
        rebuilt: dict[str, Any] = {}
        # (source mapping, copy being filled); children are filled in source key order.
        stack: list[tuple[dict[str, Any], dict[str, Any]]] = [(entries, rebuilt)]
        while stack:
            source, target = stack.pop()
            for package, entry in source.items():
                if not isinstance(entry, dict):
                    target[package] = entry
                    continue
                updated = self.entry(package, entry)
                nested = entry.get("dependencies")
                if isinstance(nested, dict):
                    updated["dependencies"] = {}
                    stack.append((nested, updated["dependencies"]))
                target[package] = updated
        return rebuilt

    def flat(self, entries: dict[str, Any]) -> dict[str, Any]:
        rebuilt: dict[str, Any] = {}
        for path, entry in entries.items():
            if not isinstance(entry, dict):
                rebuilt[path] = entry
                continue
            rebuilt[path] = self.entry(package_name_for_path(path, entry), entry)
        return rebuilt

    def _fail(self, package: str, version: str, exc: IntegrityError) -> None:
        entry = self.snapshot.describe(package, version)["snapshot_entry"]
        self.logger.error(
            operation="rewrite",
            lockfile=self.lockfile,
            package=package,
            message=f"At: {package}-{version} ({entry})\n{exc}",
            extra=exc.to_dict(),
        )
        self.patch.failures.append(
            EntryFailure(
                package=package,
                version=version,
                code=exc.code,
                message=str(exc.args[0]),
                context=dict(exc.context),
            )
        )


def rewrite_lockfile(
    lockfile: Lockfile,
    snapshot: Snapshot,
    *,
    executor: Executor,
    logger: StructuredLogger,
) -> LockfilePatch:
    """Return a patch holding ``lockfile`` with every resolvable integrity refreshed.

    The loaded payload is never mutated. Entries that cannot be refreshed keep
    their original integrity and are recorded in ``patch.failures``.
    """
    trees = lockfile.trees()
    futures: dict[DigestKey, Future[str]] = {
        key: executor.submit(compute_digest, snapshot, key)
        for key in sorted(plan_digests(trees))
    }
    digests: dict[DigestKey, str | IntegrityError] = {}
    for key, future in futures.items():
        try:
            digests[key] = future.result()
        except IntegrityError as exc:
            digests[key] = exc

    patch = LockfilePatch(lockfile=lockfile, payload=dict(lockfile.payload))
    rebuild = _Rebuild(snapshot=snapshot, digests=digests, logger=logger, patch=patch)
    for tree in trees:
        if isinstance(tree, LegacyTree):
            patch.payload[tree.kind] = rebuild.legacy(tree.entries)
        else:
            patch.payload[tree.kind] = rebuild.flat(tree.entries)
    return patch
