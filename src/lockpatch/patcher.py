"""End-to-end pipeline: snapshot -> discovery -> load -> rewrite -> write."""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from lockpatch.config import PatchConfig
from lockpatch.errors import LockfileError
from lockpatch.lockfile import (
    Lockfile,
    LockfileFailure,
    LockfilePatch,
    discover_lockfiles,
    load_lockfiles,
    write_lockfile,
)
from lockpatch.observability import StructuredLogger
from lockpatch.rewrite import rewrite_lockfile
from lockpatch.snapshot import Snapshot, load_snapshot


@dataclass(slots=True)
class RunReport:
    discovered: list[Path] = field(default_factory=list)
    patches: list[LockfilePatch] = field(default_factory=list)
    failures: list[LockfileFailure] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)

    @property
    def load_failures(self) -> list[LockfileFailure]:
        return [item for item in self.failures if item.operation == "load"]

    @property
    def write_failures(self) -> list[LockfileFailure]:
        return [item for item in self.failures if item.operation == "write"]

    @property
    def ok(self) -> bool:
        """True when every loaded lockfile was written (or dry-run)."""
        return not self.write_failures

    def patch_for(self, path: str | Path) -> LockfilePatch | None:
        for patch in self.patches:
            if patch.lockfile.path == Path(path):
                return patch
        return None


def patch_lockfile(
    lockfile: Lockfile,
    snapshot: Snapshot,
    *,
    config: PatchConfig,
    executor: Executor,
    logger: StructuredLogger,
) -> LockfilePatch:
    """Rewrite one lockfile and write it back unless ``config.dry_run``."""
    patch = rewrite_lockfile(lockfile, snapshot, executor=executor, logger=logger)
    if config.dry_run:
        logger.info(
            operation="write",
            lockfile=str(lockfile.path),
            message=f"Dry run, {len(patch.changes)} change(s) in {lockfile.path}",
        )
        return patch
    write_lockfile(lockfile, patch.payload, indent=config.indent)
    logger.info(
        operation="write",
        lockfile=str(lockfile.path),
        message=f"Patched integrity in {lockfile.path} ({len(patch.changes)} change(s))",
    )
    return patch


def patch_lockfiles(
    snapshot: Snapshot,
    *,
    config: PatchConfig | None = None,
    logger: StructuredLogger | None = None,
) -> RunReport:
    """Discover, rewrite and write every lockfile under ``config.root``."""
    config = config or PatchConfig()
    logger = logger or StructuredLogger()
    report = RunReport()

    logger.info(
        operation="discover",
        message=f"Looking for package locks (in {config.root}) ...",
    )
    report.discovered = discover_lockfiles(config.root, logger=logger)
    found = ", ".join(str(path) for path in report.discovered) or "none"
    logger.info(operation="discover", message=f"Found: {found}")

    logger.info(operation="load", message="Loading package-locks ...")
    lockfiles, report.failures = load_lockfiles(report.discovered, logger=logger)
    if not lockfiles:
        return report

    logger.info(operation="rewrite", message="Patching locks ...")
    # Files run on their own pool so digest jobs never wait behind a file job.
    with (
        ThreadPoolExecutor(max_workers=config.max_workers) as digest_pool,
        ThreadPoolExecutor(max_workers=min(config.max_workers, len(lockfiles))) as file_pool,
    ):
        jobs = [
            (
                lockfile,
                file_pool.submit(
                    patch_lockfile,
                    lockfile,
                    snapshot,
                    config=config,
                    executor=digest_pool,
                    logger=logger,
                ),
            )
            for lockfile in lockfiles
        ]
        for lockfile, job in jobs:
            try:
                patch = job.result()
            except LockfileError as exc:
                logger.error(
                    operation="write",
                    lockfile=str(lockfile.path),
                    message=f"Could not write: {lockfile.path}\n{exc}",
                    extra=exc.to_dict(),
                )
                report.failures.append(
                    LockfileFailure(
                        path=lockfile.path,
                        operation="write",
                        code=exc.code,
                        message=str(exc),
                    )
                )
                continue
            report.patches.append(patch)
            if not config.dry_run:
                report.written.append(lockfile.path)
    return report


def run(
    snapshot_path: str | Path,
    *,
    config: PatchConfig | None = None,
    logger: StructuredLogger | None = None,
) -> RunReport:
    """Load the snapshot and patch every lockfile. Raises SnapshotError if it cannot load."""
    logger = logger or StructuredLogger()
    logger.info(operation="snapshot", message="Loading Snapshot ...")
    snapshot = load_snapshot(snapshot_path)
    logger.info(
        operation="snapshot",
        message=f"Loaded {len(snapshot)} package(s) from {snapshot_path}",
    )
    return patch_lockfiles(snapshot, config=config, logger=logger)
