"""Command line entrypoint.

Usage:
    lock-patcher <snapshot>

Rewrites the integrity of every ``package-lock.json`` below the current
directory using the artifact paths listed in ``<snapshot>``.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from lockpatch.config import PatchConfig
from lockpatch.errors import LockPatchError, UsageError
from lockpatch.observability import StructuredLogger
from lockpatch.patcher import run

PROG = "lock-patcher"
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description="Patch package-lock.json integrity hashes from a package snapshot.",
        add_help=False,
    )
    parser.add_argument(
        "snapshot",
        type=Path,
        help="JSON file mapping package name -> version -> artifact path",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(sys.argv[1:] if argv is None else list(argv))
    except UsageError:
        sys.stdout.write("Usage:\n")
        sys.stdout.write(f"    {PROG} [snapshot]\n")
        return EXIT_USAGE

    logger = StructuredLogger.for_console()
    try:
        report = run(args.snapshot, config=PatchConfig(root=Path.cwd()), logger=logger)
    except LockPatchError as exc:
        logger.error(
            operation="run",
            message=f"Error:\n{exc}",
            extra=exc.to_dict(),
        )
        return EXIT_FAILURE
    return EXIT_OK if report.ok else EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
