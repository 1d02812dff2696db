"""Run configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lockpatch.errors import UsageError

DEFAULT_MAX_WORKERS = 8
DEFAULT_INDENT = 2


@dataclass(frozen=True, slots=True)
class PatchConfig:
    root: Path = field(default_factory=Path.cwd)
    max_workers: int = DEFAULT_MAX_WORKERS
    indent: int | None = DEFAULT_INDENT
    dry_run: bool = False

    def __post_init__(self) -> None:
        # Bounds the number of artifact files hashed (and held open) at once.
        if self.max_workers < 1:
            raise UsageError(
                "max_workers must be at least 1.",
                context={"max_workers": str(self.max_workers)},
            )
        if self.indent is not None and self.indent < 0:
            raise UsageError(
                "indent must be non-negative or None.",
                context={"indent": str(self.indent)},
            )
        object.__setattr__(self, "root", Path(self.root))
