from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class OptimizedFile:
    """
    Size stats for one successfully processed file.

    Sizes are in kB (bytes / 1024). `ratio` is the floored percent change,
    negative when the file shrank.
    """
    size: float
    old_size: float
    ratio: int
    skip_write: bool
    is_cached: bool

    @classmethod
    def from_sizes(cls, new_bytes: int, old_bytes: int, is_cached: bool) -> "OptimizedFile":
        if old_bytes <= 0:
            ratio = 0
        else:
            ratio = math.floor(100 * (new_bytes / old_bytes - 1))
        return cls(
            size=new_bytes / 1024,
            old_size=old_bytes / 1024,
            ratio=ratio,
            # Never replace a file with one that is not smaller.
            skip_write=new_bytes >= old_bytes,
            is_cached=is_cached,
        )

    @property
    def saved_size(self) -> float:
        return self.old_size - self.size


@dataclass(frozen=True)
class ProcessResult:
    """
    Output of processing a single file.

    Exactly one of `stats` / `error` is set. `content` is None for failures.
    """
    path: str
    content: Optional[bytes] = None
    skip_write: bool = False
    stats: Optional[OptimizedFile] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchOutcome:
    """
    The two result maps of one batch, keyed by path.

    Dicts keep insertion order, which is the order results were recorded.
    """
    optimized: Dict[str, OptimizedFile] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    def record(self, result: ProcessResult) -> None:
        if result.ok:
            self.errors.pop(result.path, None)
            self.optimized[result.path] = result.stats
        else:
            self.optimized.pop(result.path, None)
            self.errors[result.path] = result.error

    def __len__(self) -> int:
        return len(self.optimized) + len(self.errors)
