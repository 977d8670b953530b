from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal

from .results import BatchOutcome


Status = Literal["skipped", "cached", "optimized"]


@dataclass(frozen=True)
class ErrorRow:
    name: str
    message: str


@dataclass(frozen=True)
class StatsRow:
    name: str
    ratio: int
    status: Status
    size: float
    old_size: float


@dataclass(frozen=True)
class StatsReport:
    rows: List[StatsRow]
    total_original: float
    total_saved: float

    @property
    def has_savings(self) -> bool:
        return self.total_saved > 0

    @property
    def savings_percent(self) -> int:
        if self.total_original <= 0:
            return 0
        # Halves round up.
        return math.floor(100 * self.total_saved / self.total_original + 0.5)


@dataclass(frozen=True)
class BatchReport:
    created_utc: str
    summary: dict
    files: List[StatsRow]
    errors: List[ErrorRow]


def build_error_rows(outcome: BatchOutcome) -> List[ErrorRow]:
    return [ErrorRow(name=name, message=message) for name, message in outcome.errors.items()]


def build_stats_report(outcome: BatchOutcome) -> StatsReport:
    """
    One row per optimized file, in the order they were recorded.

    Skipped files kept their original bytes, so they are left out of the
    totals.
    """
    rows: List[StatsRow] = []
    total_original = 0.0
    total_saved = 0.0

    for name, stats in outcome.optimized.items():
        if stats.skip_write:
            status: Status = "skipped"
        elif stats.is_cached:
            status = "cached"
        else:
            status = "optimized"

        rows.append(
            StatsRow(
                name=name,
                ratio=stats.ratio,
                status=status,
                size=stats.size,
                old_size=stats.old_size,
            )
        )

        if not stats.skip_write:
            total_original += stats.old_size
            total_saved += stats.saved_size

    return StatsReport(rows=rows, total_original=total_original, total_saved=total_saved)


def build_report(outcome: BatchOutcome) -> BatchReport:
    created_utc = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

    stats = build_stats_report(outcome)

    summary_dict = {
        "total_files": len(outcome),
        "optimized": sum(1 for r in stats.rows if r.status != "skipped"),
        "skipped": sum(1 for r in stats.rows if r.status == "skipped"),
        "failed": len(outcome.errors),
        "total_original_kb": round(stats.total_original, 2),
        "total_saved_kb": round(stats.total_saved, 2),
        "saved_percent": stats.savings_percent,
    }

    return BatchReport(
        created_utc=created_utc,
        summary=summary_dict,
        files=stats.rows,
        errors=build_error_rows(outcome),
    )


def save_report_json(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(report), f, indent=2, ensure_ascii=False)
