from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, Optional, Union

from rich.console import Console
from rich.text import Text

from .report import ErrorRow, StatsReport, StatsRow, build_error_rows, build_stats_report
from .results import BatchOutcome


TAG = "[imgopt]"


def _console() -> Console:
    # Wide enough that a report line never wraps.
    return Console(
        file=io.StringIO(),
        force_terminal=True,
        color_system="standard",
        width=10_000,
        highlight=False,
    )


def to_log_string(text: Text, ansi_colors: bool) -> str:
    if not ansi_colors:
        return text.plain
    console = _console()
    with console.capture() as capture:
        console.print(text, end="")
    return capture.get()


def _prefix(out_dir: Optional[Union[str, Path]], name: str, width: int) -> Text:
    line = Text()
    if out_dir is not None:
        line.append(Path(out_dir).name, style="dim")
        line.append("/")
    line.append(name, style="bright_blue")
    line.append(" " * (2 + width - len(name)))
    return line


def error_lines(rows: List[ErrorRow], out_dir: Optional[Union[str, Path]] = None) -> List[Text]:
    if not rows:
        return []
    width = max(len(r.name) for r in rows)
    lines = []
    for r in rows:
        line = _prefix(out_dir, r.name, width)
        line.append(" ")
        line.append(r.message, style="red")
        lines.append(line)
    return lines


def _percent_change(ratio: int) -> Text:
    if ratio > 0:
        return Text(f"+{ratio}%", style="red")
    return Text(f"{ratio}%", style="green")


def _size_text(row: StatsRow) -> Text:
    text = Text()
    if row.status == "skipped":
        text.append("skipped", style="bold yellow")
        text.append(" ")
        text.append(f"original: {row.old_size:.2f} kB <= optimized: {row.size:.2f} kB", style="dim")
    elif row.status == "cached":
        text.append("cached", style="bold yellow")
        text.append(" ")
        text.append(f"original: {row.old_size:.2f} kB; cached: {row.size:.2f} kB", style="dim")
    else:
        text.append(f"{row.old_size:.2f} kB -> {row.size:.2f} kB", style="dim")
    return text


def stats_lines(report: StatsReport, out_dir: Optional[Union[str, Path]] = None) -> List[Text]:
    if not report.rows:
        return []
    width = max(len(r.name) for r in report.rows)
    ratio_width = max(len(str(r.ratio)) for r in report.rows)

    lines = []
    for r in report.rows:
        line = _prefix(out_dir, r.name, width)
        line.append_text(_percent_change(r.ratio))
        line.append(" " + " " * (ratio_width - len(str(r.ratio))))
        line.append(" ")
        line.append_text(_size_text(r))
        lines.append(line)
    return lines


def savings_line(report: StatsReport) -> Optional[Text]:
    if not report.has_savings:
        return None
    line = Text("total savings = ")
    line.append(f"{report.total_saved:.2f}kB", style="green")
    line.append("/")
    line.append(f"{report.total_original:.2f}kB", style="green")
    line.append(" ≈ ")
    line.append(f"{report.savings_percent}%", style="green")
    return line


def log_errors(
    logger: logging.Logger,
    outcome: BatchOutcome,
    out_dir: Optional[Union[str, Path]] = None,
    ansi_colors: bool = True,
) -> None:
    rows = build_error_rows(outcome)
    if not rows:
        return

    header = Text(TAG, style="red")
    header.append(" - errors during optimization:", style="")
    logger.info(to_log_string(header, ansi_colors))
    for line in error_lines(rows, out_dir):
        logger.error(to_log_string(line, ansi_colors))


def log_stats(
    logger: logging.Logger,
    outcome: BatchOutcome,
    out_dir: Optional[Union[str, Path]] = None,
    ansi_colors: bool = True,
) -> None:
    report = build_stats_report(outcome)
    if not report.rows:
        return

    header = Text(TAG, style="cyan")
    header.append(" - optimized images successfully:", style="")
    logger.info(to_log_string(header, ansi_colors))
    for line in stats_lines(report, out_dir):
        logger.info(to_log_string(line, ansi_colors))

    summary = savings_line(report)
    if summary is not None:
        logger.info(to_log_string(summary, ansi_colors))
