from __future__ import annotations

import argparse
import logging
import re
from dataclasses import replace
from pathlib import Path

from .batch import optimize_directory
from .errors import CacheDirectoryError
from .matcher import parse_rule
from .presets import PRESETS, apply_preset
from .report import build_report, save_report_json
from .settings import DEFAULT_CACHE_LOCATION, OptimizerSettings, merge_format_options


def _parse_quality(text: str) -> tuple[str, int]:
    """
    Accept "EXT=N", e.g.:
      - "jpg=80"
      - "webp=75"
    """
    t = text.strip()
    if "=" not in t:
        raise argparse.ArgumentTypeError(f"expected EXT=N, got {text!r}")
    ext, value = t.split("=", 1)
    ext = ext.strip().lstrip(".").lower()
    try:
        quality = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"quality must be an integer, got {value!r}") from None
    if not 1 <= quality <= 100:
        raise argparse.ArgumentTypeError("quality must be between 1 and 100")
    return ext, quality


def _parse_pattern(text: str) -> re.Pattern:
    try:
        return re.compile(text)
    except re.error as e:
        raise argparse.ArgumentTypeError(f"invalid pattern {text!r}: {e}") from None


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="imgopt",
        description="Optimize the images in a build output directory",
    )
    sub = p.add_subparsers(dest="command", required=True)

    opt = sub.add_parser("optimize", help="Optimize images under a build output directory")
    opt.add_argument("out_dir", help="Build output directory")

    # Selection
    opt.add_argument(
        "--include",
        type=parse_rule,
        default=None,
        help='Only process these files: "name", "a,b,c" or "re:<regex>" (ignores --exclude/--test)',
    )
    opt.add_argument("--exclude", type=parse_rule, default=None, help="Skip these files (same syntax as --include)")
    opt.add_argument("--test", type=_parse_pattern, default=None, help="Regex a file name must match")

    # Cache
    opt.add_argument("--cache", action="store_true", help="Reuse previously optimized files")
    opt.add_argument(
        "--cache-location",
        default=str(DEFAULT_CACHE_LOCATION),
        help=f"Cache directory (default: {DEFAULT_CACHE_LOCATION})",
    )

    # Encoding
    opt.add_argument("--preset", choices=sorted(PRESETS), default=None, help="Encoder option preset")
    opt.add_argument(
        "--quality",
        type=_parse_quality,
        action="append",
        default=[],
        metavar="EXT=N",
        help="Encoder quality for one extension, repeatable (e.g. jpg=80)",
    )

    # Output
    opt.add_argument("--dry-run", action="store_true", help="Report savings without overwriting files")
    opt.add_argument("--no-color", action="store_true", help="Plain report output")
    opt.add_argument("--no-stats", action="store_true", help="Do not print the report")
    opt.add_argument("--workers", type=int, default=None, help="Parallel workers (default: Python's choice)")
    opt.add_argument("--report", default=None, help="Also write a JSON report to this path")
    opt.add_argument("-v", "--verbose", action="store_true", help="Log every step")

    return p


def build_settings(args: argparse.Namespace) -> OptimizerSettings:
    settings = OptimizerSettings(
        include=args.include,
        exclude=args.exclude,
        cache=bool(args.cache),
        cache_location=Path(args.cache_location),
        ansi_colors=not bool(args.no_color),
        log_stats=not bool(args.no_stats),
        dry_run=bool(args.dry_run),
        max_workers=args.workers,
    )
    if args.test is not None:
        settings = replace(settings, test=args.test)

    if args.preset:
        settings = apply_preset(args.preset, settings)

    if args.quality:
        overrides = {ext: {"quality": q} for ext, q in args.quality}
        settings = replace(settings, format_options=merge_format_options(overrides, settings.format_options))

    return settings


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "optimize":
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.INFO,
            format="%(message)s",
        )

        settings = build_settings(args)

        try:
            outcome = optimize_directory(Path(args.out_dir), settings)
        except CacheDirectoryError as e:
            logging.getLogger(__name__).error("%s", e)
            return 1

        if args.report:
            save_report_json(build_report(outcome), Path(args.report))
            print("Report written:", args.report)

        print(f"Optimized: {len(outcome.optimized)}  Failed: {len(outcome.errors)}")
        return 0

    parser.print_help()
    return 2
