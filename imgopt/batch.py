from __future__ import annotations

import concurrent.futures
import logging
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from .cache import CacheStore, ensure_cache_directory_exists
from .engine import TransformEngine, apply_pillow
from .processor import process_file
from .results import BatchOutcome, ProcessResult
from .selector import get_files_to_process, read_all_files
from .settings import OptimizerSettings
from .styling import log_errors, log_stats

logger = logging.getLogger(__name__)


def process_batch(
    files: Mapping[str, bytes],
    settings: OptimizerSettings,
    engine: TransformEngine = apply_pillow,
    max_workers: Optional[int] = None,
) -> Tuple[List[ProcessResult], BatchOutcome]:
    """
    Process every (path, bytes) pair concurrently, one task per file.

    Results are gathered in submission order, so the outcome maps follow
    the order of `files` whatever order the tasks finish in. A fresh
    BatchOutcome is built for every call.
    """
    ensure_cache_directory_exists(settings)
    cache = CacheStore.from_settings(settings)
    outcome = BatchOutcome()
    results: List[ProcessResult] = []

    if not files:
        return results, outcome

    workers = max_workers if max_workers is not None else settings.max_workers

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(process_file, path, data, settings, cache, engine)
            for path, data in files.items()
        ]
        for future in futures:
            result = future.result()
            outcome.record(result)
            results.append(result)

    return results, outcome


def _relative_name(out_dir: Path, file_path: str) -> str:
    return Path(file_path).relative_to(out_dir).as_posix()


def optimize_directory(
    out_dir: Union[str, Path],
    settings: OptimizerSettings,
    engine: TransformEngine = apply_pillow,
    max_workers: Optional[int] = None,
) -> BatchOutcome:
    """
    Optimize the build output under `out_dir` in place.

    Files are named by their POSIX path relative to `out_dir`; that name is
    what the selection rules see and what the cache is keyed on. Originals
    are only overwritten when the new bytes are smaller.
    """
    out_dir = Path(out_dir)
    all_files = read_all_files(out_dir)
    selected = get_files_to_process(all_files, lambda p: _relative_name(out_dir, p), settings)
    logger.debug("selected %d of %d files under %s", len(selected), len(all_files), out_dir)

    files = {}
    unreadable = {}
    names = []
    for file_path in selected:
        name = _relative_name(out_dir, file_path)
        names.append(name)
        try:
            files[name] = Path(file_path).read_bytes()
        except OSError as e:
            unreadable[name] = ProcessResult(path=name, error=str(e))

    results, _ = process_batch(files, settings, engine=engine, max_workers=max_workers)
    by_name = {r.path: r for r in results}
    by_name.update(unreadable)

    # Record in selection order; a failed write-back moves the file to errors.
    outcome = BatchOutcome()
    for name in names:
        r = by_name[name]
        if r.content is not None and not r.skip_write and not settings.dry_run:
            try:
                (out_dir / name).write_bytes(r.content)
            except OSError as e:
                r = ProcessResult(path=name, error=str(e))
        outcome.record(r)

    if settings.log_stats:
        log_errors(logger, outcome, out_dir, settings.ansi_colors)
        log_stats(logger, outcome, out_dir, settings.ansi_colors)

    return outcome
