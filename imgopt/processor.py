from __future__ import annotations

import logging
from typing import Optional

from .cache import CacheStore
from .engine import TransformEngine, apply_pillow
from .results import BatchOutcome, OptimizedFile, ProcessResult
from .settings import OptimizerSettings

logger = logging.getLogger(__name__)


def process_file(
    file_path: str,
    data: bytes,
    settings: OptimizerSettings,
    cache: Optional[CacheStore] = None,
    engine: TransformEngine = apply_pillow,
) -> ProcessResult:
    """
    Run one file through cache lookup, transform and size accounting.

    Never raises for per-file problems: engine and cache errors come back as
    a ProcessResult with `error` set and no content.
    """
    if cache is None:
        cache = CacheStore.from_settings(settings)

    try:
        new_data = cache.try_read(file_path)
        is_cached = new_data is not None

        if is_cached:
            logger.debug("%s: cache hit", file_path)
        else:
            new_data = engine(file_path, data, settings.format_options)
            logger.debug("%s: transformed", file_path)

            if cache.enabled:
                cache.write(file_path, new_data)
                logger.debug("%s: cache written", file_path)

        stats = OptimizedFile.from_sizes(len(new_data), len(data), is_cached)
    except Exception as e:
        message = str(e) or e.__class__.__name__
        logger.debug("%s: failed: %s", file_path, message)
        return ProcessResult(path=file_path, error=message)

    return ProcessResult(
        path=file_path,
        content=new_data,
        skip_write=stats.skip_write,
        stats=stats,
    )


def process(
    file_path: str,
    data: bytes,
    settings: OptimizerSettings,
    outcome: BatchOutcome,
    cache: Optional[CacheStore] = None,
    engine: TransformEngine = apply_pillow,
) -> ProcessResult:
    """Process one file and record it into `outcome`."""
    result = process_file(file_path, data, settings, cache=cache, engine=engine)
    outcome.record(result)
    return result
