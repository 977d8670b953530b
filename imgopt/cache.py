from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from .errors import CacheDirectoryError, CacheIOError
from .settings import OptimizerSettings

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Path-keyed byte store mirroring the original relative paths under `root`.

    There is no index: a blob at `<root>/<path>` is the cache entry.
    Entries are never expired or deleted here.
    """

    def __init__(self, root: Union[str, Path], enabled: bool = True):
        self.root = Path(root)
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings: OptimizerSettings) -> "CacheStore":
        return cls(settings.cache_location, enabled=settings.cache)

    def cached_path(self, path: str) -> Path:
        rel = PurePosixPath(str(path).replace("\\", "/"))
        if rel.is_absolute() or ".." in rel.parts:
            raise CacheIOError(f"cache key escapes the cache root: {path}")
        return self.root.joinpath(*rel.parts)

    def try_read(self, path: str) -> Optional[bytes]:
        if not self.enabled:
            return None
        target = self.cached_path(path)
        if not target.is_file():
            return None
        try:
            return target.read_bytes()
        except OSError as e:
            raise CacheIOError(f"could not read cache entry {target}: {e}") from e

    def write(self, path: str, data: bytes) -> Path:
        target = self.cached_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Write next to the target, then move into place.
            fd, tmp_name = tempfile.mkstemp(prefix=".imgopt_", dir=str(target.parent))
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheIOError(f"could not write cache entry {target}: {e}") from e
        return target


def ensure_cache_directory_exists(settings: OptimizerSettings) -> None:
    if not settings.cache:
        return
    root = Path(settings.cache_location)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CacheDirectoryError(f"could not create cache directory {root}: {e}") from e
    logger.debug("cache directory ready: %s", root)
