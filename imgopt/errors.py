from __future__ import annotations


class OptimizerError(Exception):
    """Base class for errors raised by imgopt."""


class TransformError(OptimizerError):
    """The image engine could not re-encode a file."""


class CacheIOError(OptimizerError, OSError):
    """Reading or writing a cache entry failed."""


class CacheDirectoryError(OptimizerError, OSError):
    """
    The cache root could not be created.

    Unlike the per-file errors above, this one stops the batch: nothing could
    be cached without the root directory.
    """
