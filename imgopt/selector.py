from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, List, Union

from .matcher import matches
from .settings import OptimizerSettings

logger = logging.getLogger(__name__)


def get_files_to_process(
    all_files: Iterable[str],
    get_file_name: Callable[[str], str],
    settings: OptimizerSettings,
) -> List[str]:
    """
    Pick the paths to optimize, keeping their input order.

    With an include rule only that rule counts. Otherwise a file must match
    the `test` pattern (no pattern -> nothing selected) and must not match
    the exclude rule.
    """
    if settings.include is not None:
        return [p for p in all_files if matches(get_file_name(p), settings.include)]

    if settings.test is None:
        return []

    selected: List[str] = []
    for file_path in all_files:
        name = get_file_name(file_path)
        if settings.test.search(name) is None:
            continue
        if matches(name, settings.exclude):
            continue
        selected.append(file_path)
    return selected


def read_all_files(root: Union[str, Path]) -> List[str]:
    """
    Recursively list every file under `root`, sorted per directory.

    A subtree that cannot be read is logged and contributes no files.
    """
    root = Path(root)
    if not root.exists():
        return []
    if not root.is_dir():
        return [str(root)]

    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning("could not read directory %s: %s", root, e)
        return []

    files: List[str] = []
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            logger.warning("could not stat %s: %s", entry.path, e)
            continue
        if is_dir:
            files.extend(read_all_files(entry.path))
        else:
            files.append(entry.path)
    return files
