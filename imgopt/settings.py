from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .matcher import MatchRule


# Files picked up when no include rule is configured.
DEFAULT_TEST = re.compile(r"\.(jpe?g|png|gif|tiff?|webp|avif)$", re.IGNORECASE)

DEFAULT_CACHE_LOCATION = Path(".cache") / "imgopt"

FormatOptions = Dict[str, Dict[str, Any]]

# Keyword arguments handed to Pillow's encoder, keyed by lowercase extension.
DEFAULT_FORMAT_OPTIONS: FormatOptions = {
    "jpg": {"quality": 85, "optimize": True, "progressive": True},
    "jpeg": {"quality": 85, "optimize": True, "progressive": True},
    "png": {"optimize": True, "compress_level": 9},
    "webp": {"quality": 80, "lossless": False, "method": 6},
    "gif": {"optimize": True},
    "tif": {"compression": "tiff_lzw"},
    "tiff": {"compression": "tiff_lzw"},
    "avif": {"quality": 70},
}


def merge_format_options(user: Mapping[str, Mapping[str, Any]], defaults: Mapping[str, Mapping[str, Any]]) -> FormatOptions:
    """
    Fill the gaps in `user` from `defaults`.

    User values win per key; extensions and keys missing from `user` come from
    `defaults`. Neither input is modified.
    """
    merged: FormatOptions = {ext.lower(): copy.deepcopy(dict(opts)) for ext, opts in user.items()}
    for ext, opts in defaults.items():
        target = merged.setdefault(ext, {})
        for key, value in opts.items():
            if key not in target:
                target[key] = copy.deepcopy(value)
    return merged


@dataclass(frozen=True)
class OptimizerSettings:
    """
    Everything one optimization batch needs to know.

    Pure data: selection rules, cache placement and the per-format encoder
    options. Built once per batch and never mutated.
    """

    # ----- Selection -----
    # include wins over exclude/test when set. Raw str, regex or list values
    # are accepted as well as MatchRule instances.
    include: Optional[MatchRule] = None
    exclude: Optional[MatchRule] = None
    test: Optional[re.Pattern] = DEFAULT_TEST

    # ----- Cache -----
    cache: bool = False
    cache_location: Path = DEFAULT_CACHE_LOCATION

    # ----- Encoding -----
    format_options: FormatOptions = field(default_factory=lambda: copy.deepcopy(DEFAULT_FORMAT_OPTIONS))

    # ----- Output -----
    ansi_colors: bool = True
    log_stats: bool = True
    dry_run: bool = False
    max_workers: Optional[int] = None

    def options_for(self, ext: str) -> Dict[str, Any]:
        return dict(self.format_options.get(ext.lower(), {}))
