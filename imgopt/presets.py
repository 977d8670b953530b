from __future__ import annotations

from dataclasses import replace

from .settings import OptimizerSettings, merge_format_options


PRESETS = {
    "lossless": {
        "jpg": {"quality": 100, "subsampling": 0},
        "jpeg": {"quality": 100, "subsampling": 0},
        "png": {"compress_level": 9},
        "webp": {"lossless": True, "quality": 100},
        "avif": {"quality": 100},
    },
    "balanced": {
        "jpg": {"quality": 82},
        "jpeg": {"quality": 82},
        "webp": {"quality": 80},
        "avif": {"quality": 65},
    },
    "aggressive": {
        "jpg": {"quality": 70},
        "jpeg": {"quality": 70},
        "webp": {"quality": 65},
        "avif": {"quality": 50},
    },
}


def apply_preset(name: str, base: OptimizerSettings) -> OptimizerSettings:
    name = name.lower()

    if name not in PRESETS:
        raise ValueError(f"Unknown preset: {name}")

    return replace(base, format_options=merge_format_options(PRESETS[name], base.format_options))
