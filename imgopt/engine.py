from __future__ import annotations

import io
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Mapping

from PIL import Image, ImageSequence, UnidentifiedImageError

from .errors import TransformError


# (file path, raw bytes, format options keyed by extension) -> new bytes
TransformEngine = Callable[[str, bytes, Mapping[str, Mapping[str, Any]]], bytes]

# Maps a lowercase extension to Pillow's encoder name.
EXT_TO_FORMAT = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "gif": "GIF",
    "tif": "TIFF",
    "tiff": "TIFF",
    "avif": "AVIF",
}

# Formats where every frame is kept.
ANIMATED_FORMATS = {"GIF", "WEBP"}


def extension_of(file_path: str) -> str:
    return PurePosixPath(str(file_path).replace("\\", "/")).suffix.lstrip(".").lower()


def format_options_for(file_path: str, format_options: Mapping[str, Mapping[str, Any]]) -> Dict[str, Any]:
    return dict(format_options.get(extension_of(file_path), {}))


def apply_pillow(file_path: str, data: bytes, format_options: Mapping[str, Mapping[str, Any]]) -> bytes:
    """
    Re-encode `data` in the format its extension names.

    Only the per-format options are handed to the encoder, so EXIF, ICC and
    other metadata are dropped.
    """
    ext = extension_of(file_path)
    out_format = EXT_TO_FORMAT.get(ext)
    if out_format is None:
        raise TransformError(f"unsupported image format: {ext or '<none>'}")
    Image.init()
    if out_format not in Image.SAVE:
        raise TransformError(f"Pillow has no encoder for {out_format}")

    save_kwargs = format_options_for(file_path, format_options)

    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            buf = io.BytesIO()
            n_frames = getattr(im, "n_frames", 1)
            if out_format in ANIMATED_FORMATS and n_frames > 1:
                _save_animated(im, buf, out_format, save_kwargs)
            else:
                im = _prepare_mode(im, out_format)
                im.save(buf, format=out_format, **save_kwargs)
    except UnidentifiedImageError as e:
        raise TransformError(f"cannot identify image file: {file_path}") from e
    except (OSError, ValueError, TypeError, KeyError) as e:
        raise TransformError(str(e) or e.__class__.__name__) from e

    return buf.getvalue()


def _save_animated(im: Image.Image, buf: io.BytesIO, out_format: str, save_kwargs: dict) -> None:
    frames = [frame.copy() for frame in ImageSequence.Iterator(im)]
    kwargs = {
        "duration": im.info.get("duration", 0),
        "loop": im.info.get("loop", 0),
    }
    kwargs.update(save_kwargs)
    frames[0].save(
        buf,
        format=out_format,
        save_all=True,
        append_images=frames[1:],
        **kwargs,
    )


def _prepare_mode(im: Image.Image, out_format: str) -> Image.Image:
    # JPEG cannot store alpha or palette images.
    if out_format == "JPEG" and im.mode not in ("RGB", "L", "CMYK"):
        return im.convert("RGB")
    return im
