from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from PIL import Image

from framestage.exif.exiftool import ExifTool
from framestage.util.errors import ImageDecodeError

# Formats re-encoded as themselves; anything else decodable is written as JPEG.
_NATIVE_FORMATS = {"JPEG", "PNG"}

@dataclass(frozen=True)
class ResizeResult:
    resized: bool
    original_size: tuple[int, int]
    new_size: tuple[int, int]
    warnings: tuple[str, ...] = ()


def target_size(width: int, height: int, max_dimension: int) -> tuple[int, int] | None:
    """Return the bounded (width, height), or None if no resize is needed.

    The longest side becomes exactly `max_dimension`; the other side is
    scaled by the same factor and floored (never below 1px).
    """
    if max_dimension < 1:
        raise ValueError("max_dimension must be >= 1")
    if width <= max_dimension and height <= max_dimension:
        return None
    longest = max(width, height)
    if width >= height:
        return max_dimension, max(1, (height * max_dimension) // longest)
    return max(1, (width * max_dimension) // longest), max_dimension


def resize_image(
    src: Path,
    dst: Path,
    max_dimension: int,
    quality: int,
    exiftool: ExifTool,
) -> ResizeResult:
    """Downscale `src` into `dst` when it exceeds `max_dimension`.

    Contract:
    - Nothing is written when the image already fits; the caller copies.
    - Metadata is copied from `src` after encoding (encoding drops it).
    - `src` and `dst` may be the same path; `dst` is replaced atomically.
    - Decode/encode problems raise ImageDecodeError and leave `dst` untouched.
    """
    try:
        with Image.open(src) as im:
            im.load()
            size = im.size
            new_size = target_size(size[0], size[1], max_dimension)
            if new_size is None:
                return ResizeResult(resized=False, original_size=size, new_size=size)

            fmt = im.format if im.format in _NATIVE_FORMATS else "JPEG"
            icc_profile = im.info.get("icc_profile")
            work = _prepare_mode(im, fmt)
            out = work.resize(new_size, resample=Image.Resampling.BICUBIC, reducing_gap=3.0)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Cannot decode {src.name}: {e}") from e

    tmp = dst.with_name(f".{dst.stem}.resizing{dst.suffix}")
    try:
        _encode(out, tmp, fmt, quality, icc_profile)
    except (OSError, ValueError) as e:
        tmp.unlink(missing_ok=True)
        raise ImageDecodeError(f"Cannot encode {dst.name}: {e}") from e

    # Copy onto the temp file while the original is still intact (src may be dst).
    try:
        meta = exiftool.copy_metadata(src, tmp)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    os.replace(tmp, dst)

    warnings = () if meta.ok else (f"metadata copy: {meta.message}",)
    return ResizeResult(resized=True, original_size=size, new_size=new_size, warnings=warnings)


def _prepare_mode(im: Image.Image, fmt: str) -> Image.Image:
    if fmt == "JPEG":
        if im.mode in ("RGB", "L", "CMYK"):
            return im
        return im.convert("RGB")
    # PNG: palette and 1-bit images only resize with NEAREST, widen them first.
    if im.mode in ("P", "1", "LA", "PA"):
        return im.convert("RGBA")
    return im


def _encode(im: Image.Image, path: Path, fmt: str, quality: int, icc_profile: bytes | None) -> None:
    params: dict = {}
    if icc_profile:
        params["icc_profile"] = icc_profile
    if fmt == "JPEG":
        params.update(quality=quality, subsampling=0, optimize=True)
    else:
        params.update(optimize=True)
    im.save(path, format=fmt, **params)
