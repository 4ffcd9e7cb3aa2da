from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re


class FileKind(str, Enum):
    SUPPORTED = "supported"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"


class SkipReason(str, Enum):
    VIDEO = "video"
    ANIMATED = "animated format"
    PROPRIETARY = "proprietary format"
    VECTOR = "vector format"
    UNKNOWN = "unknown format"


# The frame renders these and nothing else. Anything not listed anywhere is
# rejected as UNKNOWN, never passed through.
SUPPORTED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png"})

VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".mov", ".m4v", ".avi", ".mkv", ".3gp", ".wmv", ".webm",
    ".mts", ".m2ts", ".mpg", ".mpeg",
})

UNSUPPORTED_EXTENSIONS: dict[str, SkipReason] = {
    **dict.fromkeys((".gif", ".webp", ".apng"), SkipReason.ANIMATED),
    **dict.fromkeys(
        (".heic", ".heif", ".dng", ".cr2", ".cr3", ".nef", ".arw",
         ".orf", ".rw2", ".raf", ".raw", ".psd"),
        SkipReason.PROPRIETARY,
    ),
    **dict.fromkeys((".svg", ".svgz", ".eps", ".ai", ".pdf"), SkipReason.VECTOR),
}

# IMG_1234.MP.jpg / PXL_20240101.MP.JPEG
MOTION_PHOTO_REGEX = re.compile(r"^(?P<stem>.+)\.MP(?P<ext>\.jpe?g)$", re.IGNORECASE)


@dataclass(frozen=True)
class Classification:
    kind: FileKind
    reason: SkipReason | None = None

    @property
    def is_supported(self) -> bool:
        return self.kind is FileKind.SUPPORTED


def normalize_extension(extension: str) -> str:
    ext = extension.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def classify(extension: str) -> Classification:
    """Classify a file purely from its extension (case-insensitive)."""
    ext = normalize_extension(extension)
    if ext in SUPPORTED_EXTENSIONS:
        return Classification(FileKind.SUPPORTED)
    if ext in VIDEO_EXTENSIONS:
        return Classification(FileKind.VIDEO, SkipReason.VIDEO)
    return Classification(
        FileKind.UNSUPPORTED,
        UNSUPPORTED_EXTENSIONS.get(ext, SkipReason.UNKNOWN),
    )


def is_motion_photo(name: str) -> bool:
    return MOTION_PHOTO_REGEX.match(name) is not None


def clean_name(name: str) -> str:
    """Drop the motion photo marker: IMG_1.MP.jpg -> IMG_1.jpg."""
    m = MOTION_PHOTO_REGEX.match(name)
    if not m:
        return name
    return f"{m.group('stem')}{m.group('ext')}"
