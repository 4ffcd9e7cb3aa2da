from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from framestage.core.outcomes import StepResult
from framestage.core.settings import AppSettings


class FakeExifTool:
    """Stands in for ExifTool: records calls, truncates trailers like the real tool."""

    def __init__(self, strip_result: StepResult | None = None, copy_result: StepResult | None = None) -> None:
        self.strip_result = strip_result or StepResult.success()
        self.copy_result = copy_result or StepResult.success()
        self.stripped: list[Path] = []
        self.copied: list[tuple[Path, Path]] = []
        # Size of `dst` as decoded when metadata was copied onto it.
        self.copied_onto_sizes: list[tuple[int, int]] = []

    def strip_trailer(self, path: Path) -> StepResult:
        self.stripped.append(path)
        if self.strip_result.ok:
            data = path.read_bytes()
            end = data.find(b"\xff\xd9")
            if end != -1:
                path.write_bytes(data[:end + 2])
        return self.strip_result

    def copy_metadata(self, src: Path, dst: Path) -> StepResult:
        self.copied.append((src, dst))
        # Metadata only survives if it is copied onto the already encoded file.
        assert dst.is_file(), f"copy_metadata called before {dst.name} was written"
        with Image.open(dst) as im:
            self.copied_onto_sizes.append(im.size)
        return self.copy_result


def write_image(path: Path, size: tuple[int, int], fmt: str = "JPEG", mode: str = "RGB") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color=(200, 120, 40) if mode == "RGB" else 0).save(path, format=fmt)
    return path


def write_motion_photo(path: Path, size: tuple[int, int]) -> Path:
    write_image(path, size)
    with path.open("ab") as f:
        f.write(b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64)
    return path


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(library_root=str(tmp_path / "library"), max_dimension=200, batch_size=3)


@pytest.fixture
def fake_exiftool() -> FakeExifTool:
    return FakeExifTool()
