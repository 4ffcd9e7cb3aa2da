from __future__ import annotations

from pathlib import Path
import os
import shutil
import subprocess
import sys

from framestage.core.outcomes import StepResult
from framestage.util.errors import ExifToolError

DEFAULT_TIMEOUT_SECONDS = 120

class ExifTool:
    """Thin wrapper around the ExifTool command line.

    Contract:
    - Exit status is advisory: non-zero exit or a timeout comes back as a
      WARNING StepResult, never as an exception.
    - Only a missing executable raises (ExifToolError).
    """

    def __init__(self, path: str | None = None, timeout: float | None = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.exiftool_path = _resolve_exiftool_path(path)
        self.timeout = timeout

    def strip_trailer(self, path: Path) -> StepResult:
        """Remove everything after the image's end-of-data marker, in place."""
        return self._run([
            "-m",
            "-overwrite_original",
            "-trailer:all=",
            str(path),
        ])

    def copy_metadata(self, src: Path, dst: Path) -> StepResult:
        """Copy all metadata from `src` onto `dst`, overwriting what `dst` has."""
        return self._run([
            "-m",
            "-overwrite_original",
            "-TagsFromFile",
            str(src),
            "-all:all",
            str(dst),
        ])

    def _run(self, args: list[str]) -> StepResult:
        cmd = [self.exiftool_path, *args]
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExifToolError(exiftool_missing_message()) from e
        except subprocess.TimeoutExpired:
            return StepResult.warning(f"ExifTool timed out after {self.timeout}s.")

        if proc.returncode != 0:
            detail = (proc.stderr or "").strip() or f"exit code {proc.returncode}"
            return StepResult.warning(f"ExifTool failed: {detail}")
        return StepResult.success()


def _resolve_exiftool_path(configured: str | None = None) -> str:
    """Resolve an ExifTool executable path.

    Resolution order:
    1) FRAMESTAGE_EXIFTOOL_PATH env var (explicit override)
    2) Path from settings
    3) PATH lookup
    4) Common install locations
    5) Fallback: "exiftool" (fails later with a friendly error)
    """
    env_path = os.environ.get("FRAMESTAGE_EXIFTOOL_PATH")
    if env_path:
        p = Path(env_path)
        if p.exists():
            return str(p)

    if configured:
        p = Path(configured).expanduser()
        if p.exists():
            return str(p)

    which = shutil.which("exiftool")
    if which:
        return which

    candidates = ["/opt/homebrew/bin/exiftool", "/usr/local/bin/exiftool", "/usr/bin/exiftool"]
    if sys.platform.startswith("win"):
        candidates = [r"C:\Windows\exiftool.exe", r"C:\Program Files\exiftool\exiftool.exe"]
    for cand in candidates:
        if Path(cand).exists():
            return cand

    return "exiftool"


def exiftool_missing_message() -> str:
    return (
        "ExifTool not found. Install ExifTool, set exiftool_path in settings.json, "
        "or set FRAMESTAGE_EXIFTOOL_PATH."
    )


def is_exiftool_available(configured: str | None = None) -> bool:
    path = _resolve_exiftool_path(configured)
    if path == "exiftool":
        return shutil.which("exiftool") is not None
    return Path(path).exists()
