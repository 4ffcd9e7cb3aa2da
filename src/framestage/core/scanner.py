from __future__ import annotations

from pathlib import Path

from framestage.core.source_file import SourceFile
from framestage.util.paths import is_os_artifact

def scan_intake(intake_dir: Path) -> list[SourceFile]:
    """Return the regular files directly inside the intake area.

    - Subfolders are not descended into.
    - OS artifacts (._*, .DS_Store, Thumbs.db) are ignored.
    - Ordered lexically by name so batch assignment is reproducible.
    """
    if not intake_dir.is_dir():
        return []

    files = [
        p for p in intake_dir.iterdir()
        if p.is_file() and not is_os_artifact(p)
    ]
    return [SourceFile.from_path(p) for p in sorted(files, key=lambda p: p.name)]
