from __future__ import annotations

from pathlib import Path

_ARTIFACT_NAMES = {".DS_Store", "Thumbs.db", "desktop.ini"}

def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p

def is_os_artifact(p: Path) -> bool:
    name = p.name
    if name.startswith("._") or name in _ARTIFACT_NAMES:
        return True
    return "__MACOSX" in p.parts

def collision_safe(path: Path, taken: set[str] | None = None) -> Path:
    """Return `path`, or `<stem>_dupN<suffix>` if the name is already in use.

    A name is in use when it exists on disk or appears in `taken`.
    """
    taken = taken or set()

    def _free(cand: Path) -> bool:
        return cand.name not in taken and not cand.exists()

    if _free(path):
        return path
    stem = path.stem
    suf = path.suffix
    parent = path.parent
    i = 1
    while True:
        cand = parent / f"{stem}_dup{i}{suf}"
        if _free(cand):
            return cand
        i += 1
