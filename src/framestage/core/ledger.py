from __future__ import annotations

from pathlib import Path
import os


def is_recordable_name(name: str) -> bool:
    """True if `name` fits on one ledger line."""
    return bool(name) and "\n" not in name and "\r" not in name


class UploadLedger:
    """Append-only record of file names already confirmed as uploaded.

    File format: UTF-8 (a leading BOM is tolerated), one name per line, `#`
    lines and blank lines ignored. Names are kept verbatim apart from the line
    ending. The file is created by the first append. Entries are keyed by name
    only, so two different photos sharing a clean name collide.
    """

    def __init__(self, path: Path, names: set[str] | None = None) -> None:
        self.path = path
        self._names: set[str] = set(names or ())

    @classmethod
    def load(cls, path: Path) -> "UploadLedger":
        names: set[str] = set()
        if path.exists():
            with path.open("r", encoding="utf-8-sig", newline="") as f:
                for line in f:
                    entry = line.rstrip("\r\n")
                    if not entry.strip() or entry.startswith("#"):
                        continue
                    names.add(entry)
        return cls(path, names)

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def append(self, name: str) -> None:
        """Append one entry and flush it to disk before returning."""
        if not is_recordable_name(name):
            raise ValueError(f"Invalid ledger entry: {name!r}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        prefix = "\n" if self._needs_separator() else ""
        with self.path.open("a", encoding="utf-8", newline="\n") as f:
            f.write(f"{prefix}{name}\n")
            f.flush()
            os.fsync(f.fileno())
        self._names.add(name)

    def _needs_separator(self) -> bool:
        if not self.path.exists() or self.path.stat().st_size == 0:
            return False
        with self.path.open("rb") as f:
            f.seek(-1, os.SEEK_END)
            return f.read(1) not in (b"\n", b"\r")
