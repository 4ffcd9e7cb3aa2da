from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from framestage.core.classifier import (
    Classification,
    FileKind,
    SkipReason,
    classify,
    clean_name,
    is_motion_photo,
)
from framestage.core.ledger import is_recordable_name

@dataclass(frozen=True)
class SourceFile:
    """One file discovered in the intake area.

    - name: original file name
    - clean_name: name with any motion photo marker removed
    - classification: decided once, from the extension only; a name the
      ledger cannot hold is always unsupported
    """
    path: Path
    name: str
    extension: str
    clean_name: str
    classification: Classification
    is_motion_photo: bool

    @classmethod
    def from_path(cls, path: Path) -> "SourceFile":
        name = path.name
        ext = path.suffix.lower()
        cleaned = clean_name(name)
        if is_recordable_name(cleaned):
            classification = classify(ext)
        else:
            classification = Classification(FileKind.UNSUPPORTED, SkipReason.UNKNOWN)
        return cls(
            path=path,
            name=name,
            extension=ext,
            clean_name=cleaned,
            classification=classification,
            is_motion_photo=is_motion_photo(name),
        )
