from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from pathlib import Path
import csv

from framestage.core.outcomes import DuplicateHeld, Failed, FileOutcome, Placed, Skipped

@dataclass
class ManifestRow:
    source_name: str
    status: str  # PLACED|SKIPPED|DUPLICATE|FAILED
    output_path: str
    reason: str
    motion_stripped: str  # YES|NO
    resized: str  # YES|NO

    @classmethod
    def from_outcome(cls, outcome: FileOutcome) -> "ManifestRow":
        if isinstance(outcome, Placed):
            return cls(
                source_name=outcome.name,
                status="PLACED",
                output_path=str(outcome.ready_path),
                reason="; ".join(outcome.warnings),
                motion_stripped="YES" if outcome.motion_stripped else "NO",
                resized="YES" if outcome.resized else "NO",
            )
        if isinstance(outcome, Skipped):
            return cls(outcome.name, "SKIPPED", str(outcome.moved_to or ""), outcome.reason.value, "NO", "NO")
        if isinstance(outcome, DuplicateHeld):
            return cls(outcome.name, "DUPLICATE", "", f"already uploaded as {outcome.clean_name}", "NO", "NO")
        if isinstance(outcome, Failed):
            return cls(outcome.name, "FAILED", "", outcome.error, "NO", "NO")
        raise TypeError(f"Unknown outcome: {outcome!r}")

class ManifestWriter:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._rows: list[ManifestRow] = []

    def add(self, row: ManifestRow) -> None:
        self._rows.append(row)

    def write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=[fl.name for fl in fields(ManifestRow)])
            w.writeheader()
            for r in self._rows:
                w.writerow(asdict(r))
