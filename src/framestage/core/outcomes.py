from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Iterable, Union

from framestage.core.classifier import SkipReason


class StepStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"  # soft failure: log it, carry on with the file


@dataclass(frozen=True)
class StepResult:
    status: StepStatus
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is StepStatus.OK

    @classmethod
    def success(cls) -> "StepResult":
        return cls(StepStatus.OK)

    @classmethod
    def warning(cls, message: str) -> "StepResult":
        return cls(StepStatus.WARNING, message)


# --- per-file terminal states -------------------------------------------------

@dataclass(frozen=True)
class Skipped:
    name: str
    reason: SkipReason
    moved_to: Path | None = None


@dataclass(frozen=True)
class DuplicateHeld:
    name: str
    clean_name: str


@dataclass(frozen=True)
class Placed:
    name: str
    ready_path: Path
    motion_stripped: bool = False
    resized: bool = False
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class Failed:
    name: str
    error: str


FileOutcome = Union[Skipped, DuplicateHeld, Placed, Failed]


@dataclass(frozen=True)
class SkipRecord:
    name: str
    reason: str


@dataclass(frozen=True)
class BatchGroup:
    name: str
    files: tuple[str, ...]


@dataclass(frozen=True)
class RunReport:
    """Totals for one process run, built by folding per-file outcomes."""
    processed: int = 0
    duplicates: int = 0
    unsupported_skipped: int = 0
    motion_photos_stripped: int = 0
    images_resized: int = 0
    regular_unchanged: int = 0
    failed: int = 0
    skipped_files: tuple[SkipRecord, ...] = ()
    duplicate_files: tuple[str, ...] = ()
    failed_files: tuple[SkipRecord, ...] = ()
    warnings: tuple[str, ...] = ()
    batches: tuple[BatchGroup, ...] = ()

    @property
    def total(self) -> int:
        return self.processed + self.duplicates + self.unsupported_skipped + self.failed

    def add(self, outcome: FileOutcome) -> "RunReport":
        if isinstance(outcome, Skipped):
            return replace(
                self,
                unsupported_skipped=self.unsupported_skipped + 1,
                skipped_files=self.skipped_files + (SkipRecord(outcome.name, outcome.reason.value),),
            )
        if isinstance(outcome, DuplicateHeld):
            return replace(
                self,
                duplicates=self.duplicates + 1,
                duplicate_files=self.duplicate_files + (outcome.name,),
            )
        if isinstance(outcome, Placed):
            return replace(
                self,
                processed=self.processed + 1,
                motion_photos_stripped=self.motion_photos_stripped + int(outcome.motion_stripped),
                images_resized=self.images_resized + int(outcome.resized),
                regular_unchanged=self.regular_unchanged
                + int(not outcome.motion_stripped and not outcome.resized),
                warnings=self.warnings + tuple(f"{outcome.name}: {w}" for w in outcome.warnings),
            )
        if isinstance(outcome, Failed):
            return replace(
                self,
                failed=self.failed + 1,
                failed_files=self.failed_files + (SkipRecord(outcome.name, outcome.error),),
            )
        raise TypeError(f"Unknown outcome: {outcome!r}")

    def with_batches(self, batches: Iterable[BatchGroup]) -> "RunReport":
        return replace(self, batches=tuple(batches))


def fold_outcomes(outcomes: Iterable[FileOutcome]) -> RunReport:
    report = RunReport()
    for outcome in outcomes:
        report = report.add(outcome)
    return report


@dataclass(frozen=True)
class Committed:
    name: str
    stored_path: Path


@dataclass(frozen=True)
class ConfirmReport:
    committed: tuple[Committed, ...] = ()
    failed_files: tuple[SkipRecord, ...] = ()
    removed_batch_dirs: tuple[str, ...] = ()

    @property
    def confirmed(self) -> int:
        return len(self.committed)

    @property
    def failed(self) -> int:
        return len(self.failed_files)