from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
import json
from typing import Any

from framestage.core.outcomes import ConfirmReport, RunReport


@dataclass
class CountsSummary:
    processed: int = 0
    duplicates: int = 0
    unsupported_skipped: int = 0
    motion_photos_stripped: int = 0
    images_resized: int = 0
    regular_unchanged: int = 0
    failed: int = 0
    confirmed: int = 0


@dataclass
class RunSummary:
    run_id: str
    mode: str  # process|confirm-upload
    settings: dict[str, Any]
    counts: CountsSummary
    skipped: list[dict[str, str]] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    failed: list[dict[str, str]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    batches: list[dict[str, Any]] = field(default_factory=list)
    cancelled: bool = False

    @classmethod
    def from_run_report(
        cls,
        run_id: str,
        settings: dict[str, Any],
        report: RunReport,
        cancelled: bool = False,
    ) -> "RunSummary":
        return cls(
            run_id=run_id,
            mode="process",
            settings=settings,
            counts=CountsSummary(
                processed=report.processed,
                duplicates=report.duplicates,
                unsupported_skipped=report.unsupported_skipped,
                motion_photos_stripped=report.motion_photos_stripped,
                images_resized=report.images_resized,
                regular_unchanged=report.regular_unchanged,
                failed=report.failed,
            ),
            skipped=[{"name": s.name, "reason": s.reason} for s in report.skipped_files],
            duplicates=list(report.duplicate_files),
            failed=[{"name": s.name, "error": s.reason} for s in report.failed_files],
            warnings=list(report.warnings),
            batches=[{"name": b.name, "count": len(b.files), "files": list(b.files)} for b in report.batches],
            cancelled=cancelled,
        )

    @classmethod
    def from_confirm_report(
        cls,
        run_id: str,
        settings: dict[str, Any],
        report: ConfirmReport,
        cancelled: bool = False,
    ) -> "RunSummary":
        return cls(
            run_id=run_id,
            mode="confirm-upload",
            settings=settings,
            counts=CountsSummary(confirmed=report.confirmed, failed=report.failed),
            failed=[{"name": s.name, "error": s.reason} for s in report.failed_files],
            cancelled=cancelled,
        )


def write_run_summary(path: Path, summary: RunSummary) -> None:
    payload = _jsonify(asdict(summary))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _jsonify(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _jsonify(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonify(v) for v in obj]
    if isinstance(obj, Path):
        return str(obj)
    return obj
