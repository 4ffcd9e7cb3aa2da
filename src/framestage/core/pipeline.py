from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable
import filecmp

from framestage.core.ledger import UploadLedger
from framestage.core.manifest import ManifestRow, ManifestWriter
from framestage.core.outcomes import (
    DuplicateHeld,
    Failed,
    FileOutcome,
    Placed,
    RunReport,
    Skipped,
    fold_outcomes,
)
from framestage.core.run_logger import RunLogger
from framestage.core.run_summary import RunSummary, write_run_summary
from framestage.core.scanner import scan_intake
from framestage.core.settings import AppSettings, AreaPaths
from framestage.core.source_file import SourceFile
from framestage.exif.exiftool import ExifTool, exiftool_missing_message, is_exiftool_available
from framestage.ops.batcher import batch_ready_area, ready_files
from framestage.ops.copier import copy_verified, finalize_source, move_into
from framestage.ops.resizer import resize_image
from framestage.util.errors import (
    ExifToolMissingError,
    FrameStageError,
    ImageDecodeError,
    UserCancelledError,
)
from framestage.util.paths import collision_safe, ensure_dir

ProgressCb = Callable[[int, str], None]  # percent, message
CancelCb = Callable[[], bool]  # returns True if cancelled
EchoCb = Callable[[str, str], None]  # message, level


@dataclass
class _RunContext:
    settings: AppSettings
    areas: AreaPaths
    ledger: UploadLedger
    exiftool: ExifTool
    resize_enabled: bool
    # Names already pending in the ready area, plus names placed this run.
    taken: set[str] = field(default_factory=set)
    # Pending ready files by name, for recognising copies left by a stopped run.
    pending: dict[str, Path] = field(default_factory=dict)


def run_process(
    settings: AppSettings,
    resize_enabled: bool = True,
    exiftool: ExifTool | None = None,
    run_folder: Path | None = None,
    progress_cb: ProgressCb | None = None,
    cancel_cb: CancelCb | None = None,
    echo: EchoCb | None = None,
) -> RunReport:
    """Run the intake -> ready pipeline once.

    Outputs (written even if the run is cancelled):
      - <run_folder>/run_log.txt
      - <run_folder>/manifest.csv
      - <run_folder>/run_summary.json

    Raises ExifToolMissingError before touching any file when ExifTool
    cannot be found. Per-file problems never abort the run.
    """
    progress_cb = progress_cb or (lambda *_: None)
    cancel_cb = cancel_cb or (lambda: False)

    if exiftool is None:
        if not is_exiftool_available(settings.exiftool_path):
            raise ExifToolMissingError(exiftool_missing_message())
        exiftool = ExifTool(settings.exiftool_path, timeout=settings.exiftool_timeout_seconds)

    areas = settings.areas()
    run_folder = run_folder or collision_safe(AppSettings.new_run_folder(areas.logs))
    logger = RunLogger(run_folder / "run_log.txt", echo=echo)
    logger.log("Process run started.")
    logger.log(f"Intake: {areas.intake}")
    logger.log(f"Ready: {areas.ready}")
    logger.log(f"Resizing: {'enabled' if resize_enabled else 'disabled'} (max {settings.max_dimension}px, quality {settings.jpeg_quality})")

    # Ledger is read exactly once and never written during processing.
    ledger = UploadLedger.load(areas.ledger)
    logger.log(f"Ledger entries: {len(ledger)}")

    ensure_dir(areas.intake)
    ensure_dir(areas.ready)
    pending = {p.name: p for p in ready_files(areas.ready)}
    ctx = _RunContext(
        settings=settings,
        areas=areas,
        ledger=ledger,
        exiftool=exiftool,
        resize_enabled=resize_enabled,
        taken=set(pending),
        pending=pending,
    )

    outcomes: list[FileOutcome] = []
    report = RunReport()
    cancelled = False
    try:
        progress_cb(0, "Scanning intake...")
        sources = scan_intake(areas.intake)
        logger.log(f"Discovered files: {len(sources)}")

        for i, sf in enumerate(sources):
            if cancel_cb():
                cancelled = True
                break
            progress_cb(int(100 * i / max(1, len(sources))), f"Processing {sf.name}")
            outcome = process_file(sf, ctx)
            _log_outcome(logger, outcome)
            outcomes.append(outcome)

        report = fold_outcomes(outcomes)

        if cancelled:
            logger.log("Cancelled by user; remaining files left in intake.")
        else:
            progress_cb(100, "Batching ready files...")
            try:
                batches = batch_ready_area(areas.ready, settings.batch_size)
            except OSError as e:
                logger.warning(f"Batching incomplete, rerun to finish: {e}")
                batches = []
            report = report.with_batches(batches)
            for b in batches:
                logger.log(f"{b.name}: {len(b.files)} file(s)")
        logger.log(
            f"Processed {report.processed}, duplicates {report.duplicates}, "
            f"skipped {report.unsupported_skipped}, failed {report.failed}."
        )
    finally:
        _write_artifacts(run_folder, settings, resize_enabled, outcomes, report, cancelled, logger)

    if cancelled:
        raise UserCancelledError(report=report)
    logger.log("Process run finished.")
    return report


def process_file(sf: SourceFile, ctx: _RunContext) -> FileOutcome:
    """Drive one file to its terminal state: skipped, duplicate-held, placed or failed."""
    areas = ctx.areas
    if not sf.classification.is_supported:
        reason = sf.classification.reason
        try:
            moved = move_into(sf.path, areas.skip)
        except OSError as e:
            return Failed(sf.name, f"could not quarantine ({reason.value}): {e}")
        return Skipped(sf.name, reason, moved)

    if sf.clean_name in ctx.ledger:
        return DuplicateHeld(sf.name, sf.clean_name)

    dest = _leftover_copy(sf, ctx) or collision_safe(areas.ready / sf.clean_name, ctx.taken)
    ctx.taken.add(dest.name)
    try:
        if sf.is_motion_photo:
            return _place_motion_photo(sf, dest, ctx)
        return _place_regular(sf, dest, ctx)
    except (OSError, FrameStageError) as e:
        # Source is still in intake; drop the partial ready artifact so a rerun starts clean.
        if sf.path.exists():
            dest.unlink(missing_ok=True)
        ctx.taken.discard(dest.name)
        return Failed(sf.name, str(e))


def _leftover_copy(sf: SourceFile, ctx: _RunContext) -> Path | None:
    """Return a pending ready file byte-identical to `sf`, if there is one.

    Such a file is the ready copy of a run that stopped before deleting the
    source; it is reused instead of placing the photo a second time.
    """
    pending = ctx.pending.pop(sf.clean_name, None)
    if pending is None:
        return None
    try:
        if pending.is_file() and filecmp.cmp(sf.path, pending, shallow=False):
            return pending
    except OSError:
        return None
    return None


def _place_motion_photo(sf: SourceFile, dest: Path, ctx: _RunContext) -> Placed:
    warnings: list[str] = []
    copy_verified(sf.path, dest)

    strip = ctx.exiftool.strip_trailer(dest)
    if not strip.ok:
        warnings.append(f"trailer strip: {strip.message}")

    resized = False
    if ctx.resize_enabled:
        resized = _try_resize(dest, dest, ctx, warnings)

    finalize_source(sf.path, dest)
    return Placed(sf.name, dest, motion_stripped=True, resized=resized, warnings=tuple(warnings))


def _place_regular(sf: SourceFile, dest: Path, ctx: _RunContext) -> Placed:
    warnings: list[str] = []
    resized = False
    if ctx.resize_enabled:
        resized = _try_resize(sf.path, dest, ctx, warnings)
    if not resized:
        copy_verified(sf.path, dest)

    finalize_source(sf.path, dest)
    return Placed(sf.name, dest, motion_stripped=False, resized=resized, warnings=tuple(warnings))


def _try_resize(src: Path, dst: Path, ctx: _RunContext, warnings: list[str]) -> bool:
    try:
        result = resize_image(
            src,
            dst,
            max_dimension=ctx.settings.max_dimension,
            quality=ctx.settings.jpeg_quality,
            exiftool=ctx.exiftool,
        )
    except ImageDecodeError as e:
        warnings.append(f"resize skipped, original kept: {e}")
        return False
    warnings.extend(result.warnings)
    return result.resized


def _log_outcome(logger: RunLogger, outcome: FileOutcome) -> None:
    if isinstance(outcome, Skipped):
        logger.log(f"Skipped {outcome.name}: {outcome.reason.value}")
    elif isinstance(outcome, DuplicateHeld):
        logger.log(f"Duplicate {outcome.name}: {outcome.clean_name} already uploaded, left in intake")
    elif isinstance(outcome, Placed):
        steps = [s for s, on in (("stripped", outcome.motion_stripped), ("resized", outcome.resized)) if on]
        detail = ", ".join(steps) or "unchanged"
        logger.log(f"Ready {outcome.name} -> {outcome.ready_path.name} ({detail})")
        for w in outcome.warnings:
            logger.warning(f"{outcome.name}: {w}")
    elif isinstance(outcome, Failed):
        logger.warning(f"Failed {outcome.name}: {outcome.error}")


def settings_snapshot(settings: AppSettings, resize_enabled: bool | None = None) -> dict[str, Any]:
    areas = settings.areas()
    snap: dict[str, Any] = {
        "intake": str(areas.intake),
        "ready": str(areas.ready),
        "storage": str(areas.storage),
        "skip": str(areas.skip),
        "ledger": str(areas.ledger),
        "max_dimension": settings.max_dimension,
        "jpeg_quality": settings.jpeg_quality,
        "batch_size": settings.batch_size,
    }
    if resize_enabled is not None:
        snap["resize_enabled"] = resize_enabled
    return snap


def _write_artifacts(
    run_folder: Path,
    settings: AppSettings,
    resize_enabled: bool,
    outcomes: list[FileOutcome],
    report: RunReport,
    cancelled: bool,
    logger: RunLogger,
) -> None:
    manifest = ManifestWriter(run_folder / "manifest.csv")
    for outcome in outcomes:
        manifest.add(ManifestRow.from_outcome(outcome))
    try:
        manifest.write()
        summary = RunSummary.from_run_report(
            run_id=run_folder.name,
            settings=settings_snapshot(settings, resize_enabled),
            report=report,
            cancelled=cancelled,
        )
        write_run_summary(run_folder / "run_summary.json", summary)
    except OSError as exc:  # pragma: no cover - artifacts must not mask the run result
        logger.warning(f"Run artifacts failed: {exc}")
