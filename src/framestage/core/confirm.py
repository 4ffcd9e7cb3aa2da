from __future__ import annotations

from pathlib import Path

from framestage.core.ledger import UploadLedger
from framestage.core.outcomes import Committed, ConfirmReport, SkipRecord
from framestage.core.pipeline import CancelCb, EchoCb, ProgressCb, settings_snapshot
from framestage.core.run_logger import RunLogger
from framestage.core.run_summary import RunSummary, write_run_summary
from framestage.core.settings import AppSettings
from framestage.ops.batcher import ready_files, remove_empty_batch_dirs
from framestage.ops.copier import move_into
from framestage.util.errors import UserCancelledError
from framestage.util.paths import collision_safe


def run_confirm(
    settings: AppSettings,
    run_folder: Path | None = None,
    progress_cb: ProgressCb | None = None,
    cancel_cb: CancelCb | None = None,
    echo: EchoCb | None = None,
) -> ConfirmReport:
    """Commit everything in the ready area as uploaded.

    Each file is moved to permanent storage and its name appended to the
    ledger right after the move, so an interrupted pass leaves storage and
    ledger agreeing on everything already handled. Batch folders are removed
    only once empty. An empty ready area is a no-op.
    """
    progress_cb = progress_cb or (lambda *_: None)
    cancel_cb = cancel_cb or (lambda: False)

    areas = settings.areas()
    run_folder = run_folder or collision_safe(AppSettings.new_run_folder(areas.logs))
    logger = RunLogger(run_folder / "run_log.txt", echo=echo)
    logger.log("Confirm-upload run started.")

    files = ready_files(areas.ready)
    if not files:
        logger.log("Ready area is empty; nothing to confirm.")
        return ConfirmReport()

    ledger = UploadLedger.load(areas.ledger)
    committed: list[Committed] = []
    failed: list[SkipRecord] = []
    cancelled = False
    removed: list[str] = []
    try:
        for i, f in enumerate(files):
            if cancel_cb():
                cancelled = True
                break
            progress_cb(int(100 * i / len(files)), f"Storing {f.name}")
            name = f.name
            try:
                stored = move_into(f, areas.storage)
            except OSError as e:
                failed.append(SkipRecord(name, f"move failed: {e}"))
                logger.warning(f"Could not store {name}: {e}")
                continue
            try:
                ledger.append(name)
            except (OSError, ValueError) as e:
                # Stored but not recorded: the operator has to add it by hand.
                failed.append(SkipRecord(name, f"stored as {stored.name} but ledger append failed: {e}"))
                logger.warning(f"Ledger append failed for {name}: {e}")
                continue
            committed.append(Committed(name, stored))
            logger.log(f"Confirmed {name} -> {stored}")

        removed = remove_empty_batch_dirs(areas.ready)
        for d in removed:
            logger.log(f"Removed empty {d}")
        progress_cb(100, "Done.")
    finally:
        report = ConfirmReport(
            committed=tuple(committed),
            failed_files=tuple(failed),
            removed_batch_dirs=tuple(removed),
        )
        logger.log(f"Confirmed {report.confirmed} file(s), {report.failed} failed.")
        try:
            write_run_summary(
                run_folder / "run_summary.json",
                RunSummary.from_confirm_report(
                    run_id=run_folder.name,
                    settings=settings_snapshot(settings),
                    report=report,
                    cancelled=cancelled,
                ),
            )
        except OSError as exc:  # pragma: no cover
            logger.warning(f"Run summary failed: {exc}")

    if cancelled:
        raise UserCancelledError(report=report)
    return report
