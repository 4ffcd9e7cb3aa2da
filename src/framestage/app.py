"""Command-line entrypoint.

Run in development:
    python -m framestage.app [--confirm-upload] [--no-resize]

Installed, this is the `framestage` console script.
"""

from __future__ import annotations

import argparse
import signal
import sys
from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from framestage.core.confirm import run_confirm
from framestage.core.outcomes import ConfirmReport, RunReport
from framestage.core.pipeline import run_process
from framestage.core.settings import AppSettings, settings_path
from framestage.util.errors import ExifToolMissingError, UserCancelledError
from framestage.util.paths import collision_safe

EXIT_OK = 0
EXIT_STARTUP = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130

_LEVEL_STYLE = {"warning": "yellow", "error": "bold red"}

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="framestage",
        description=(
            "Prepare photos for upload to a digital picture frame. By default, "
            "processes the intake folder into upload-ready batches."
        ),
    )
    parser.add_argument(
        "--confirm-upload",
        action="store_true",
        help="Mark everything in the ready folder as uploaded: move it to storage and log it.",
    )
    parser.add_argument(
        "--no-resize",
        action="store_true",
        help="Do not downscale oversized images.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.confirm_upload and args.no_resize:
        parser.error("--no-resize only applies to processing, not --confirm-upload")

    settings = AppSettings.load()
    if not settings_path().exists():
        settings.save()
        console.print(f"Wrote default settings to {escape(str(settings_path()))}")

    cancel = _CancelFlag()
    cancel.install()
    run_folder = collision_safe(AppSettings.new_run_folder(settings.areas().logs))
    try:
        with _progress() as progress:
            task = progress.add_task("Starting...", total=100)

            def progress_cb(pct: int, message: str) -> None:
                progress.update(task, completed=pct, description=escape(message))

            def echo(message: str, level: str) -> None:
                if level != "info":
                    progress.console.print(f"[{_LEVEL_STYLE.get(level, 'white')}]{escape(message)}[/]")

            if args.confirm_upload:
                report = run_confirm(
                    settings,
                    run_folder=run_folder,
                    progress_cb=progress_cb,
                    cancel_cb=cancel.is_set,
                    echo=echo,
                )
            else:
                report = run_process(
                    settings,
                    resize_enabled=not args.no_resize,
                    run_folder=run_folder,
                    progress_cb=progress_cb,
                    cancel_cb=cancel.is_set,
                    echo=echo,
                )
    except ExifToolMissingError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        return EXIT_STARTUP
    except UserCancelledError as e:
        if e.report is not None:
            _print_report(e.report)
        console.print("[yellow]Cancelled. Unprocessed files were left where they were.[/]")
        return EXIT_CANCELLED
    finally:
        cancel.restore()

    _print_report(report)
    if run_folder.exists():
        console.print(f"Run log: {escape(str(run_folder))}")
    return EXIT_OK


class _CancelFlag:
    """First Ctrl-C asks the run to stop after the current file; the second aborts."""

    def __init__(self) -> None:
        self._set = False
        self._previous = None

    def is_set(self) -> bool:
        return self._set

    def install(self) -> None:
        self._previous = signal.signal(signal.SIGINT, self._handle)

    def restore(self) -> None:
        if self._previous is not None:
            signal.signal(signal.SIGINT, self._previous)
            self._previous = None

    def _handle(self, signum, frame) -> None:
        if self._set:
            raise KeyboardInterrupt
        self._set = True
        console.print("[yellow]Stopping after the current file (Ctrl-C again to abort)...[/]")


def _progress() -> Progress:
    return Progress(
        BarColumn(),
        TimeElapsedColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )


def _print_report(report: RunReport | ConfirmReport) -> None:
    if isinstance(report, ConfirmReport):
        _print_confirm_report(report)
    else:
        _print_run_report(report)


def _print_run_report(report: RunReport) -> None:
    if report.total == 0 and not report.batches:
        console.print("Nothing to process.")
        return

    table = Table(title="Run summary", show_header=False)
    table.add_column("Outcome")
    table.add_column("Files", justify="right")
    table.add_row("Ready for upload", str(report.processed))
    table.add_row("  motion photos stripped", str(report.motion_photos_stripped))
    table.add_row("  resized", str(report.images_resized))
    table.add_row("  regular, unchanged", str(report.regular_unchanged))
    table.add_row("Already uploaded (left in intake)", str(report.duplicates))
    table.add_row("Skipped (moved to quarantine)", str(report.unsupported_skipped))
    if report.failed:
        table.add_row("[red]Failed[/]", str(report.failed))
    console.print(table)

    for s in report.skipped_files:
        console.print(f"  skipped {escape(s.name)}: {s.reason}")
    for name in report.duplicate_files:
        console.print(f"  duplicate {escape(name)}")
    for s in report.failed_files:
        console.print(f"  [red]failed {escape(s.name)}: {escape(s.reason)}[/]")
    for w in report.warnings:
        console.print(f"  [yellow]warning {escape(w)}[/]")

    if report.batches:
        console.print(f"Ready folder split into {len(report.batches)} batches:")
        for b in report.batches:
            console.print(f"  {b.name}: {len(b.files)} file(s)")
    console.print("Upload the ready files, then run with --confirm-upload.")


def _print_confirm_report(report: ConfirmReport) -> None:
    if report.confirmed == 0 and report.failed == 0:
        console.print("Nothing to confirm.")
        return
    console.print(f"Confirmed {report.confirmed} file(s) as uploaded.")
    for s in report.failed_files:
        console.print(f"  [red]failed {escape(s.name)}: {escape(s.reason)}[/]")
    for d in report.removed_batch_dirs:
        console.print(f"  removed empty {d}")


if __name__ == "__main__":
    raise SystemExit(main())
