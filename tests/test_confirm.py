from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import FakeExifTool, write_image
from framestage.core.confirm import run_confirm
from framestage.core.pipeline import run_process
from framestage.core.settings import AppSettings
from framestage.util.errors import UserCancelledError


def test_empty_ready_area_is_a_noop(settings: AppSettings, tmp_path: Path) -> None:
    report = run_confirm(settings, run_folder=tmp_path / "run")

    assert report.confirmed == 0
    assert report.failed == 0
    assert not settings.areas().ledger.exists()


def test_empty_confirm_leaves_existing_ledger_unchanged(settings: AppSettings, tmp_path: Path) -> None:
    ledger = settings.areas().ledger
    ledger.parent.mkdir(parents=True, exist_ok=True)
    ledger.write_text("# log\nA.jpg\n", encoding="utf-8")
    settings.areas().ready.mkdir(parents=True)

    run_confirm(settings, run_folder=tmp_path / "run")

    assert ledger.read_text(encoding="utf-8") == "# log\nA.jpg\n"


def test_confirms_top_level_and_batched_files(settings: AppSettings, tmp_path: Path) -> None:
    areas = settings.areas()
    write_image(areas.ready / "A.jpg", (10, 10))
    write_image(areas.ready / "batch-1" / "B.jpg", (10, 10))
    write_image(areas.ready / "batch-2" / "C.jpg", (10, 10))

    run_folder = tmp_path / "run"
    report = run_confirm(settings, run_folder=run_folder)

    assert report.confirmed == 3
    assert sorted(p.name for p in areas.storage.iterdir()) == ["A.jpg", "B.jpg", "C.jpg"]
    assert areas.ledger.read_text(encoding="utf-8").splitlines() == ["A.jpg", "B.jpg", "C.jpg"]
    assert list(areas.ready.iterdir()) == []
    assert report.removed_batch_dirs == ("batch-1", "batch-2")
    summary = json.loads((run_folder / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["mode"] == "confirm-upload"
    assert summary["counts"]["confirmed"] == 3


def test_non_empty_batch_folder_is_kept(settings: AppSettings, tmp_path: Path) -> None:
    areas = settings.areas()
    write_image(areas.ready / "batch-1" / "A.jpg", (10, 10))
    (areas.ready / "batch-1" / "keep").mkdir()

    run_confirm(settings, run_folder=tmp_path / "run")

    assert (areas.ready / "batch-1" / "keep").is_dir()
    assert (areas.storage / "A.jpg").exists()


def test_storage_collision_is_suffixed_but_ledger_keeps_ready_name(settings: AppSettings, tmp_path: Path) -> None:
    areas = settings.areas()
    write_image(areas.storage / "A.jpg", (10, 10))
    write_image(areas.ready / "A.jpg", (12, 12))

    report = run_confirm(settings, run_folder=tmp_path / "run")

    assert report.committed[0].stored_path.name == "A_dup1.jpg"
    assert areas.ledger.read_text(encoding="utf-8") == "A.jpg\n"


def test_failed_move_is_isolated_and_not_logged(settings: AppSettings, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    areas = settings.areas()
    write_image(areas.ready / "A.jpg", (10, 10))
    write_image(areas.ready / "B.jpg", (10, 10))

    from framestage.ops import copier

    real_move = copier.move_into

    def flaky_move(src: Path, target_dir: Path, name: str | None = None) -> Path:
        if src.name == "A.jpg":
            raise OSError("permission denied")
        return real_move(src, target_dir, name)

    monkeypatch.setattr("framestage.core.confirm.move_into", flaky_move)

    report = run_confirm(settings, run_folder=tmp_path / "run")

    assert report.confirmed == 1
    assert report.failed_files[0].name == "A.jpg"
    assert (areas.ready / "A.jpg").exists()
    assert areas.ledger.read_text(encoding="utf-8") == "B.jpg\n"


def test_unrecordable_name_does_not_stop_the_pass(settings: AppSettings, tmp_path: Path) -> None:
    areas = settings.areas()
    write_image(areas.ready / "batch-1" / "a\nb.jpg", (10, 10))
    write_image(areas.ready / "batch-1" / "z.jpg", (10, 10))

    report = run_confirm(settings, run_folder=tmp_path / "run")

    assert [c.name for c in report.committed] == ["z.jpg"]
    assert [s.name for s in report.failed_files] == ["a\nb.jpg"]
    assert "ledger append failed" in report.failed_files[0].reason
    assert areas.ledger.read_text(encoding="utf-8") == "z.jpg\n"
    assert report.removed_batch_dirs == ("batch-1",)
    assert not (areas.ready / "batch-1").exists()


def test_cancel_keeps_ledger_consistent_with_storage(settings: AppSettings, tmp_path: Path) -> None:
    areas = settings.areas()
    for name in ["A.jpg", "B.jpg", "C.jpg"]:
        write_image(areas.ready / name, (10, 10))
    checks = {"n": 0}

    def cancel_after_two() -> bool:
        checks["n"] += 1
        return checks["n"] > 2

    with pytest.raises(UserCancelledError):
        run_confirm(settings, run_folder=tmp_path / "run", cancel_cb=cancel_after_two)

    stored = sorted(p.name for p in areas.storage.iterdir())
    assert stored == ["A.jpg", "B.jpg"]
    assert areas.ledger.read_text(encoding="utf-8").splitlines() == stored
    assert (areas.ready / "C.jpg").exists()


def test_process_confirm_process_cycle(settings: AppSettings, tmp_path: Path) -> None:
    areas = settings.areas()
    exiftool = FakeExifTool()
    write_image(areas.intake / "IMG_5.jpg", (20, 20))

    first = run_process(settings, exiftool=exiftool, run_folder=tmp_path / "run1")
    run_confirm(settings, run_folder=tmp_path / "run2")
    write_image(areas.intake / "IMG_5.jpg", (20, 20))
    second = run_process(settings, exiftool=exiftool, run_folder=tmp_path / "run3")

    assert first.processed == 1
    assert second.processed == 0
    assert second.duplicates == 1
    assert (areas.intake / "IMG_5.jpg").exists()
    assert (areas.storage / "IMG_5.jpg").exists()
