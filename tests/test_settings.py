from __future__ import annotations

import json
from pathlib import Path

import pytest

from framestage.core.settings import AppSettings, settings_path


def test_areas_default_under_library_root(tmp_path: Path) -> None:
    s = AppSettings(library_root=str(tmp_path))
    areas = s.areas()

    assert areas.intake == tmp_path / "intake"
    assert areas.ready == tmp_path / "ready"
    assert areas.storage == tmp_path / "uploaded"
    assert areas.skip == tmp_path / "skipped"
    assert areas.ledger == tmp_path / "uploaded.txt"
    assert areas.logs == tmp_path / "logs"


def test_area_overrides_win(tmp_path: Path) -> None:
    s = AppSettings(library_root=str(tmp_path), ready_dir=str(tmp_path / "frame_upload"))
    assert s.areas().ready == tmp_path / "frame_upload"
    assert s.areas().intake == tmp_path / "intake"


def test_values_are_clamped() -> None:
    s = AppSettings(library_root="/x", jpeg_quality=400, batch_size=0, max_dimension=-5)
    assert s.jpeg_quality == 100
    assert s.batch_size == 1
    assert s.max_dimension == 1


def test_quality_zero_is_kept_and_negative_clamped() -> None:
    assert AppSettings(library_root="/x", jpeg_quality=0).jpeg_quality == 0
    assert AppSettings(library_root="/x", jpeg_quality=-3).jpeg_quality == 0


def test_load_uses_env_override_and_ignores_unknown_keys(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"library_root": str(tmp_path), "batch_size": 25, "legacy": True}), encoding="utf-8")
    monkeypatch.setenv("FRAMESTAGE_SETTINGS", str(path))

    s = AppSettings.load()

    assert settings_path() == path
    assert s.batch_size == 25
    assert s.library_root == str(tmp_path)


def test_corrupt_settings_fall_back_to_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("FRAMESTAGE_SETTINGS", str(path))

    s = AppSettings.load()

    assert s.max_dimension == 1920
    assert s.batch_size == 50


def test_save_round_trip(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FRAMESTAGE_SETTINGS", str(tmp_path / "cfg" / "settings.json"))
    AppSettings(library_root=str(tmp_path), max_dimension=3840).save()

    assert AppSettings.load().max_dimension == 3840


def test_new_run_folder_name(tmp_path: Path) -> None:
    folder = AppSettings.new_run_folder(tmp_path)
    assert folder.parent == tmp_path
    assert folder.name.startswith("FrameStage_")
