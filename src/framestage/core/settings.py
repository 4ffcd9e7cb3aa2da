from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
import json
import os
from datetime import datetime
from appdirs import user_config_dir

DEFAULT_MAX_DIMENSION = 1920  # px, longest side
DEFAULT_JPEG_QUALITY = 95
DEFAULT_BATCH_SIZE = 50  # files per manual upload
DEFAULT_EXIFTOOL_TIMEOUT_SECONDS = 120

SETTINGS_ENV_VAR = "FRAMESTAGE_SETTINGS"

def settings_path() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    cfg_dir = Path(user_config_dir(appname="FrameStage", appauthor=False))
    return cfg_dir / "settings.json"

def _default_library_root() -> str:
    return str(Path.home() / "Pictures" / "FrameStage")

@dataclass(frozen=True)
class AreaPaths:
    intake: Path
    ready: Path
    storage: Path
    skip: Path
    ledger: Path
    logs: Path

@dataclass
class AppSettings:
    """User-persistent settings.

    Stored in the per-user config dir (e.g. ~/.config/FrameStage/settings.json
    on Linux), or wherever FRAMESTAGE_SETTINGS points.

    Empty area overrides resolve below `library_root`.
    """
    library_root: str = ""
    intake_dir: str = ""
    ready_dir: str = ""
    storage_dir: str = ""
    skip_dir: str = ""
    ledger_path: str = ""
    log_dir: str = ""
    max_dimension: int = DEFAULT_MAX_DIMENSION
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    batch_size: int = DEFAULT_BATCH_SIZE
    exiftool_path: str = ""
    exiftool_timeout_seconds: int = DEFAULT_EXIFTOOL_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not self.library_root:
            self.library_root = _default_library_root()
        self.jpeg_quality = max(0, min(100, int(self.jpeg_quality)))
        self.max_dimension = max(1, int(self.max_dimension))
        self.batch_size = max(1, int(self.batch_size))

    @classmethod
    def load(cls) -> "AppSettings":
        p = settings_path()
        if not p.exists():
            return cls()
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
            known = {f.name for f in fields(cls)}
            return cls(**{k: v for k, v in data.items() if k in known})
        except Exception:
            # Fail safe: a broken settings file must not block a run
            return cls()

    def save(self) -> None:
        p = settings_path()
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")

    def areas(self) -> AreaPaths:
        root = Path(self.library_root).expanduser()

        def _pick(value: str, default: Path) -> Path:
            return Path(value).expanduser() if value else default

        return AreaPaths(
            intake=_pick(self.intake_dir, root / "intake"),
            ready=_pick(self.ready_dir, root / "ready"),
            storage=_pick(self.storage_dir, root / "uploaded"),
            skip=_pick(self.skip_dir, root / "skipped"),
            ledger=_pick(self.ledger_path, root / "uploaded.txt"),
            logs=_pick(self.log_dir, root / "logs"),
        )

    @staticmethod
    def new_run_folder(log_root: Path) -> Path:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return log_root / f"FrameStage_{stamp}"
