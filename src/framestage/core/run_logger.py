from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

@dataclass
class RunLogger:
    """Timestamped run log; optionally mirrors each line to the console."""
    path: Path
    echo: Callable[[str, str], None] | None = field(default=None, repr=False)

    def log(self, message: str, level: str = "info") -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        tag = "" if level == "info" else f"{level.upper()}: "
        with self.path.open("a", encoding="utf-8") as f:
            f.write(f"[{ts}] {tag}{message}\n")
        if self.echo is not None:
            self.echo(message, level)

    def warning(self, message: str) -> None:
        self.log(message, level="warning")
