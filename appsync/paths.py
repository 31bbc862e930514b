"""Workspace layout for a forked app store checkout."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

STATE_DIR = ".runtipi-sync"
CONFIG_FILE = "config.json"
CHANGELOG_FILE = "SYNC_CHANGELOG.md"
APPS_DIR = "apps"


@dataclass(frozen=True)
class SyncPaths:
    """Every path a sync run touches, derived from one explicit root."""

    root: Path
    config_path: Path
    apps_dir: Path
    state_dir: Path

    @classmethod
    def for_root(cls, root: str | Path, config_path: str | Path | None = None) -> SyncPaths:
        root = Path(root).resolve()
        state_dir = root / STATE_DIR
        return cls(
            root=root,
            config_path=Path(config_path) if config_path else state_dir / CONFIG_FILE,
            apps_dir=root / APPS_DIR,
            state_dir=state_dir,
        )

    @property
    def temp_dir(self) -> Path:
        return self.state_dir / "temp"

    @property
    def upstream_dir(self) -> Path:
        return self.temp_dir / "upstream"

    @property
    def changelog_path(self) -> Path:
        return self.state_dir / CHANGELOG_FILE
