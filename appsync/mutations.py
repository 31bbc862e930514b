"""Filesystem mutations applied to the local ``apps/`` directory."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from appsync.errors import MutationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationFailure:
    """A copy or remove that failed; earlier mutations are not rolled back."""

    name: str
    operation: str
    message: str

    @classmethod
    def from_error(cls, error: MutationError) -> MutationFailure:
        return cls(name=error.name, operation=error.operation, message=error.message)

    def __str__(self) -> str:
        return f"{self.operation} {self.name}: {self.message}"


def copy_package(source_apps: Path, target_apps: Path, name: str) -> None:
    """Copy a package directory into ``target_apps``; the target must not exist."""
    try:
        target_apps.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source_apps / name, target_apps / name)
    except OSError as e:
        raise MutationError(name, "copy", str(e)) from e
    logger.debug("Copied %s from %s", name, source_apps)


def remove_package(apps_dir: Path, name: str) -> None:
    """Remove a package directory; a missing directory is not an error."""
    path = apps_dir / name
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise MutationError(name, "remove", str(e)) from e
    logger.debug("Removed %s from %s", name, apps_dir)


def replace_package(source_apps: Path, target_apps: Path, name: str) -> None:
    """Replace the local copy of a package with the upstream one."""
    remove_package(target_apps, name)
    copy_package(source_apps, target_apps, name)
