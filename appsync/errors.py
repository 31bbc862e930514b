"""Error taxonomy for sync runs.

``ConfigLoadError`` and ``UpstreamFetchError`` are fatal and stop a run
before any package is touched. The others are captured per package or per
step and end up in the run report.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class AppSyncError(Exception):
    """Base exception for appsync failures."""


@dataclass(frozen=True)
class ConfigLoadError(AppSyncError):
    """Raised when the sync policy document is missing or invalid."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"Invalid sync config in {self.path}: {self.message}"


@dataclass(frozen=True)
class UpstreamFetchError(AppSyncError):
    """Raised when the upstream snapshot cannot be fetched."""

    url: str
    branch: str
    message: str

    def __str__(self) -> str:
        return f"Failed to fetch upstream {self.url} ({self.branch}): {self.message}"


@dataclass(frozen=True)
class DescriptorReadError(AppSyncError):
    """Raised when a package's config.json is missing or malformed."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"Could not read {self.path}: {self.message}"


@dataclass(frozen=True)
class MutationError(AppSyncError):
    """Raised when copying or removing a package directory fails."""

    name: str
    operation: str
    message: str

    def __str__(self) -> str:
        return f"Failed to {self.operation} {self.name}: {self.message}"


@dataclass(frozen=True)
class GitOperationError(AppSyncError):
    """Raised when switching or creating a local branch fails."""

    command: str
    message: str

    def __str__(self) -> str:
        return f"git {self.command} failed: {self.message}"


@dataclass(frozen=True)
class PublishError(AppSyncError):
    """Raised when committing or pushing the sync result fails."""

    branch: str
    message: str

    def __str__(self) -> str:
        return f"Failed to publish to {self.branch}: {self.message}"
