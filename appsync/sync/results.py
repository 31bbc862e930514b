"""Run results: what a sync, filter, or branch setup actually did."""

from __future__ import annotations

from dataclasses import dataclass, field

from appsync.mutations import MutationFailure
from appsync.sync.changeset import ChangeSet

EXIT_NO_CHANGES = 0
EXIT_CHANGES = 1
EXIT_FATAL = 2


@dataclass
class PublishResult:
    """Outcome of committing and pushing a run's changes."""

    committed: bool = False
    pushed: bool = False
    branch: str = ""
    error: str = ""
    retry_hint: str = ""

    @property
    def failed(self) -> bool:
        return bool(self.error)


@dataclass
class SyncReport:
    """Result of one sync run.

    ``changeset`` holds the classification; ``applied_added``,
    ``applied_updated`` and ``removed`` hold what actually changed on disk.
    A decision whose copy failed is listed in ``failures`` instead.
    """

    changeset: ChangeSet = field(default_factory=ChangeSet)
    applied_added: list[str] = field(default_factory=list)
    applied_updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failures: list[MutationFailure] = field(default_factory=list)
    publish: PublishResult | None = None
    upstream_url: str = ""
    branch: str = ""
    dry_run: bool = False

    @property
    def total_changes(self) -> int:
        return len(self.applied_added) + len(self.applied_updated) + len(self.removed)

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0

    @property
    def exit_code(self) -> int:
        # A completed run with classified changes counts even if every copy failed
        attempted = not self.dry_run and self.changeset.has_changes
        return EXIT_CHANGES if self.has_changes or attempted else EXIT_NO_CHANGES


@dataclass
class FilterReport:
    """Result of pruning local packages that fall outside the policy."""

    kept: list[tuple[str, str]] = field(default_factory=list)  # (name, "custom" | "upstream")
    removed: list[str] = field(default_factory=list)
    failures: list[MutationFailure] = field(default_factory=list)

    @property
    def kept_names(self) -> list[str]:
        return [name for name, _ in self.kept]


@dataclass
class CustomBranchReport:
    """Result of preparing the custom-apps-only branch."""

    branch: str = ""
    created: bool = False
    removed: list[str] = field(default_factory=list)
    preserved: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)  # Custom apps not found locally
    failures: list[MutationFailure] = field(default_factory=list)
    publish: PublishResult | None = None
