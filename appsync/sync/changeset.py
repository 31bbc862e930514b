"""Change sets: the folded result of classifying every package in a run."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from appsync.sync.engine import classify
from appsync.sync.models import DecisionKind, PackagePair, SyncDecision
from appsync.sync.policy import SyncPolicy


@dataclass(frozen=True)
class ChangeSet:
    """Ordered, immutable ``(name, decision)`` entries, one per package name.

    Entries are sorted by name, so the same inputs always produce the same
    change set and the same report.
    """

    entries: tuple[tuple[str, SyncDecision], ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def names(self, kind: DecisionKind) -> list[str]:
        return [name for name, decision in self.entries if decision.kind == kind]

    def decision_for(self, name: str) -> SyncDecision | None:
        for entry_name, decision in self.entries:
            if entry_name == name:
                return decision
        return None

    def counts(self) -> dict[DecisionKind, int]:
        """Number of packages per bucket, with every bucket present."""
        tally = Counter(decision.kind for _, decision in self.entries)
        return {kind: tally.get(kind, 0) for kind in DecisionKind}

    def conflicts(self) -> list[tuple[str, str]]:
        """Conflicting packages with their reasons, in report order."""
        return [
            (name, decision.reason)
            for name, decision in self.entries
            if decision.kind == DecisionKind.CONFLICT
        ]

    def reasons(self, kind: DecisionKind) -> list[tuple[str, str]]:
        return [
            (name, decision.reason)
            for name, decision in self.entries
            if decision.kind == kind
        ]

    @property
    def added(self) -> list[str]:
        return self.names(DecisionKind.ADD)

    @property
    def updated(self) -> list[str]:
        return self.names(DecisionKind.UPDATE)

    @property
    def preserved(self) -> list[str]:
        return self.names(DecisionKind.PRESERVE)

    @property
    def skipped(self) -> list[str]:
        return self.names(DecisionKind.SKIP)

    @property
    def has_changes(self) -> bool:
        return any(decision.is_change for _, decision in self.entries)


def build_changeset(results: Iterable[tuple[str, SyncDecision]]) -> ChangeSet:
    """Fold ``(name, decision)`` results into a ``ChangeSet``.

    Raises:
        ValueError: If a package name occurs more than once.
    """
    seen: dict[str, SyncDecision] = {}
    for name, decision in results:
        if name in seen:
            raise ValueError(f"Duplicate package in change set: {name}")
        seen[name] = decision
    return ChangeSet(entries=tuple(sorted(seen.items(), key=lambda item: item[0])))


def classify_all(pairs: Iterable[PackagePair], policy: SyncPolicy) -> ChangeSet:
    """Classify every pair and fold the decisions into a ``ChangeSet``."""
    return build_changeset((pair.name, classify(pair, policy)) for pair in pairs)
