"""Sync data models: package descriptors, package pairs, and decisions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class PackageDescriptor:
    """The fields of an app's config.json that drive sync decisions."""

    id: str
    version: str
    revision: int  # tipi_version in the descriptor file
    updated_at: int  # Epoch milliseconds


@dataclass(frozen=True)
class Unreadable:
    """Marker for a package directory whose descriptor could not be read."""

    reason: str = ""


# A package side is either a descriptor, an unreadable marker, or None when
# the package directory does not exist on that side at all.
PackageSide = PackageDescriptor | Unreadable | None


@dataclass(frozen=True)
class PackagePair:
    """The local and upstream view of one package name."""

    name: str
    local: PackageSide = None
    upstream: PackageSide = None

    @property
    def in_local(self) -> bool:
        return self.local is not None

    @property
    def in_upstream(self) -> bool:
        return self.upstream is not None

    @property
    def unreadable(self) -> bool:
        return isinstance(self.local, Unreadable) or isinstance(self.upstream, Unreadable)


class DecisionKind(Enum):
    """The action chosen for a package."""

    ADD = "add"
    UPDATE = "update"
    PRESERVE = "preserve"
    SKIP = "skip"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class SyncDecision:
    """Classification of a single package; the reason is for reporting only."""

    kind: DecisionKind
    reason: str = ""

    @property
    def is_change(self) -> bool:
        return self.kind in (DecisionKind.ADD, DecisionKind.UPDATE)

    def __str__(self) -> str:
        if self.reason:
            return f"{self.kind.value}: {self.reason}"
        return self.kind.value
