"""Sync decision engine: classify each package into exactly one action.

``classify`` is a pure function of a ``PackagePair`` and a ``SyncPolicy``.
It performs no I/O, so every package can be classified independently and
the results folded into a ``ChangeSet`` afterwards.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from appsync.errors import DescriptorReadError
from appsync.sync.models import (
    DecisionKind,
    PackageDescriptor,
    PackagePair,
    PackageSide,
    SyncDecision,
    Unreadable,
)
from appsync.sync.policy import SyncPolicy, is_included
from appsync.sync.versions import compare_versions

logger = logging.getLogger(__name__)

DescriptorReader = Callable[[str], PackageDescriptor]


def classify(pair: PackagePair, policy: SyncPolicy) -> SyncDecision:
    """Classify a package pair against the sync policy.

    Order of checks:
    custom app, sync scope, upstream presence, descriptor readability,
    local presence, then version and revision precedence.
    """
    if policy.is_custom(pair.name):
        return SyncDecision(DecisionKind.PRESERVE, "custom package")

    if not is_included(pair.name, policy):
        return SyncDecision(DecisionKind.SKIP, "not in sync scope")

    if pair.upstream is None:
        return SyncDecision(DecisionKind.CONFLICT, "included but absent upstream")

    if pair.unreadable:
        return SyncDecision(DecisionKind.CONFLICT, "descriptor unreadable")

    if pair.local is None:
        return SyncDecision(DecisionKind.ADD, "new upstream package")

    return _compare_descriptors(pair.local, pair.upstream, policy)


def _compare_descriptors(
    local: PackageDescriptor,
    upstream: PackageDescriptor,
    policy: SyncPolicy,
) -> SyncDecision:
    cmp = compare_versions(local.version, upstream.version)

    if cmp == 0:
        # Equal versions with a local revision ahead are kept as-is; the
        # revision gap rule below only applies when the version is ahead.
        if local.revision < upstream.revision:
            return SyncDecision(
                DecisionKind.UPDATE,
                f"revision bump: {local.revision} → {upstream.revision}",
            )
        return SyncDecision(DecisionKind.PRESERVE, "already up to date")

    if cmp > 0:
        rules = policy.version_rules
        gap = upstream.revision - local.revision
        if rules.require_comparable_revision and gap > rules.max_revision_gap:
            return SyncDecision(
                DecisionKind.PRESERVE,
                f"local newer but revision gap exceeds limit "
                f"({local.version} > {upstream.version}, gap {gap} > {rules.max_revision_gap})",
            )
        return SyncDecision(
            DecisionKind.PRESERVE,
            f"local version newer: {local.version} > {upstream.version}",
        )

    return SyncDecision(
        DecisionKind.UPDATE,
        f"version update: {local.version} → {upstream.version}",
    )


def build_pairs(
    local_names: Iterable[str],
    upstream_names: Iterable[str],
    read_local: DescriptorReader,
    read_upstream: DescriptorReader,
) -> list[PackagePair]:
    """Build one ``PackagePair`` per distinct name, sorted by name.

    Readers are called only for names present on their side. A
    ``DescriptorReadError`` is recorded as ``Unreadable`` for that side and
    never stops the remaining packages from being read.
    """
    local_set = set(local_names)
    upstream_set = set(upstream_names)

    pairs = []
    for name in sorted(local_set | upstream_set):
        pairs.append(
            PackagePair(
                name=name,
                local=_read_side(name, local_set, read_local),
                upstream=_read_side(name, upstream_set, read_upstream),
            )
        )
    return pairs


def _read_side(name: str, present: set[str], reader: DescriptorReader) -> PackageSide:
    if name not in present:
        return None
    try:
        return reader(name)
    except DescriptorReadError as e:
        logger.warning("%s", e)
        return Unreadable(reason=e.message)
