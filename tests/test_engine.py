"""Tests for the sync decision engine."""

from appsync.errors import DescriptorReadError
from appsync.sync.engine import build_pairs, classify
from appsync.sync.models import (
    DecisionKind,
    PackageDescriptor,
    PackagePair,
    Unreadable,
)
from appsync.sync.policy import SyncMode, SyncPolicy, VersionRules


def _policy(**overrides) -> SyncPolicy:
    defaults = dict(
        sync_mode=SyncMode.BLOCKLIST,
        allowlist=frozenset(),
        blocklist=frozenset(),
        custom_apps=frozenset(),
        version_rules=VersionRules(),
    )
    defaults.update(overrides)
    return SyncPolicy(**defaults)


def _desc(version: str = "1.0.0", revision: int = 1, name: str = "app") -> PackageDescriptor:
    return PackageDescriptor(id=name, version=version, revision=revision, updated_at=0)


# --- Scope ---


def test_not_included_is_skipped():
    policy = _policy(sync_mode=SyncMode.ALLOWLIST, allowlist=frozenset({"other"}))
    pair = PackagePair("app", local=None, upstream=_desc())
    decision = classify(pair, policy)
    assert decision.kind == DecisionKind.SKIP
    assert decision.reason == "not in sync scope"


def test_blocklisted_is_skipped_even_if_unreadable():
    policy = _policy(blocklist=frozenset({"app"}))
    pair = PackagePair("app", local=Unreadable("bad"), upstream=Unreadable("bad"))
    assert classify(pair, policy).kind == DecisionKind.SKIP


def test_custom_app_is_preserved():
    policy = _policy(custom_apps=frozenset({"app"}))
    local_only = PackagePair("app", local=_desc("1.0.0"), upstream=None)
    upstream_newer = PackagePair("app", local=_desc("1.0.0"), upstream=_desc("9.0.0"))
    for pair in (local_only, upstream_newer):
        decision = classify(pair, policy)
        assert decision.kind == DecisionKind.PRESERVE
        assert decision.reason == "custom package"


# --- Presence ---


def test_new_upstream_package_is_added():
    pair = PackagePair("app", local=None, upstream=_desc())
    assert classify(pair, _policy()).kind == DecisionKind.ADD


def test_included_but_absent_upstream_conflicts():
    pair = PackagePair("app", local=_desc(), upstream=None)
    decision = classify(pair, _policy())
    assert decision.kind == DecisionKind.CONFLICT
    assert decision.reason == "included but absent upstream"


def test_unreadable_descriptor_conflicts():
    pair = PackagePair("app", local=Unreadable("no config.json"), upstream=_desc())
    decision = classify(pair, _policy())
    assert decision.kind == DecisionKind.CONFLICT
    assert decision.reason == "descriptor unreadable"

    pair = PackagePair("app", local=_desc(), upstream=Unreadable("bad json"))
    assert classify(pair, _policy()).kind == DecisionKind.CONFLICT


def test_unreadable_upstream_overrides_add():
    pair = PackagePair("app", local=None, upstream=Unreadable("bad json"))
    decision = classify(pair, _policy())
    assert decision.kind == DecisionKind.CONFLICT
    assert decision.reason == "descriptor unreadable"


# --- Version precedence ---


def test_revision_bump_updates():
    pair = PackagePair("app", local=_desc("1.0.0", 3), upstream=_desc("1.0.0", 5))
    decision = classify(pair, _policy())
    assert decision.kind == DecisionKind.UPDATE
    assert decision.reason == "revision bump: 3 → 5"


def test_same_version_and_revision_is_up_to_date():
    pair = PackagePair("app", local=_desc("1.0.0", 5), upstream=_desc("1.0", 5))
    decision = classify(pair, _policy())
    assert decision.kind == DecisionKind.PRESERVE
    assert decision.reason == "already up to date"


def test_same_version_local_revision_ahead_is_kept():
    rules = VersionRules(require_comparable_revision=True, max_revision_gap=0)
    pair = PackagePair("app", local=_desc("1.0.0", 9), upstream=_desc("1.0.0", 2))
    decision = classify(pair, _policy(version_rules=rules))
    assert decision.kind == DecisionKind.PRESERVE
    assert decision.reason == "already up to date"


def test_upstream_version_newer_updates():
    pair = PackagePair("app", local=_desc("1.0.0", 7), upstream=_desc("1.1.0", 1))
    decision = classify(pair, _policy())
    assert decision.kind == DecisionKind.UPDATE
    assert decision.reason == "version update: 1.0.0 → 1.1.0"


def test_local_newer_is_preserved():
    pair = PackagePair("app", local=_desc("2.0.0", 1), upstream=_desc("1.0.0", 11))
    decision = classify(pair, _policy())
    assert decision.kind == DecisionKind.PRESERVE
    assert decision.reason.startswith("local version newer")


def test_local_newer_with_revision_gap_over_limit():
    rules = VersionRules(require_comparable_revision=True, max_revision_gap=5)
    pair = PackagePair("app", local=_desc("2.0.0", 1), upstream=_desc("1.0.0", 11))
    decision = classify(pair, _policy(version_rules=rules))
    assert decision.kind == DecisionKind.PRESERVE
    assert "gap exceeds limit" in decision.reason


def test_local_newer_with_revision_gap_within_limit():
    rules = VersionRules(require_comparable_revision=True, max_revision_gap=5)
    pair = PackagePair("app", local=_desc("2.0.0", 1), upstream=_desc("1.0.0", 6))
    decision = classify(pair, _policy(version_rules=rules))
    assert decision.kind == DecisionKind.PRESERVE
    assert decision.reason.startswith("local version newer")


def test_classify_is_idempotent():
    rules = VersionRules(require_comparable_revision=True, max_revision_gap=2)
    policy = _policy(version_rules=rules)
    pairs = [
        PackagePair("a", local=None, upstream=_desc()),
        PackagePair("b", local=_desc("1.0.0", 1), upstream=_desc("1.0.0", 2)),
        PackagePair("c", local=_desc("3.0"), upstream=_desc("1.0", 9)),
        PackagePair("d", local=_desc(), upstream=None),
    ]
    for pair in pairs:
        assert classify(pair, policy) == classify(pair, policy)


# --- Pair building ---


def test_build_pairs_covers_union_sorted():
    def reader(name):
        return _desc(name=name)

    pairs = build_pairs(["b", "a"], ["c", "a"], reader, reader)
    assert [p.name for p in pairs] == ["a", "b", "c"]
    a, b, c = pairs
    assert a.in_local and a.in_upstream
    assert b.in_local and not b.in_upstream
    assert not c.in_local and c.in_upstream


def test_build_pairs_marks_read_failures():
    calls = []

    def local_reader(name):
        calls.append(name)
        if name == "broken":
            raise DescriptorReadError("apps/broken/config.json", "file not found")
        return _desc(name=name)

    pairs = build_pairs(["broken", "ok"], ["broken", "ok"], local_reader, lambda n: _desc(name=n))
    broken, ok = pairs
    assert broken.local == Unreadable("file not found")
    assert broken.unreadable
    assert isinstance(ok.local, PackageDescriptor)
    assert calls == ["broken", "ok"]
