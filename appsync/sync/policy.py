"""Sync policy: which packages take part in upstream-driven sync.

The policy is loaded once per run from ``.runtipi-sync/config.json`` and is
immutable afterwards. Custom apps bypass the allow/block lists entirely;
everything else is gated by the active sync mode.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from appsync.errors import ConfigLoadError
from appsync.schema import SYNC_CONFIG_SCHEMA, validate_document

logger = logging.getLogger(__name__)

DEFAULT_UPSTREAM_URL = "https://github.com/runtipi/runtipi-appstore"
DEFAULT_UPSTREAM_BRANCH = "master"


class SyncMode(Enum):
    """How non-custom packages are selected."""

    ALLOWLIST = "allowlist"  # Only listed packages are synced
    BLOCKLIST = "blocklist"  # Everything except listed packages is synced


@dataclass(frozen=True)
class VersionRules:
    """Tie-breaking rules applied when the local version is ahead."""

    require_comparable_revision: bool = False
    max_revision_gap: int = 0


@dataclass(frozen=True)
class SyncPolicy:
    """Immutable inclusion policy for one sync run."""

    sync_mode: SyncMode = SyncMode.ALLOWLIST
    allowlist: frozenset[str] = frozenset()
    blocklist: frozenset[str] = frozenset()
    custom_apps: frozenset[str] = frozenset()
    version_rules: VersionRules = field(default_factory=VersionRules)

    def is_custom(self, name: str) -> bool:
        return name in self.custom_apps


@dataclass(frozen=True)
class UpstreamSource:
    url: str = DEFAULT_UPSTREAM_URL
    branch: str = DEFAULT_UPSTREAM_BRANCH


@dataclass(frozen=True)
class BranchNames:
    """Branches of the fork's three-branch workflow."""

    upstream: str = "upstream"
    custom: str = "custom"
    main: str = "main"


@dataclass(frozen=True)
class SyncConfig:
    """The full sync configuration document: policy plus repository wiring."""

    policy: SyncPolicy
    upstream: UpstreamSource = field(default_factory=UpstreamSource)
    branches: BranchNames = field(default_factory=BranchNames)
    strategy: str = ""
    preserve_custom_apps: bool = True


def is_included(name: str, policy: SyncPolicy) -> bool:
    """Decide whether a package is in scope for upstream-driven sync."""
    if name in policy.custom_apps:
        return True
    if policy.sync_mode == SyncMode.ALLOWLIST:
        return name in policy.allowlist
    return name not in policy.blocklist


def load_config(path: str | Path) -> SyncConfig:
    """Load and validate a sync configuration file.

    JSON documents are accepted as-is since JSON is a subset of YAML.

    Raises:
        ConfigLoadError: If the file is missing, unparseable, or does not
            match the expected structure.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigLoadError(path, "file not found") from None
    except (OSError, yaml.YAMLError) as e:
        raise ConfigLoadError(path, str(e)) from e

    config = parse_config(data, path)
    logger.debug(
        "Loaded %s policy from %s (%d custom apps)",
        config.policy.sync_mode.value,
        path,
        len(config.policy.custom_apps),
    )
    return config


def parse_config(data, path: str | Path = "<memory>") -> SyncConfig:
    """Build a ``SyncConfig`` from an already-parsed document."""
    issues = validate_document(data, SYNC_CONFIG_SCHEMA)
    if issues:
        raise ConfigLoadError(Path(path), "; ".join(issues))

    rules = data["versionComparisonRules"]
    policy = SyncPolicy(
        sync_mode=SyncMode(data["syncMode"]),
        allowlist=frozenset(data["allowlist"]),
        blocklist=frozenset(data["blocklist"]),
        custom_apps=frozenset(data["customApps"]),
        version_rules=VersionRules(
            require_comparable_revision=rules["requireComparableTipiVersion"],
            max_revision_gap=rules["tipiVersionMaxGap"],
        ),
    )

    upstream = data.get("upstream")
    branches = data.get("branches")
    return SyncConfig(
        policy=policy,
        upstream=(
            UpstreamSource(url=upstream["url"], branch=upstream["branch"])
            if upstream
            else UpstreamSource()
        ),
        branches=(
            BranchNames(
                upstream=branches["upstream"],
                custom=branches["custom"],
                main=branches["main"],
            )
            if branches
            else BranchNames()
        ),
        strategy=data.get("strategy", ""),
        preserve_custom_apps=data.get("preserveCustomApps", True),
    )
