"""Sync orchestration: fetch upstream, classify, apply, report, publish.

The runner is the only place that combines the pure decision layer with
I/O. Fatal errors (config, upstream fetch, branch checkout) surface before
any package directory is touched; everything after that point is captured
per package or per step in the returned report.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone

from appsync.descriptors import descriptor_reader, list_packages
from appsync.errors import GitOperationError, MutationError, PublishError
from appsync.mutations import MutationFailure, copy_package, remove_package, replace_package
from appsync.paths import SyncPaths
from appsync.report import render_changelog
from appsync.sync.changeset import ChangeSet, build_changeset, classify_all
from appsync.sync.engine import build_pairs
from appsync.sync.models import DecisionKind, SyncDecision
from appsync.sync.policy import SyncConfig, SyncPolicy, is_included
from appsync.sync.results import CustomBranchReport, FilterReport, PublishResult, SyncReport
from appsync.utils.git_ops import GitClient

logger = logging.getLogger(__name__)


class UpstreamSync:
    """Synchronizes the local ``apps/`` directory with the upstream app store.

    Args:
        config: Loaded sync configuration.
        paths: Workspace layout rooted at the fork's checkout.
        git: Git collaborator; defaults to a ``GitClient`` on ``paths.root``.
    """

    def __init__(self, config: SyncConfig, paths: SyncPaths, git=None):
        self.config = config
        self.paths = paths
        self.git = git if git is not None else GitClient(paths.root)

    @property
    def branch(self) -> str:
        return self.config.branches.upstream

    def plan(self) -> SyncReport:
        """Classify every package without touching the workspace or branches."""
        return self.run(dry_run=True)

    def run(
        self,
        dry_run: bool = False,
        commit: bool = True,
        push: bool = True,
        checkout: bool = True,
    ) -> SyncReport:
        """Run a policy-driven sync.

        Raises:
            GitOperationError: If the upstream branch cannot be checked out.
            UpstreamFetchError: If the upstream repository cannot be cloned.
        """
        if checkout and not dry_run:
            self.git.checkout(self.branch)

        report = SyncReport(
            upstream_url=self.config.upstream.url,
            branch=self.branch,
            dry_run=dry_run,
        )

        upstream = self.config.upstream
        logger.info("Fetching upstream %s (%s)", upstream.url, upstream.branch)
        with self.git.clone(upstream.url, upstream.branch, self.paths.upstream_dir) as clone:
            local_names = list_packages(self.paths.apps_dir)
            upstream_names = list_packages(clone.apps_dir)
            logger.info(
                "Found %d local and %d upstream apps",
                len(local_names),
                len(upstream_names),
            )

            pairs = build_pairs(
                local_names,
                upstream_names,
                descriptor_reader(self.paths.apps_dir),
                descriptor_reader(clone.apps_dir),
            )
            report.changeset = classify_all(pairs, self.config.policy)
            _log_decisions(report.changeset)

            if not dry_run:
                self._apply(report, clone.apps_dir)

        self._cleanup_temp()
        if dry_run:
            return report

        self.write_changelog(report)
        if commit:
            report.publish = publish(
                self.git,
                self.branch,
                f"chore: sync apps from upstream ({_today()})",
                paths=["apps/"],
                push=push,
            )
        return report

    def mirror(self, commit: bool = True, push: bool = True, checkout: bool = True) -> SyncReport:
        """Replace every local package with the upstream set, ignoring policy.

        Raises:
            GitOperationError: If the upstream branch cannot be checked out.
            UpstreamFetchError: If the upstream repository cannot be cloned.
        """
        if checkout:
            self.git.checkout(self.branch)

        report = SyncReport(upstream_url=self.config.upstream.url, branch=self.branch)

        upstream = self.config.upstream
        logger.info("Fetching upstream %s (%s)", upstream.url, upstream.branch)
        with self.git.clone(upstream.url, upstream.branch, self.paths.upstream_dir) as clone:
            upstream_names = list_packages(clone.apps_dir)
            upstream_set = set(upstream_names)
            local_names = list_packages(self.paths.apps_dir)
            logger.info("Found %d upstream apps, mirroring all of them", len(upstream_names))

            stuck: set[str] = set()
            for name in local_names:
                try:
                    remove_package(self.paths.apps_dir, name)
                except MutationError as e:
                    logger.warning("%s", e)
                    report.failures.append(MutationFailure.from_error(e))
                    stuck.add(name)
                    continue
                if name not in upstream_set:
                    report.removed.append(name)

            report.changeset = build_changeset(
                (name, SyncDecision(DecisionKind.ADD, "mirrored from upstream"))
                for name in upstream_names
            )
            for name in upstream_names:
                if name in stuck:
                    continue
                try:
                    replace_package(clone.apps_dir, self.paths.apps_dir, name)
                except MutationError as e:
                    logger.warning("%s", e)
                    report.failures.append(MutationFailure.from_error(e))
                    continue
                report.applied_added.append(name)

        self._cleanup_temp()
        self.write_changelog(report)
        if commit:
            report.publish = publish(
                self.git,
                self.branch,
                f"chore: sync apps from upstream ({_today()})",
                paths=["apps/"],
                push=push,
            )
        return report

    def write_changelog(self, report: SyncReport) -> None:
        self.paths.state_dir.mkdir(parents=True, exist_ok=True)
        self.paths.changelog_path.write_text(render_changelog(report), encoding="utf-8")
        logger.info("Changelog written to %s", self.paths.changelog_path)

    def _apply(self, report: SyncReport, upstream_apps) -> None:
        for name, decision in report.changeset:
            try:
                if decision.kind == DecisionKind.ADD:
                    copy_package(upstream_apps, self.paths.apps_dir, name)
                    report.applied_added.append(name)
                elif decision.kind == DecisionKind.UPDATE:
                    replace_package(upstream_apps, self.paths.apps_dir, name)
                    report.applied_updated.append(name)
            except MutationError as e:
                logger.warning("%s", e)
                report.failures.append(MutationFailure.from_error(e))

    def _cleanup_temp(self) -> None:
        shutil.rmtree(self.paths.temp_dir, ignore_errors=True)


def filter_apps(paths: SyncPaths, policy: SyncPolicy) -> FilterReport:
    """Remove local packages that the policy does not include."""
    report = FilterReport()
    for name in list_packages(paths.apps_dir):
        if is_included(name, policy):
            source = "custom" if policy.is_custom(name) else "upstream"
            report.kept.append((name, source))
            continue
        try:
            remove_package(paths.apps_dir, name)
        except MutationError as e:
            logger.warning("%s", e)
            report.failures.append(MutationFailure.from_error(e))
            continue
        logger.info("Removed %s (not in sync scope)", name)
        report.removed.append(name)
    return report


def setup_custom_branch(
    config: SyncConfig,
    paths: SyncPaths,
    git=None,
    commit: bool = True,
    push: bool = True,
) -> CustomBranchReport:
    """Create the custom branch from main, keeping only custom packages.

    Raises:
        GitOperationError: If the main branch cannot be checked out or the
            custom branch cannot be created.
    """
    git = git if git is not None else GitClient(paths.root)
    branches = config.branches
    custom_apps = config.policy.custom_apps

    git.checkout(branches.main, create=False)
    report = CustomBranchReport(branch=branches.custom)
    report.created = git.checkout(branches.custom)

    local_names = list_packages(paths.apps_dir)
    for name in local_names:
        if name in custom_apps:
            continue
        try:
            remove_package(paths.apps_dir, name)
        except MutationError as e:
            logger.warning("%s", e)
            report.failures.append(MutationFailure.from_error(e))
            continue
        report.removed.append(name)

    present = set(local_names)
    for name in sorted(custom_apps):
        if name in present:
            report.preserved.append(name)
        else:
            report.missing.append(name)

    if commit:
        report.publish = publish(
            git,
            branches.custom,
            f"chore: initialize custom branch with {len(custom_apps)} custom apps",
            push=push,
        )
    return report


def publish(
    git,
    branch: str,
    message: str,
    paths: list[str] | None = None,
    push: bool = True,
) -> PublishResult:
    """Commit and optionally push; failures are reported, not raised.

    ``retry_hint`` names the manual command for whichever step failed.
    """
    result = PublishResult(branch=branch)
    try:
        result.committed = git.commit(message, paths)
    except (PublishError, GitOperationError) as e:
        logger.warning("%s", e)
        result.error = e.message
        add = " ".join(["git add -A", *(["--", *paths] if paths else [])])
        result.retry_hint = f'{add} && git commit -m "{message}"'
        return result

    if result.committed and push:
        try:
            git.push(branch)
            result.pushed = True
        except (PublishError, GitOperationError) as e:
            logger.warning("%s", e)
            result.error = e.message
            result.retry_hint = f"git push origin {branch} --force"
    return result


def _log_decisions(changeset: ChangeSet) -> None:
    for name, decision in changeset:
        if decision.kind == DecisionKind.CONFLICT:
            logger.warning("Conflict: %s - %s", name, decision.reason)
        elif decision.kind == DecisionKind.SKIP:
            logger.debug("Skipped: %s (%s)", name, decision.reason)
        else:
            logger.info("%s: %s - %s", decision.kind.value.capitalize(), name, decision.reason)


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")
