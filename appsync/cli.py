"""appsync CLI: the entry point for keeping an app store fork in sync."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from appsync import __version__
from appsync.errors import ConfigLoadError, GitOperationError, UpstreamFetchError
from appsync.logging_utils import setup_logging
from appsync.paths import SyncPaths
from appsync.sync.results import EXIT_FATAL, EXIT_NO_CHANGES

console = Console()

FATAL_ERRORS = (ConfigLoadError, UpstreamFetchError, GitOperationError)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--root",
    default=".",
    envvar="APPSYNC_ROOT",
    type=click.Path(file_okay=False, path_type=Path),
    help="Root of the app store fork (contains apps/ and .runtipi-sync/)",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Sync config file (default: <root>/.runtipi-sync/config.json)",
)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug)")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def main(ctx, root: Path, config_path: Path | None, verbose: int, log_file: Path | None):
    """appsync: mirror an upstream app store into a curated fork.

    Upstream apps are pulled according to an allowlist or blocklist policy,
    custom apps are never touched, and every run ends with a change report.
    """
    level = logging.WARNING - 10 * min(verbose, 2)
    setup_logging(level=level, log_file=log_file)
    ctx.obj = SyncPaths.for_root(root, config_path)


def _load_config(paths: SyncPaths):
    from appsync.sync.policy import load_config

    return load_config(paths.config_path)


def _fail(ctx, error: Exception, code: int = EXIT_FATAL):
    console.print(f"[red]Sync failed:[/] {escape(str(error))}")
    ctx.exit(code)


# ── Sync ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--commit/--no-commit", default=True, help="Commit apps/ after syncing")
@click.option("--push/--no-push", default=True, help="Force-push the upstream branch")
@click.option("--checkout/--no-checkout", default=True, help="Switch to the upstream branch first")
@click.pass_context
def sync(ctx, commit: bool, push: bool, checkout: bool):
    """Sync apps from upstream according to the sync policy.

    Exits 0 when nothing changed, 1 when apps were added, updated or
    removed, and 2 on a fatal setup or fetch error.
    """
    from appsync.report import print_sync_summary
    from appsync.sync.runner import UpstreamSync

    paths: SyncPaths = ctx.obj
    console.print("\n[bold blue]appsync[/]: Syncing apps from upstream\n")

    try:
        config = _load_config(paths)
        report = UpstreamSync(config, paths).run(commit=commit, push=push, checkout=checkout)
    except FATAL_ERRORS as e:
        _fail(ctx, e)

    print_sync_summary(console, report)
    console.print(f"\nChangelog written to {paths.changelog_path}")
    if report.has_changes:
        console.print(
            f"\n[green]Branch {report.branch} updated.[/] "
            "Run the merge workflow to integrate it into main."
        )
    ctx.exit(report.exit_code)


@main.command("sync-all")
@click.option("--commit/--no-commit", default=True, help="Commit apps/ after syncing")
@click.option("--push/--no-push", default=True, help="Force-push the upstream branch")
@click.option("--checkout/--no-checkout", default=True, help="Switch to the upstream branch first")
@click.pass_context
def sync_all(ctx, commit: bool, push: bool, checkout: bool):
    """Mirror every upstream app, replacing all local apps.

    Intended for the pristine upstream branch; the sync policy is ignored.
    """
    from appsync.report import print_sync_summary
    from appsync.sync.runner import UpstreamSync

    paths: SyncPaths = ctx.obj
    console.print("\n[bold blue]appsync[/]: Syncing ALL apps from upstream\n")

    try:
        config = _load_config(paths)
        report = UpstreamSync(config, paths).mirror(commit=commit, push=push, checkout=checkout)
    except FATAL_ERRORS as e:
        _fail(ctx, e)

    print_sync_summary(console, report)
    ctx.exit(report.exit_code)


@main.command()
@click.pass_context
def plan(ctx):
    """Show what a sync would do without changing anything."""
    from appsync.report import print_sync_summary
    from appsync.sync.runner import UpstreamSync

    paths: SyncPaths = ctx.obj
    console.print("\n[bold blue]appsync[/]: Planning sync (dry run)\n")

    try:
        config = _load_config(paths)
        report = UpstreamSync(config, paths).plan()
    except FATAL_ERRORS as e:
        _fail(ctx, e)

    print_sync_summary(console, report)


# ── Branch maintenance ───────────────────────────────────────────────


@main.command("filter")
@click.pass_context
def filter_cmd(ctx):
    """Remove local apps that fall outside the allowlist/blocklist."""
    from appsync.report import print_filter_summary
    from appsync.sync.runner import filter_apps

    paths: SyncPaths = ctx.obj
    console.print("\n[bold blue]appsync[/]: Filtering apps by sync policy\n")

    try:
        config = _load_config(paths)
    except ConfigLoadError as e:
        _fail(ctx, e, code=1)

    policy = config.policy
    console.print(
        f"Mode: {policy.sync_mode.value} | custom apps: {len(policy.custom_apps)} | "
        f"allowlist: {len(policy.allowlist)} | blocklist: {len(policy.blocklist)}\n"
    )
    report = filter_apps(paths, policy)
    print_filter_summary(console, report)
    ctx.exit(1 if report.failures else EXIT_NO_CHANGES)


@main.command("setup-custom")
@click.option("--commit/--no-commit", default=True)
@click.option("--push/--no-push", default=True)
@click.pass_context
def setup_custom(ctx, commit: bool, push: bool):
    """Create the custom branch from main, keeping only custom apps."""
    from appsync.report import print_custom_branch_summary
    from appsync.sync.runner import setup_custom_branch

    paths: SyncPaths = ctx.obj
    console.print("\n[bold blue]appsync[/]: Setting up custom branch\n")

    try:
        config = _load_config(paths)
        report = setup_custom_branch(config, paths, commit=commit, push=push)
    except (ConfigLoadError, GitOperationError) as e:
        _fail(ctx, e, code=1)

    verb = "Created" if report.created else "Switched to existing"
    console.print(f"{verb} branch: {report.branch}\n")
    print_custom_branch_summary(console, report)
    console.print(
        Panel(
            "\n".join(f"- {name}" for name in report.preserved) or "(none)",
            title=f"Custom apps ({len(report.preserved)})",
        )
    )
    ctx.exit(1 if report.failures else EXIT_NO_CHANGES)


# ── Utilities ────────────────────────────────────────────────────────


@main.command()
@click.argument("v1")
@click.argument("v2")
def compare(v1: str, v2: str):
    """Compare two app versions the way sync does."""
    from appsync.sync.versions import compare_versions

    result = compare_versions(v1, v2)
    symbol = {1: ">", 0: "=", -1: "<"}[result]
    console.print(f"{v1} {symbol} {v2}")


if __name__ == "__main__":
    main()
