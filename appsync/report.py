"""Reporting: console summaries and the persisted sync changelog."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from appsync.sync.models import DecisionKind
from appsync.sync.results import CustomBranchReport, FilterReport, SyncReport

_BUCKET_LABELS = {
    DecisionKind.ADD: "Added",
    DecisionKind.UPDATE: "Updated",
    DecisionKind.PRESERVE: "Preserved",
    DecisionKind.SKIP: "Skipped",
    DecisionKind.CONFLICT: "Conflicts",
}

_BUCKET_STYLES = {
    DecisionKind.ADD: "green",
    DecisionKind.UPDATE: "cyan",
    DecisionKind.PRESERVE: "blue",
    DecisionKind.SKIP: "dim",
    DecisionKind.CONFLICT: "yellow",
}


def render_changelog(report: SyncReport, generated_at: datetime | None = None) -> str:
    """Render the markdown changelog written after a sync run."""
    when = generated_at or datetime.now(timezone.utc)
    changeset = report.changeset
    lines: list[str] = []

    lines.append("# Upstream Sync Changes")
    lines.append("")
    lines.append(f"**Date:** {when.isoformat()}")
    if report.upstream_url:
        lines.append(f"**Upstream:** {report.upstream_url}")
    if report.branch:
        lines.append(f"**Branch:** {report.branch}")
    lines.append("")

    if report.applied_added:
        lines.append("## Added Apps")
        lines.extend(f"- {name}" for name in report.applied_added)
        lines.append("")

    if report.applied_updated:
        reasons = dict(changeset.reasons(DecisionKind.UPDATE))
        lines.append("## Updated Apps")
        for name in report.applied_updated:
            reason = reasons.get(name)
            lines.append(f"- {name}: {reason}" if reason else f"- {name}")
        lines.append("")

    if report.removed:
        lines.append("## Removed Apps")
        lines.extend(f"- {name}" for name in report.removed)
        lines.append("")

    preserved = changeset.reasons(DecisionKind.PRESERVE)
    if preserved:
        lines.append("## Preserved Apps")
        lines.extend(f"- {name}: {reason}" for name, reason in preserved)
        lines.append("")

    conflicts = changeset.conflicts()
    if conflicts:
        lines.append("## Conflicts")
        lines.extend(f"- **{name}**: {reason}" for name, reason in conflicts)
        lines.append("")

    if report.failures:
        lines.append("## Failed Operations")
        lines.extend(f"- **{f.name}**: {f.operation} failed: {f.message}" for f in report.failures)
        lines.append("")

    skipped = len(changeset.skipped)
    if skipped:
        lines.append(f"_{skipped} app(s) outside the sync scope were skipped._")
        lines.append("")

    lines.append("---")
    lines.append(f"Total changes: {report.total_changes}")

    return "\n".join(lines) + "\n"


def print_sync_summary(console: Console, report: SyncReport) -> None:
    """Print bucket counts and per-package details for a sync run."""
    changeset = report.changeset
    counts = changeset.counts()

    title = "Sync Plan" if report.dry_run else "Sync Summary"
    table = Table(title=f"{title} ({len(changeset)} apps)")
    table.add_column("Bucket")
    table.add_column("Count", justify="right")
    for kind, label in _BUCKET_LABELS.items():
        table.add_row(f"[{_BUCKET_STYLES[kind]}]{label}[/]", str(counts[kind]))
    if report.removed:
        table.add_row("[red]Removed[/]", str(len(report.removed)))
    console.print(table)

    for kind in (DecisionKind.ADD, DecisionKind.UPDATE, DecisionKind.PRESERVE, DecisionKind.SKIP):
        entries = changeset.reasons(kind)
        if not entries:
            continue
        style = _BUCKET_STYLES[kind]
        console.print(f"\n[bold {style}]{_BUCKET_LABELS[kind]} ({len(entries)}):[/]")
        for name, reason in entries:
            if kind == DecisionKind.SKIP:
                console.print(f"   - {escape(name)}")
            else:
                console.print(f"   - {escape(name)} [dim]({escape(reason)})[/]")

    if report.removed:
        console.print(f"\n[bold red]Removed ({len(report.removed)}):[/]")
        for name in report.removed:
            console.print(f"   - {escape(name)}")

    conflicts = changeset.conflicts()
    if conflicts:
        console.print(f"\n[bold yellow]Conflicts ({len(conflicts)}):[/]")
        for name, reason in conflicts:
            console.print(f"   [yellow]![/] {escape(name)}: {escape(reason)}")

    if report.failures:
        console.print(f"\n[bold red]Failed operations ({len(report.failures)}):[/]")
        for failure in report.failures:
            console.print(f"   [red]x[/] {escape(str(failure))}")

    if not report.dry_run:
        console.print(f"\nTotal changes: [bold]{report.total_changes}[/]")
    _print_publish(console, report.publish)


def print_filter_summary(console: Console, report: FilterReport) -> None:
    for name, source in report.kept:
        console.print(f"  [green]v[/] Keep: {escape(name)} ({source})")
    for name in report.removed:
        console.print(f"  [red]x[/] Remove: {escape(name)} (not in sync scope)")
    for failure in report.failures:
        console.print(f"  [red]![/] {escape(str(failure))}")

    console.print("\n[bold]Summary:[/]")
    console.print(f"   Kept: {len(report.kept)} apps")
    console.print(f"   Removed: {len(report.removed)} apps")


def print_custom_branch_summary(console: Console, report: CustomBranchReport) -> None:
    for name in report.removed:
        console.print(f"  [red]x[/] Removed: {escape(name)}")

    console.print("\n[bold]Preserved custom apps:[/]")
    for name in report.preserved:
        console.print(f"  [green]v[/] {escape(name)}")
    for name in report.missing:
        console.print(f"  [yellow]![/] {escape(name)} (not found on the main branch)")

    for failure in report.failures:
        console.print(f"  [red]![/] {escape(str(failure))}")
    _print_publish(console, report.publish)


def _print_publish(console: Console, publish) -> None:
    if publish is None:
        return
    if publish.failed:
        console.print(f"\n[yellow]Failed to publish:[/] {escape(publish.error)}")
        if publish.retry_hint:
            console.print(f"You may need to push manually: [bold]{publish.retry_hint}[/]")
    elif not publish.committed:
        console.print("\n[green]No changes to commit[/]")
    elif publish.pushed:
        console.print(f"\n[green]Pushed changes to {publish.branch}[/]")
    else:
        console.print(f"\n[green]Committed changes on {publish.branch}[/] (not pushed)")
