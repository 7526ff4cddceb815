"""Command line interface for docsync."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import typer as t

from docsync import DocSyncError, SyncManager
from docsync_cli.common import (
    config_opt,
    content_path_opt,
    json_logs_opt,
    load_config,
    repo_opt,
    setup_logging,
    verbose_opt,
)


if TYPE_CHECKING:
    from docsync import SourceUnit, SyncConfig, SyncResult, UpdateDecision


cli = t.Typer(
    name="docsync",
    help="Keep generated documents in sync with a remote content source.",
    no_args_is_help=True,
)


@cli.command("run")
def run_command(
    config_file: Path | None = config_opt,
    repo: Path | None = repo_opt,
    content_path: str | None = content_path_opt,
    verbose: bool = verbose_opt,
    json_logs: bool = json_logs_opt,
) -> None:
    """Run one synchronization and open a merge proposal for the changes.

    Units whose documents are older than their source are regenerated. All
    regenerated documents are committed on a fresh branch, pushed, and
    proposed for merging. If a previous run left uncommitted documents, these
    are published instead without contacting the content source.
    """
    try:
        config = load_config(config_file, repo=repo, content_path=content_path)
        setup_logging(config, verbose=verbose, json_logs=json_logs)
        result = asyncio.run(_run(config))
    except (DocSyncError, httpx.HTTPError) as e:
        t.echo(f"Error: {e}", err=True)
        raise t.Exit(1) from e

    if result.proposal:
        t.echo(f"Merge proposal: {result.proposal.url}")
    elif not result.change_set:
        t.echo("No changes detected")
    else:
        t.echo("Nothing to commit")
    for unit_result in result.failed:
        t.echo(f"Failed: {unit_result.unit.name}: {unit_result.error}", err=True)


@cli.command("status")
def status_command(
    config_file: Path | None = config_opt,
    repo: Path | None = repo_opt,
    content_path: str | None = content_path_opt,
    verbose: bool = verbose_opt,
) -> None:
    """Show which units would be regenerated, without changing anything."""
    try:
        config = load_config(config_file, repo=repo, content_path=content_path)
        setup_logging(config, verbose=verbose)
        decisions = asyncio.run(_status(config))
    except (DocSyncError, httpx.HTTPError) as e:
        t.echo(f"Error: {e}", err=True)
        raise t.Exit(1) from e

    if not decisions:
        t.echo("No units found")
        return
    for unit, decision in decisions:
        if decision is None:
            t.echo(f"? {unit.name}: check failed")
        else:
            marker = "*" if decision else " "
            t.echo(f"{marker} {unit.name}: {decision.reason}")


async def _run(config: SyncConfig) -> SyncResult:
    async with SyncManager.from_config(config) as manager:
        return await manager.run()


async def _status(config: SyncConfig) -> list[tuple[SourceUnit, UpdateDecision | None]]:
    async with SyncManager.from_config(config) as manager:
        return await manager.status()


__all__ = ["cli"]
