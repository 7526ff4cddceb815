"""Fixtures for synchronization tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from sync_helpers import ROOT_ID, FakeForge, FakeSource, RecordingTransformer, git

from docsync import GitRepo, SyncConfig, SyncManager, VersionControlAutomation


if TYPE_CHECKING:
    from pathlib import Path


SYNC_TIME = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def clock():
    return lambda: SYNC_TIME


@pytest.fixture
def git_remote(tmp_path: Path) -> Path:
    """Bare repository acting as the remote."""
    remote = tmp_path / "remote.git"
    remote.mkdir()
    git(remote, "init", "--bare", "--initial-branch=main")
    return remote


@pytest.fixture
def git_repo(tmp_path: Path, git_remote: Path) -> Path:
    """Working copy with one pushed commit on main."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--initial-branch=main")
    git(repo, "config", "user.email", "sync@example.com")
    git(repo, "config", "user.name", "Sync Bot")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "README.md").write_text("# Site\n", encoding="utf-8")
    git(repo, "add", "README.md")
    git(repo, "commit", "-m", "Initial commit")
    git(repo, "remote", "add", "origin", str(git_remote))
    git(repo, "push", "-u", "origin", "main")
    return repo


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def transformer() -> RecordingTransformer:
    return RecordingTransformer()


@pytest.fixture
def forge() -> FakeForge:
    return FakeForge()


@pytest.fixture
def config(tmp_path: Path) -> SyncConfig:
    """Complete config pointing at the temporary working copy."""
    return SyncConfig(
        root_folder_id=ROOT_ID,
        google_api_key="drive-key",
        forge_token="forge-token",
        forge_project="group/site",
        repo_path=tmp_path / "repo",
    )


@pytest.fixture
def vcs(config: SyncConfig, git_repo: Path, forge: FakeForge, clock) -> VersionControlAutomation:
    return VersionControlAutomation(GitRepo(git_repo), forge, config, clock=clock)


@pytest.fixture
def manager(
    config: SyncConfig,
    source: FakeSource,
    transformer: RecordingTransformer,
    vcs: VersionControlAutomation,
    clock,
) -> SyncManager:
    return SyncManager(config, source, transformer, vcs, clock=clock)
