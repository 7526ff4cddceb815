"""Git integration for branch, commit and push operations."""

from __future__ import annotations

import os
from pathlib import Path
import re
import subprocess

from docsync.exceptions import VersionControlError


_CREDENTIALS_PATTERN = re.compile(r"(https?://)[^@/\s]+@")


def mask_credentials(text: str) -> str:
    """Hide user info embedded in remote URLs."""
    return _CREDENTIALS_PATTERN.sub(r"\1***@", text)


class GitError(VersionControlError):
    """Git operation failed."""


class GitRepo:
    """Git repository wrapper scoped to one working directory."""

    def __init__(self, root: Path | str):
        """Initialize with repository root path.

        Args:
            root: Path to git repository root
        """
        self.root = Path(root).resolve()

    def _run(self, *args: str, strip: bool = True) -> str:
        """Run a git command and return stdout."""
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            result = subprocess.run(
                ["git", "-C", str(self.root), *args],
                capture_output=True,
                text=True,
                check=True,
                env=env,
            )
        except subprocess.CalledProcessError as e:
            msg = f"Git command failed: {mask_credentials(e.stderr.strip())}"
            raise GitError(msg) from e
        except FileNotFoundError as e:
            msg = "Git executable not found"
            raise GitError(msg) from e
        return result.stdout.strip() if strip else result.stdout

    def current_branch(self) -> str | None:
        """Get the checked out branch name, None for a detached HEAD."""
        branch = self._run("rev-parse", "--abbrev-ref", "HEAD")
        return None if branch == "HEAD" else branch

    def get_head_commit(self) -> str:
        """Get current HEAD commit hash."""
        return self._run("rev-parse", "HEAD")

    def changed_paths(self, path: str | None = None) -> list[str]:
        """List staged, unstaged and untracked paths (optionally below a path)."""
        args = ["status", "--porcelain", "--untracked-files=all"]
        if path:
            args.extend(["--", path])
        output = self._run(*args, strip=False)
        paths: list[str] = []
        for line in output.splitlines():
            if len(line) < 4:  # noqa: PLR2004
                continue
            entry = line[3:]
            # Renames are reported as "old -> new"
            paths.append(entry.split(" -> ")[-1].strip('"'))
        return paths

    def is_dirty(self, path: str | None = None) -> bool:
        """Check if working tree (or a specific path) has uncommitted changes."""
        return bool(self.changed_paths(path))

    def pull(self, remote: str, branch: str) -> None:
        self._run("pull", remote, branch)

    def checkout(self, branch: str) -> None:
        self._run("checkout", branch)

    def create_branch(self, branch: str) -> None:
        """Create a branch at HEAD and check it out."""
        self._run("checkout", "-b", branch)

    def add_all(self) -> None:
        """Stage all working tree changes, including deletions."""
        self._run("add", "--all")

    def staged_paths(self) -> list[str]:
        output = self._run("diff", "--cached", "--name-only")
        return [line for line in output.splitlines() if line.strip()]

    def commit(self, message: str) -> str:
        """Commit staged changes and return the new commit hash."""
        self._run("commit", "-m", message)
        return self.get_head_commit()

    def push(self, remote: str, branch: str, *, set_upstream: bool = True) -> None:
        args = ["push"]
        if set_upstream:
            args.append("--set-upstream")
        self._run(*args, remote, branch)

    def get_remote_url(self, name: str = "origin") -> str | None:
        try:
            return self._run("remote", "get-url", name)
        except GitError:
            return None

    def set_remote_url(self, name: str, url: str) -> None:
        self._run("remote", "set-url", name, url)
