"""Version-control automation: one branch, one commit, one merge proposal per run."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from docsync.git import GitError, mask_credentials
from docsync.log import get_logger
from docsync.models import SyncBranch
from docsync.utils.time_utils import format_timestamp, get_now


if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from docsync.config import SyncConfig
    from docsync.forge import ForgeClient
    from docsync.git import GitRepo
    from docsync.models import ChangeSet, MergeProposal


logger = get_logger(__name__)

TOKEN_USERS = {"gitlab": "oauth2", "github": "x-access-token"}
_SSH_PATTERN = re.compile(r"^(?:ssh://)?git@([^:/]+)[:/]")
_USERINFO_PATTERN = re.compile(r"^(https?://)[^@/]+@")


def authenticated_url(url: str, user: str, token: str) -> str:
    """Turn a remote URL into an HTTPS URL carrying a token.

    SSH remotes are converted to HTTPS, existing credentials are replaced.
    """
    url = _SSH_PATTERN.sub(r"https://\1/", url)
    url = _USERINFO_PATTERN.sub(r"\1", url)
    return re.sub(r"^(https?://)", lambda m: f"{m.group(1)}{user}:{token}@", url)


def branch_name(prefix: str, now: datetime) -> str:
    """Derive the per-run branch name from the run time."""
    stamp = format_timestamp(now).replace(":", "-").replace(".", "-")
    return f"{prefix}-{stamp}"


def commit_message(change_set: ChangeSet, now: datetime) -> str:
    return (
        f"Content update: {', '.join(change_set)}\n\n"
        "Synchronized automatically from the content source\n"
        f"Updated units: {len(change_set)}\n"
        f"Timestamp: {format_timestamp(now)}"
    )


def proposal_title(now: datetime) -> str:
    return f"Content update from {now:%Y-%m-%d}"


def proposal_description(change_set: ChangeSet, branch: str, target: str, now: datetime) -> str:
    units = "\n".join(f"- {name}" for name in change_set)
    return (
        "## Automatic content update\n\n"
        "This merge request was created automatically by the content synchronization.\n\n"
        f"### Changed units\n{units}\n\n"
        "### Details\n"
        f"- **Source branch:** `{branch}`\n"
        f"- **Target branch:** `{target}`\n"
        f"- **Timestamp:** {format_timestamp(now)}\n"
        f"- **Units:** {len(change_set)}\n"
    )


class VersionControlAutomation:
    """Packages the working tree changes of a run into a merge proposal.

    Operations happen strictly in order: branch, commit, push, proposal. A run
    without staged changes stops after the commit attempt and returns to the
    base branch without pushing.
    """

    def __init__(
        self,
        repo: GitRepo,
        forge: ForgeClient,
        config: SyncConfig,
        *,
        remote: str = "origin",
        clock: Callable[[], datetime] = get_now,
    ):
        self.repo = repo
        self.forge = forge
        self.config = config
        self.remote = remote
        self._clock = clock
        self._auth_configured = False
        self.base_ref: str | None = None
        """Branch the run started on, known once create_branch() ran."""

    def pending_changes(self, path: str) -> list[str]:
        """Uncommitted paths below a directory of the working tree."""
        return self.repo.changed_paths(path)

    def configure_auth(self) -> None:
        """Embed the forge token in the remote URL for pushing and pulling."""
        token = self.config.forge_token.get_secret_value() if self.config.forge_token else ""
        if self._auth_configured or not token:
            return
        url = self.repo.get_remote_url(self.remote)
        if not url:
            logger.warning("Remote not found, skipping auth configuration", remote=self.remote)
            return
        new_url = authenticated_url(url, TOKEN_USERS[self.config.forge], token)
        self.repo.set_remote_url(self.remote, new_url)
        self._auth_configured = True
        logger.debug("Remote URL configured", url=mask_credentials(new_url))

    def create_branch(self) -> SyncBranch:
        """Sync the current branch with its remote and branch off it."""
        base = self.repo.current_branch()
        if base is None:
            if not self.config.target_branch:
                msg = "Detached HEAD and no target branch configured"
                raise GitError(msg)
            self.repo.checkout(self.config.target_branch)
            base = self.config.target_branch
        self.base_ref = base

        self.configure_auth()
        self.repo.pull(self.remote, base)
        name = branch_name(self.config.branch_prefix, self._clock())
        self.repo.create_branch(name)
        logger.info("Branch created", branch=name, base=base)
        return SyncBranch(name=name, base_ref=base)

    def commit(self, message: str) -> bool:
        """Stage everything and commit.

        Returns:
            False without committing if nothing was staged
        """
        self.repo.add_all()
        staged = self.repo.staged_paths()
        if not staged:
            logger.info("No changes to commit")
            return False
        logger.debug("Committing", files=len(staged))
        commit = self.repo.commit(message)
        logger.info("Changes committed", commit=commit, files=len(staged))
        return True

    def push(self, branch: str) -> None:
        self.configure_auth()
        self.repo.push(self.remote, branch, set_upstream=True)
        logger.info("Branch pushed", branch=branch)

    async def create_merge_proposal(
        self,
        source: str,
        target: str,
        title: str,
        body: str,
    ) -> MergeProposal:
        return await self.forge.create_merge_proposal(
            source,
            target,
            title,
            body,
            list(self.config.labels),
        )

    def return_to_branch(self, base_ref: str) -> None:
        """Check out the base branch again. Failures are logged, never raised."""
        try:
            self.repo.checkout(base_ref)
        except GitError as e:
            logger.error("Could not return to base branch", branch=base_ref, error=str(e))
            return
        logger.debug("Returned to base branch", branch=base_ref)

    async def publish(self, change_set: ChangeSet) -> MergeProposal | None:
        """Commit all changes on a fresh branch, push it and open a proposal.

        Returns:
            The created proposal, None if there was nothing to commit
        """
        now = self._clock()
        branch = self.create_branch()
        if not self.commit(commit_message(change_set, now)):
            self.return_to_branch(branch.base_ref)
            return None

        self.push(branch.name)
        target = self.config.target_branch or branch.base_ref
        proposal = await self.create_merge_proposal(
            branch.name,
            target,
            proposal_title(now),
            proposal_description(change_set, branch.name, target, now),
        )
        self.return_to_branch(branch.base_ref)
        logger.info("Merge proposal created", url=proposal.url)
        return proposal
