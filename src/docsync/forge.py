"""Forge API clients for opening merge proposals."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Self
from urllib.parse import quote

import httpx

from docsync.exceptions import MergeProposalError
from docsync.log import get_logger
from docsync.models import MergeProposal


if TYPE_CHECKING:
    from types import TracebackType

    from docsync.config import SyncConfig


logger = get_logger(__name__)


class ForgeClient(Protocol):
    """Capability to open a draft merge proposal on a forge."""

    async def create_merge_proposal(
        self,
        source_branch: str,
        target_branch: str,
        title: str,
        description: str,
        labels: list[str],
    ) -> MergeProposal:
        """Open a draft merge proposal and return it."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


class _HttpForgeClient:
    """Shared HTTP plumbing for forge clients."""

    def __init__(
        self,
        api_url: str,
        headers: dict[str, str],
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = headers

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, payload: dict[str, Any], *, branch: str) -> dict[str, Any]:
        try:
            response = await self._client.post(
                f"{self.api_url}{path}",
                json=payload,
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            msg = f"Forge request failed: {e}"
            raise MergeProposalError(msg, branch=branch) from e
        if response.is_error:
            logger.error("Forge rejected request", status=response.status_code, body=response.text)
            msg = f"Forge returned HTTP {response.status_code} for {path}"
            raise MergeProposalError(msg, branch=branch, status_code=response.status_code)
        return response.json()  # type: ignore[no-any-return]


class GitLabClient(_HttpForgeClient):
    """GitLab merge request client."""

    def __init__(
        self,
        api_url: str,
        token: str,
        project_id: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the GitLab client.

        Args:
            api_url: GitLab API v4 base URL
            token: Personal, project or job token
            project_id: Numeric id or full path of the project
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (mainly for tests)
        """
        super().__init__(api_url, {"PRIVATE-TOKEN": token}, timeout=timeout, client=client)
        self.project_id = project_id

    async def create_merge_proposal(
        self,
        source_branch: str,
        target_branch: str,
        title: str,
        description: str,
        labels: list[str],
    ) -> MergeProposal:
        logger.debug("Creating merge request", source=source_branch, target=target_branch)
        project = quote(self.project_id, safe="")
        payload = {
            "source_branch": source_branch,
            "target_branch": target_branch,
            "title": title,
            "description": description,
            "labels": labels,
            "draft": True,
        }
        path = f"/projects/{project}/merge_requests"
        data = await self._post(path, payload, branch=source_branch)
        logger.info("Merge request created", url=data.get("web_url"))
        return MergeProposal(
            url=data.get("web_url", ""),
            source_branch=source_branch,
            target_branch=target_branch,
            title=title,
            raw=data,
        )


class GitHubClient(_HttpForgeClient):
    """GitHub pull request client."""

    def __init__(
        self,
        api_url: str,
        token: str,
        repository: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            api_url: GitHub REST API base URL
            token: Token with pull request write access
            repository: Repository as 'owner/name'
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (mainly for tests)
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        }
        super().__init__(api_url, headers, timeout=timeout, client=client)
        self.repository = repository

    async def create_merge_proposal(
        self,
        source_branch: str,
        target_branch: str,
        title: str,
        description: str,
        labels: list[str],
    ) -> MergeProposal:
        logger.debug("Creating pull request", source=source_branch, target=target_branch)
        payload = {
            "head": source_branch,
            "base": target_branch,
            "title": title,
            "body": description,
            "draft": True,
        }
        repo = f"/repos/{self.repository}"
        data = await self._post(f"{repo}/pulls", payload, branch=source_branch)
        if labels:
            # Pull requests take labels through the issues API
            await self._post(
                f"{repo}/issues/{data['number']}/labels",
                {"labels": labels},
                branch=source_branch,
            )
        logger.info("Pull request created", url=data.get("html_url"))
        return MergeProposal(
            url=data.get("html_url", ""),
            source_branch=source_branch,
            target_branch=target_branch,
            title=title,
            raw=data,
        )


def create_forge_client(
    config: SyncConfig,
    client: httpx.AsyncClient | None = None,
) -> GitLabClient | GitHubClient:
    """Create the forge client selected by the configuration."""
    token = config.forge_token.get_secret_value() if config.forge_token else ""
    project = config.forge_project or ""
    if config.forge == "github":
        return GitHubClient(config.api_url, token, project, client=client)
    return GitLabClient(config.api_url, token, project, client=client)
