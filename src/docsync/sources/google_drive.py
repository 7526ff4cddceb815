"""Google Drive content source.

Units are the sub-folders of a root folder; items are the files inside a
folder. Google Docs and Sheets are exported as plain text and CSV, images are
downloaded as-is. Public folders only need an API key.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, Self

import httpx

from docsync.log import get_logger
from docsync.models import ItemKind, SourceItem, SourceUnit
from docsync.utils.time_utils import parse_timestamp


if TYPE_CHECKING:
    from types import TracebackType


logger = get_logger(__name__)

DRIVE_API_URL: Final = "https://www.googleapis.com/drive/v3"
FOLDER_MIME_TYPE: Final = "application/vnd.google-apps.folder"
DOCUMENT_MIME_TYPE: Final = "application/vnd.google-apps.document"
SPREADSHEET_MIME_TYPE: Final = "application/vnd.google-apps.spreadsheet"
PAGE_SIZE: Final = 1000


def item_kind_for_mime_type(mime_type: str) -> ItemKind:
    """Map a Drive MIME type to the kind of contribution it makes."""
    if mime_type == DOCUMENT_MIME_TYPE:
        return ItemKind.DOCUMENT
    if mime_type == SPREADSHEET_MIME_TYPE:
        return ItemKind.SPREADSHEET
    if mime_type.startswith("image/"):
        return ItemKind.IMAGE
    return ItemKind.OTHER


class GoogleDriveSource:
    """Content source backed by the Google Drive v3 REST API.

    Examples:
        ```python
        async with GoogleDriveSource(api_key="...") as drive:
            for unit in await drive.list_units(root_id):
                items = await drive.list_items(unit.id)
        ```
    """

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str = DRIVE_API_URL,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Drive source.

        Args:
            api_key: Google API key with Drive access
            api_url: Drive API base URL
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (mainly for tests)
        """
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

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

    async def list_units(self, root_id: str) -> list[SourceUnit]:
        logger.debug("Listing folders", parent=root_id)
        query = f"'{root_id}' in parents and mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
        files = await self._list_files(query, fields="id, name, modifiedTime", order_by="name")
        return [
            SourceUnit(
                id=f["id"],
                name=f["name"],
                modified_at=parse_timestamp(f["modifiedTime"]) if f.get("modifiedTime") else None,
            )
            for f in files
        ]

    async def list_items(self, unit_id: str) -> list[SourceItem]:
        logger.debug("Listing files", folder=unit_id)
        query = f"'{unit_id}' in parents and trashed=false"
        files = await self._list_files(
            query,
            fields="id, name, mimeType, modifiedTime",
            order_by="modifiedTime desc",
        )
        return [
            SourceItem(
                id=f["id"],
                name=f["name"],
                kind=item_kind_for_mime_type(f.get("mimeType", "")),
                modified_at=parse_timestamp(f["modifiedTime"]),
                mime_type=f.get("mimeType", ""),
            )
            for f in files
        ]

    async def export_document_text(self, item_id: str) -> str:
        logger.debug("Exporting document", file_id=item_id)
        response = await self._get(f"/files/{item_id}/export", mimeType="text/plain")
        return response.text

    async def export_spreadsheet_csv(self, item_id: str) -> str:
        logger.debug("Exporting spreadsheet", file_id=item_id)
        response = await self._get(f"/files/{item_id}/export", mimeType="text/csv")
        return response.text

    async def download_bytes(self, item_id: str) -> bytes:
        logger.debug("Downloading file", file_id=item_id)
        response = await self._get(f"/files/{item_id}", alt="media")
        return response.content

    async def _list_files(self, query: str, *, fields: str, order_by: str) -> list[dict[str, Any]]:
        """Run a files.list query, following pagination."""
        files: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {
                "q": query,
                "fields": f"nextPageToken, files({fields})",
                "orderBy": order_by,
                "pageSize": PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token
            data = (await self._get("/files", **params)).json()
            files.extend(data.get("files", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return files

    async def _get(self, path: str, **params: Any) -> httpx.Response:
        response = await self._client.get(
            f"{self.api_url}{path}",
            params={**params, "key": self.api_key},
        )
        response.raise_for_status()
        return response
