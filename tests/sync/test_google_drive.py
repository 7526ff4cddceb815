"""Tests for the Google Drive content source."""

from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest

from docsync import GoogleDriveSource, ItemKind
from docsync.sources import item_kind_for_mime_type


API = "https://drive.test/v3"


def drive(handler) -> GoogleDriveSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleDriveSource("key-123", api_url=API, client=client)


@pytest.mark.parametrize(
    ("mime_type", "kind"),
    [
        ("application/vnd.google-apps.document", ItemKind.DOCUMENT),
        ("application/vnd.google-apps.spreadsheet", ItemKind.SPREADSHEET),
        ("image/png", ItemKind.IMAGE),
        ("image/svg+xml", ItemKind.IMAGE),
        ("application/pdf", ItemKind.OTHER),
        ("", ItemKind.OTHER),
    ],
)
def test_item_kind_for_mime_type(mime_type, kind):
    assert item_kind_for_mime_type(mime_type) == kind


async def test_list_units_queries_folders_by_name():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        files = [
            {"id": "f1", "name": "Alpha", "modifiedTime": "2025-03-01T10:00:00.000Z"},
            {"id": "f2", "name": "Beta"},
        ]
        return httpx.Response(200, json={"files": files})

    async with drive(handler) as source:
        units = await source.list_units("root")

    assert [(u.id, u.name) for u in units] == [("f1", "Alpha"), ("f2", "Beta")]
    assert units[0].modified_at == datetime(2025, 3, 1, 10, tzinfo=UTC)
    assert units[1].modified_at is None
    params = seen[0].url.params
    assert params["key"] == "key-123"
    assert params["orderBy"] == "name"
    assert "mimeType='application/vnd.google-apps.folder'" in params["q"]
    assert "'root' in parents" in params["q"]


async def test_list_items_follows_pagination():
    pages = {
        None: {
            "files": [
                {
                    "id": "d1",
                    "name": "Intro",
                    "mimeType": "application/vnd.google-apps.document",
                    "modifiedTime": "2025-03-02T00:00:00Z",
                }
            ],
            "nextPageToken": "page-2",
        },
        "page-2": {
            "files": [
                {
                    "id": "i1",
                    "name": "Logo",
                    "mimeType": "image/png",
                    "modifiedTime": "2025-03-01T00:00:00Z",
                }
            ]
        },
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["orderBy"] == "modifiedTime desc"
        return httpx.Response(200, json=pages[request.url.params.get("pageToken")])

    async with drive(handler) as source:
        items = await source.list_items("u1")

    assert [(i.id, i.kind) for i in items] == [("d1", ItemKind.DOCUMENT), ("i1", ItemKind.IMAGE)]
    assert items[1].mime_type == "image/png"
    assert items[0].modified_at == datetime(2025, 3, 2, tzinfo=UTC)


async def test_exports_and_downloads():
    def handler(request: httpx.Request) -> httpx.Response:
        match request.url.path, request.url.params.get("mimeType"), request.url.params.get("alt"):
            case ("/v3/files/d1/export", "text/plain", None):
                return httpx.Response(200, text="Document text")
            case ("/v3/files/s1/export", "text/csv", None):
                return httpx.Response(200, text="a,b\n1,2")
            case ("/v3/files/i1", None, "media"):
                return httpx.Response(200, content=b"\x89PNG")
        return httpx.Response(404)

    async with drive(handler) as source:
        assert await source.export_document_text("d1") == "Document text"
        assert await source.export_spreadsheet_csv("s1") == "a,b\n1,2"
        assert await source.download_bytes("i1") == b"\x89PNG"


async def test_http_errors_propagate():
    async with drive(lambda request: httpx.Response(403)) as source:
        with pytest.raises(httpx.HTTPStatusError):
            await source.list_items("u1")
