"""Content source protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol


if TYPE_CHECKING:
    from docsync.models import SourceItem, SourceUnit


class ContentSource(Protocol):
    """Remote store the generated documents are built from."""

    async def list_units(self, root_id: str) -> list[SourceUnit]:
        """List the content groupings below the root."""
        ...

    async def list_items(self, unit_id: str) -> list[SourceItem]:
        """List the files directly inside a grouping (or the root)."""
        ...

    async def export_document_text(self, item_id: str) -> str:
        """Export a document as plain text."""
        ...

    async def export_spreadsheet_csv(self, item_id: str) -> str:
        """Export a spreadsheet as CSV."""
        ...

    async def download_bytes(self, item_id: str) -> bytes:
        """Download the raw bytes of a file."""
        ...
