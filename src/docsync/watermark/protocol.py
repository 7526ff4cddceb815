"""Watermark codec protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol


if TYPE_CHECKING:
    from datetime import datetime

    from docsync.models import ManifestEntry, Watermark


class WatermarkCodec(Protocol):
    """Protocol for serializing sync metadata into a document."""

    name: str
    """Format name used to select the codec."""

    def encode(self, manifest: list[ManifestEntry], sync_time: datetime) -> str:
        """Render the watermark block."""
        ...

    def decode(self, content: str) -> Watermark | None:
        """Extract the watermark, returning None if absent or unreadable."""
        ...

    def strip(self, content: str) -> str:
        """Return the document without its watermark block."""
        ...
