"""Content sources providing the raw material for generated documents."""

from __future__ import annotations

from docsync.sources.google_drive import GoogleDriveSource, item_kind_for_mime_type
from docsync.sources.protocol import ContentSource


__all__ = ["ContentSource", "GoogleDriveSource", "item_kind_for_mime_type"]
