"""Key/value watermark codec compatible with previously generated documents."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from docsync.models import ManifestEntry, Watermark
from docsync.utils.time_utils import format_timestamp, parse_timestamp
from docsync.watermark.helpers import last_match, strip_blocks


if TYPE_CHECKING:
    from datetime import datetime


_BLOCK_PATTERN = re.compile(r"<!--\s*SYNC_METADATA:.*?-->\s*", re.DOTALL)
_FIELDS_PATTERN = re.compile(
    r"<!--\s*SYNC_METADATA:\s*last_sync:[ \t]*(.+?)\s*source_files:[ \t]*(.*?)\s*-->",
    re.DOTALL,
)
# "Name (id)" entries separated by commas; ids never contain parentheses
_ENTRY_PATTERN = re.compile(r"\s*(.*?)\s*\(([^()]*)\)\s*(?:,|$)", re.DOTALL)


class LegacyWatermarkCodec:
    """Codec for the plain key/value SYNC_METADATA comment.

    Format:
        <!--
        SYNC_METADATA:
        last_sync: 2025-01-01T00:00:00.000Z
        source_files: Intro (1AbC), Photo.png (2DeF)
        -->
    """

    name = "legacy"

    def encode(self, manifest: list[ManifestEntry], sync_time: datetime) -> str:
        files = ", ".join(f"{entry.name} ({entry.id})" for entry in manifest)
        return (
            "<!--\n"
            "SYNC_METADATA:\n"
            f"last_sync: {format_timestamp(sync_time)}\n"
            f"source_files: {files}\n"
            "-->"
        )

    def decode(self, content: str) -> Watermark | None:
        block = last_match(_BLOCK_PATTERN, content)
        if not block:
            return None
        match = _FIELDS_PATTERN.match(block.group(0))
        if not match:
            return None
        try:
            last_sync = parse_timestamp(match.group(1))
        except ValueError:
            return None
        manifest = [
            ManifestEntry(id=entry_id.strip(), name=name)
            for name, entry_id in _ENTRY_PATTERN.findall(match.group(2))
        ]
        return Watermark(last_sync=last_sync, manifest=manifest)

    def strip(self, content: str) -> str:
        return strip_blocks(_BLOCK_PATTERN, content)
