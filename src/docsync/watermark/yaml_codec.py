"""YAML watermark codec."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import yaml

from docsync.models import ManifestEntry, Watermark
from docsync.utils.time_utils import format_timestamp, parse_timestamp
from docsync.watermark.helpers import last_match, strip_blocks


if TYPE_CHECKING:
    from datetime import datetime


_BLOCK_PATTERN = re.compile(r"<!--\s*docsync:watermark[ \t]*\n(.*?)-->\s*", re.DOTALL)


class YamlWatermarkCodec:
    """Codec storing the watermark as YAML inside an HTML comment.

    Format:
        <!-- docsync:watermark
        last_sync: '2025-01-01T00:00:00.000Z'
        sources:
        - id: 1AbC
          name: Intro
        -->
    """

    name = "yaml"

    def encode(self, manifest: list[ManifestEntry], sync_time: datetime) -> str:
        data = {
            "last_sync": format_timestamp(sync_time),
            "sources": [{"id": entry.id, "name": entry.name} for entry in manifest],
        }
        return f"<!-- docsync:watermark\n{_dump(data)}-->"

    def decode(self, content: str) -> Watermark | None:
        match = last_match(_BLOCK_PATTERN, content)
        if not match:
            return None
        try:
            data = yaml.safe_load(match.group(1))
            last_sync = parse_timestamp(data["last_sync"])
            manifest = [
                ManifestEntry(id=str(entry["id"]), name=str(entry["name"]))
                for entry in data.get("sources") or []
            ]
        except (yaml.YAMLError, KeyError, TypeError, ValueError, AttributeError):
            return None
        return Watermark(last_sync=last_sync, manifest=manifest)

    def strip(self, content: str) -> str:
        return strip_blocks(_BLOCK_PATTERN, content)


def _dump(data: dict[str, Any]) -> str:
    """Dump to YAML that can never close the surrounding HTML comment."""
    text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, width=float("inf"))
    if "--" not in text:
        return text
    # Double-quoted scalars allow escaping the second dash
    text = yaml.safe_dump(
        data,
        sort_keys=False,
        allow_unicode=True,
        width=float("inf"),
        default_style='"',
    )
    return text.replace("--", "-\\x2d")
