"""Staleness detection for generated documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from docsync.log import get_logger
from docsync.utils.time_utils import format_timestamp


if TYPE_CHECKING:
    from docsync.models import SourceUnit
    from docsync.sources import ContentSource
    from docsync.watermark import WatermarkCodec


logger = get_logger(__name__)


@dataclass(frozen=True)
class UpdateDecision:
    """Whether a unit's document must be regenerated, and why."""

    needed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.needed


class DiffEngine:
    """Decides per unit whether regeneration is required.

    Only timestamps are compared: the newest modification time of all items in
    the unit against the last sync time stored in the document's watermark.
    Any added or modified item that moves the newest timestamp past the last
    sync regenerates the whole unit.
    """

    def __init__(self, source: ContentSource, codec: WatermarkCodec):
        self.source = source
        self.codec = codec

    async def decide(self, unit: SourceUnit, existing_text: str | None) -> UpdateDecision:
        """Decide whether a unit needs regeneration.

        Args:
            unit: The unit to check
            existing_text: Current content of the unit's document, None if missing

        Returns:
            The decision including a human-readable reason
        """
        if existing_text is None:
            return UpdateDecision(True, "no generated document yet")

        watermark = self.codec.decode(existing_text)
        if watermark is None:
            return UpdateDecision(True, "missing or unreadable sync metadata")

        items = await self.source.list_items(unit.id)
        if not items:
            return UpdateDecision(False, "unit has no items")

        latest = max(item.modified_at for item in items)
        logger.debug(
            "Comparing timestamps",
            unit=unit.name,
            last_sync=format_timestamp(watermark.last_sync),
            latest_remote=format_timestamp(latest),
        )
        # Equal timestamps count as synced
        if latest > watermark.last_sync:
            return UpdateDecision(True, f"modified at {format_timestamp(latest)}")
        return UpdateDecision(False, "up to date")

    async def needs_update(self, unit: SourceUnit, existing_text: str | None) -> bool:
        """Boolean view of decide()."""
        return (await self.decide(unit, existing_text)).needed
