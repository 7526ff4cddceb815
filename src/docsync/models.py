"""Core models for content synchronization."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal


if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from pathlib import Path

    from docsync.exceptions import UnitProcessingError


SyncMode = Literal["normal", "resume"]


class ItemKind(Enum):
    """Kind of a file at the content source."""

    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    IMAGE = "image"
    OTHER = "other"


class UnitState(Enum):
    """Processing state of a single unit."""

    IDLE = "idle"
    LISTING = "listing"
    FETCHING = "fetching"
    ASSEMBLING = "assembling"
    TRANSFORMING = "transforming"
    STAMPING = "stamping"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {UnitState.DONE, UnitState.SKIPPED, UnitState.FAILED}


@dataclass(frozen=True)
class SourceUnit:
    """A logical content grouping (one folder) at the content source."""

    id: str
    """Source-side identifier."""

    name: str
    """Display name, used for the document slug and in the change set."""

    modified_at: datetime | None = None
    """Modification time of the grouping itself, if reported."""


@dataclass(frozen=True)
class SourceItem:
    """One file inside a unit."""

    id: str
    """Source-side identifier."""

    name: str
    """Display name."""

    kind: ItemKind
    """How the item contributes to the raw material."""

    modified_at: datetime
    """Remote modification time."""

    mime_type: str = ""
    """Original MIME type as reported by the source."""


@dataclass(frozen=True)
class ManifestEntry:
    """A source item recorded in a watermark."""

    id: str
    name: str


@dataclass(frozen=True)
class Watermark:
    """Sync metadata embedded in a generated document."""

    last_sync: datetime
    """Wall-clock time of the run that generated the document."""

    manifest: list[ManifestEntry] = field(default_factory=list)
    """Items the document was generated from."""

    @classmethod
    def for_items(cls, items: list[SourceItem], last_sync: datetime) -> Watermark:
        manifest = [ManifestEntry(id=item.id, name=item.name) for item in items]
        return cls(last_sync=last_sync, manifest=manifest)


@dataclass(frozen=True)
class StagedImage:
    """An image written to the unit's asset directory."""

    name: str
    """Original display name at the source."""

    path: str
    """Site-relative path used to reference the image from the document."""


@dataclass
class RawMaterial:
    """Assembled input for one unit's transformation."""

    text: str = ""
    """Concatenated text fragments, one heading per item."""

    images: list[StagedImage] = field(default_factory=list)
    """Images staged on disk for this unit."""

    def add_section(self, heading: str, body: str) -> None:
        self.text += f"\n\n## {heading}\n\n{body}"


@dataclass(frozen=True)
class ReferenceDocument:
    """A root-level document handed to every transformation as context."""

    name: str
    content: str
    kind: ItemKind = ItemKind.DOCUMENT


@dataclass
class ChangeSet:
    """Names of the units whose document was (re)written in the current run."""

    units: list[str] = field(default_factory=list)
    """Unit display names in processing order."""

    resumed: bool = False
    """Whether the changes were left over by a previous run."""

    def add(self, name: str) -> None:
        self.units.append(name)

    def __bool__(self) -> bool:
        return bool(self.units)

    def __len__(self) -> int:
        return len(self.units)

    def __iter__(self) -> Iterator[str]:
        return iter(self.units)


@dataclass(frozen=True)
class SyncBranch:
    """Disposable branch holding one run's commit."""

    name: str
    """Name of the branch created for this run."""

    base_ref: str
    """Branch the run started on."""


@dataclass
class UnitResult:
    """Outcome of processing (or skipping) one unit."""

    unit: SourceUnit
    state: UnitState = UnitState.IDLE
    path: Path | None = None
    """Path of the written document (only set when done)."""

    error: str | None = None
    """Failure description (only set when failed)."""

    exception: UnitProcessingError | None = None
    """The failure, chained to the exception that caused it."""

    def fail(self, error: UnitProcessingError) -> None:
        """Mark the unit failed, keeping the state it failed in on the error."""
        self.state = UnitState.FAILED
        self.error = str(error)
        self.exception = error


@dataclass(frozen=True)
class MergeProposal:
    """A merge/pull request opened on the forge."""

    url: str
    source_branch: str
    target_branch: str
    title: str
    raw: dict[str, Any] = field(default_factory=dict)
    """Full API response."""


@dataclass
class SyncResult:
    """Outcome of one synchronization run."""

    mode: SyncMode
    change_set: ChangeSet
    units: list[UnitResult] = field(default_factory=list)
    proposal: MergeProposal | None = None

    @property
    def failed(self) -> list[UnitResult]:
        return [r for r in self.units if r.state == UnitState.FAILED]
