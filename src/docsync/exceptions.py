"""Exception hierarchy for content synchronization."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from docsync.models import SourceUnit, UnitState


class DocSyncError(Exception):
    """Base class for all synchronization errors."""


class ConfigurationError(DocSyncError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.missing = list(missing)

    @classmethod
    def for_missing(cls, missing: Sequence[str]) -> ConfigurationError:
        msg = f"Missing environment variables: {', '.join(missing)}"
        return cls(msg, missing)


class UnitProcessingError(DocSyncError):
    """Processing of a single unit failed.

    The unit's document is left at its previous state.
    """

    def __init__(self, unit: SourceUnit, state: UnitState, reason: str):
        msg = f"Unit {unit.name!r} failed while {state.value}: {reason}"
        super().__init__(msg)
        self.unit = unit
        self.state = state


class ReferenceLoadError(DocSyncError):
    """A reference context document could not be loaded."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Could not load reference document {name!r}: {reason}")
        self.name = name


class VersionControlError(DocSyncError):
    """A branch, commit or push operation failed."""


class MergeProposalError(DocSyncError):
    """The forge rejected the merge proposal.

    Raised after the branch was pushed, so the branch stays on the remote
    without a proposal.
    """

    def __init__(self, message: str, *, branch: str, status_code: int | None = None):
        super().__init__(message)
        self.branch = branch
        self.status_code = status_code


class TransformError(DocSyncError):
    """The content transformer produced no usable document."""
