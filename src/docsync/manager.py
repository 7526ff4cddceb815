"""Main orchestrator for content synchronization runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, Self

from docsync.context import load_reference_documents
from docsync.diff import DiffEngine
from docsync.exceptions import ConfigurationError, UnitProcessingError, VersionControlError
from docsync.log import get_logger
from docsync.models import ChangeSet, SyncResult, UnitResult, UnitState
from docsync.processor import UnitPaths, UnitProcessor
from docsync.utils.time_utils import get_now
from docsync.watermark import get_codec


if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path
    from types import TracebackType

    from docsync.config import SyncConfig
    from docsync.diff import UpdateDecision
    from docsync.models import ReferenceDocument, SourceUnit
    from docsync.sources import ContentSource
    from docsync.transformer import ContentTransformer
    from docsync.vcs import VersionControlAutomation
    from docsync.watermark import WatermarkCodec


logger = get_logger(__name__)

RESUME_LABEL: Final = "Existing changes"
"""Change set entry used when a previous run left uncommitted documents."""

MAX_LISTED_PATHS: Final = 5


def read_document(path: Path) -> str | None:
    """Read a generated document, None if it is missing or unreadable."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Unreadable document, regenerating", path=str(path), error=str(e))
        return None


class SyncManager:
    """Orchestrates a synchronization run.

    Walks all units of the content source one after another, regenerates the
    stale ones and hands the resulting change set to version control. Units
    fail independently; only configuration, root listing and version control
    errors abort the run.
    """

    def __init__(
        self,
        config: SyncConfig,
        source: ContentSource,
        transformer: ContentTransformer,
        vcs: VersionControlAutomation,
        *,
        codec: WatermarkCodec | None = None,
        clock: Callable[[], datetime] = get_now,
    ):
        """Initialize the sync manager.

        Args:
            config: Run configuration
            source: Content source to read units from
            transformer: Transformer producing document bodies
            vcs: Version-control automation for publishing changes
            codec: Watermark codec (default: the configured format)
            clock: Wall-clock used for watermarks
        """
        self.config = config
        self.source = source
        self.transformer = transformer
        self.vcs = vcs
        self.codec = codec or get_codec(config.watermark_format)
        self.diff = DiffEngine(source, self.codec)
        self.processor = UnitProcessor(source, transformer, self.codec, config, clock=clock)
        self._resources: list[Any] = []

    @classmethod
    def from_config(cls, config: SyncConfig) -> SyncManager:
        """Wire up the default collaborators (Google Drive, pydantic-ai, git + forge).

        Raises:
            ConfigurationError: Required settings are missing
        """
        from docsync.forge import create_forge_client
        from docsync.git import GitRepo
        from docsync.sources import GoogleDriveSource
        from docsync.transformer import AgentTransformer, FallbackTransformer, resolve_model
        from docsync.vcs import VersionControlAutomation

        config.validate_required()
        api_key = config.google_api_key.get_secret_value() if config.google_api_key else ""
        source = GoogleDriveSource(api_key)
        transformer: ContentTransformer = AgentTransformer(
            resolve_model(config.model, api_key or None),
            system_prompt=config.system_prompt,
        )
        if config.transform_fallback:
            transformer = FallbackTransformer(transformer)
        forge = create_forge_client(config)
        vcs = VersionControlAutomation(GitRepo(config.repo_path), forge, config)
        manager = cls(config, source, transformer, vcs)
        manager._resources = [source, forge]
        return manager

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
        for resource in self._resources:
            await resource.close()
        self._resources.clear()

    def has_pending_changes(self) -> bool:
        """Check whether a previous run left uncommitted generated content.

        This is the single place deciding about resume mode.
        """
        try:
            paths = self.vcs.pending_changes(self.config.content_path)
        except VersionControlError as e:
            logger.debug("Could not check working tree status", error=str(e))
            return False
        if paths:
            logger.info(
                "Found existing changes",
                content_path=self.config.content_path,
                paths=paths[:MAX_LISTED_PATHS],
                more=max(len(paths) - MAX_LISTED_PATHS, 0),
            )
        return bool(paths)

    async def run(self) -> SyncResult:
        """Run one synchronization.

        Returns:
            Result with the change set, per-unit outcomes and the merge proposal

        Raises:
            ConfigurationError: Required settings are missing (nothing was touched)
            VersionControlError: Branch, commit or push failed
            MergeProposalError: The pushed branch could not be proposed
        """
        logger.info("Starting content synchronization")
        try:
            self.config.validate_required()
            change_set = ChangeSet()
            if self.has_pending_changes():
                logger.info("Resuming, publishing existing changes without fetching")
                change_set.resumed = True
                change_set.add(RESUME_LABEL)
                result = SyncResult(mode="resume", change_set=change_set)
            else:
                units = await self._sync_units(change_set)
                result = SyncResult(mode="normal", change_set=change_set, units=units)

            if change_set:
                result.proposal = await self.vcs.publish(change_set)
            else:
                logger.info("No changes detected, no merge proposal created")
        except Exception as e:
            logger.error("Synchronization failed", error=str(e))
            if self.vcs.base_ref:
                self.vcs.return_to_branch(self.vcs.base_ref)
            raise

        logger.info(
            "Synchronization finished",
            mode=result.mode,
            changed=len(change_set),
            failed=len(result.failed),
        )
        return result

    async def _sync_units(self, change_set: ChangeSet) -> list[UnitResult]:
        root_id = self._root_id()
        reference_docs = await load_reference_documents(self.source, root_id)
        units = await self.source.list_units(root_id)
        logger.info("Units found", count=len(units))
        return [await self.sync_unit(unit, reference_docs, change_set) for unit in units]

    async def sync_unit(
        self,
        unit: SourceUnit,
        reference_docs: list[ReferenceDocument],
        change_set: ChangeSet,
    ) -> UnitResult:
        """Check one unit and regenerate its document if it is stale."""
        paths = UnitPaths.for_unit(unit, self.config)
        existing = read_document(paths.document)
        try:
            decision = await self.diff.decide(unit, existing)
        except Exception as e:
            logger.exception("Could not check unit", unit=unit.name)
            error = UnitProcessingError(unit, UnitState.LISTING, str(e) or type(e).__name__)
            error.__cause__ = e
            result = UnitResult(unit=unit)
            result.fail(error)
            return result

        if not decision:
            logger.info("Unit is up to date, skipping", unit=unit.name, reason=decision.reason)
            return UnitResult(unit=unit, state=UnitState.SKIPPED)

        logger.info("Unit has changes", unit=unit.name, reason=decision.reason)
        return await self.processor.process(unit, existing, reference_docs, change_set)

    async def status(self) -> list[tuple[SourceUnit, UpdateDecision | None]]:
        """Decide for every unit whether it would be regenerated, without side effects.

        Units whose check fails are reported with a None decision.
        """
        root_id = self._root_id()
        results: list[tuple[SourceUnit, UpdateDecision | None]] = []
        for unit in await self.source.list_units(root_id):
            existing = read_document(UnitPaths.for_unit(unit, self.config).document)
            try:
                decision = await self.diff.decide(unit, existing)
            except Exception:
                logger.exception("Could not check unit", unit=unit.name)
                decision = None
            results.append((unit, decision))
        return results

    def _root_id(self) -> str:
        if not self.config.root_folder_id:
            raise ConfigurationError.for_missing(["DRIVE_FOLDER_ID"])
        return self.config.root_folder_id
