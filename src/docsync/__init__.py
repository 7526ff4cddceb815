"""Incremental synchronization of generated documents with a remote content source.

This package provides a system for:
- Deciding per content unit whether its generated document is stale
  (via a sync watermark embedded in the document)
- Regenerating stale documents from remote raw material with an LLM
- Publishing all regenerated documents as one branch, commit and merge proposal
- Resuming runs that crashed between writing documents and pushing them
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from docsync.config import SyncConfig
from docsync.context import load_reference_documents
from docsync.diff import DiffEngine, UpdateDecision
from docsync.exceptions import (
    ConfigurationError,
    DocSyncError,
    MergeProposalError,
    ReferenceLoadError,
    TransformError,
    UnitProcessingError,
    VersionControlError,
)
from docsync.forge import ForgeClient, GitHubClient, GitLabClient, create_forge_client
from docsync.git import GitError, GitRepo
from docsync.manager import RESUME_LABEL, SyncManager
from docsync.models import (
    ChangeSet,
    ItemKind,
    ManifestEntry,
    MergeProposal,
    RawMaterial,
    ReferenceDocument,
    SourceItem,
    SourceUnit,
    StagedImage,
    SyncBranch,
    SyncResult,
    UnitResult,
    UnitState,
    Watermark,
)
from docsync.processor import UnitPaths, UnitProcessor
from docsync.sources import ContentSource, GoogleDriveSource
from docsync.transformer import AgentTransformer, ContentTransformer, FallbackTransformer
from docsync.vcs import VersionControlAutomation
from docsync.watermark import (
    BUILTIN_CODECS,
    LegacyWatermarkCodec,
    WatermarkCodec,
    YamlWatermarkCodec,
    get_codec,
)


try:
    __version__ = version("docsync")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BUILTIN_CODECS",
    "RESUME_LABEL",
    "AgentTransformer",
    "ChangeSet",
    "ConfigurationError",
    "ContentSource",
    "ContentTransformer",
    "DiffEngine",
    "DocSyncError",
    "FallbackTransformer",
    "ForgeClient",
    "GitError",
    "GitHubClient",
    "GitLabClient",
    "GitRepo",
    "GoogleDriveSource",
    "ItemKind",
    "LegacyWatermarkCodec",
    "ManifestEntry",
    "MergeProposal",
    "MergeProposalError",
    "RawMaterial",
    "ReferenceDocument",
    "ReferenceLoadError",
    "SourceItem",
    "SourceUnit",
    "StagedImage",
    "SyncBranch",
    "SyncConfig",
    "SyncManager",
    "SyncResult",
    "TransformError",
    "UnitPaths",
    "UnitProcessingError",
    "UnitProcessor",
    "UnitResult",
    "UnitState",
    "UpdateDecision",
    "VersionControlAutomation",
    "Watermark",
    "WatermarkCodec",
    "YamlWatermarkCodec",
    "__version__",
    "create_forge_client",
    "get_codec",
    "load_reference_documents",
]
