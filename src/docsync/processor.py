"""Per-unit pipeline: fetch, assemble, transform, stamp and persist."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
import re
import shutil
import tempfile
from typing import TYPE_CHECKING, Final

from docsync.exceptions import UnitProcessingError
from docsync.log import get_logger
from docsync.models import ItemKind, RawMaterial, StagedImage, UnitResult, UnitState, Watermark
from docsync.utils.time_utils import get_now
from docsync.watermark import stamp


if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from docsync.config import SyncConfig
    from docsync.models import ChangeSet, ReferenceDocument, SourceItem, SourceUnit
    from docsync.sources import ContentSource
    from docsync.transformer import ContentTransformer
    from docsync.watermark import WatermarkCodec


logger = get_logger(__name__)

IMAGE_EXTENSIONS: Final[dict[str, str]] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}
KNOWN_IMAGE_SUFFIXES: Final = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"})
DEFAULT_IMAGE_EXTENSION: Final = ".jpg"


def slugify(name: str) -> str:
    """Turn a unit name into a URL-friendly path slug.

    Slashes are kept so units can map to nested documents.
    """
    slug = re.sub(r"[^a-z0-9/]+", "-", name.lower())
    slug = re.sub(r"/+", "/", slug)
    return "/".join(part.strip("-") for part in slug.split("/") if part.strip("-"))


def sanitize_filename(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", name)


def image_filename(name: str, mime_type: str) -> str:
    """Build a safe image filename with exactly one image extension."""
    safe = sanitize_filename(name)
    suffix = PurePosixPath(safe).suffix
    if suffix.lower() in KNOWN_IMAGE_SUFFIXES:
        return safe[: -len(suffix)] + suffix.lower()
    return safe + IMAGE_EXTENSIONS.get(mime_type, DEFAULT_IMAGE_EXTENSION)


@dataclass(frozen=True)
class UnitPaths:
    """Filesystem and site locations belonging to one unit."""

    slug: str
    document: Path
    assets: Path
    url_prefix: str

    @classmethod
    def for_unit(cls, unit: SourceUnit, config: SyncConfig) -> UnitPaths:
        slug = slugify(unit.name) or sanitize_filename(unit.id)
        return cls(
            slug=slug,
            document=config.content_dir / f"{slug}.md",
            assets=config.assets_root / slug,
            url_prefix=config.assets_url_prefix.rstrip("/"),
        )

    def asset_url(self, filename: str) -> str:
        return f"{self.url_prefix}/{self.slug}/{filename}"


def write_atomic(path: Path, content: str) -> None:
    """Write text so readers see either the old or the complete new file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp.write(content)
    tmp_path = Path(tmp.name)
    try:
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


def install_assets(staging: Path, target: Path) -> None:
    """Move staged images into a unit's asset directory, replacing older versions."""
    files = sorted(staging.iterdir())
    if files:
        target.mkdir(parents=True, exist_ok=True)
    for file in files:
        shutil.move(file, target / file.name)


class UnitProcessor:
    """Runs the regeneration pipeline for one unit.

    Failures never escape: they are logged and reported through the returned
    UnitResult, and neither the unit's document nor its asset directory is
    touched.
    """

    def __init__(
        self,
        source: ContentSource,
        transformer: ContentTransformer,
        codec: WatermarkCodec,
        config: SyncConfig,
        clock: Callable[[], datetime] = get_now,
    ):
        self.source = source
        self.transformer = transformer
        self.codec = codec
        self.config = config
        self._clock = clock

    async def process(
        self,
        unit: SourceUnit,
        existing_text: str | None,
        reference_docs: list[ReferenceDocument],
        change_set: ChangeSet,
    ) -> UnitResult:
        """Regenerate a unit's document.

        Args:
            unit: The unit to process
            existing_text: Current document content (None if there is none)
            reference_docs: Context documents shared by all units of the run
            change_set: Run-wide change set, the unit is added on success

        Returns:
            Result with state DONE or FAILED
        """
        result = UnitResult(unit=unit)
        try:
            result.path = await self._run(unit, existing_text, reference_docs, result)
        except Exception as e:  # noqa: BLE001
            error = UnitProcessingError(unit, result.state, str(e) or type(e).__name__)
            error.__cause__ = e
            logger.exception("Unit processing failed", unit=unit.name, state=result.state.value)
            result.fail(error)
            return result

        result.state = UnitState.DONE
        change_set.add(unit.name)
        logger.info("Unit processed", unit=unit.name, path=str(result.path))
        return result

    async def _run(
        self,
        unit: SourceUnit,
        existing_text: str | None,
        reference_docs: list[ReferenceDocument],
        result: UnitResult,
    ) -> Path:
        paths = UnitPaths.for_unit(unit, self.config)

        result.state = UnitState.LISTING
        items = await self.source.list_items(unit.id)
        logger.info("Processing unit", unit=unit.name, items=len(items))

        # Images only reach the asset directory once the document is written
        with tempfile.TemporaryDirectory(prefix="docsync-") as staging_dir:
            staging = Path(staging_dir)
            result.state = UnitState.FETCHING
            material = await self._assemble(items, paths, staging, result)

            result.state = UnitState.TRANSFORMING
            existing_body = self.codec.strip(existing_text) if existing_text else None
            body = await self.transformer.transform(
                material.text,
                material.images,
                existing_body or None,
                reference_docs,
                title=unit.name,
            )

            result.state = UnitState.STAMPING
            watermark = Watermark.for_items(items, self._clock())
            block = self.codec.encode(watermark.manifest, watermark.last_sync)
            content = stamp(self.codec, body, block)

            write_atomic(paths.document, content)
            install_assets(staging, paths.assets)
        return paths.document

    async def _assemble(
        self,
        items: list[SourceItem],
        paths: UnitPaths,
        staging: Path,
        result: UnitResult,
    ) -> RawMaterial:
        material = RawMaterial()
        used_names: set[str] = set()
        for item in items:
            result.state = UnitState.FETCHING
            match item.kind:
                case ItemKind.DOCUMENT:
                    text = await self.source.export_document_text(item.id)
                    result.state = UnitState.ASSEMBLING
                    material.add_section(item.name, text)
                case ItemKind.SPREADSHEET:
                    csv = await self.source.export_spreadsheet_csv(item.id)
                    result.state = UnitState.ASSEMBLING
                    material.add_section(item.name, f"```csv\n{csv}\n```")
                case ItemKind.IMAGE:
                    data = await self.source.download_bytes(item.id)
                    result.state = UnitState.ASSEMBLING
                    filename = _unique(image_filename(item.name, item.mime_type), used_names)
                    (staging / filename).write_bytes(data)
                    material.images.append(StagedImage(item.name, paths.asset_url(filename)))
                    logger.debug("Image staged", image=filename, unit_slug=paths.slug)
                case _:
                    logger.debug("Ignoring item", item=item.name, mime_type=item.mime_type)
        result.state = UnitState.ASSEMBLING
        return material


def _unique(filename: str, used: set[str]) -> str:
    """Disambiguate filenames that sanitize to the same value."""
    candidate = filename
    stem, suffix = PurePosixPath(filename).stem, PurePosixPath(filename).suffix
    counter = 1
    while candidate in used:
        candidate = f"{stem}_{counter}{suffix}"
        counter += 1
    used.add(candidate)
    return candidate
