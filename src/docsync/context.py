"""Loading of reference context documents from the source root."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docsync.exceptions import ReferenceLoadError
from docsync.log import get_logger
from docsync.models import ItemKind, ReferenceDocument


if TYPE_CHECKING:
    from docsync.models import SourceItem
    from docsync.sources import ContentSource


logger = get_logger(__name__)

CONTEXT_KINDS = frozenset({ItemKind.DOCUMENT, ItemKind.SPREADSHEET})


async def load_reference_document(source: ContentSource, item: SourceItem) -> ReferenceDocument:
    """Export one root-level item as a reference document.

    Raises:
        ReferenceLoadError: If the export fails
    """
    try:
        if item.kind == ItemKind.SPREADSHEET:
            content = await source.export_spreadsheet_csv(item.id)
        else:
            content = await source.export_document_text(item.id)
    except Exception as e:
        raise ReferenceLoadError(item.name, str(e) or type(e).__name__) from e
    return ReferenceDocument(name=item.name, content=content, kind=item.kind)


async def load_reference_documents(source: ContentSource, root_id: str) -> list[ReferenceDocument]:
    """Load all documents and spreadsheets sitting directly in the root folder.

    Loading is best-effort: documents that fail to load are logged and left out,
    and a failing root listing yields no context at all.
    """
    try:
        items = await source.list_items(root_id)
    except Exception:
        logger.exception("Could not list reference documents", root=root_id)
        return []

    candidates = [item for item in items if item.kind in CONTEXT_KINDS]
    if not candidates:
        logger.info(
            "No reference documents found in root folder",
            hint="Place documents like a glossary or style guide in the root folder",
        )
        return []

    docs: list[ReferenceDocument] = []
    for item in candidates:
        try:
            doc = await load_reference_document(source, item)
        except ReferenceLoadError as e:
            logger.warning("Skipping reference document", document=item.name, error=str(e))
            continue
        logger.info("Reference document loaded", document=doc.name, length=len(doc.content))
        docs.append(doc)

    logger.info("Reference context ready", documents=len(docs))
    return docs
