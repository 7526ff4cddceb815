"""Tests for reference context loading."""

from __future__ import annotations

import pytest
from sync_helpers import ROOT_ID, FakeSource, doc, image, sheet, ts

from docsync import ItemKind, ReferenceLoadError, load_reference_documents
from docsync.context import load_reference_document


async def test_loads_documents_and_spreadsheets_only():
    source = FakeSource()
    source.items[ROOT_ID] = [
        doc("g", "Glossary", ts(1)),
        sheet("p", "Products", ts(1)),
        image("l", "Logo", ts(1)),
    ]
    source.texts["g"] = "Tea: a drink"

    docs = await load_reference_documents(source, ROOT_ID)

    assert [(d.name, d.kind) for d in docs] == [
        ("Glossary", ItemKind.DOCUMENT),
        ("Products", ItemKind.SPREADSHEET),
    ]
    assert docs[0].content == "Tea: a drink"
    assert ("export_spreadsheet_csv", "p") in source.calls
    assert ("download_bytes", "l") not in source.calls


async def test_failing_document_is_skipped():
    source = FakeSource()
    source.items[ROOT_ID] = [doc("bad", "Broken", ts(1)), doc("ok", "Style guide", ts(1))]
    source.failing.add("bad")

    docs = await load_reference_documents(source, ROOT_ID)

    assert [d.name for d in docs] == ["Style guide"]


async def test_failing_root_listing_yields_no_context():
    source = FakeSource()
    source.failing.add(ROOT_ID)

    assert await load_reference_documents(source, ROOT_ID) == []


async def test_load_single_document_raises_load_error():
    source = FakeSource()
    source.failing.add("bad")

    with pytest.raises(ReferenceLoadError, match="Broken"):
        await load_reference_document(source, doc("bad", "Broken", ts(1)))
