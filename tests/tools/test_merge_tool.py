from __future__ import annotations

from io import BytesIO

import pytest
from pypdf import PdfReader

from conftest import build_pdf, page_contents
from pdfforge.core.codec import decode
from pdfforge.core.errors import ValidationError
from pdfforge.core.settings import EngineSettings
from pdfforge.tools import load_builtin_plugins
from pdfforge.tools.common.params import MergeParams
from pdfforge.tools.common.pipeline import run_tool
from pdfforge.tools.merger import merge


def setup_module(module):
    load_builtin_plugins()


def test_merge_concatenates_in_input_order() -> None:
    first = build_pdf(3)
    second = build_pdf(2, title="Other")

    data, filename = run_tool("merge", [first, second])

    assert filename == "merge_processed.pdf"
    contents = page_contents(data)
    assert len(contents) == 5
    expected = [b"(Page 1)", b"(Page 2)", b"(Page 3)", b"(Page 1)", b"(Page 2)"]
    for content, marker in zip(contents, expected):
        assert marker in content
    reader = PdfReader(BytesIO(data))
    assert reader.metadata.title == "Sample"


def test_merge_takes_metadata_from_selected_input() -> None:
    data, _ = run_tool("merge", [build_pdf(1), build_pdf(1, title="Other")], {"metadata_from": 1})
    assert PdfReader(BytesIO(data)).metadata.title == "Other"


def test_merge_adds_bookmark_per_input() -> None:
    data, _ = run_tool("merge", [build_pdf(2), build_pdf(1, title=None)], {"bookmarks": True})
    reader = PdfReader(BytesIO(data))
    titles = [item.title for item in reader.outline]
    assert titles == ["Sample", "Document 2"]
    assert reader.get_destination_page_number(reader.outline[1]) == 2


def test_merge_requires_two_inputs() -> None:
    with pytest.raises(ValidationError, match="at least 2"):
        run_tool("merge", [build_pdf(1)])


def test_merge_rejects_out_of_range_metadata_source() -> None:
    with pytest.raises(ValidationError, match="metadata_from"):
        run_tool("merge", [build_pdf(1), build_pdf(1)], {"metadata_from": 2})


def test_sequential_decode_gives_same_result() -> None:
    inputs = [build_pdf(1), build_pdf(2), build_pdf(3)]
    data, _ = run_tool("merge", inputs, settings=EngineSettings(parallel_merge_decode=False))
    assert len(page_contents(data)) == 6


def test_merge_keeps_inputs_untouched_and_unions_resources() -> None:
    first = decode(build_pdf(2))
    second = decode(build_pdf(2))
    first_uids = [page.uid for page in first.pages]

    merged = merge([first, second], MergeParams())

    assert [page.uid for page in first.pages] == first_uids
    assert first.page_count == 2
    assert merged.page_count == 4
    assert len(merged.resources) == 2
    assert len({page.uid for page in merged.pages}) == 4
    merged.check_integrity()


def test_merge_then_extract_restores_second_input() -> None:
    second = build_pdf(2, title="Other")
    merged, _ = run_tool("merge", [build_pdf(3), second])
    extracted, _ = run_tool("extract", [merged], {"pages": [3, 4]})
    contents = page_contents(extracted)
    assert len(contents) == 2
    assert b"(Page 1)" in contents[0]
    assert b"(Page 2)" in contents[1]
    assert PdfReader(BytesIO(extracted)).metadata.title == "Sample"


def test_merge_then_extract_restores_first_input() -> None:
    merged, _ = run_tool("merge", [build_pdf(3), build_pdf(2)])
    extracted, _ = run_tool("extract", [merged], {"pages": [0, 1, 2]})
    contents = page_contents(extracted)
    assert [f"(Page {index + 1})".encode() in content for index, content in enumerate(contents)] == [True] * 3
