from __future__ import annotations

from io import BytesIO

import pytest
from pypdf import PdfReader

from conftest import page_contents
from pdfforge.core.codec import decode
from pdfforge.core.errors import ValidationError
from pdfforge.tools import load_builtin_plugins
from pdfforge.tools.common.params import ReorderParams, RotateParams
from pdfforge.tools.common.pipeline import run_tool
from pdfforge.tools.organizer import reorder, rotate


def setup_module(module):
    load_builtin_plugins()


def _rotations(data: bytes) -> list[int]:
    return [page.rotation for page in PdfReader(BytesIO(data)).pages]


def _markers(data: bytes) -> list[bytes]:
    markers = []
    for content in page_contents(data):
        start = content.index(b"(Page ")
        markers.append(content[start : content.index(b")", start) + 1])
    return markers


def test_rotate_all_pages(sample_pdf: bytes) -> None:
    data, filename = run_tool("rotate", [sample_pdf], {"angle": 90})
    assert filename == "rotate_processed.pdf"
    assert _rotations(data) == [90, 90, 90]


def test_rotate_full_turn_plus_quarter_equals_quarter(sample_pdf: bytes) -> None:
    wide, _ = run_tool("rotate", [sample_pdf], {"angle": 450})
    quarter, _ = run_tool("rotate", [sample_pdf], {"angle": 90})
    assert _rotations(wide) == _rotations(quarter)


def test_rotate_selected_pages_is_additive(sample_pdf: bytes) -> None:
    once, _ = run_tool("rotate", [sample_pdf], {"angle": -90, "pages": [1]})
    assert _rotations(once) == [0, 270, 0]
    twice, _ = run_tool("rotate", [once], {"angle": 180, "pages": [1, 1]})
    assert _rotations(twice) == [0, 90, 0]


@pytest.mark.parametrize("params", [{"angle": 45}, {"angle": 90, "pages": [3]}, {"angle": 90, "pages": []}])
def test_rotate_rejects_bad_requests(sample_pdf: bytes, params: dict) -> None:
    with pytest.raises(ValidationError):
        run_tool("rotate", [sample_pdf], params)


def test_rotate_leaves_source_document_alone(sample_pdf: bytes) -> None:
    document = decode(sample_pdf)
    rotated = rotate(document, RotateParams(angle=90))
    assert [page.rotation for page in document.pages] == [0, 0, 0]
    assert [page.rotation for page in rotated.pages] == [90, 90, 90]


def test_remove_pages(sample_pdf: bytes) -> None:
    data, _ = run_tool("remove", [sample_pdf], {"pages": [1]})
    assert _markers(data) == [b"(Page 1)", b"(Page 3)"]


def test_remove_every_page_is_rejected(sample_pdf: bytes) -> None:
    with pytest.raises(ValidationError, match="every page"):
        run_tool("remove", [sample_pdf], {"pages": [0, 1, 2]})
    with pytest.raises(ValidationError):
        run_tool("remove", [sample_pdf], {"pages": [5]})


def test_extract_keeps_document_order(sample_pdf: bytes) -> None:
    data, _ = run_tool("extract", [sample_pdf], {"pages": [2, 0, 2]})
    assert _markers(data) == [b"(Page 1)", b"(Page 3)"]


def test_reorder_pages(sample_pdf: bytes) -> None:
    data, _ = run_tool("reorder", [sample_pdf], {"order": [2, 0, 1]})
    assert _markers(data) == [b"(Page 3)", b"(Page 1)", b"(Page 2)"]


@pytest.mark.parametrize("order", [[0, 0, 1], [0, 1], [0, 1, 2, 3], [1, 2, 3]])
def test_reorder_requires_permutation(sample_pdf: bytes, order: list[int]) -> None:
    document = decode(sample_pdf)
    uids = [page.uid for page in document.pages]
    with pytest.raises(ValidationError, match="permutation"):
        reorder(document, ReorderParams(order=order))
    assert [page.uid for page in document.pages] == uids


def test_page_tools_take_a_single_input(sample_pdf: bytes) -> None:
    with pytest.raises(ValidationError, match="at most 1"):
        run_tool("rotate", [sample_pdf, sample_pdf], {"angle": 90})
