from __future__ import annotations

from io import BytesIO

import pytest
from pypdf import PdfReader

from conftest import page_contents, stamp_forms
from pdfforge.core.codec import decode
from pdfforge.core.errors import ValidationError
from pdfforge.tools import load_builtin_plugins
from pdfforge.tools.common.params import NumberParams
from pdfforge.tools.common.pipeline import run_tool
from pdfforge.tools.stamper import number


def setup_module(module):
    load_builtin_plugins()


def _form(data: bytes, page_index: int = 0):
    return PdfReader(BytesIO(data)).pages[page_index]["/Resources"]["/XObject"]["/PFS1"]


def test_number_stamps_every_page_and_keeps_content(sample_pdf: bytes) -> None:
    data, filename = run_tool("number", [sample_pdf])

    assert filename == "number_processed.pdf"
    for index, content in enumerate(page_contents(data)):
        assert f"(Page {index + 1})".encode() in content
        assert b"/PFS1 Do" in content
        assert b"(%d) Tj" % (index + 1) in stamp_forms(data, index)[0]

    reader = PdfReader(BytesIO(data))
    assert "/F1" in reader.pages[0]["/Resources"]["/Font"]
    form = _form(data)
    assert form["/Subtype"] == "/Form"
    fonts = form["/Resources"]["/Font"]
    assert any(font.get_object()["/BaseFont"] == "/Helvetica" for font in fonts.values())
    shared = {
        page["/Resources"]["/XObject"]["/PFS1"]["/Resources"].raw_get("/Font").idnum for page in reader.pages
    }
    assert len(shared) == 1


def test_number_format_and_start(sample_pdf: bytes) -> None:
    data, _ = run_tool("number", [sample_pdf], {"start": 5, "format": "Page {n} of {total}"})
    assert b"(Page 5 of 3) Tj" in stamp_forms(data, 0)[0]
    assert b"(Page 7 of 3) Tj" in stamp_forms(data, 2)[0]


def test_number_rejects_unknown_placeholders(sample_pdf: bytes) -> None:
    with pytest.raises(ValidationError, match="format"):
        run_tool("number", [sample_pdf], {"format": "{page}"})
    with pytest.raises(ValidationError, match="font"):
        run_tool("number", [sample_pdf], {"font": "Comic Sans"})


def test_number_does_not_modify_source(sample_pdf: bytes) -> None:
    document = decode(sample_pdf)
    stamped = number(document, NumberParams())
    assert [len(page.contents) for page in document.pages] == [1, 1, 1]
    assert all(len(page.contents) == 3 for page in stamped.pages)
    assert len(document.resources) == 1
    assert len(stamped.resources) == 4


def test_watermark_over_uses_transparency(sample_pdf: bytes) -> None:
    data, _ = run_tool("watermark", [sample_pdf], {"text": "DRAFT", "opacity": 0.25})

    states = _form(data)["/Resources"]["/ExtGState"]
    assert any(float(state.get_object().get("/ca", 1)) == pytest.approx(0.25) for state in states.values())
    for index, content in enumerate(page_contents(data)):
        assert content.index(b"/PFS1 Do") > content.index(b"Tj")
        assert b"(DRAFT) Tj" in stamp_forms(data, index)[0]


def test_watermark_under_is_drawn_first(sample_pdf: bytes) -> None:
    data, _ = run_tool("watermark", [sample_pdf], {"text": "DRAFT", "layer": "under"})
    for content in page_contents(data):
        assert content.index(b"/PFS1 Do") < content.index(b"(Page ")


def test_opaque_watermark_needs_no_transparency(sample_pdf: bytes) -> None:
    data, _ = run_tool("watermark", [sample_pdf], {"text": "DRAFT", "opacity": 1})
    reader = PdfReader(BytesIO(data))
    assert "/ExtGState" not in reader.pages[0]["/Resources"]
    states = _form(data)["/Resources"].get("/ExtGState", {})
    assert all("/ca" not in state.get_object() for state in states.values())


def test_watermark_escapes_literal_text(sample_pdf: bytes) -> None:
    data, _ = run_tool("watermark", [sample_pdf], {"text": "a(b)\\c"})
    assert b"(a\\(b\\)\\\\c) Tj" in stamp_forms(data)[0]


def test_watermark_rejects_text_the_font_cannot_draw(sample_pdf: bytes) -> None:
    with pytest.raises(ValidationError, match="cannot draw"):
        run_tool("watermark", [sample_pdf], {"text": "a(b)\\c 日本"})
    with pytest.raises(ValidationError, match="cannot draw"):
        run_tool("number", [sample_pdf], {"format": "{n} ページ"})


@pytest.mark.parametrize("params", [{"text": ""}, {"text": "x", "opacity": 0}, {"text": "x", "layer": "middle"}])
def test_watermark_rejects_bad_parameters(sample_pdf: bytes, params: dict) -> None:
    with pytest.raises(ValidationError):
        run_tool("watermark", [sample_pdf], params)
