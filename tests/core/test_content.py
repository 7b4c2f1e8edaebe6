from __future__ import annotations

import pytest

from pdfforge.core.content import (
    STANDARD_FONTS,
    TextStamp,
    apply_layer,
    check_drawable,
    display_anchor,
    display_to_user,
    form_invocation,
    format_number,
    placement_matrix,
    render_stamps,
)
from pdfforge.core.model import ContentSegment, Page


def _page(rotation: int = 0) -> Page:
    return Page(media_box=(0, 0, 200, 300), rotation=rotation)


def test_format_number_trims_zeros() -> None:
    assert format_number(1.0) == "1"
    assert format_number(0.30000001) == "0.3"
    assert format_number(-0.0) == "0"
    assert format_number(-12.5) == "-12.5"


@pytest.mark.parametrize(
    "rotation, point",
    [(0, (10.0, 20.0)), (90, (180.0, 10.0)), (180, (190.0, 280.0)), (270, (20.0, 290.0))],
)
def test_display_to_user(rotation: int, point: tuple[float, float]) -> None:
    assert display_to_user(_page(rotation), 10, 20) == point


def test_display_anchor_uses_rotated_frame() -> None:
    u, v, vertical, horizontal = display_anchor(_page(90), "top-right", 10)
    assert (u, v) == (290, 190)
    assert (vertical, horizontal) == ("top", "right")
    with pytest.raises(ValueError):
        display_anchor(_page(), "somewhere", 0)


def test_apply_layer_wraps_existing_content() -> None:
    page = _page()
    page.contents = [ContentSegment(b"original")]
    apply_layer(page, b"stamp", "over")
    assert [segment.payload for segment in page.contents] == [b"q\n", b"original", b"\nQ\nstamp"]

    page = _page()
    page.contents = [ContentSegment(b"original")]
    apply_layer(page, b"stamp", "under")
    assert [segment.payload for segment in page.contents] == [b"stamp", b"original"]

    with pytest.raises(ValueError):
        apply_layer(page, b"stamp", "sideways")


def test_placement_matrix_scales_bbox_onto_rect() -> None:
    assert placement_matrix((0, 0, 100, 20), None, (50, 50, 150, 70)) == (1.0, 0.0, 0.0, 1.0, 50.0, 50.0)
    assert placement_matrix((0, 0, 50, 10), None, (0, 0, 100, 20)) == (2.0, 0.0, 0.0, 2.0, 0.0, 0.0)


def test_form_invocation() -> None:
    assert form_invocation([("PFX1", (1, 0, 0, 1, 5, 5))]) == b"q 1 0 0 1 5 5 cm /PFX1 Do Q\n"



def test_standard_fonts_are_text_faces() -> None:
    assert "Helvetica" in STANDARD_FONTS
    assert "Times-BoldItalic" in STANDARD_FONTS
    assert "ZapfDingbats" not in STANDARD_FONTS


def test_check_drawable() -> None:
    assert check_drawable("café (1)", "Helvetica") == "café (1)"
    with pytest.raises(ValueError, match="cannot draw"):
        check_drawable("日本", "Helvetica")
    with pytest.raises(ValueError, match="unsupported font"):
        check_drawable("x", "Comic Sans")


def test_render_stamps_returns_one_form_per_page() -> None:
    pages = [_page(), _page(90)]
    stamps = [
        TextStamp(text="one", font="Helvetica", size=12, position="bottom-left", margin=10),
        TextStamp(text="two", font="Courier", size=12, position="center", opacity=0.5),
    ]
    forms = render_stamps(pages, stamps)

    assert len(forms) == 2
    first, second = (form.get_object() for form in forms)
    assert first["/Subtype"] == "/Form"
    assert [float(value) for value in first["/BBox"]] == [0, 0, 200, 300]
    assert b"(one) Tj" in first.get_data()
    assert b"(two) Tj" in second.get_data()
    assert "/ExtGState" in second["/Resources"]
    with pytest.raises(ValueError):
        render_stamps(pages, stamps[:1])
