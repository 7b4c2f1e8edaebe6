"""Content stream builders for stamps and flattened appearances.

Stamped text is positioned in the page's *displayed* frame: anchors and angles
are translated back into user space so stamps read upright regardless of the
page ``/Rotate`` value.  Text is drawn with a reportlab canvas, one canvas page
per document page, and each drawing is handed back as a Form XObject whose
resources (fonts, transparency states) travel with it.  Existing content
segments are never rewritten; new operators live in new segments.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Iterable, Literal, Sequence

from pypdf import PdfReader
from pypdf.generic import IndirectObject, NameObject, RectangleObject, StreamObject
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from .model import Box, ContentSegment, Page

__all__ = [
    "IDENTITY",
    "POSITIONS",
    "STANDARD_FONTS",
    "Position",
    "Layer",
    "TextStamp",
    "format_number",
    "display_anchor",
    "display_to_user",
    "check_drawable",
    "render_stamps",
    "apply_layer",
    "placement_matrix",
    "form_invocation",
]

Position = Literal[
    "top-left",
    "top-center",
    "top-right",
    "middle-left",
    "center",
    "middle-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
]
Layer = Literal["over", "under"]

POSITIONS: tuple[str, ...] = (
    "top-left",
    "top-center",
    "top-right",
    "middle-left",
    "center",
    "middle-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
)

# Text faces of the standard 14; Symbol and ZapfDingbats carry no text encoding.
STANDARD_FONTS: tuple[str, ...] = tuple(
    name for name in pdfmetrics.standardFonts if name not in ("Symbol", "ZapfDingbats")
)

# Baseline offsets relative to the anchor, as a fraction of the font size.
_VERTICAL_OFFSETS = {"top": -0.75, "middle": -0.35, "bottom": 0.2}

IDENTITY = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


@dataclass(frozen=True, slots=True)
class TextStamp:
    """One line of text to draw on one page."""

    text: str
    font: str
    size: float
    position: str
    margin: float = 0.0
    angle: float = 0.0
    color: tuple[float, float, float] = (0.0, 0.0, 0.0)
    opacity: float = 1.0


def format_number(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _split_position(position: str) -> tuple[str, str]:
    if position not in POSITIONS:
        raise ValueError(f"Unknown position {position!r}")
    if position == "center":
        return "middle", "center"
    vertical, horizontal = position.split("-")
    return vertical, horizontal


def display_anchor(page: Page, position: str, margin: float) -> tuple[float, float, str, str]:
    """Anchor point in display coordinates plus the alignment it implies."""

    vertical, horizontal = _split_position(position)
    width, height = page.display_size
    u = {"left": margin, "center": width / 2, "right": width - margin}[horizontal]
    v = {"top": height - margin, "middle": height / 2, "bottom": margin}[vertical]
    return u, v, vertical, horizontal


def display_to_user(page: Page, u: float, v: float) -> tuple[float, float]:
    """Map a point of the displayed page onto user space."""

    x0, y0, x1, y1 = page.visible_box
    x0, x1 = min(x0, x1), max(x0, x1)
    y0, y1 = min(y0, y1), max(y0, y1)
    w, h = x1 - x0, y1 - y0
    rotation = page.rotation
    if rotation == 90:
        return x0 + w - v, y0 + u
    if rotation == 180:
        return x0 + w - u, y0 + h - v
    if rotation == 270:
        return x0 + v, y0 + h - u
    return x0 + u, y0 + v


def check_drawable(text: str, font: str) -> str:
    """Raise ``ValueError`` unless ``font`` can draw every character of ``text``."""

    if font not in STANDARD_FONTS:
        raise ValueError(f"unsupported font {font!r}; choose one of {', '.join(sorted(STANDARD_FONTS))}")
    encoding = pdfmetrics.getFont(font).encName
    try:
        text.encode(encoding)
    except UnicodeEncodeError as exc:
        raise ValueError(
            f"{font} cannot draw {text[exc.start : exc.end]!r}; standard fonts cover the WinAnsi character set only"
        ) from exc
    return text


def _draw(pdf: canvas.Canvas, page: Page, stamp: TextStamp) -> None:
    u, v, vertical, horizontal = display_anchor(page, stamp.position, stamp.margin)
    x, y = display_to_user(page, u, v)
    pdf.saveState()
    pdf.translate(x, y)
    pdf.rotate(stamp.angle + page.rotation)
    pdf.setFillColorRGB(*stamp.color)
    if stamp.opacity < 1:
        pdf.setFillAlpha(stamp.opacity)
    pdf.setFont(stamp.font, stamp.size)
    draw = {"left": pdf.drawString, "center": pdf.drawCentredString, "right": pdf.drawRightString}[horizontal]
    draw(0, _VERTICAL_OFFSETS[vertical] * stamp.size, stamp.text)
    pdf.restoreState()


def render_stamps(pages: Sequence[Page], stamps: Sequence[TextStamp]) -> list[IndirectObject]:
    """Draw ``stamps[i]`` for ``pages[i]`` and return one Form XObject per page.

    All drawings share a single reportlab document, so fonts and transparency
    states are written once however many pages are stamped.  Each form uses the
    page's user space and is placed with the identity matrix.
    """

    if len(pages) != len(stamps):
        raise ValueError("Exactly one stamp per page is required")
    packet = BytesIO()
    pdf = canvas.Canvas(packet)
    for page, stamp in zip(pages, stamps):
        x0, y0, x1, y1 = page.media_box
        pdf.setPageSize((max(x1, 1.0), max(y1, 1.0)))
        _draw(pdf, page, stamp)
        pdf.showPage()
    pdf.save()

    reader = PdfReader(BytesIO(packet.getvalue()))
    forms = []
    for page, drawn in zip(pages, reader.pages):
        contents = drawn.raw_get("/Contents")
        stream = contents.get_object() if isinstance(contents, IndirectObject) else None
        if not isinstance(stream, StreamObject):
            raise ValueError("Stamp drawing did not produce a single content stream")
        stream[NameObject("/Type")] = NameObject("/XObject")
        stream[NameObject("/Subtype")] = NameObject("/Form")
        stream[NameObject("/BBox")] = RectangleObject(page.media_box)
        stream[NameObject("/Resources")] = drawn.raw_get("/Resources")
        forms.append(contents)
    return forms


def apply_layer(page: Page, stamp: bytes, layer: str) -> None:
    """Composite ``stamp`` beneath or above the existing page content."""

    if layer == "under":
        page.contents = [ContentSegment(stamp)] + page.contents
    elif layer == "over":
        if page.contents:
            page.contents = [ContentSegment(b"q\n")] + page.contents + [ContentSegment(b"\nQ\n" + stamp)]
        else:
            page.contents = [ContentSegment(stamp)]
    else:
        raise ValueError(f"Unknown layer {layer!r}")


def _transform_point(matrix: Sequence[float], x: float, y: float) -> tuple[float, float]:
    a, b, c, d, e, f = matrix
    return a * x + c * y + e, b * x + d * y + f


def placement_matrix(bbox: Box, matrix: Sequence[float] | None, rect: Box) -> tuple[float, ...]:
    """Matrix mapping a form's transformed bounding box onto an annotation rectangle.

    Follows the appearance placement algorithm of ISO 32000-1 section 12.5.5: the
    form bounding box is transformed by the form matrix and the resulting
    extent is scaled and translated onto the annotation rectangle.
    """

    form_matrix = tuple(matrix) if matrix else IDENTITY
    bx0, by0, bx1, by1 = bbox
    corners = [_transform_point(form_matrix, x, y) for x, y in ((bx0, by0), (bx0, by1), (bx1, by0), (bx1, by1))]
    xs = [point[0] for point in corners]
    ys = [point[1] for point in corners]
    tx0, tx1, ty0, ty1 = min(xs), max(xs), min(ys), max(ys)
    rx0, ry0, rx1, ry1 = min(rect[0], rect[2]), min(rect[1], rect[3]), max(rect[0], rect[2]), max(rect[1], rect[3])
    sx = (rx1 - rx0) / (tx1 - tx0) if tx1 > tx0 else 1.0
    sy = (ry1 - ry0) / (ty1 - ty0) if ty1 > ty0 else 1.0
    return sx, 0.0, 0.0, sy, rx0 - sx * tx0, ry0 - sy * ty0


def form_invocation(placements: Iterable[tuple[str, Sequence[float]]]) -> bytes:
    """Draw each named form XObject under its own placement matrix."""

    parts = []
    for name, matrix in placements:
        numbers = " ".join(format_number(value) for value in matrix)
        parts.append(f"q {numbers} cm /{name} Do Q")
    return ("\n".join(parts) + "\n").encode("ascii")
