from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Callable
import sys

import pytest
from pypdf import PdfReader, PdfWriter
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NumberObject,
    TextStringObject,
)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
PACKAGES_DIR = PROJECT_ROOT / "packages"
if str(PACKAGES_DIR) not in sys.path:
    sys.path.insert(0, str(PACKAGES_DIR))


def _font(writer: PdfWriter):
    return writer._add_object(
        DictionaryObject(
            {
                NameObject("/Type"): NameObject("/Font"),
                NameObject("/Subtype"): NameObject("/Type1"),
                NameObject("/BaseFont"): NameObject("/Helvetica"),
            }
        )
    )


def _text_stream(writer: PdfWriter, text: str):
    stream = DecodedStreamObject()
    stream.set_data(f"BT /F1 12 Tf 20 20 Td ({text}) Tj ET".encode("latin-1"))
    return writer._add_object(stream)


def build_pdf(
    page_count: int = 3,
    *,
    width: float = 200,
    height: float = 300,
    title: str | None = "Sample",
    text: bool = True,
    user_password: str | None = None,
    owner_password: str | None = None,
    algorithm: str = "RC4-128",
) -> bytes:
    """Build a PDF whose page ``i`` draws ``Page i+1`` with one shared font."""

    writer = PdfWriter()
    font = _font(writer) if text else None
    for index in range(page_count):
        page = writer.add_blank_page(width=width, height=height)
        if text:
            page[NameObject("/Contents")] = _text_stream(writer, f"Page {index + 1}")
            page[NameObject("/Resources")] = DictionaryObject(
                {NameObject("/Font"): DictionaryObject({NameObject("/F1"): font})}
            )
    metadata = {"/Producer": "pdfforge-tests", "/Author": "pdfforge"}
    if title is not None:
        metadata["/Title"] = title
    writer.add_metadata(metadata)
    if user_password is not None:
        writer.encrypt(user_password, owner_password, algorithm=algorithm)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def build_form_pdf() -> bytes:
    """One page with a text widget (with appearance), a plain link and a hidden square."""

    writer = PdfWriter()
    page = writer.add_blank_page(width=300, height=300)

    appearance = DecodedStreamObject()
    appearance.set_data(b"0 0 1 rg 0 0 100 20 re f")
    appearance.update(
        {
            NameObject("/Type"): NameObject("/XObject"),
            NameObject("/Subtype"): NameObject("/Form"),
            NameObject("/BBox"): ArrayObject([NumberObject(0), NumberObject(0), NumberObject(100), NumberObject(20)]),
        }
    )
    appearance_ref = writer._add_object(appearance)

    def rect(x0: float, y0: float, x1: float, y1: float) -> ArrayObject:
        return ArrayObject([FloatObject(x0), FloatObject(y0), FloatObject(x1), FloatObject(y1)])

    widget = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Widget"),
            NameObject("/FT"): NameObject("/Tx"),
            NameObject("/T"): TextStringObject("name"),
            NameObject("/V"): TextStringObject("Alice"),
            NameObject("/Rect"): rect(50, 50, 150, 70),
            NameObject("/F"): NumberObject(4),
            NameObject("/AP"): DictionaryObject({NameObject("/N"): appearance_ref}),
        }
    )
    link = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Link"),
            NameObject("/Rect"): rect(10, 10, 40, 40),
        }
    )
    hidden = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Square"),
            NameObject("/Rect"): rect(200, 200, 250, 250),
            NameObject("/F"): NumberObject(2),
            NameObject("/AP"): DictionaryObject({NameObject("/N"): appearance_ref}),
        }
    )
    widget_ref = writer._add_object(widget)
    page[NameObject("/Annots")] = ArrayObject([widget_ref, writer._add_object(link), writer._add_object(hidden)])
    writer._root_object[NameObject("/AcroForm")] = writer._add_object(
        DictionaryObject({NameObject("/Fields"): ArrayObject([widget_ref])})
    )
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def page_contents(data: bytes, *, password: str | None = None) -> list[bytes]:
    reader = PdfReader(BytesIO(data))
    if password is not None:
        reader.decrypt(password)
    contents = []
    for page in reader.pages:
        stream = page.get_contents()
        contents.append(stream.get_data() if stream is not None else b"")
    return contents


def stamp_forms(data: bytes, page_index: int = 0) -> list[bytes]:
    """Decoded content of the stamp forms drawn on one page, in resource-name order."""

    page = PdfReader(BytesIO(data)).pages[page_index]
    xobjects = page["/Resources"].get("/XObject", {})
    return [xobjects[name].get_object().get_data() for name in sorted(xobjects) if name.startswith("/PFS")]


def corrupt_startxref(data: bytes) -> bytes:
    index = data.rfind(b"startxref")
    return data[:index] + b"startxref\n999999\n%%EOF\n"


@pytest.fixture()
def sample_pdf() -> bytes:
    return build_pdf(3)


@pytest.fixture()
def pdf_factory() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture()
def form_pdf() -> bytes:
    return build_form_pdf()


@pytest.fixture()
def encrypted_pdf() -> bytes:
    return build_pdf(2, user_password="secret", owner_password="owner")


@pytest.fixture()
def corrupted_pdf(sample_pdf: bytes) -> bytes:
    return corrupt_startxref(sample_pdf)


@pytest.fixture()
def sample_file(tmp_path: Path, sample_pdf: bytes) -> Path:
    path = tmp_path / "sample.pdf"
    path.write_bytes(sample_pdf)
    return path
