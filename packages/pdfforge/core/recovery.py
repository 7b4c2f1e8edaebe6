"""Low level byte inspection and cross-reference recovery.

These helpers work directly on the raw file bytes.  They validate the header,
detect truncation, check that the cross-reference structure points at real
object headers and, when it does not, rebuild a classic xref table from a
linear scan of every ``N G obj ... endobj`` span.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from .errors import FormatError
from .utils import get_logger

__all__ = [
    "SUPPORTED_VERSIONS",
    "ObjectSpan",
    "detect_version",
    "locate_startxref",
    "cross_reference_is_consistent",
    "scan_objects",
    "is_truncated",
    "rebuild_cross_reference",
    "count_pages_hint",
    "trailer_hints",
]

LOGGER = get_logger("pdfforge.recovery")

SUPPORTED_VERSIONS = frozenset({"1.0", "1.1", "1.2", "1.3", "1.4", "1.5", "1.6", "1.7", "2.0"})

_WHITESPACE = b"\x00\t\n\r\f "
_HEADER = re.compile(rb"%PDF-(\d+\.\d+)")
_OBJ_HEADER = re.compile(rb"(?<![0-9])(\d{1,10})[\x00\t\n\r\f ]+(\d{1,5})[\x00\t\n\r\f ]+obj(?![A-Za-z])")
_STREAM_OR_END = re.compile(rb"\bstream\b|\bendobj\b")
_REF = rb"[\x00\t\n\r\f ]+(\d+)[\x00\t\n\r\f ]+(\d+)[\x00\t\n\r\f ]+R"
_ROOT = re.compile(rb"/Root" + _REF)
_INFO = re.compile(rb"/Info" + _REF)
_ENCRYPT = re.compile(rb"/Encrypt" + _REF)
_ID = re.compile(rb"/ID[\x00\t\n\r\f ]*\[[^\]]*\]")
_CATALOG = re.compile(rb"/Type[\x00\t\n\r\f ]*/Catalog\b")
_PAGES = re.compile(rb"/Type[\x00\t\n\r\f ]*/Pages\b")
_COUNT = re.compile(rb"/Count[\x00\t\n\r\f ]+(\d+)")
_XREF_STREAM = re.compile(rb"/Type[\x00\t\n\r\f ]*/XRef\b")


@dataclass(frozen=True, slots=True)
class ObjectSpan:
    number: int
    generation: int
    start: int
    end: int | None

    @property
    def complete(self) -> bool:
        return self.end is not None


def _skip_ws(buffer: bytes, index: int) -> int:
    while index < len(buffer) and buffer[index] in _WHITESPACE:
        index += 1
    return index


def _read_int(buffer: bytes, index: int) -> tuple[int, int]:
    index = _skip_ws(buffer, index)
    start = index
    while index < len(buffer) and buffer[index] in b"+-0123456789":
        index += 1
    if start == index:
        raise ValueError("Expected integer in xref table")
    return int(buffer[start:index]), index


def detect_version(data: bytes) -> str:
    """Return the header version, raising :class:`FormatError` when unusable."""

    if not data:
        raise FormatError("Input is empty (truncated document)")
    match = _HEADER.search(data[:1024])
    if match is None:
        raise FormatError("Missing %PDF header; input is not a PDF document")
    version = match.group(1).decode("ascii")
    if version not in SUPPORTED_VERSIONS:
        raise FormatError(f"Unsupported PDF version {version}")
    return version


def locate_startxref(data: bytes) -> int | None:
    marker = b"startxref"
    index = data.rfind(marker)
    if index == -1:
        return None
    remainder = data[index + len(marker) :]
    for line in remainder.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        digit_match = re.match(rb"([0-9]+)", stripped)
        if digit_match:
            return int(digit_match.group(1))
        return None
    return None


def _xref_table_offsets(data: bytes, start: int) -> dict[tuple[int, int], int] | None:
    offsets: dict[tuple[int, int], int] = {}
    length = len(data)
    index = _skip_ws(data, start + len(b"xref"))
    while index < length:
        if data[index : index + 7] == b"trailer":
            return offsets
        try:
            first, index = _read_int(data, index)
            count, index = _read_int(data, index)
        except ValueError:
            return None
        index = _skip_ws(data, index)
        for i in range(count):
            if index + 18 > length:
                return None
            record = data[index : index + 20]
            try:
                offset = int(record[0:10])
                generation = int(record[11:16])
            except ValueError:
                return None
            if record[17:18] == b"n":
                offsets[(first + i, generation)] = offset
            index += 18
            while index < length and data[index] in b" \r\n":
                index += 1
        index = _skip_ws(data, index)
    return None


def _header_at(data: bytes, offset: int, number: int | None = None) -> re.Match[bytes] | None:
    if offset < 0 or offset >= len(data):
        return None
    match = _OBJ_HEADER.match(data, _skip_ws(data, offset))
    if match is None:
        return None
    if number is not None and int(match.group(1)) != number:
        return None
    return match


def cross_reference_is_consistent(data: bytes) -> bool:
    """Check that ``startxref`` leads to an xref section whose entries are valid."""

    startxref = locate_startxref(data)
    if startxref is None or startxref >= len(data):
        return False
    position = _skip_ws(data, startxref)
    if data.startswith(b"xref", position):
        offsets = _xref_table_offsets(data, position)
        if offsets is None:
            return False
        return all(_header_at(data, offset, number) is not None for (number, _), offset in offsets.items())
    header = _header_at(data, startxref)
    if header is None:
        return False
    window = data[header.end() : header.end() + 2048]
    return _XREF_STREAM.search(window) is not None


def scan_objects(data: bytes) -> list[ObjectSpan]:
    """Linearly scan every indirect object definition in ``data``."""

    spans: list[ObjectSpan] = []
    position = 0
    while True:
        match = _OBJ_HEADER.search(data, position)
        if match is None:
            break
        number, generation = int(match.group(1)), int(match.group(2))
        cursor = match.end()
        end: int | None = None
        keyword = _STREAM_OR_END.search(data, cursor)
        if keyword is not None and keyword.group(0) == b"stream":
            stream_end = data.find(b"endstream", keyword.end())
            cursor = stream_end + len(b"endstream") if stream_end != -1 else len(data)
            keyword = _STREAM_OR_END.search(data, cursor) if stream_end != -1 else None
        if keyword is not None and keyword.group(0) == b"endobj":
            end = keyword.end()
            position = end
        else:
            position = max(cursor, match.end())
        spans.append(ObjectSpan(number, generation, match.start(), end))
    return spans


def is_truncated(data: bytes, spans: list[ObjectSpan] | None = None) -> bool:
    if b"%%EOF" in data[-2048:]:
        return False
    spans = scan_objects(data) if spans is None else spans
    return not spans or not spans[-1].complete


def trailer_hints(data: bytes) -> dict[str, bytes]:
    """Return the last ``/Root``, ``/Info``, ``/Encrypt`` and ``/ID`` entries found."""

    hints: dict[str, bytes] = {}
    for key, pattern in (("Root", _ROOT), ("Info", _INFO), ("Encrypt", _ENCRYPT)):
        matches = list(pattern.finditer(data))
        if matches:
            last = matches[-1]
            hints[key] = last.group(1) + b" " + last.group(2) + b" R"
    ids = list(_ID.finditer(data))
    if ids:
        hints["ID"] = ids[-1].group(0)[3:].strip()
    return hints


def _span_body(data: bytes, span: ObjectSpan) -> bytes:
    return data[span.start : span.end if span.end is not None else len(data)]


def rebuild_cross_reference(data: bytes) -> bytes:
    """Append a freshly scanned xref table and trailer to ``data``."""

    spans = scan_objects(data)
    latest: dict[int, ObjectSpan] = {}
    for span in spans:
        latest[span.number] = span
    if not latest:
        raise FormatError("No objects found while rebuilding the cross-reference table")

    hints = trailer_hints(data)
    root = hints.get("Root")
    if root is not None:
        number = int(root.split()[0])
        if number not in latest:
            root = None
    if root is None:
        for span in reversed(list(latest.values())):
            if _CATALOG.search(_span_body(data, span)):
                root = f"{span.number} {span.generation} R".encode("ascii")
                break
    if root is None:
        raise FormatError("Unable to locate the document catalog during recovery")

    LOGGER.warning("Rebuilding cross-reference table from %d scanned object(s)", len(latest))
    body = data if data.endswith((b"\n", b"\r")) else data + b"\n"
    size = max(latest) + 1
    lines = [b"xref", f"0 {size}".encode("ascii"), b"0000000000 65535 f\r"]
    for number in range(1, size):
        span = latest.get(number)
        if span is None:
            lines.append(b"0000000000 65535 f\r")
        else:
            lines.append(f"{span.start:010d} {span.generation:05d} n\r".encode("ascii"))
    trailer = [b"/Size " + str(size).encode("ascii"), b"/Root " + root]
    for key in ("Info", "Encrypt"):
        value = hints.get(key)
        if value is not None and int(value.split()[0]) in latest:
            trailer.append(b"/" + key.encode("ascii") + b" " + value)
    if "ID" in hints:
        trailer.append(b"/ID " + hints["ID"])
    lines.append(b"trailer")
    lines.append(b"<< " + b" ".join(trailer) + b" >>")
    lines.append(b"startxref")
    lines.append(str(len(body)).encode("ascii"))
    lines.append(b"%%EOF")
    return body + b"\n".join(lines) + b"\n"


def count_pages_hint(data: bytes) -> int | None:
    """Cheap page-count estimate from the largest ``/Count`` of a ``/Pages`` node."""

    best: int | None = None
    for span in scan_objects(data):
        body = _span_body(data, span)
        if span.complete and b"stream" in body:
            body = body[: body.find(b"stream")]
        if not _PAGES.search(body):
            continue
        for match in _COUNT.finditer(body):
            value = int(match.group(1))
            best = value if best is None else max(best, value)
    return best
