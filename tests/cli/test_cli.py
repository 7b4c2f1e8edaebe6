from __future__ import annotations

import json
from io import BytesIO
from pathlib import Path

from click.testing import CliRunner
from pypdf import PdfReader

from conftest import build_pdf, stamp_forms
from pdfforge import __version__
from pdfforge.cli import cli


def _invoke(*args: str):
    return CliRunner().invoke(cli, list(args))


def test_version() -> None:
    result = _invoke("--version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_rotate_writes_output(sample_file: Path, tmp_path: Path) -> None:
    target = tmp_path / "rotated.pdf"
    result = _invoke("rotate", str(sample_file), "--angle", "90", "--pages", "0,2", "-o", str(target))

    assert result.exit_code == 0, result.output
    assert "Wrote" in result.output
    reader = PdfReader(BytesIO(target.read_bytes()))
    assert [page.rotation for page in reader.pages] == [90, 0, 90]


def test_merge_multiple_files(sample_file: Path, tmp_path: Path) -> None:
    other = tmp_path / "other.pdf"
    other.write_bytes(build_pdf(2, title="Other"))
    target = tmp_path / "merged.pdf"

    result = _invoke("merge", str(sample_file), str(other), "--bookmarks", "-o", str(target))

    assert result.exit_code == 0, result.output
    assert len(PdfReader(BytesIO(target.read_bytes())).pages) == 5


def test_info_table_and_json(sample_file: Path) -> None:
    table = _invoke("info", str(sample_file))
    assert table.exit_code == 0, table.output
    assert "Pages" in table.output
    assert "Sample" in table.output

    raw = _invoke("info", str(sample_file), "--json")
    assert raw.exit_code == 0
    assert json.loads(raw.output)["page_count"] == 3


def test_failure_exits_with_status_one(sample_file: Path, tmp_path: Path) -> None:
    result = _invoke("remove", str(sample_file), "--pages", "0,1,2", "-o", str(tmp_path / "out.pdf"))
    assert result.exit_code == 1
    assert "ValidationError" in result.output
    assert not (tmp_path / "out.pdf").exists()


def test_bad_index_list_is_a_usage_error(sample_file: Path) -> None:
    result = _invoke("extract", str(sample_file), "--pages", "one,two")
    assert result.exit_code == 2


def test_protect_and_unlock(sample_file: Path, tmp_path: Path) -> None:
    locked = tmp_path / "locked.pdf"
    unlocked = tmp_path / "unlocked.pdf"

    result = _invoke("protect", str(sample_file), "-u", "secret", "--permission", "print", "-o", str(locked))
    assert result.exit_code == 0, result.output
    assert PdfReader(BytesIO(locked.read_bytes())).is_encrypted

    assert _invoke("unlock", str(locked), "-o", str(unlocked)).exit_code == 2
    wrong = _invoke("unlock", str(locked), "--password", "nope", "-o", str(unlocked))
    assert wrong.exit_code == 1
    assert "AuthError" in wrong.output

    result = _invoke("unlock", str(locked), "--password", "secret", "-o", str(unlocked))
    assert result.exit_code == 0, result.output
    assert not PdfReader(BytesIO(unlocked.read_bytes())).is_encrypted


def test_metadata_and_watermark(sample_file: Path, tmp_path: Path) -> None:
    edited = tmp_path / "edited.pdf"
    result = _invoke(
        "metadata", str(sample_file), "--title", "Renamed", "--custom", "Team=Docs", "--remove", "author",
        "-o", str(edited),
    )
    assert result.exit_code == 0, result.output
    info = PdfReader(BytesIO(edited.read_bytes())).metadata
    assert info["/Title"] == "Renamed"
    assert info["/Team"] == "Docs"
    assert "/Author" not in info

    stamped = tmp_path / "stamped.pdf"
    result = _invoke("watermark", str(edited), "--text", "DRAFT", "--layer", "under", "-o", str(stamped))
    assert result.exit_code == 0, result.output

    numbered = tmp_path / "numbered.pdf"
    result = _invoke("number", str(stamped), "--format", "{n}/{total}", "-o", str(numbered))
    assert result.exit_code == 0, result.output
    assert any(b"(1/3) Tj" in form for form in stamp_forms(numbered.read_bytes()))


def test_help_lists_the_available_commands() -> None:
    result = _invoke("--help")
    assert result.exit_code == 0
    assert "reorganize" in result.output
    assert "split" not in result.output
    for name in ("merge", "rotate", "remove", "extract", "reorder", "number", "watermark", "metadata", "flatten",
                 "info", "protect", "unlock"):
        assert name in result.output
