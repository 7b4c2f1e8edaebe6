from __future__ import annotations

from io import BytesIO

import pytest
from pypdf import PdfReader

from conftest import page_contents
from pdfforge.core.codec import decode
from pdfforge.core.errors import AuthError, EncryptionError, ValidationError
from pdfforge.core.model import Encrypted, Permission, Unencrypted
from pdfforge.tools import load_builtin_plugins
from pdfforge.tools.common.params import ProtectParams
from pdfforge.tools.common.pipeline import run_tool
from pdfforge.tools.encryptor import protect


def setup_module(module):
    load_builtin_plugins()


def test_protect_then_unlock_round_trip(sample_pdf: bytes) -> None:
    protected, filename = run_tool("protect", [sample_pdf], {"user_password": "secret"})
    assert filename == "protect_processed.pdf"

    reader = PdfReader(BytesIO(protected))
    assert reader.is_encrypted
    with pytest.raises(EncryptionError):
        decode(protected)

    unlocked, _ = run_tool("unlock", [protected], {"password": "secret"})
    assert not PdfReader(BytesIO(unlocked)).is_encrypted
    document = decode(unlocked)
    assert isinstance(document.security, Unencrypted)
    assert document.page_count == 3
    assert document.metadata.title == "Sample"
    assert b"(Page 2)" in page_contents(unlocked)[1]


def test_unlock_with_wrong_password_is_auth_error(encrypted_pdf: bytes) -> None:
    with pytest.raises(AuthError):
        run_tool("unlock", [encrypted_pdf], {"password": "wrong"})


def test_unlock_requires_password(encrypted_pdf: bytes) -> None:
    with pytest.raises(ValidationError):
        run_tool("unlock", [encrypted_pdf], {})


def test_unlock_of_plain_document_is_rejected(sample_pdf: bytes) -> None:
    with pytest.raises(ValidationError, match="not encrypted"):
        run_tool("unlock", [sample_pdf], {"password": "secret"})


def test_protect_requires_non_empty_password(sample_pdf: bytes) -> None:
    with pytest.raises(ValidationError, match="non-empty"):
        run_tool("protect", [sample_pdf], {"user_password": ""})


def test_protect_refuses_encrypted_input(encrypted_pdf: bytes) -> None:
    with pytest.raises(ValidationError, match="already encrypted"):
        run_tool("protect", [encrypted_pdf], {"user_password": "new", "password": "secret"})


def test_protect_with_permissions_and_aes(sample_pdf: bytes) -> None:
    protected, _ = run_tool(
        "protect",
        [sample_pdf],
        {"user_password": "u", "owner_password": "o", "permissions": ["print"], "algorithm": "AES-256"},
    )
    document = decode(protected, password="u")
    assert isinstance(document.security, Encrypted)
    assert document.security.algorithm == "AES-256"
    assert document.security.permissions == Permission.PRINT


def test_protect_rejects_unknown_permission(sample_pdf: bytes) -> None:
    with pytest.raises(ValidationError):
        run_tool("protect", [sample_pdf], {"user_password": "u", "permissions": ["fly"]})


def test_other_tools_keep_encryption(encrypted_pdf: bytes) -> None:
    with pytest.raises(EncryptionError):
        run_tool("rotate", [encrypted_pdf], {"angle": 90})

    rotated, _ = run_tool("rotate", [encrypted_pdf], {"angle": 90, "password": "secret"})
    reader = PdfReader(BytesIO(rotated))
    assert reader.is_encrypted
    assert reader.decrypt("secret")
    assert [page.rotation for page in reader.pages] == [90, 90]


def test_protect_leaves_source_unencrypted(sample_pdf: bytes) -> None:
    document = decode(sample_pdf)
    protected = protect(document, ProtectParams(user_password="secret"))
    assert not document.is_encrypted
    assert protected.is_encrypted


def test_owner_password_cannot_silently_replace_user_password(encrypted_pdf: bytes) -> None:
    with pytest.raises(EncryptionError) as info:
        run_tool("rotate", [encrypted_pdf], {"angle": 90, "password": "owner"})
    assert info.value.reason == EncryptionError.MISSING_CREDENTIAL
    assert "user password" in info.value.message

    unlocked, _ = run_tool("unlock", [encrypted_pdf], {"password": "owner"})
    assert not PdfReader(BytesIO(unlocked)).is_encrypted


def test_owner_password_keeps_empty_user_password(pdf_factory) -> None:
    data = pdf_factory(1, user_password="", owner_password="o")
    rotated, _ = run_tool("rotate", [data], {"angle": 90, "password": "o"})
    reader = PdfReader(BytesIO(rotated))
    assert reader.is_encrypted
    assert reader.decrypt("")
    assert reader.pages[0].rotation == 90
