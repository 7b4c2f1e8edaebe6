"""In-memory PDF transformation engine exposing modular pdfforge tools."""

from __future__ import annotations

import json
from typing import Any, Iterable, Sequence

__version__ = "0.1.0"

from .core import (
    AuthError,
    Document,
    EncryptionError,
    EngineSettings,
    ErrorKind,
    FormatError,
    PdfCodec,
    PdfForgeError,
    ResourceLimitError,
    ValidationError,
    decode,
    encode,
    probe,
)
from .jobs import JobHandle, JobOrchestrator, JobState, TransformResult
from .tools import load_builtin_plugins
from .tools.common.params import parse_params
from .tools.common.pipeline import ToolRegistry, register_tool, registry, run_tool

load_builtin_plugins()

__all__ = [
    "__version__",
    "AuthError",
    "Document",
    "EncryptionError",
    "EngineSettings",
    "ErrorKind",
    "FormatError",
    "PdfCodec",
    "PdfForgeError",
    "ResourceLimitError",
    "ValidationError",
    "decode",
    "encode",
    "probe",
    "JobHandle",
    "JobOrchestrator",
    "JobState",
    "TransformResult",
    "ToolRegistry",
    "registry",
    "register_tool",
    "parse_params",
    "run_tool",
    "merge_documents",
    "rotate_document",
    "remove_pages",
    "extract_pages",
    "reorder_pages",
    "number_pages",
    "watermark_document",
    "edit_document_metadata",
    "flatten_document",
    "inspect_document",
    "protect_document",
    "unlock_document",
]


def _run(tool: str, inputs: Sequence[bytes], params: dict[str, Any]) -> bytes:
    data, _ = run_tool(tool, inputs, {key: value for key, value in params.items() if value is not None})
    return data


def merge_documents(inputs: Iterable[bytes], **config: Any) -> bytes:
    """Convenience wrapper around the merge plugin."""

    return _run("merge", list(inputs), config)


def rotate_document(data: bytes, angle: int, *, pages: Sequence[int] | None = None, **config: Any) -> bytes:
    """Convenience wrapper around the rotate plugin."""

    return _run("rotate", [data], {"angle": angle, "pages": pages, **config})


def remove_pages(data: bytes, pages: Sequence[int], **config: Any) -> bytes:
    return _run("remove", [data], {"pages": list(pages), **config})


def extract_pages(data: bytes, pages: Sequence[int], **config: Any) -> bytes:
    return _run("extract", [data], {"pages": list(pages), **config})


def reorder_pages(data: bytes, order: Sequence[int], **config: Any) -> bytes:
    return _run("reorder", [data], {"order": list(order), **config})


def number_pages(data: bytes, **config: Any) -> bytes:
    """Convenience wrapper around the page numbering plugin."""

    return _run("number", [data], config)


def watermark_document(data: bytes, text: str, **config: Any) -> bytes:
    """Convenience wrapper around the watermark plugin."""

    return _run("watermark", [data], {"text": text, **config})


def edit_document_metadata(data: bytes, **config: Any) -> bytes:
    return _run("metadata", [data], config)


def flatten_document(data: bytes, *, password: str | None = None) -> bytes:
    return _run("flatten", [data], {"password": password})


def inspect_document(data: bytes, *, password: str | None = None) -> dict[str, Any]:
    """Return the info report as a dictionary."""

    return json.loads(_run("info", [data], {"password": password}))


def protect_document(data: bytes, user_password: str, **config: Any) -> bytes:
    """Convenience wrapper around the protect plugin."""

    return _run("protect", [data], {"user_password": user_password, **config})


def unlock_document(data: bytes, password: str) -> bytes:
    """Convenience wrapper around the unlock plugin."""

    return _run("unlock", [data], {"password": password})
