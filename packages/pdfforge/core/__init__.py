"""Document model, codec and shared infrastructure for pdfforge."""

from __future__ import annotations

from .codec import PdfCodec, ProbeResult, decode, encode, probe
from .errors import (
    AuthError,
    EncryptionError,
    ErrorKind,
    FormatError,
    IntegrityError,
    JobTimeoutError,
    PdfForgeError,
    ResourceLimitError,
    ValidationError,
)
from .model import (
    Annotation,
    ContentSegment,
    Document,
    DocumentMetadata,
    Encrypted,
    FormDefinition,
    OutlineEntry,
    Page,
    Permission,
    Resource,
    ResourceKind,
    ResourceRef,
    ResourceTable,
    Unencrypted,
)
from .settings import EngineSettings

__all__ = [
    "PdfCodec",
    "ProbeResult",
    "decode",
    "encode",
    "probe",
    "AuthError",
    "EncryptionError",
    "ErrorKind",
    "FormatError",
    "IntegrityError",
    "JobTimeoutError",
    "PdfForgeError",
    "ResourceLimitError",
    "ValidationError",
    "Annotation",
    "ContentSegment",
    "Document",
    "DocumentMetadata",
    "Encrypted",
    "FormDefinition",
    "OutlineEntry",
    "Page",
    "Permission",
    "Resource",
    "ResourceKind",
    "ResourceRef",
    "ResourceTable",
    "Unencrypted",
    "EngineSettings",
]
