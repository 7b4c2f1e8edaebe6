"""Read-only inspection tool producing a JSON report."""

from __future__ import annotations

from typing import Any

from ...core.codec import ProbeResult
from ...core.errors import EncryptionError
from ...core.model import Document, Encrypted
from ...core.utils import get_logger
from ..common.interfaces import BaseTool, ToolOutput
from ..common.pipeline import register_tool

LOGGER = get_logger("pdfforge.tools.info")


def _encryption_report(document: Document) -> dict[str, Any]:
    security = document.security
    if isinstance(security, Encrypted):
        return {
            "encrypted": True,
            "algorithm": security.algorithm,
            "permissions": security.permissions.names(),
        }
    return {"encrypted": False, "algorithm": None, "permissions": None}


def document_info(document: Document, *, size: int | None = None) -> dict[str, Any]:
    """Describe ``document`` without modifying it."""

    pages = []
    for index, page in enumerate(document.pages):
        pages.append(
            {
                "index": index,
                "width": round(page.width, 2),
                "height": round(page.height, 2),
                "rotation": page.rotation,
                "annotations": len(page.annotations),
            }
        )
    return {
        "page_count": document.page_count,
        "version": document.version,
        "size": size,
        "recovered": document.recovered,
        "locked": False,
        "encryption": _encryption_report(document),
        "metadata": document.metadata.as_dict(),
        "has_form": document.form is not None,
        "outline_entries": sum(1 for entry in document.outline for _ in entry.walk()),
        "pages": pages,
    }


def probe_info(probe: ProbeResult) -> dict[str, Any]:
    """Report for a locked document: only header and trailer facts are known."""

    return {
        "page_count": probe.page_count,
        "version": probe.version,
        "size": probe.size,
        "recovered": False,
        "locked": True,
        "encryption": {"encrypted": probe.encrypted, "algorithm": probe.algorithm, "permissions": None},
        "metadata": {},
        "has_form": None,
        "outline_entries": None,
        "pages": [],
    }


@register_tool("info")
class InfoTool(BaseTool):
    output_extension = "json"
    output_filename = "info_report.json"

    def decode_inputs(self) -> list[Document]:
        context = self.context
        try:
            return super().decode_inputs()
        except EncryptionError as exc:
            if context.password is not None or exc.reason != EncryptionError.MISSING_CREDENTIAL:
                raise
            LOGGER.info("Document is encrypted and no password was supplied; reporting probe data only")
            context.documents = []
            context.probes = [context.ensure_codec().probe(data) for data in context.inputs]
            return []

    def run(self) -> ToolOutput:
        context = self.context
        if context.probes:
            return ToolOutput(report=probe_info(context.probes[0]))
        report = document_info(self.document, size=len(context.inputs[0]) if context.inputs else None)
        return ToolOutput(report=report)
