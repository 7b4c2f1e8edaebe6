"""Plugin editing the document information dictionary."""

from __future__ import annotations

from ...core.errors import ValidationError
from ...core.model import Document, DocumentMetadata
from ...core.utils import get_logger
from ..common.interfaces import BaseTool, ToolOutput
from ..common.params import MetadataParams
from ..common.pipeline import register_tool

LOGGER = get_logger("pdfforge.tools.metadata")


def edit_metadata(document: Document, params: MetadataParams) -> Document:
    """Apply the requested metadata changes; every other field is kept as is.

    Removals are applied first so a field can be cleared and a custom key set
    in the same call.
    """

    result = document.copy()
    for name in params.remove:
        key = name.strip()
        if not key.strip("/"):
            raise ValidationError("metadata field names to remove must not be empty")
        result.set_metadata_field(key, None)
    for name, value in params.updates().items():
        result.set_metadata_field(name, value)
    for key, value in params.custom.items():
        if key in DocumentMetadata.FIELDS:
            raise ValidationError(f"custom key {key!r} shadows a standard metadata field; set it directly")
        result.set_metadata_field(key, value)
    LOGGER.debug(
        "Updated metadata fields %s, custom keys %s, removed %s",
        sorted(params.updates()),
        sorted(params.custom),
        list(params.remove),
    )
    return result


@register_tool("metadata")
class MetadataTool(BaseTool):
    params_type = MetadataParams

    def run(self) -> ToolOutput:
        return ToolOutput(document=edit_metadata(self.document, self.params))
