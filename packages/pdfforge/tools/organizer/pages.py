"""Page organization tools: rotate, remove, extract and reorder.

Every function works on a structural copy, so the input document is never
modified, including when validation fails.
"""

from __future__ import annotations

from ...core.errors import ValidationError
from ...core.model import Document
from ...core.utils import get_logger, normalize_indices
from ..common.interfaces import BaseTool, ToolOutput
from ..common.params import ExtractParams, RemoveParams, ReorderParams, RotateParams
from ..common.pipeline import register_tool

LOGGER = get_logger("pdfforge.tools.pages")


def rotate(document: Document, params: RotateParams) -> Document:
    """Add ``params.angle`` to the rotation of the selected pages (default: all)."""

    if params.pages is None:
        indices = list(range(document.page_count))
    else:
        if not params.pages:
            raise ValidationError("rotate needs at least one page index when pages is given")
        indices = normalize_indices(params.pages, page_count=document.page_count)
    result = document.copy()
    for index in indices:
        result.rotate_page(index, params.angle)
    LOGGER.debug("Rotated %d page(s) by %d degrees", len(indices), params.angle)
    return result


def remove(document: Document, params: RemoveParams) -> Document:
    indices = normalize_indices(params.pages, page_count=document.page_count)
    if len(indices) >= document.page_count:
        raise ValidationError("Cannot remove every page of the document")
    result = document.copy()
    for index in reversed(indices):
        result.remove_page(index)
    LOGGER.debug("Removed page(s) %s", indices)
    return result


def extract(document: Document, params: ExtractParams) -> Document:
    """Keep only the selected pages; duplicates collapse and document order is kept."""

    indices = normalize_indices(params.pages, page_count=document.page_count)
    result = document.copy()
    result.pages = [result.pages[index] for index in indices]
    LOGGER.debug("Extracted page(s) %s", indices)
    return result


def reorder(document: Document, params: ReorderParams) -> Document:
    """Rearrange pages so that new position ``i`` holds old page ``order[i]``."""

    count = document.page_count
    order = list(params.order)
    if len(order) != count or sorted(order) != list(range(count)):
        raise ValidationError(
            f"order must be a permutation of 0..{count - 1} with every index exactly once, got {order}"
        )
    result = document.copy()
    result.reorder(order)
    return result


@register_tool("rotate")
class RotateTool(BaseTool):
    params_type = RotateParams

    def run(self) -> ToolOutput:
        return ToolOutput(document=rotate(self.document, self.params))


@register_tool("remove")
class RemoveTool(BaseTool):
    params_type = RemoveParams

    def run(self) -> ToolOutput:
        return ToolOutput(document=remove(self.document, self.params))


@register_tool("extract")
class ExtractTool(BaseTool):
    params_type = ExtractParams

    def run(self) -> ToolOutput:
        return ToolOutput(document=extract(self.document, self.params))


@register_tool("reorder")
class ReorderTool(BaseTool):
    params_type = ReorderParams

    def run(self) -> ToolOutput:
        return ToolOutput(document=reorder(self.document, self.params))
