"""Text stamping tools: page numbers and watermarks.

Each page's stamp is drawn into a Form XObject and invoked from a new content
segment next to the existing ones, so the original content streams are
re-emitted untouched.
"""

from __future__ import annotations

from typing import Sequence

from pypdf.generic import IndirectObject

from ...core.content import IDENTITY, TextStamp, apply_layer, form_invocation, render_stamps
from ...core.model import Document, Resource, ResourceKind
from ...core.utils import get_logger
from ..common.interfaces import BaseTool, ToolOutput
from ..common.params import NumberParams, WatermarkParams
from ..common.pipeline import register_tool

LOGGER = get_logger("pdfforge.tools.stamp")

_STAMP_PREFIX = "PFS"


def _form_label(form: IndirectObject) -> str:
    return f"stamp:{id(form.pdf)}:{form.idnum}"


def _stamp_pages(document: Document, stamps: Sequence[TextStamp], layer: str) -> None:
    forms = render_stamps(document.pages, stamps)
    for page, form in zip(document.pages, forms):
        ref = document.resources.add(Resource(ResourceKind.XOBJECT, form, label=_form_label(form)))
        name = page.add_resource(ResourceKind.XOBJECT, ref, prefix=_STAMP_PREFIX)
        apply_layer(page, form_invocation([(name, IDENTITY)]), layer)
        LOGGER.debug("Stamped page uid %d (%s, /%s)", page.uid, layer, name)


def number(document: Document, params: NumberParams | None = None) -> Document:
    """Stamp a page number on every page.

    ``params.format`` may use ``{n}`` (the running number starting at
    ``params.start``) and ``{total}`` (the page count).
    """

    params = params or NumberParams()
    result = document.copy()
    total = result.page_count
    stamps = [
        TextStamp(
            text=params.format.format(n=params.start + index, total=total),
            font=params.font,
            size=params.size,
            position=params.position,
            margin=params.margin,
            color=params.color,
        )
        for index in range(total)
    ]
    _stamp_pages(result, stamps, "over")
    LOGGER.info("Numbered %d page(s) starting at %d", total, params.start)
    return result


def watermark(document: Document, params: WatermarkParams) -> Document:
    """Overlay ``params.text`` on every page, above or beneath the existing content."""

    result = document.copy()
    stamp = TextStamp(
        text=params.text,
        font=params.font,
        size=params.size,
        position=params.position,
        margin=params.margin,
        angle=params.angle,
        color=params.color,
        opacity=params.opacity,
    )
    _stamp_pages(result, [stamp] * result.page_count, params.layer)
    LOGGER.info("Watermarked %d page(s) (%s, opacity %g)", result.page_count, params.layer, params.opacity)
    return result


@register_tool("number")
class NumberTool(BaseTool):
    params_type = NumberParams

    def run(self) -> ToolOutput:
        return ToolOutput(document=number(self.document, self.params))


@register_tool("watermark")
class WatermarkTool(BaseTool):
    params_type = WatermarkParams

    def run(self) -> ToolOutput:
        return ToolOutput(document=watermark(self.document, self.params))
