"""Plugin burning annotation appearances into page content.

Each visible annotation with a normal appearance stream is drawn as a Form
XObject placed on its rectangle; the annotation itself is then dropped.  Form
widgets are always removed, together with the AcroForm dictionary.
"""

from __future__ import annotations

from typing import Any

from pypdf.generic import DictionaryObject, IndirectObject, StreamObject

from ...core.content import apply_layer, form_invocation, placement_matrix
from ...core.model import Annotation, Box, Document, Page, Resource, ResourceKind, ResourceRef
from ...core.utils import get_logger
from ..common.interfaces import BaseTool, ToolOutput
from ..common.pipeline import register_tool

LOGGER = get_logger("pdfforge.tools.flatten")

_XOBJECT_PREFIX = "PFX"


def _resolve(value: Any) -> Any:
    return value.get_object() if isinstance(value, IndirectObject) else value


def _numbers(value: Any, count: int) -> tuple[float, ...] | None:
    value = _resolve(value)
    if not isinstance(value, (list, tuple)) or len(value) != count:
        return None
    try:
        return tuple(float(_resolve(item)) for item in value)
    except (TypeError, ValueError):
        return None


def normal_appearance(annotation: Annotation) -> IndirectObject | None:
    """Return the ``/AP /N`` form stream to draw, honouring ``/AS`` state dictionaries."""

    source = _resolve(annotation.payload)
    if not isinstance(source, DictionaryObject):
        return None
    appearances = _resolve(source.get("/AP"))
    if not isinstance(appearances, DictionaryObject) or "/N" not in appearances:
        return None
    normal = appearances.raw_get("/N")
    resolved = _resolve(normal)
    if isinstance(resolved, DictionaryObject) and not isinstance(resolved, StreamObject):
        state = _resolve(source.get("/AS"))
        if state is None or state not in resolved:
            return None
        normal = resolved.raw_get(state)
        resolved = _resolve(normal)
    if not isinstance(resolved, StreamObject):
        return None
    if not isinstance(normal, IndirectObject):
        LOGGER.warning("Skipping %s appearance that is not an indirect stream", annotation.subtype)
        return None
    subtype = _resolve(resolved.get("/Subtype"))
    if subtype is not None and subtype != "/Form":
        LOGGER.warning("Skipping %s appearance with subtype %s", annotation.subtype, subtype)
        return None
    return normal


def _appearance_geometry(appearance: IndirectObject) -> tuple[Box, tuple[float, ...] | None] | None:
    stream = appearance.get_object()
    bbox = _numbers(stream.get("/BBox"), 4)
    if bbox is None:
        return None
    return bbox, _numbers(stream.get("/Matrix"), 6)


def _flatten_page(document: Document, page: Page, cache: dict[tuple[int, int, int], ResourceRef]) -> int:
    placements: list[tuple[str, tuple[float, ...]]] = []
    kept: list[Annotation] = []
    for annotation in page.annotations:
        if not annotation.is_visible:
            continue
        appearance = normal_appearance(annotation)
        geometry = _appearance_geometry(appearance) if appearance is not None else None
        if appearance is None or geometry is None:
            if not annotation.is_widget:
                kept.append(annotation)
            continue
        key = (id(appearance.pdf), appearance.idnum, appearance.generation)
        ref = cache.get(key)
        if ref is None:
            ref = document.resources.add(Resource(ResourceKind.XOBJECT, appearance))
            cache[key] = ref
        name = page.add_resource(ResourceKind.XOBJECT, ref, prefix=_XOBJECT_PREFIX)
        bbox, matrix = geometry
        placements.append((name, placement_matrix(bbox, matrix, annotation.rect)))

    page.annotations = kept
    if placements:
        apply_layer(page, form_invocation(placements), "over")
    return len(placements)


def flatten(document: Document) -> Document:
    """Return a copy of ``document`` with annotations and form fields flattened."""

    result = document.copy()
    cache: dict[tuple[int, int, int], ResourceRef] = {}
    drawn = 0
    for index, page in enumerate(result.pages):
        count = _flatten_page(result, page, cache)
        if count:
            LOGGER.debug("Flattened %d appearance(s) on page %d", count, index)
        drawn += count
    result.form = None
    LOGGER.info("Flattened %d appearance(s) across %d page(s)", drawn, result.page_count)
    return result


@register_tool("flatten")
class FlattenTool(BaseTool):
    def run(self) -> ToolOutput:
        return ToolOutput(document=flatten(self.document))
