"""Plugin exposing document merging through the registry."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from ...core.errors import ValidationError
from ...core.model import Document, Unencrypted
from ...core.utils import get_logger, version_key
from ..common.interfaces import BaseTool, ToolOutput
from ..common.params import MergeParams
from ..common.pipeline import register_tool

LOGGER = get_logger("pdfforge.tools.merge")

_DECODE_WORKERS = 4


def merge(documents: Sequence[Document], params: MergeParams | None = None) -> Document:
    """Concatenate ``documents`` in order into a new document.

    Inputs are left untouched.  Resource identifiers of later inputs are
    remapped where they collide with earlier ones.
    """

    params = params or MergeParams()
    if len(documents) < 2:
        raise ValidationError(f"merge requires at least 2 documents, got {len(documents)}")
    if params.metadata_from >= len(documents):
        raise ValidationError(
            f"metadata_from index {params.metadata_from} is out of range for {len(documents)} input(s)"
        )

    security = next((doc.security for doc in documents if doc.is_encrypted), Unencrypted())
    version = max((doc.version for doc in documents), key=version_key)
    result = Document(
        metadata=documents[params.metadata_from].metadata.copy(),
        security=security,
        catalog_extras=dict(documents[0].catalog_extras),
        version=version,
    )
    for index, document in enumerate(documents):
        title = None
        if params.bookmarks:
            title = document.metadata.title or f"Document {index + 1}"
        result.append_document(document, outline_title=title)
        LOGGER.debug("Appended input %d with %d page(s)", index, document.page_count)
    return result


@register_tool("merge")
class MergeTool(BaseTool):
    min_inputs = 2
    max_inputs = None
    params_type = MergeParams

    def decode_inputs(self) -> list[Document]:
        context = self.context
        if not context.settings.parallel_merge_decode or len(context.inputs) < 2:
            return super().decode_inputs()
        workers = min(len(context.inputs), _DECODE_WORKERS)
        LOGGER.debug("Decoding %d inputs on %d helper thread(s)", len(context.inputs), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pdfforge-merge") as pool:
            futures = [pool.submit(self.decode_one, data) for data in context.inputs]
            documents = []
            for future in futures:
                documents.append(future.result())
                context.check_deadline()
        context.documents = documents
        return documents

    def run(self) -> ToolOutput:
        LOGGER.info("Merging %d document(s)", len(self.context.documents))
        return ToolOutput(document=merge(self.context.documents, self.params))
