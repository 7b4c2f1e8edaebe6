"""Plugins adding and removing standard security handler encryption."""

from __future__ import annotations

from ...core.errors import AuthError, EncryptionError, ValidationError
from ...core.model import Document, Encrypted, Unencrypted
from ...core.utils import get_logger
from ..common.interfaces import BaseTool, ToolOutput
from ..common.params import ProtectParams
from ..common.pipeline import register_tool

LOGGER = get_logger("pdfforge.tools.encrypt")


def protect(document: Document, params: ProtectParams) -> Document:
    """Return a copy of ``document`` that encodes encrypted with ``params``."""

    if document.is_encrypted:
        raise ValidationError("Document is already encrypted; unlock it before protecting it again")
    if not params.user_password:
        raise ValidationError("A non-empty user password is required for encryption")

    LOGGER.debug(
        "Encrypting with %s, owner password %s, permissions %s",
        params.algorithm,
        "<provided>" if params.owner_password else "<generated>",
        params.permission_flags().names(),
    )
    result = document.copy()
    result.security = Encrypted(
        user_password=params.user_password,
        owner_password=params.owner_password,
        permissions=params.permission_flags(),
        algorithm=params.algorithm,
    )
    return result


def unlock(document: Document) -> Document:
    """Return a copy of an already decrypted ``document`` that encodes in the clear."""

    if not document.is_encrypted:
        raise ValidationError("Document is not encrypted; nothing to unlock")
    result = document.copy()
    result.security = Unencrypted()
    LOGGER.debug("Removed encryption from a %d page document", result.page_count)
    return result


@register_tool("protect")
class ProtectTool(BaseTool):
    params_type = ProtectParams

    def run(self) -> ToolOutput:
        return ToolOutput(document=protect(self.document, self.params))


@register_tool("unlock")
class UnlockTool(BaseTool):
    def decode_one(self, data: bytes) -> Document:
        try:
            return super().decode_one(data)
        except EncryptionError as exc:
            if exc.reason == EncryptionError.INVALID_CREDENTIAL:
                raise AuthError() from exc
            raise

    def run(self) -> ToolOutput:
        return ToolOutput(document=unlock(self.document))
