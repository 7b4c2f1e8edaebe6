"""Namespace for pluggable pdfforge tools."""

from __future__ import annotations

from .common.pipeline import registry


def load_builtin_plugins() -> None:
    from .merger import merge  # noqa: F401
    from .organizer import pages  # noqa: F401  # register rotate, remove, extract and reorder
    from .stamper import stamp  # noqa: F401  # register number and watermark
    from .metadata import edit  # noqa: F401
    from .flattener import flatten  # noqa: F401
    from .inspector import info  # noqa: F401
    from .encryptor import encrypt  # noqa: F401  # register protect and unlock


__all__ = ["registry", "load_builtin_plugins"]
