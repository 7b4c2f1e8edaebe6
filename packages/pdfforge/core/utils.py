"""Utilities shared by pdfforge modules."""

from __future__ import annotations

import logging
from typing import Iterable

from .errors import ValidationError


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def normalize_indices(indices: Iterable[int], *, page_count: int, label: str = "page") -> list[int]:
    """Return sorted unique indices, rejecting anything outside ``[0, page_count)``."""

    unique: set[int] = set()
    for index in indices:
        if not isinstance(index, int) or isinstance(index, bool):
            raise ValidationError(f"{label} index must be an integer, got {index!r}")
        if index < 0 or index >= page_count:
            raise ValidationError(
                f"{label} index {index} is out of range for a document with {page_count} page(s)"
            )
        unique.add(index)
    return sorted(unique)


def version_key(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def suggested_filename(tool: str, *, extension: str = "pdf") -> str:
    return f"{tool}_processed.{extension}"


__all__ = ["get_logger", "normalize_indices", "version_key", "suggested_filename"]
