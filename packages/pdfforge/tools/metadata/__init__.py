"""Metadata editing tool."""

from __future__ import annotations

from .edit import MetadataTool, edit_metadata

__all__ = ["MetadataTool", "edit_metadata"]
