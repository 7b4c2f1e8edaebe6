"""Page organization tools."""

from __future__ import annotations

from .pages import ExtractTool, RemoveTool, ReorderTool, RotateTool, extract, remove, reorder, rotate

__all__ = ["RotateTool", "RemoveTool", "ExtractTool", "ReorderTool", "rotate", "remove", "extract", "reorder"]
