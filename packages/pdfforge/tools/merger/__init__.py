"""Document merging."""

from __future__ import annotations

from .merge import MergeTool, merge

__all__ = ["MergeTool", "merge"]
