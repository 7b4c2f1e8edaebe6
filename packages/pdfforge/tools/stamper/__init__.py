"""Page number and watermark stamping tools."""

from __future__ import annotations

from .stamp import NumberTool, WatermarkTool, number, watermark

__all__ = ["NumberTool", "WatermarkTool", "number", "watermark"]
