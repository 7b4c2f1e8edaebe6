"""Document inspection tool."""

from __future__ import annotations

from .info import InfoTool, document_info, probe_info

__all__ = ["InfoTool", "document_info", "probe_info"]
