"""Shared building blocks for pdfforge tools."""

from .interfaces import BaseTool, ToolContext, ToolOutput
from .params import AnyToolParams, ToolParams, parse_params
from .pipeline import ToolRegistry, execute_tool, prepare_tool, register_tool, registry, run_tool

__all__ = [
    "BaseTool",
    "ToolContext",
    "ToolOutput",
    "AnyToolParams",
    "ToolParams",
    "parse_params",
    "ToolRegistry",
    "register_tool",
    "registry",
    "prepare_tool",
    "execute_tool",
    "run_tool",
]
