"""Plugin registry and execution helpers for pdfforge tools."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterable, Mapping, Sequence

from ...core.codec import PdfCodec
from ...core.errors import ValidationError
from ...core.model import Document
from ...core.settings import EngineSettings
from ...core.utils import get_logger, suggested_filename
from .interfaces import BaseTool, ToolContext, ToolFactory, ToolOutput
from .params import ToolParams, parse_params

LOGGER = get_logger("pdfforge.tools")


class ToolRegistry:
    """Registry storing available pdfforge tools."""

    def __init__(self) -> None:
        self._tools: Dict[str, type[BaseTool]] = {}

    def register(self, name: str, tool_class: type[BaseTool]) -> None:
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self._tools[name] = tool_class

    def create(self, name: str, context: ToolContext) -> BaseTool:
        return self.require(name)(context)

    def require(self, name: str) -> type[BaseTool]:
        tool_class = self._tools.get(name)
        if tool_class is None:
            known = ", ".join(self.names())
            raise ValidationError(f"Unknown tool '{name}'; available tools: {known}")
        return tool_class

    def names(self) -> Iterable[str]:
        return sorted(self._tools.keys())

    def get(self, name: str) -> type[BaseTool] | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


registry = ToolRegistry()


def register_tool(name: str):
    def decorator(cls: type[BaseTool]) -> type[BaseTool]:
        cls.name = name
        registry.register(name, cls)
        return cls

    return decorator


def prepare_tool(
    name: str,
    inputs: Sequence[bytes],
    params: Mapping[str, Any] | ToolParams | None = None,
    *,
    settings: EngineSettings | None = None,
    codec: PdfCodec | None = None,
    check_deadline: Callable[[], None] | None = None,
) -> BaseTool:
    """Resolve the tool, validate its parameters and input count."""

    tool_class = registry.require(name)
    parsed = parse_params(name, params)
    tool_class.check_input_count(len(inputs))
    context = ToolContext(
        inputs=list(inputs),
        params=parsed,
        settings=settings or EngineSettings(),
        codec=codec,
    )
    if check_deadline is not None:
        context.check_deadline = check_deadline
    return tool_class(context)


def execute_tool(
    tool: BaseTool, *, on_decoded: Callable[[list[Document]], None] | None = None
) -> tuple[bytes, str]:
    """Decode inputs, apply the tool and serialize its output.

    ``on_decoded`` sees the decoded documents before the tool runs.
    """

    context = tool.context
    documents = tool.decode_inputs()
    if on_decoded is not None:
        on_decoded(documents)
    output = tool.run()
    context.check_deadline()
    if output.report is not None:
        data = json.dumps(output.report, indent=2, default=str).encode("utf-8")
        filename = tool.output_filename or suggested_filename(tool.name, extension="json")
    elif output.document is not None:
        data = context.ensure_codec().encode(output.document)
        filename = tool.output_filename or suggested_filename(tool.name, extension=tool.output_extension)
    else:  # pragma: no cover - tools always produce one of the two
        raise RuntimeError(f"Tool '{tool.name}' produced no output")
    context.check_deadline()
    LOGGER.debug("Tool %s produced %d byte(s)", tool.name, len(data))
    return data, filename


def run_tool(
    name: str,
    inputs: Sequence[bytes],
    params: Mapping[str, Any] | ToolParams | None = None,
    *,
    settings: EngineSettings | None = None,
) -> tuple[bytes, str]:
    return execute_tool(prepare_tool(name, inputs, params, settings=settings))


__all__ = [
    "ToolRegistry",
    "registry",
    "register_tool",
    "prepare_tool",
    "execute_tool",
    "run_tool",
    "ToolContext",
    "ToolOutput",
    "BaseTool",
    "ToolFactory",
]
