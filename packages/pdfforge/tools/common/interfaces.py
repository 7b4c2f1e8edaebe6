"""Core interfaces and context objects shared by pdfforge tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar

from ...core.codec import PdfCodec, ProbeResult
from ...core.errors import EncryptionError, ValidationError
from ...core.model import Document
from ...core.settings import EngineSettings
from .params import ToolParams


def _no_deadline() -> None:
    return None


@dataclass
class ToolContext:
    """Holds shared execution state for a tool invocation."""

    inputs: list[bytes] = field(default_factory=list)
    params: ToolParams | None = None
    settings: EngineSettings = field(default_factory=EngineSettings)
    codec: PdfCodec | None = None
    documents: list[Document] = field(default_factory=list)
    probes: list[ProbeResult] = field(default_factory=list)
    resources: dict[str, Any] = field(default_factory=dict)
    check_deadline: Callable[[], None] = _no_deadline

    def __post_init__(self) -> None:
        if self.codec is None:
            self.codec = PdfCodec(compress_streams=self.settings.compress_streams)

    @property
    def password(self) -> str | None:
        return self.params.password if self.params is not None else None

    def ensure_codec(self) -> PdfCodec:
        if self.codec is None:
            raise ValueError("Codec has not been initialised")
        return self.codec


@dataclass(frozen=True, slots=True)
class ToolOutput:
    """Result of running a tool: a document to encode or a JSON report."""

    document: Document | None = None
    report: dict[str, Any] | None = None


class BaseTool:
    """Base class for all pluggable pdfforge tools."""

    name: ClassVar[str]
    min_inputs: ClassVar[int] = 1
    max_inputs: ClassVar[int | None] = 1
    output_extension: ClassVar[str] = "pdf"
    output_filename: ClassVar[str | None] = None
    params_type: ClassVar[type[ToolParams]] = ToolParams

    def __init__(self, context: ToolContext) -> None:
        self.context = context

    @classmethod
    def check_input_count(cls, count: int) -> None:
        if count < cls.min_inputs:
            noun = "input" if cls.min_inputs == 1 else "inputs"
            raise ValidationError(f"{cls.name} requires at least {cls.min_inputs} {noun}, got {count}")
        if cls.max_inputs is not None and count > cls.max_inputs:
            raise ValidationError(f"{cls.name} accepts at most {cls.max_inputs} input(s), got {count}")

    def decode_one(self, data: bytes) -> Document:
        return self.context.ensure_codec().decode(data, password=self.context.password)

    def decode_inputs(self) -> list[Document]:
        """Decode every input, checking the deadline after each one."""

        documents = []
        for data in self.context.inputs:
            documents.append(self.decode_one(data))
            self.context.check_deadline()
        self.context.documents = documents
        return documents

    @property
    def params(self) -> Any:
        """The parsed parameters, checked against ``params_type``."""

        params = self.context.params
        if not isinstance(params, self.params_type):
            raise ValueError(f"{self.name} expects {self.params_type.__name__}, got {type(params).__name__}")
        return params

    @property
    def document(self) -> Document:
        if not self.context.documents:
            raise EncryptionError(reason=EncryptionError.MISSING_CREDENTIAL)
        return self.context.documents[0]

    def run(self) -> ToolOutput:  # pragma: no cover - to be implemented by subclasses
        raise NotImplementedError


ToolFactory = Callable[[ToolContext], BaseTool]
