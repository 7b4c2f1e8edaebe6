"""Typed parameter sets, one variant per tool, discriminated on ``tool``."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from ...core.errors import ValidationError
from ...core.content import STANDARD_FONTS, check_drawable
from ...core.model import DocumentMetadata, Permission

__all__ = [
    "ToolParams",
    "MergeParams",
    "RotateParams",
    "RemoveParams",
    "ExtractParams",
    "ReorderParams",
    "NumberParams",
    "WatermarkParams",
    "MetadataParams",
    "FlattenParams",
    "InfoParams",
    "ProtectParams",
    "UnlockParams",
    "AnyToolParams",
    "parse_params",
]

PositionName = Literal[
    "top-left",
    "top-center",
    "top-right",
    "middle-left",
    "center",
    "middle-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
]
Color = tuple[
    Annotated[float, Field(ge=0, le=1)],
    Annotated[float, Field(ge=0, le=1)],
    Annotated[float, Field(ge=0, le=1)],
]


def _check_font(value: str) -> str:
    if value not in STANDARD_FONTS:
        raise ValueError(f"unsupported font {value!r}; choose one of {', '.join(sorted(STANDARD_FONTS))}")
    return value


class ToolParams(BaseModel):
    """Fields shared by every tool."""

    password: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class MergeParams(ToolParams):
    tool: Literal["merge"] = "merge"
    bookmarks: bool = False
    metadata_from: int = Field(0, ge=0)


class RotateParams(ToolParams):
    tool: Literal["rotate"] = "rotate"
    angle: int
    pages: list[int] | None = None

    @field_validator("angle")
    @classmethod
    def check_angle(cls, value: int) -> int:
        if value % 90:
            raise ValueError("angle must be a multiple of 90")
        return value


class RemoveParams(ToolParams):
    tool: Literal["remove"] = "remove"
    pages: list[int] = Field(..., min_length=1)


class ExtractParams(ToolParams):
    tool: Literal["extract"] = "extract"
    pages: list[int] = Field(..., min_length=1)


class ReorderParams(ToolParams):
    tool: Literal["reorder"] = "reorder"
    order: list[int] = Field(..., min_length=1)


class NumberParams(ToolParams):
    tool: Literal["number"] = "number"
    start: int = 1
    format: str = "{n}"
    position: PositionName = "bottom-center"
    font: str = "Helvetica"
    size: float = Field(10.0, gt=0, le=500)
    margin: float = Field(24.0, ge=0)
    color: Color = (0.0, 0.0, 0.0)

    @field_validator("font")
    @classmethod
    def check_font(cls, value: str) -> str:
        return _check_font(value)

    @field_validator("format")
    @classmethod
    def check_format(cls, value: str) -> str:
        try:
            value.format(n=1, total=1)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"format may only use the {{n}} and {{total}} placeholders ({exc})") from exc
        return value

    @model_validator(mode="after")
    def check_text(self) -> "NumberParams":
        check_drawable(self.format, self.font)
        return self


class WatermarkParams(ToolParams):
    tool: Literal["watermark"] = "watermark"
    text: str = Field(..., min_length=1)
    font: str = "Helvetica-Bold"
    size: float = Field(48.0, gt=0, le=1000)
    opacity: float = Field(0.3, gt=0, le=1)
    angle: float = 45.0
    position: PositionName = "center"
    margin: float = Field(36.0, ge=0)
    color: Color = (0.5, 0.5, 0.5)
    layer: Literal["over", "under"] = "over"

    @field_validator("font")
    @classmethod
    def check_font(cls, value: str) -> str:
        return _check_font(value)

    @model_validator(mode="after")
    def check_text(self) -> "WatermarkParams":
        check_drawable(self.text, self.font)
        return self


class MetadataParams(ToolParams):
    tool: Literal["metadata"] = "metadata"
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: str | None = None
    creator: str | None = None
    producer: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    custom: dict[str, str] = Field(default_factory=dict)
    remove: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_changes(self) -> "MetadataParams":
        if not self.updates() and not self.custom and not self.remove:
            raise ValueError("at least one metadata field must be set or removed")
        for key in self.custom:
            if not key.strip("/"):
                raise ValueError("custom metadata keys must not be empty")
        return self

    def updates(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in DocumentMetadata.FIELDS if getattr(self, name) is not None}


class FlattenParams(ToolParams):
    tool: Literal["flatten"] = "flatten"


class InfoParams(ToolParams):
    tool: Literal["info"] = "info"


class ProtectParams(ToolParams):
    tool: Literal["protect"] = "protect"
    user_password: str
    owner_password: str | None = None
    permissions: list[str] | int | None = None
    algorithm: Literal["RC4-128", "AES-128", "AES-256"] = "RC4-128"

    @field_validator("permissions")
    @classmethod
    def check_permissions(cls, value: list[str] | int | None) -> list[str] | int | None:
        if isinstance(value, list):
            Permission.parse(value)
        elif isinstance(value, int) and value < 0:
            raise ValueError("permission bitmask must not be negative")
        return value

    def permission_flags(self) -> Permission:
        if self.permissions is None:
            return Permission.all()
        if isinstance(self.permissions, int):
            return Permission.from_p_value(self.permissions)
        return Permission.parse(self.permissions)


class UnlockParams(ToolParams):
    tool: Literal["unlock"] = "unlock"
    password: str = Field(..., min_length=1)


AnyToolParams = Annotated[
    Union[
        MergeParams,
        RotateParams,
        RemoveParams,
        ExtractParams,
        ReorderParams,
        NumberParams,
        WatermarkParams,
        MetadataParams,
        FlattenParams,
        InfoParams,
        ProtectParams,
        UnlockParams,
    ],
    Field(discriminator="tool"),
]

_ADAPTER: TypeAdapter[Any] = TypeAdapter(AnyToolParams)


def _flatten_errors(tool: str, exc: PydanticValidationError) -> str:
    messages = []
    for error in exc.errors():
        parts = list(error.get("loc", ()))
        if parts and parts[0] == tool:
            parts = parts[1:]
        location = ".".join(str(part) for part in parts)
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def parse_params(tool: str, params: Mapping[str, Any] | ToolParams | None = None) -> ToolParams:
    """Validate ``params`` for ``tool``, raising :class:`ValidationError` on failure."""

    if isinstance(params, ToolParams):
        if getattr(params, "tool", None) != tool:
            raise ValidationError(f"Parameters for {getattr(params, 'tool', '?')!r} cannot be used with tool {tool!r}")
        return params
    data = dict(params or {})
    declared = data.pop("tool", tool)
    if declared != tool:
        raise ValidationError(f"Parameter set declares tool {declared!r} but {tool!r} was requested")
    data["tool"] = tool
    try:
        return _ADAPTER.validate_python(data)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid parameters for {tool}: {_flatten_errors(tool, exc)}") from exc
