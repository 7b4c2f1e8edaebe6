"""Annotation and form flattening tool."""

from __future__ import annotations

from .flatten import FlattenTool, flatten, normal_appearance

__all__ = ["FlattenTool", "flatten", "normal_appearance"]
