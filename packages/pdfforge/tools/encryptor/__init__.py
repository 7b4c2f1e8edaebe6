"""Encryption tools."""

from __future__ import annotations

from .encrypt import ProtectTool, UnlockTool, protect, unlock

__all__ = ["ProtectTool", "UnlockTool", "protect", "unlock"]
