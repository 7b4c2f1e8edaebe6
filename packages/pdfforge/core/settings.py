"""Engine configuration loaded from code or ``PDFFORGE_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

MIB = 1024 * 1024

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}
_ENV_PREFIX = "PDFFORGE_"


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _parse_number(name: str, raw: str, kind: type) -> Any:
    try:
        value = kind(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a {kind.__name__}, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Resource ceilings and behaviour switches for the job orchestrator."""

    max_input_bytes: int = 50 * MIB
    max_total_bytes: int = 200 * MIB
    max_pages: int = 2000
    max_inputs: int = 50
    max_concurrent_jobs: int = 4
    default_timeout: float = 60.0
    compress_streams: bool = True
    parallel_merge_decode: bool = True

    def __post_init__(self) -> None:
        for name in ("max_input_bytes", "max_total_bytes", "max_pages", "max_inputs", "max_concurrent_jobs"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if self.default_timeout <= 0:
            raise ValueError("default_timeout must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "EngineSettings":
        """Build settings from ``PDFFORGE_<FIELD>`` variables, e.g. ``PDFFORGE_MAX_PAGES``."""

        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for item in fields(cls):
            env_name = _ENV_PREFIX + item.name.upper()
            raw = env.get(env_name)
            if raw is None:
                continue
            default = item.default
            if isinstance(default, bool):
                values[item.name] = _parse_bool(env_name, raw)
            elif isinstance(default, float):
                values[item.name] = _parse_number(env_name, raw, float)
            else:
                values[item.name] = _parse_number(env_name, raw, int)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_updates(self, **changes: Any) -> "EngineSettings":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = ["EngineSettings", "MIB"]
