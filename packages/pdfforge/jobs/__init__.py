"""Job orchestration for pdfforge transformations."""

from __future__ import annotations

from .models import Job, JobHandle, JobState, TransformResult
from .orchestrator import JobOrchestrator

__all__ = ["Job", "JobHandle", "JobState", "TransformResult", "JobOrchestrator"]
