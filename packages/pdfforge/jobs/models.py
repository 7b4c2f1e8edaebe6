"""Job records, lifecycle states and immutable results."""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, cast

from ..core.errors import ErrorKind, JobTimeoutError, PdfForgeError
from ..tools.common.params import ToolParams

if TYPE_CHECKING:
    from concurrent.futures import Future

    from .orchestrator import JobOrchestrator


class JobState(str, Enum):
    CREATED = "Created"
    VALIDATING = "Validating"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED)


_TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.CREATED: frozenset({JobState.VALIDATING, JobState.FAILED}),
    JobState.VALIDATING: frozenset({JobState.RUNNING, JobState.FAILED}),
    JobState.RUNNING: frozenset({JobState.SUCCEEDED, JobState.FAILED}),
    JobState.SUCCEEDED: frozenset(),
    JobState.FAILED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Outcome of a job: output bytes and a filename, or an error kind and message."""

    data: bytes | None = field(default=None, repr=False)
    suggested_filename: str | None = None
    kind: ErrorKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind is None

    @classmethod
    def success(cls, data: bytes, suggested_filename: str) -> "TransformResult":
        return cls(data=data, suggested_filename=suggested_filename)

    @classmethod
    def failed(cls, kind: ErrorKind, message: str) -> "TransformResult":
        return cls(kind=kind, message=message)

    @classmethod
    def failure(cls, error: PdfForgeError) -> "TransformResult":
        return cls.failed(error.kind, error.message)

    def as_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "suggested_filename": self.suggested_filename, "size": len(self.data or b"")}
        kind = cast(ErrorKind, self.kind)
        return {"ok": False, "kind": kind.value, "message": self.message}


@dataclass(eq=False)
class Job:
    """One request to apply a tool; owned by the orchestrator until it finishes."""

    tool: str
    inputs: list[bytes]
    params: Mapping[str, Any] | ToolParams | None
    timeout: float
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: JobState = JobState.CREATED
    history: list[tuple[JobState, datetime]] = field(default_factory=list)
    result: TransformResult | None = None

    def __post_init__(self) -> None:
        self.deadline = time.monotonic() + self.timeout
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self.history.append((self.state, datetime.now(timezone.utc)))

    def transition(self, state: JobState) -> None:
        with self._lock:
            self._transition(state)

    def _transition(self, state: JobState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Job {self.job_id}: illegal transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append((state, datetime.now(timezone.utc)))

    def finish(self, result: TransformResult) -> TransformResult:
        """Record the terminal result and return it.

        A success that arrives after the caller stopped waiting is recorded as
        a timeout, matching what that caller was told.
        """

        with self._lock:
            if result.ok and self._cancelled.is_set():
                result = TransformResult.failed(
                    ErrorKind.TIMEOUT, f"Job {self.job_id} finished after its caller stopped waiting"
                )
            self._transition(JobState.SUCCEEDED if result.ok else JobState.FAILED)
            self.result = result
            # Inputs are no longer needed once the job is terminal.
            self.inputs = []
        return result

    def request_cancel(self) -> bool:
        """Ask the job to stop; ``False`` when it has already finished."""

        with self._lock:
            if self.state.is_terminal:
                return False
            self._cancelled.set()
            return True

    @property
    def cancel_requested(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float:
        return max(0.0, self.deadline - time.monotonic())

    def check_deadline(self) -> None:
        if self._cancelled.is_set():
            raise JobTimeoutError(f"Job {self.job_id} was cancelled after its caller stopped waiting")
        if time.monotonic() > self.deadline:
            raise JobTimeoutError(f"Job {self.job_id} exceeded its {self.timeout:g}s deadline")


class JobHandle:
    """Caller-side reference to a submitted job."""

    def __init__(self, job: Job, future: "Future[TransformResult]", orchestrator: "JobOrchestrator") -> None:
        self.job = job
        self._future = future
        self._orchestrator = orchestrator

    @property
    def job_id(self) -> str:
        return self.job.job_id

    @property
    def state(self) -> JobState:
        return self.job.state

    @property
    def future(self) -> "Future[TransformResult]":
        return self._future

    def done(self) -> bool:
        return self.job.state.is_terminal

    def result(self, timeout: float | None = None) -> TransformResult:
        return self._orchestrator.await_result(self, timeout)

    def __repr__(self) -> str:
        return f"JobHandle(job_id={self.job_id!r}, tool={self.job.tool!r}, state={self.state.value!r})"


__all__ = ["JobState", "TransformResult", "Job", "JobHandle"]
