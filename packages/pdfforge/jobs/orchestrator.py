"""Job orchestrator: validation, limits, deadlines and a bounded worker pool.

Jobs run on a :class:`~concurrent.futures.ThreadPoolExecutor`; its work queue
is FIFO, so jobs beyond ``max_concurrent_jobs`` start in arrival order.  A job
never raises out of its worker: every outcome becomes a
:class:`TransformResult`.
"""

from __future__ import annotations

from concurrent.futures import CancelledError, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Mapping, Sequence

from ..core.codec import PdfCodec
from ..core.errors import ErrorKind, PdfForgeError, ResourceLimitError, ValidationError
from ..core.model import Document
from ..core.recovery import count_pages_hint
from ..core.settings import EngineSettings
from ..core.utils import get_logger
from ..tools import load_builtin_plugins
from ..tools.common.interfaces import BaseTool
from ..tools.common.params import ToolParams, parse_params
from ..tools.common.pipeline import execute_tool, prepare_tool, registry
from .models import Job, JobHandle, JobState, TransformResult

LOGGER = get_logger("pdfforge.jobs")


class JobOrchestrator:
    """Accept transformation requests and drive them to a terminal state."""

    def __init__(self, settings: EngineSettings | None = None, codec: PdfCodec | None = None) -> None:
        load_builtin_plugins()
        self.settings = settings or EngineSettings()
        self.codec = codec or PdfCodec(compress_streams=self.settings.compress_streams)
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.max_concurrent_jobs,
            thread_name_prefix="pdfforge-job",
        )
        self._closed = False

    # -- Public API ----------------------------------------------------------

    def submit(
        self,
        tool: str,
        inputs: Sequence[bytes],
        params: Mapping[str, Any] | ToolParams | None = None,
        *,
        timeout: float | None = None,
    ) -> JobHandle:
        """Queue a job and return its handle immediately."""

        if self._closed:
            raise RuntimeError("JobOrchestrator has been shut down")
        timeout = self.settings.default_timeout if timeout is None else timeout
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        job = Job(tool=tool, inputs=list(inputs), params=params, timeout=timeout)
        LOGGER.info("Job %s submitted: %s with %d input(s)", job.job_id, tool, len(job.inputs))
        future = self._executor.submit(self._execute, job)
        return JobHandle(job, future, self)

    def await_result(self, handle: JobHandle, timeout: float | None = None) -> TransformResult:
        """Wait for ``handle``; ``timeout`` defaults to the job's remaining deadline.

        When the wait expires the job is asked to stop at its next stage
        boundary and a ``TimeoutError`` result is returned.  The job then ends
        ``Failed`` with that same kind, even if its work completes.
        """

        job = handle.job
        wait = job.remaining() if timeout is None else timeout
        try:
            return handle.future.result(timeout=wait)
        except FutureTimeoutError:
            if not job.request_cancel():
                # Finished between the wait expiring and the cancel request.
                return handle.future.result()
            LOGGER.warning("Job %s did not finish within %gs; cancellation requested", job.job_id, wait)
            return TransformResult.failed(ErrorKind.TIMEOUT, f"Job {job.job_id} did not finish within {wait:g}s")
        except CancelledError:
            return TransformResult.failed(ErrorKind.INTERNAL, f"Job {job.job_id} was cancelled before it started")

    def run(
        self,
        tool: str,
        inputs: Sequence[bytes],
        params: Mapping[str, Any] | ToolParams | None = None,
        *,
        timeout: float | None = None,
    ) -> TransformResult:
        handle = self.submit(tool, inputs, params, timeout=timeout)
        return self.await_result(handle)

    def shutdown(self, wait: bool = True, *, cancel_pending: bool = False) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=cancel_pending)

    def __enter__(self) -> "JobOrchestrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # -- Worker side ---------------------------------------------------------

    def _execute(self, job: Job) -> TransformResult:
        try:
            job.check_deadline()
            job.transition(JobState.VALIDATING)
            tool = self._validate(job)
            job.check_deadline()
            job.transition(JobState.RUNNING)
            LOGGER.info("Job %s running %s", job.job_id, job.tool)
            data, filename = execute_tool(tool, on_decoded=self._check_decoded)
            result = TransformResult.success(data, filename)
        except PdfForgeError as exc:
            LOGGER.info("Job %s failed with %s: %s", job.job_id, exc.kind.value, exc.message)
            result = TransformResult.failure(exc)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Job %s failed unexpectedly", job.job_id)
            result = TransformResult.failed(ErrorKind.INTERNAL, f"Internal error: {exc}")
        result = job.finish(result)
        if result.ok:
            LOGGER.info(
                "Job %s succeeded (%d byte(s), %s)", job.job_id, len(result.data or b""), result.suggested_filename
            )
        return result

    def _validate(self, job: Job) -> BaseTool:
        """Check tool, parameters and resource ceilings without parsing any input."""

        settings = self.settings
        tool_class = registry.require(job.tool)
        params = parse_params(job.tool, job.params)

        count = len(job.inputs)
        if count > settings.max_inputs:
            raise ResourceLimitError(f"{count} inputs exceed the limit of {settings.max_inputs}")
        tool_class.check_input_count(count)

        total = 0
        for index, data in enumerate(job.inputs):
            if not isinstance(data, (bytes, bytearray, memoryview)):
                raise ValidationError(f"input {index} must be bytes, got {type(data).__name__}")
            size = len(data)
            if size > settings.max_input_bytes:
                raise ResourceLimitError(
                    f"input {index} is {size} bytes, above the per-input limit of {settings.max_input_bytes}"
                )
            total += size
        if total > settings.max_total_bytes:
            raise ResourceLimitError(f"inputs total {total} bytes, above the limit of {settings.max_total_bytes}")

        inputs = [bytes(data) for data in job.inputs]
        for index, data in enumerate(inputs):
            hint = count_pages_hint(data)
            if hint is not None and hint > settings.max_pages:
                raise ResourceLimitError(
                    f"input {index} declares {hint} pages, above the limit of {settings.max_pages}"
                )
        return prepare_tool(
            job.tool,
            inputs,
            params,
            settings=settings,
            codec=self.codec,
            check_deadline=job.check_deadline,
        )

    def _check_decoded(self, documents: list[Document]) -> None:
        for index, document in enumerate(documents):
            if document.page_count > self.settings.max_pages:
                raise ResourceLimitError(
                    f"input {index} has {document.page_count} pages, above the limit of {self.settings.max_pages}"
                )


__all__ = ["JobOrchestrator"]
