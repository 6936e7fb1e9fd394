"""
Poll-until-terminal driver for job-based backends.

A job moves pending -> in_progress -> complete | error. The poller is handed
the job as returned by the submit call and the moment it was submitted, then
queries its status until a terminal state shows up:

* before every query it checks cancellation, then the timeout (wall-clock
  time since submission);
* an ``in_progress`` snapshot carrying progress invokes the callback exactly
  once, synchronously, in poll order;
* ``complete`` returns the result payload; ``complete`` without one is a
  protocol violation;
* ``error`` raises with the backend's message and code;
* a failing status query propagates as-is, there is no retry.

Once a terminal snapshot is seen no further query is issued.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from core.errors import GenerationCancelled, GenerationJobError, GenerationTimeout, MalformedJobError
from genai.types import GenerationJob, JobProgress, JobStatus

log = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_POLL_TIMEOUT = 120.0

FetchStatus = Callable[[str], Awaitable[GenerationJob]]
ProgressCallback = Callable[[JobProgress], None]


class GenerationPoller:
    """Drives one job to a terminal state."""

    def __init__(
        self,
        fetch_status: FetchStatus,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.fetch_status = fetch_status
        self.interval = interval
        self.timeout = timeout
        self.on_progress = on_progress
        self.cancel_event = cancel_event
        self.clock = clock
        self._sleep = sleep
        self._logger = logger or log
        self.polls = 0

    async def run(self, job: GenerationJob, submitted_at: Optional[float] = None) -> Dict[str, Any]:
        """Polls ``job`` until it completes and returns its result payload."""
        started = self.clock() if submitted_at is None else submitted_at
        current = job

        while not current.status.is_terminal:
            self._check_cancelled(current)
            if self.polls:
                await self._pause()
                self._check_cancelled(current)

            elapsed = self.clock() - started
            if elapsed > self.timeout:
                self._logger.warning(f"Job {current.id} timed out after {elapsed:.1f}s")
                raise GenerationTimeout(
                    f"Generation timed out after {self.timeout:g}s (job {current.id}, last status {current.status.value})",
                    payload={'job_id': current.id, 'last_status': current.status.value},
                )

            self.polls += 1
            current = await self.fetch_status(current.id)
            self._logger.debug(f"Job {current.id} poll #{self.polls}: {current.status.value}")

            if current.status is JobStatus.IN_PROGRESS and current.progress is not None and self.on_progress:
                self.on_progress(current.progress)

        return self._finish(current)

    def _finish(self, job: GenerationJob) -> Dict[str, Any]:
        if job.status is JobStatus.ERROR:
            error = job.error
            message = error.message if error else "Generation failed"
            raise GenerationJobError(
                message,
                job_id=job.id,
                error_code=error.code if error else None,
                payload=error.model_dump() if error else None,
            )
        if not job.result:
            raise MalformedJobError(f"Generation {job.id} completed but no result available")
        return job.result

    def _check_cancelled(self, job: GenerationJob) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            self._logger.info(f"Job {job.id} cancelled by caller")
            raise GenerationCancelled(f"Generation {job.id} was cancelled", payload={'job_id': job.id})

    async def _pause(self) -> None:
        if self._sleep is not None:
            await self._sleep(self.interval)
            return
        if self.cancel_event is None:
            await asyncio.sleep(self.interval)
            return
        # Wakes early when the caller cancels.
        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass
