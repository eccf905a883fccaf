"""Job poller: drives a prediction to a terminal status.

Fixed interval, bounded attempts; worst-case wait is roughly
``max_attempts * interval``. Per attempt:

  SUCCEEDED + output    → Succeeded, stop
  SUCCEEDED, no output  → transient, keep polling
  FAILED                → Failed, stop (never retried)
  PENDING / unknown     → keep polling
  UpstreamUnavailable   → transient, consumes the attempt, keep polling

Sleeps only between attempts. When the budget runs out the result is
TimedOut, or TransientError if the last attempt itself failed in transport.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from roomgen.core.exceptions import UpstreamUnavailable
from roomgen.core.metrics import POLL_ATTEMPTS
from roomgen.generation.job_client import JobClient
from roomgen.generation.types import (
    Failed,
    Job,
    JobStatus,
    PollOutcome,
    Succeeded,
    TimedOut,
    TransientError,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0
DEFAULT_MAX_ATTEMPTS = 30


class JobPoller:
    """Polls a submitted Job until it succeeds, fails, or the budget runs out.

    Usage:
        poller = JobPoller(client, interval=1.0, max_attempts=30)
        outcome = await poller.run(job)
    """

    def __init__(
        self,
        client: JobClient,
        interval: float = DEFAULT_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    @staticmethod
    def classify(job: Job) -> PollOutcome | None:
        """Terminal outcome for a polled job, or None to keep polling.

        A success without output is reported as TransientError; the caller
        treats it like any other non-terminal state.
        """
        if not job.status.is_terminal:
            return None
        if job.status is JobStatus.FAILED:
            return Failed(job.error or "prediction failed")
        if job.output:
            return Succeeded(job.output)
        return TransientError("prediction succeeded without output")

    async def run(self, job: Job) -> PollOutcome:
        last_transient: TransientError | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                job = await self.client.poll(job)
            except UpstreamUnavailable as e:
                logger.warning("Poll %d/%d for %s failed: %s", attempt, self.max_attempts, job.id, e.message)
                last_transient = TransientError(e.message)
            else:
                outcome = self.classify(job)
                if isinstance(outcome, (Succeeded, Failed)):
                    POLL_ATTEMPTS.observe(attempt)
                    logger.info("Prediction %s finished after %d polls: %s", job.id, attempt, job.status.value)
                    return outcome
                if isinstance(outcome, TransientError):
                    logger.warning("Prediction %s reported success without output, polling again", job.id)
                else:
                    logger.debug(
                        "Prediction %s still %s (poll %d/%d)", job.id, job.status.value, attempt, self.max_attempts
                    )
                last_transient = None

            if attempt < self.max_attempts:
                await self._sleep(self.interval)

        POLL_ATTEMPTS.observe(self.max_attempts)
        if last_transient is not None:
            logger.error("Prediction %s: last status check failed: %s", job.id, last_transient.reason)
            return last_transient

        logger.error("Prediction %s timed out after %d polls", job.id, self.max_attempts)
        return TimedOut(self.max_attempts)
