"""Core types for the generation layer."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class JobStatus(str, Enum):
    """Lifecycle of a provider prediction as seen by the poller."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PENDING


# Replicate reports starting / processing / succeeded / failed / canceled.
# Anything unrecognised is treated as still running.
_PROVIDER_STATUS_MAP: dict[str, JobStatus] = {
    "starting": JobStatus.PENDING,
    "processing": JobStatus.PENDING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
    "canceled": JobStatus.FAILED,
}


def parse_provider_status(value: object) -> JobStatus:
    """Map a raw provider status string onto JobStatus."""
    if not isinstance(value, str):
        return JobStatus.PENDING
    return _PROVIDER_STATUS_MAP.get(value.strip().lower(), JobStatus.PENDING)


# ---------------------------------------------------------------------------
# Job: a submitted prediction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Job:
    """A prediction submitted to the provider.

    Only ever replaced by a freshly polled copy (see ``with_status``),
    never mutated in place.
    """

    id: str
    status_url: str
    status: JobStatus = JobStatus.PENDING
    output: str | None = None
    error: str | None = None

    def with_status(self, status: JobStatus, output: str | None = None, error: str | None = None) -> Job:
        return replace(self, status=status, output=output, error=error)


# ---------------------------------------------------------------------------
# Rate limit decision
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of one rate limit check. Produced fresh per request."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: float = 0.0  # Seconds until the current window resets


# ---------------------------------------------------------------------------
# Poll outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Succeeded:
    output: str


@dataclass(frozen=True)
class Failed:
    reason: str


@dataclass(frozen=True)
class TimedOut:
    attempts: int


@dataclass(frozen=True)
class TransientError:
    reason: str


PollOutcome = Union[Succeeded, Failed, TimedOut, TransientError]
