"""Application error taxonomy.

Each error carries a stable machine-readable ``kind`` and the HTTP status
it is answered with; ``roomgen.main`` renders them as
``{"error": <message>, "kind": <kind>}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from roomgen.generation.types import RateLimitDecision


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    kind: str = "internal_error"
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def headers(self) -> dict[str, str] | None:
        return None


class InvalidRequest(AppError):
    """Missing or malformed request fields. Not retryable."""

    status_code = 400
    kind = "invalid_request"
    default_message = "Missing required parameters."


class RateLimited(AppError):
    """Client exhausted its quota for the current window."""

    status_code = 429
    kind = "rate_limited"
    default_message = "Too many uploads in 1 day. Please try again in 24 hours."

    def __init__(self, decision: RateLimitDecision, message: str | None = None):
        super().__init__(message)
        self.decision = decision

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.decision.limit),
            "X-RateLimit-Remaining": str(self.decision.remaining),
            "Retry-After": str(max(1, int(self.decision.reset_after))),
        }


class UpstreamUnavailable(AppError):
    """Transport-level failure talking to the inference provider."""

    status_code = 500
    kind = "upstream_unavailable"
    default_message = "Image provider is unavailable"


class UpstreamProtocolError(AppError):
    """Provider answered with a payload that breaks its contract."""

    status_code = 500
    kind = "upstream_protocol_error"
    default_message = "Image provider returned an unexpected response"


class GenerationFailed(AppError):
    """Provider reported the prediction as failed. Terminal."""

    status_code = 500
    kind = "generation_failed"
    default_message = "Image generation failed"


class GenerationTimeout(AppError):
    """Polling budget exhausted without a terminal status."""

    status_code = 504
    kind = "timeout"
    default_message = "Image generation timed out."
