"""Generation service: one request/response cycle.

  1. Rate limit (consumes a permit, even if the request turns out malformed)
  2. Validate payload
  3. Build prompt
  4. Submit prediction
  5. Poll to a terminal status
  6. Map the outcome to a result or an AppError
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from roomgen.core.exceptions import (
    AppError,
    GenerationFailed,
    GenerationTimeout,
    InvalidRequest,
    RateLimited,
    UpstreamUnavailable,
)
from roomgen.core.metrics import GENERATION_OUTCOMES
from roomgen.generation.job_client import JobClient
from roomgen.generation.poller import JobPoller
from roomgen.generation.prompt_builder import build_prompt
from roomgen.generation.rate_limiter import EnforcedRateLimit, PermissiveRateLimit, RateLimitMode
from roomgen.generation.types import Failed, Succeeded, TimedOut, TransientError
from roomgen.schemas.generate import GenerationRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    image: str
    prompt: str
    job_id: str


class GenerationService:
    """Composes rate limiter, prompt builder, job client and poller."""

    def __init__(self, rate_limit: RateLimitMode, client: JobClient, poller: JobPoller):
        self.rate_limit = rate_limit
        self.client = client
        self.poller = poller

    @property
    def rate_limiting_enabled(self) -> bool:
        return isinstance(self.rate_limit, EnforcedRateLimit)

    async def _enforce_rate_limit(self, identity: str) -> None:
        if isinstance(self.rate_limit, PermissiveRateLimit):
            return
        if isinstance(self.rate_limit, EnforcedRateLimit):
            decision = await self.rate_limit.limiter.check(identity)
            if not decision.allowed:
                GENERATION_OUTCOMES.labels(outcome="rate_limited").inc()
                raise RateLimited(decision)
            return
        raise TypeError(f"Unsupported rate limit mode: {self.rate_limit!r}")

    @staticmethod
    def parse_request(payload: bytes | str | Mapping[str, Any]) -> GenerationRequest:
        """Validate a raw JSON body or an already-decoded mapping."""
        try:
            if isinstance(payload, (bytes, str)):
                return GenerationRequest.model_validate_json(payload)
            return GenerationRequest.model_validate(payload)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            logger.info("Rejected generation request, invalid fields: %s", ", ".join(fields) or "body")
            raise InvalidRequest() from e

    async def handle(self, payload: bytes | str | Mapping[str, Any], identity: str) -> GenerationResult:
        await self._enforce_rate_limit(identity)

        try:
            request = self.parse_request(payload)
        except InvalidRequest:
            GENERATION_OUTCOMES.labels(outcome="invalid_request").inc()
            raise

        prompt = build_prompt(request.theme, request.room)
        logger.info("Generating '%s' for %s", prompt, identity)

        try:
            job = await self.client.submit(request.image_url, prompt)
            outcome = await self.poller.run(job)
        except AppError as e:
            GENERATION_OUTCOMES.labels(outcome=e.kind).inc()
            raise

        if isinstance(outcome, Succeeded):
            GENERATION_OUTCOMES.labels(outcome="succeeded").inc()
            return GenerationResult(image=outcome.output, prompt=prompt, job_id=job.id)

        if isinstance(outcome, Failed):
            GENERATION_OUTCOMES.labels(outcome="failed").inc()
            logger.error("Prediction %s failed: %s", job.id, outcome.reason)
            raise GenerationFailed()

        if isinstance(outcome, TimedOut):
            GENERATION_OUTCOMES.labels(outcome="timed_out").inc()
            raise GenerationTimeout()

        if isinstance(outcome, TransientError):
            GENERATION_OUTCOMES.labels(outcome="upstream_unavailable").inc()
            raise UpstreamUnavailable(f"Image provider unreachable: {outcome.reason}")

        raise TypeError(f"Unsupported poll outcome: {outcome!r}")
