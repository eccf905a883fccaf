"""Replicate job client: prediction submission and status checks.

Submission:
  POST {api_url} with {version, input: {image, prompt, a_prompt, n_prompt}}
  → acknowledgment carrying ``urls.get``, the status-check reference

Status check:
  GET urls.get → {status, output, error}

Neither call is retried here; retry policy belongs to the poller.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from roomgen.core.exceptions import UpstreamProtocolError, UpstreamUnavailable
from roomgen.generation.prompt_builder import A_PROMPT, N_PROMPT
from roomgen.generation.types import Job, JobStatus, parse_provider_status

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.replicate.com/v1/predictions"


class JobClient(Protocol):
    async def submit(self, image_url: str, prompt: str) -> Job: ...

    async def poll(self, job: Job) -> Job: ...


def extract_output(output: Any) -> str | None:
    """Pick the result image reference out of a prediction's ``output``.

    ControlNet models return ``[control_map, result]``; the result is the
    last non-empty string.
    """
    if isinstance(output, str):
        return output or None
    if isinstance(output, list):
        for item in reversed(output):
            if isinstance(item, str) and item:
                return item
    return None


class ReplicateJobClient:
    """Replicate predictions API client."""

    def __init__(
        self,
        api_token: str,
        model_version: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        poll_timeout: float = 5.0,
    ):
        self.api_token = api_token
        self.model_version = model_version
        self.api_url = api_url
        self.timeout = timeout
        self.poll_timeout = poll_timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Token {self.api_token}",
            "Content-Type": "application/json",
        }

    def build_payload(self, image_url: str, prompt: str) -> dict[str, Any]:
        return {
            "version": self.model_version,
            "input": {
                "image": image_url,
                "prompt": prompt,
                "a_prompt": A_PROMPT,
                "n_prompt": N_PROMPT,
            },
        }

    async def submit(self, image_url: str, prompt: str) -> Job:
        """Start a prediction. Returns a pending Job pointing at its status URL."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.api_url,
                    json=self.build_payload(image_url, prompt),
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            logger.error("Replicate start request failed: %s", e)
            raise UpstreamUnavailable("Replicate API start failed") from e

        if not resp.is_success:
            logger.error("Replicate start API error %d: %s", resp.status_code, resp.text[:500])
            raise UpstreamUnavailable("Replicate API start failed")

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamProtocolError("Replicate start response is not JSON") from e

        urls = data.get("urls") if isinstance(data, dict) else None
        status_url = urls.get("get") if isinstance(urls, dict) else None
        if not status_url:
            logger.error("Replicate start response missing urls.get: %s", str(data)[:500])
            raise UpstreamProtocolError("Replicate response missing endpoint URL")

        job = Job(
            id=str(data.get("id") or status_url),
            status_url=status_url,
            status=parse_provider_status(data.get("status")),
        )
        logger.info("Started prediction %s", job.id)
        return job

    async def poll(self, job: Job) -> Job:
        """Fetch the current state of ``job`` once."""
        try:
            async with httpx.AsyncClient(timeout=self.poll_timeout) as client:
                resp = await client.get(job.status_url, headers=self._headers())
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Replicate status check failed: {e}") from e

        if not resp.is_success:
            raise UpstreamUnavailable(f"Replicate status check returned {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamProtocolError("Replicate status response is not JSON") from e
        if not isinstance(data, dict):
            raise UpstreamProtocolError("Replicate status response is not an object")

        status = parse_provider_status(data.get("status"))
        error = data.get("error")
        if status is JobStatus.FAILED and not error:
            error = f"prediction {data.get('status', 'failed')}"

        return job.with_status(
            status,
            output=extract_output(data.get("output")),
            error=str(error) if error else None,
        )
