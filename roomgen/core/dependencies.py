from fastapi import Request

from roomgen.core.config import Settings, settings
from roomgen.generation.job_client import ReplicateJobClient
from roomgen.generation.poller import JobPoller
from roomgen.generation.rate_limiter import RateLimitMode
from roomgen.generation.service import GenerationService


def build_generation_service(rate_limit: RateLimitMode, config: Settings = settings) -> GenerationService:
    """Wire the Replicate client and poller from settings."""
    client = ReplicateJobClient(
        api_token=config.replicate_api_token,
        model_version=config.replicate_model_version,
        api_url=config.replicate_api_url,
        timeout=config.replicate_timeout_seconds,
        poll_timeout=config.replicate_poll_timeout_seconds,
    )
    poller = JobPoller(
        client,
        interval=config.poll_interval_seconds,
        max_attempts=config.poll_max_attempts,
    )
    return GenerationService(rate_limit=rate_limit, client=client, poller=poller)


def get_generation_service(request: Request) -> GenerationService:
    """Service built during application startup (see ``roomgen.main.lifespan``)."""
    return request.app.state.generation_service
