from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from limits import parse
from limits.aio.storage import MemoryStorage

from roomgen.core.config import settings

# Override settings for tests
settings.replicate_api_token = "test-token"
settings.app_debug = True
settings.app_env = "development"
settings.redis_url = ""

from roomgen.core.dependencies import get_generation_service  # noqa: E402
from roomgen.core.exceptions import UpstreamUnavailable  # noqa: E402
from roomgen.generation.poller import JobPoller  # noqa: E402
from roomgen.generation.rate_limiter import (  # noqa: E402
    EnforcedRateLimit,
    FixedWindowLimiter,
    PermissiveRateLimit,
    RateLimitMode,
)
from roomgen.generation.service import GenerationService  # noqa: E402
from roomgen.generation.types import Job, JobStatus  # noqa: E402
from roomgen.main import app  # noqa: E402

STATUS_URL = "https://api.replicate.com/v1/predictions/abc123"


class FakeJobClient:
    """Scripted JobClient: each poll returns the next (status, output) or raises it."""

    def __init__(self, script: list | None = None):
        self.script = list(script or [])
        self.submitted: list[tuple[str, str]] = []
        self.poll_count = 0

    async def submit(self, image_url: str, prompt: str) -> Job:
        self.submitted.append((image_url, prompt))
        return Job(id="abc123", status_url=STATUS_URL)

    async def poll(self, job: Job) -> Job:
        self.poll_count += 1
        if not self.script:
            raise AssertionError(f"unexpected poll #{self.poll_count}")
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        status, output = step
        error = "boom" if status is JobStatus.FAILED else None
        return job.with_status(status, output=output, error=error)


class FakeSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def pending(n: int) -> list:
    return [(JobStatus.PENDING, None)] * n


def succeeded(output: str = "https://replicate.delivery/out.png") -> tuple:
    return (JobStatus.SUCCEEDED, output)


def unavailable() -> UpstreamUnavailable:
    return UpstreamUnavailable("connection reset")


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def limiter() -> FixedWindowLimiter:
    return FixedWindowLimiter(MemoryStorage(), parse("5/day"))


@pytest.fixture
def make_service(fake_sleep: FakeSleep) -> Callable[..., GenerationService]:
    def _make(
        script: list | None = None,
        rate_limit: RateLimitMode | None = None,
        client: FakeJobClient | None = None,
        max_attempts: int = 30,
    ) -> GenerationService:
        client = client or FakeJobClient(script)
        poller = JobPoller(client, interval=1.0, max_attempts=max_attempts, sleep=fake_sleep)
        return GenerationService(rate_limit=rate_limit or PermissiveRateLimit(), client=client, poller=poller)

    return _make


@pytest.fixture
def enforced(limiter: FixedWindowLimiter) -> EnforcedRateLimit:
    return EnforcedRateLimit(limiter)


@pytest.fixture
def use_service():
    """Install a GenerationService for API requests; removed after the test."""

    def _install(service: GenerationService) -> GenerationService:
        app.dependency_overrides[get_generation_service] = lambda: service
        return service

    yield _install
    app.dependency_overrides.pop(get_generation_service, None)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
