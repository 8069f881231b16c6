import pytest
from fastapi.testclient import TestClient

from krushi_sathi.core.config import settings
from krushi_sathi.core.rate_limit import InMemoryRateLimiter, get_rate_limiter
from krushi_sathi.db.persistence import InMemoryAdvisoryStore, get_store, reset_store
from krushi_sathi.main import app
from krushi_sathi.services.gemini_advisor import get_advisor


class FakeAdvisor:
    """Stands in for GeminiAdvisor; returns canned raw text and records prompts."""

    def __init__(self, raw_text: str = "", error: Exception | None = None):
        self.raw_text = raw_text
        self.error = error
        self.calls = []

    async def generate(self, prompt, image_base64=None):
        self.calls.append((prompt, image_base64))
        if self.error is not None:
            raise self.error
        return self.raw_text


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    monkeypatch.setattr(settings, "AI_API_KEY", None)
    monkeypatch.setattr(settings, "DATABASE_URL", None)
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(settings, "ADVISORY_FALLBACK_POLICY", "template")
    monkeypatch.setattr(settings, "RATE_LIMIT_REDIS_URL", None)
    reset_store()
    yield
    reset_store()
    app.dependency_overrides.clear()


@pytest.fixture
def rate_limiter():
    limiter = InMemoryRateLimiter(max_requests=10, window_seconds=60)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    return limiter


@pytest.fixture
def store():
    memory_store = InMemoryAdvisoryStore()
    app.dependency_overrides[get_store] = lambda: memory_store
    return memory_store


@pytest.fixture
def client(rate_limiter):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def use_advisor():
    """Install a FakeAdvisor as the AI backend for the request."""
    def install(advisor: FakeAdvisor) -> FakeAdvisor:
        app.dependency_overrides[get_advisor] = lambda: advisor
        return advisor
    return install
