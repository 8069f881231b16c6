import asyncio
import base64

import pytest
from google.api_core import exceptions as google_exceptions

from krushi_sathi.core.config import settings
from krushi_sathi.core.errors import AIConfigError, AIServiceError
from krushi_sathi.services import gemini_advisor
from krushi_sathi.services.gemini_advisor import GeminiAdvisor, get_advisor
from krushi_sathi.utils.images import decode_image, decoded_size, split_data_url


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModelFactory:
    """Replaces genai.GenerativeModel; behavior chosen per model name."""

    def __init__(self, behaviors):
        self.behaviors = behaviors
        self.created = []

    def __call__(self, model_name, generation_config=None):
        self.created.append(model_name)
        behavior = self.behaviors[model_name]

        class Model:
            async def generate_content_async(self, contents):
                if isinstance(behavior, Exception):
                    raise behavior
                return FakeResponse(behavior)

        return Model()


@pytest.fixture
def advisor():
    return GeminiAdvisor(api_key="test-key", model_name="primary", fallback_model_name="fallback", timeout=1.0)


def run(coro):
    return asyncio.run(coro)


def test_returns_model_text(advisor, monkeypatch):
    factory = FakeModelFactory({"primary": '{"title": "ok"}'})
    monkeypatch.setattr(gemini_advisor.genai, "GenerativeModel", factory)
    assert run(advisor.generate("prompt")) == '{"title": "ok"}'
    assert factory.created == ["primary"]


def test_model_not_found_retries_fallback_once(advisor, monkeypatch):
    factory = FakeModelFactory({"primary": google_exceptions.NotFound("no such model"), "fallback": "from fallback"})
    monkeypatch.setattr(gemini_advisor.genai, "GenerativeModel", factory)
    assert run(advisor.generate("prompt")) == "from fallback"
    assert factory.created == ["primary", "fallback"]


def test_fallback_not_found_is_service_error(advisor, monkeypatch):
    factory = FakeModelFactory({
        "primary": google_exceptions.NotFound("no such model"),
        "fallback": google_exceptions.NotFound("no such model either"),
    })
    monkeypatch.setattr(gemini_advisor.genai, "GenerativeModel", factory)
    with pytest.raises(AIServiceError):
        run(advisor.generate("prompt"))
    assert factory.created == ["primary", "fallback"]


def test_transport_error_is_not_retried(advisor, monkeypatch):
    factory = FakeModelFactory({"primary": google_exceptions.ServiceUnavailable("down"), "fallback": "unused"})
    monkeypatch.setattr(gemini_advisor.genai, "GenerativeModel", factory)
    with pytest.raises(AIServiceError):
        run(advisor.generate("prompt"))
    assert factory.created == ["primary"]


@pytest.mark.parametrize("error", [
    google_exceptions.PermissionDenied("denied"),
    google_exceptions.InvalidArgument("API key not valid. Please pass a valid API key."),
])
def test_rejected_credential_is_config_error(advisor, monkeypatch, error):
    monkeypatch.setattr(gemini_advisor.genai, "GenerativeModel", FakeModelFactory({"primary": error}))
    with pytest.raises(AIConfigError):
        run(advisor.generate("prompt"))


def test_timeout_is_service_error(advisor, monkeypatch):
    async def slow(self, model_name, contents):
        await asyncio.sleep(5)
        return "too late"

    monkeypatch.setattr(GeminiAdvisor, "_call_model", slow)
    advisor.timeout = 0.05
    with pytest.raises(AIServiceError):
        run(advisor.generate("prompt"))


def test_image_contents_carry_decoded_bytes(advisor):
    payload = base64.b64encode(b"image-bytes").decode()
    contents = advisor.build_contents("prompt", f"data:image/png;base64,{payload}")
    assert contents == ["prompt", {"mime_type": "image/png", "data": b"image-bytes"}]
    assert advisor.build_contents("prompt") == ["prompt"]


def test_split_data_url_defaults_to_jpeg():
    assert split_data_url("abcd") == ("image/jpeg", "abcd")
    assert split_data_url("data:image/webp;base64,abcd") == ("image/webp", "abcd")


def test_decoded_size_uses_four_thirds_ratio():
    assert decoded_size("A" * 8) == 6
    assert decoded_size("data:image/png;base64," + "A" * 8) == 6
    assert decoded_size("A" * 10) == 8


def test_malformed_base64_raises_value_error():
    with pytest.raises(ValueError):
        decode_image("abc")
    with pytest.raises(ValueError):
        decode_image("data:image/png;base64,")
    assert decode_image("data:image/png;base64,aW1h\nZ2U=") == ("image/png", b"image")


def test_advisor_is_configured_once_per_settings(monkeypatch):
    configured = []
    monkeypatch.setattr(gemini_advisor.genai, "configure", lambda api_key: configured.append(api_key))
    monkeypatch.setattr(settings, "AI_API_KEY", "key-one")
    gemini_advisor._cached_advisor.cache_clear()

    first, second = get_advisor(), get_advisor()
    assert first is second
    assert configured == ["key-one"]

    monkeypatch.setattr(settings, "AI_API_KEY", "key-two")
    assert get_advisor() is not first
    assert configured == ["key-one", "key-two"]
    gemini_advisor._cached_advisor.cache_clear()


def test_no_advisor_without_key():
    assert get_advisor() is None
