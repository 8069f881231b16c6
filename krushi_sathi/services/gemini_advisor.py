import asyncio
from functools import lru_cache
import logging

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from krushi_sathi.core.config import settings
from krushi_sathi.core.errors import AIConfigError, AIServiceError
from krushi_sathi.utils.images import decode_image

logger = logging.getLogger(__name__)

# Raised by the provider when the API key is missing, invalid or lacks access
_CREDENTIAL_ERRORS = (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated)


class GeminiAdvisor:
    """Calls Gemini for one advisory, bounded by a timeout.

    A model-not-found error is retried exactly once against the fallback model;
    every other failure surfaces as ``AIServiceError`` or ``AIConfigError``.
    """

    def __init__(self, api_key: str, model_name: str, fallback_model_name: str | None = None,
                 timeout: float = 20.0, temperature: float = 0.8, max_output_tokens: int = 2500):
        self.model_name = model_name
        self.fallback_model_name = fallback_model_name
        self.timeout = timeout
        self.generation_config = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
            "response_mime_type": "application/json",
        }
        try:
            genai.configure(api_key=api_key)
        except Exception as config_err:
            logger.error(f"Failed to configure Gemini: {config_err}", exc_info=True)
            raise AIConfigError(f"Gemini configuration error: {config_err}") from config_err

    def build_contents(self, prompt: str, image_base64: str | None = None) -> list:
        if not image_base64:
            return [prompt]
        mime_type, image_bytes = decode_image(image_base64)
        return [prompt, {"mime_type": mime_type, "data": image_bytes}]

    async def _call_model(self, model_name: str, contents: list) -> str:
        model = genai.GenerativeModel(model_name, generation_config=self.generation_config)
        response = await model.generate_content_async(contents)
        try:
            return response.text or ""
        except ValueError:
            # .text raises when the candidate was blocked or has no parts
            feedback = getattr(response, "prompt_feedback", None)
            logger.warning(f"Gemini returned no text. Prompt feedback: {feedback}")
            return ""

    async def _call_with_timeout(self, model_name: str, contents: list) -> str:
        logger.info(f"Sending advisory prompt to Gemini model '{model_name}' (timeout {self.timeout}s)")
        # wait_for cancels the model call once the timer wins
        return await asyncio.wait_for(self._call_model(model_name, contents), timeout=self.timeout)

    async def generate(self, prompt: str, image_base64: str | None = None) -> str:
        """Raw model text for ``prompt`` (plus optional image)."""
        contents = self.build_contents(prompt, image_base64)
        model_name = self.model_name
        try:
            try:
                text = await self._call_with_timeout(model_name, contents)
            except google_exceptions.NotFound as e:
                if not self.fallback_model_name or self.fallback_model_name == model_name:
                    raise
                logger.warning(f"Gemini model '{model_name}' not found ({e}); retrying with '{self.fallback_model_name}'.")
                model_name = self.fallback_model_name
                text = await self._call_with_timeout(model_name, contents)
        except asyncio.TimeoutError as e:
            logger.error(f"Gemini call to '{model_name}' timed out after {self.timeout}s")
            raise AIServiceError("AI advisory service timed out. Please try again.") from e
        except _CREDENTIAL_ERRORS as e:
            logger.error(f"Gemini rejected the configured credential: {e}", exc_info=True)
            raise AIConfigError() from e
        except google_exceptions.InvalidArgument as e:
            if "api key" in str(e).lower():
                logger.error(f"Gemini rejected the configured API key: {e}")
                raise AIConfigError() from e
            logger.error(f"Gemini rejected the request: {e}", exc_info=True)
            raise AIServiceError() from e
        except Exception as e:
            logger.error(f"Gemini API call failed: {e}", exc_info=True)
            raise AIServiceError() from e

        logger.info(f"Received Gemini response from '{model_name}' ({len(text)} chars).")
        return text


@lru_cache(maxsize=1)
def _cached_advisor(api_key: str, model_name: str, fallback_model_name: str | None, timeout: float,
                    temperature: float, max_output_tokens: int) -> GeminiAdvisor:
    # genai.configure is process-global; reconfigure only when the settings change
    logger.info(f"Configuring Gemini advisor for model '{model_name}'.")
    return GeminiAdvisor(api_key, model_name, fallback_model_name, timeout, temperature, max_output_tokens)


def get_advisor() -> GeminiAdvisor | None:
    """Route dependency; ``None`` when no AI credential is configured."""
    if not settings.ai_configured:
        return None
    return _cached_advisor(
        settings.AI_API_KEY,
        settings.GEMINI_MODEL_NAME,
        settings.GEMINI_FALLBACK_MODEL_NAME,
        settings.AI_TIMEOUT_SECONDS,
        settings.AI_TEMPERATURE,
        settings.AI_MAX_OUTPUT_TOKENS,
    )
