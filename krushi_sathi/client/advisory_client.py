"""HTTP client for the advisory API.

The client always hands back something displayable: when the advisory call
fails for any reason it falls back according to ``FallbackPolicy``.
"""
from enum import Enum
from pathlib import Path
import base64
import logging
import mimetypes
import threading

import httpx
from pydantic import ValidationError

from krushi_sathi.models.advisory import AdvisoryResponse, ListAdvisoriesResponse, SaveAdvisoryResponse
from krushi_sathi.utils.advisory_templates import build_template_response, build_unavailable_response

logger = logging.getLogger(__name__)


class FallbackPolicy(str, Enum):
    MESSAGE = "message"   # localized "service unavailable" advisory with retry steps
    TEMPLATE = "template" # locally synthesized template advisory


class ClientState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RESULT = "result"


class AdvisoryInFlightError(RuntimeError):
    """An advisory request is already outstanding."""


def encode_image(image: str | Path | bytes, mime_type: str | None = None) -> str:
    """Data URL for an image given as a path or raw bytes."""
    if isinstance(image, (str, Path)):
        path = Path(image)
        data = path.read_bytes()
        mime_type = mime_type or mimetypes.guess_type(path.name)[0]
    else:
        data = image
    mime_type = mime_type or "image/jpeg"
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class AdvisoryClient:
    def __init__(self, base_url: str = "http://localhost:8080", lang: str = "en",
                 fallback_policy: FallbackPolicy = FallbackPolicy.MESSAGE, timeout: float = 30.0,
                 transport: httpx.BaseTransport | None = None):
        self.lang = lang
        self.fallback_policy = FallbackPolicy(fallback_policy)
        self.http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)
        self.state = ClientState.IDLE
        self.last_result: AdvisoryResponse | None = None
        self._in_flight = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self.http.close()

    def fallback(self, lang: str, question: str | None = None) -> AdvisoryResponse:
        if self.fallback_policy is FallbackPolicy.TEMPLATE:
            return build_template_response(lang, question)
        return build_unavailable_response(lang)

    def ask(self, question: str | None = None, image: str | Path | bytes | None = None,
            lang: str | None = None) -> AdvisoryResponse:
        """Request an advisory; one at a time per client."""
        lang = lang or self.lang
        if not self._in_flight.acquire(blocking=False):
            raise AdvisoryInFlightError("An advisory request is already in progress.")
        self.state = ClientState.LOADING
        try:
            payload = {"question": question, "lang": lang}
            if image is not None:
                payload["imageBase64"] = encode_image(image)
            try:
                resp = self.http.post("/api/advisory", json=payload)
                if resp.status_code != 200:
                    raise httpx.HTTPStatusError(f"HTTP error! status: {resp.status_code}", request=resp.request, response=resp)
                result = AdvisoryResponse.model_validate(resp.json())
            except (httpx.HTTPError, ValueError, ValidationError) as e:
                logger.error(f"Failed to get advisory: {e}")
                result = self.fallback(lang, question)
            self.last_result = result
            self.state = ClientState.RESULT
            return result
        except Exception:
            self.state = ClientState.IDLE
            raise
        finally:
            self._in_flight.release()

    def save(self, user_id: str, advisory: AdvisoryResponse) -> SaveAdvisoryResponse:
        resp = self.http.post("/api/advisories", json={"userId": user_id, "advisory": advisory.model_dump()})
        resp.raise_for_status()
        return SaveAdvisoryResponse.model_validate(resp.json())

    def list_saved(self, user_id: str) -> ListAdvisoriesResponse:
        resp = self.http.get("/api/advisories", params={"userId": user_id})
        resp.raise_for_status()
        return ListAdvisoriesResponse.model_validate(resp.json())

    def updates(self, lat: float | None = None, lon: float | None = None) -> dict:
        """Raw updates payload; offline payloads carry "N/A" prices so no model validation."""
        params = {k: v for k, v in (("lat", lat), ("lon", lon)) if v is not None}
        resp = self.http.get("/api/updates", params=params)
        resp.raise_for_status()
        return resp.json()

