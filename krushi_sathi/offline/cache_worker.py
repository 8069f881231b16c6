"""Offline cache layer for API clients.

``OfflineCacheTransport`` wraps another httpx transport the way a browser
service worker wraps ``fetch``: static assets are pre-cached on ``install``,
stale cache versions are dropped on ``activate``, GET requests are answered from
cache when possible, and when the network is down the advisory and updates
routes get canned JSON from an ``OfflineResponder`` instead of an error.
"""
from dataclasses import dataclass, field
import json
import logging
import re
from typing import Callable

import httpx

logger = logging.getLogger(__name__)

CACHE_VERSION = "v1"
RUNTIME_CACHE = f"krushi-sathi-{CACHE_VERSION}"
STATIC_CACHE = f"krushi-static-{CACHE_VERSION}"

STATIC_FILES = ["/", "/manifest.json", "/favicon.ico", "/placeholder.svg"]


@dataclass
class CachedResponse:
    status_code: int
    headers: dict
    content: bytes

    @classmethod
    def capture(cls, response: httpx.Response) -> "CachedResponse":
        return cls(response.status_code, dict(response.headers), response.content)

    def to_response(self, request: httpx.Request) -> httpx.Response:
        headers = {k: v for k, v in self.headers.items() if k.lower() not in ("content-encoding", "transfer-encoding")}
        return httpx.Response(self.status_code, headers=headers, content=self.content, request=request)


@dataclass
class CacheStorage:
    """Named caches of URL -> captured response."""
    caches: dict[str, dict[str, CachedResponse]] = field(default_factory=dict)

    def open(self, name: str) -> dict[str, CachedResponse]:
        return self.caches.setdefault(name, {})

    def keys(self) -> list[str]:
        return list(self.caches)

    def delete(self, name: str) -> bool:
        return self.caches.pop(name, None) is not None

    def match(self, url: str) -> CachedResponse | None:
        for cache in self.caches.values():
            if url in cache:
                return cache[url]
        return None


ResponseFactory = Callable[[httpx.Request], dict]


class OfflineResponder:
    """Route pattern -> canned JSON payload used when the network fails."""

    def __init__(self):
        self._routes: list[tuple[re.Pattern, ResponseFactory]] = []

    def register(self, pattern: str, factory: ResponseFactory) -> None:
        self._routes.append((re.compile(pattern), factory))

    def respond(self, request: httpx.Request) -> httpx.Response | None:
        for pattern, factory in self._routes:
            if pattern.search(request.url.path):
                logger.info(f"Serving offline payload for {request.url.path}")
                return httpx.Response(200, json=factory(request), request=request)
        return None


def _request_lang(request: httpx.Request) -> str:
    try:
        body = json.loads(request.content or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "en"
    lang = body.get("lang") if isinstance(body, dict) else None
    return lang if isinstance(lang, str) and lang else "en"


def offline_advisory(request: httpx.Request) -> dict:
    return {
        "title": "Offline Advisory",
        "text": "You are currently offline. Please check your internet connection and try again for AI-powered advice.",
        "steps": [
            "Check your internet connection",
            "Retry when online for AI analysis",
            "Use basic farming practices in the meantime",
            "Save your question to ask later",
        ],
        "lang": _request_lang(request),
        "source": "template",
    }


def offline_updates(request: httpx.Request) -> dict:
    return {
        "weather": {"temperatureC": None, "windKph": None, "description": "Weather unavailable offline"},
        "market": [
            {"crop": "Tomato", "pricePerKgInr": "N/A"},
            {"crop": "Onion", "pricePerKgInr": "N/A"},
        ],
        "schemes": [{"title": "Government Schemes", "status": "Check online for updates"}],
    }


def default_offline_responder() -> OfflineResponder:
    responder = OfflineResponder()
    responder.register(r"^/api/advisory/?$", offline_advisory)
    responder.register(r"^/api/updates/?$", offline_updates)
    return responder


def _offline(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="Offline", request=request)


class OfflineCacheTransport(httpx.BaseTransport):
    def __init__(self, transport: httpx.BaseTransport | None = None, storage: CacheStorage | None = None,
                 responder: OfflineResponder | None = None, base_url: str = "http://localhost:8080",
                 static_files: list[str] | None = None):
        self.transport = transport or httpx.HTTPTransport()
        self.storage = storage or CacheStorage()
        self.responder = responder or default_offline_responder()
        self.base_url = base_url.rstrip("/")
        self.static_files = static_files if static_files is not None else list(STATIC_FILES)
        self.current_caches = {RUNTIME_CACHE, STATIC_CACHE}

    def install(self) -> int:
        """Pre-populate the static cache; returns how many assets were stored."""
        cache = self.storage.open(STATIC_CACHE)
        stored = 0
        for path in self.static_files:
            request = httpx.Request("GET", f"{self.base_url}{path}")
            try:
                response = self.transport.handle_request(request)
                response.read()
            except httpx.TransportError as e:
                logger.error(f"Failed to cache static file {path}: {e}")
                continue
            if response.status_code == 200:
                cache[str(request.url)] = CachedResponse.capture(response)
                stored += 1
        logger.info(f"Cached {stored}/{len(self.static_files)} static files in {STATIC_CACHE}")
        return stored

    def activate(self) -> list[str]:
        """Drop caches from older versions; returns the deleted names."""
        deleted = [name for name in self.storage.keys() if name not in self.current_caches]
        for name in deleted:
            logger.info(f"Deleting old cache {name}")
            self.storage.delete(name)
        return deleted

    def _network(self, request: httpx.Request) -> httpx.Response:
        response = self.transport.handle_request(request)
        response.read()
        return response

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        is_api = request.url.path.startswith("/api/")

        if request.method != "GET":
            if not is_api:
                return self.transport.handle_request(request)
            try:
                return self._network(request)
            except httpx.TransportError:
                return self.responder.respond(request) or _offline(request)

        cached = self.storage.match(str(request.url))
        if cached is not None:
            logger.debug(f"Cache hit for {request.url}")
            return cached.to_response(request)

        if is_api:
            try:
                return self._network(request)
            except httpx.TransportError:
                return self.responder.respond(request) or _offline(request)

        try:
            response = self._network(request)
        except httpx.TransportError:
            if request.headers.get("sec-fetch-mode") == "navigate":
                root = self.storage.match(f"{self.base_url}/")
                if root is not None:
                    return root.to_response(request)
            return _offline(request)

        if response.status_code == 200:
            self.storage.open(RUNTIME_CACHE)[str(request.url)] = CachedResponse.capture(response)
        return response

    def close(self) -> None:
        self.transport.close()
