"""
Shared pytest fixtures for the chat API test suite.

Upstream services are simulated with ``httpx.MockTransport`` so the real
HTTP clients (httpx for ZeroDB, the openai SDK for Llama) are exercised.
"""

from __future__ import annotations

import os

# Required settings must exist before ragchat.main is imported.
os.environ.setdefault("ZERODB_API_URL", "https://zerodb.test")
os.environ.setdefault("ZERODB_PROJECT_ID", "proj-123")
os.environ.setdefault("ZERODB_EMAIL", "bot@example.com")
os.environ.setdefault("ZERODB_PASSWORD", "s3cret-pa55")
os.environ.setdefault("META_BASE_URL", "https://llama.test/v1")
os.environ.setdefault("META_API_KEY", "meta-key")

import json
from collections.abc import Callable

import httpx
import pytest

from ragchat.core.config import Settings
from ragchat.services.auth import ZeroDBAuthService
from ragchat.services.completion import CompletionService
from ragchat.services.feedback import FeedbackService
from ragchat.services.rag import ChatOrchestrator
from ragchat.services.search import ZeroDBSearchService

ZERODB_URL = "https://zerodb.test"
LLAMA_URL = "https://llama.test/v1"
LOGIN_PATH = "/v1/public/auth/login"
SEARCH_PATH = "/v1/public/proj-123/embeddings/search"
RLHF_PATH = "/v1/public/proj-123/database/rlhf/interactions"
COMPLETIONS_PATH = "/v1/chat/completions"


class RecordingUpstream:
    """Routes requests by path to response factories and records them."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, Callable] = {}

    def route(self, path: str, factory: Callable) -> None:
        self._routes[path] = factory

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request):
        self.requests.append(request)
        factory = self._routes.get(request.url.path)
        if factory is None:
            return httpx.Response(404, json={"detail": "not found"})
        return factory(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def login_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={"access_token": "jwt-token", "token_type": "bearer", "expires_in": 3600},
    )


def search_ok(results: list[dict]) -> Callable:
    def factory(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": results, "total": len(results)})

    return factory


def completion_ok(text: str) -> Callable:
    def factory(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "id": "chatcmpl-1",
                "object": "chat.completion",
                "created": 0,
                "model": json.loads(request.content)["model"],
                "choices": [
                    {
                        "index": 0,
                        "message": {"role": "assistant", "content": text},
                        "finish_reason": "stop",
                    }
                ],
                "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
            },
        )

    return factory


def status(code: int, body: str = "upstream failure") -> Callable:
    def factory(request: httpx.Request) -> httpx.Response:
        return httpx.Response(code, text=body)

    return factory


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def factory(**overrides) -> Settings:
        values = {
            "zerodb_api_url": ZERODB_URL,
            "zerodb_project_id": "proj-123",
            "zerodb_email": "bot@example.com",
            "zerodb_password": "s3cret-pa55",
            "meta_base_url": LLAMA_URL,
            "meta_api_key": "meta-key",
            "meta_model": "",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def zerodb() -> RecordingUpstream:
    upstream = RecordingUpstream()
    upstream.route(LOGIN_PATH, login_ok)
    upstream.route(SEARCH_PATH, search_ok([]))
    return upstream


@pytest.fixture
def llama() -> RecordingUpstream:
    upstream = RecordingUpstream()
    upstream.route(COMPLETIONS_PATH, completion_ok("Generated answer"))
    return upstream


class Services:
    def __init__(self, settings: Settings, zerodb: RecordingUpstream, llama: RecordingUpstream):
        self.zerodb_http = httpx.AsyncClient(base_url=ZERODB_URL, transport=zerodb.transport())
        self.llama_http = httpx.AsyncClient(transport=llama.transport())
        self.auth = ZeroDBAuthService(settings, self.zerodb_http)
        self.search = ZeroDBSearchService(settings, self.zerodb_http)
        self.completion = CompletionService(settings, http_client=self.llama_http)
        self.orchestrator = ChatOrchestrator(self.auth, self.search, self.completion)
        self.feedback = FeedbackService(settings, self.auth, self.zerodb_http)


@pytest.fixture
def make_services(zerodb, llama) -> Callable[[Settings], Services]:
    def factory(settings: Settings) -> Services:
        return Services(settings, zerodb, llama)

    return factory


@pytest.fixture
def services(make_services, settings) -> Services:
    return make_services(settings)
