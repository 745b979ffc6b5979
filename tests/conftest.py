"""Shared test fixtures for toolbench.

Provides in-memory SQLite engine and store fixtures, provider configs,
canned provider responses, and a scripted httpx transport that replays
provider replies in order.
"""

from __future__ import annotations

import json

import httpx
import pytest
from sqlalchemy.orm import sessionmaker

from toolbench.conversation import RunContext
from toolbench.llm.client import ProviderClient
from toolbench.models.config import BenchSettings, ProviderConfig, ProviderKind
from toolbench.storage.engine import create_bench_engine, init_db
from toolbench.storage.store import SessionStore
from toolbench.toolkit.executor import ToolExecutor
from toolbench.toolkit.search import WebSearch


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_bench_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def store():
    """In-memory session store."""
    s = SessionStore.open(":memory:")
    yield s
    s.close()


@pytest.fixture
def settings(tmp_path) -> BenchSettings:
    return BenchSettings(db_path=":memory:", workdir=str(tmp_path), command_timeout=5)


@pytest.fixture
def openai_config() -> ProviderConfig:
    return ProviderConfig.from_preset("openai", api_key="test-key")


@pytest.fixture
def gemini_config() -> ProviderConfig:
    return ProviderConfig.from_preset("gemini", api_key="test-key")


# ------------------------------------------------------------------
# Canned provider responses
# ------------------------------------------------------------------

def openai_response(content: str = "Hello!", model: str = "gpt-4-turbo") -> dict:
    """Build a realistic OpenAI chat completion response dict."""
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion",
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


def gemini_response(*texts: str) -> dict:
    """Build a realistic Gemini generateContent response dict."""
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": t} for t in texts]},
                "finishReason": "STOP",
            }
        ],
        "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 4},
    }


def ddg_response(**fields) -> dict:
    """Build a DuckDuckGo instant-answer payload with empty defaults."""
    payload = {
        "Heading": "",
        "AbstractText": "",
        "AbstractURL": "",
        "Answer": "",
        "Definition": "",
        "RelatedTopics": [],
    }
    payload.update(fields)
    return payload


class ScriptedProvider:
    """MockTransport handler that replays provider replies in order.

    Each scripted item is one of:
    - str: a successful reply with that text
    - httpx.Response: returned as-is
    - Exception: raised from the transport
    """

    def __init__(self, *replies, kind: ProviderKind = ProviderKind.OPENAI) -> None:
        self.replies = list(replies)
        self.kind = kind
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected provider call #{len(self.requests)}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        if self.kind is ProviderKind.GEMINI:
            return httpx.Response(200, json=gemini_response(reply))
        return httpx.Response(200, json=openai_response(reply))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def search_transport(payload: dict | None = None, status: int = 200) -> httpx.MockTransport:
    """MockTransport for the search endpoint returning a fixed payload."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payload if payload is not None else ddg_response())

    return httpx.MockTransport(handler)


@pytest.fixture
def make_context(tmp_path, settings):
    """Factory building a RunContext wired to mock transports.

    Usage::

        ctx = make_context(provider, ScriptedProvider("hi"), store=store)
    """
    created: list[RunContext] = []

    def _make(
        provider: ProviderConfig,
        script: ScriptedProvider,
        *,
        store: SessionStore | None = None,
        search_payload: dict | None = None,
        command_timeout: float = 5.0,
        executor=None,
    ) -> RunContext:
        if executor is None:
            executor = ToolExecutor(
                command_timeout=command_timeout,
                output_limit=settings.output_limit,
                workdir=str(tmp_path),
                search=WebSearch(transport=search_transport(search_payload)),
            )
        ctx = RunContext(
            provider=provider,
            client=ProviderClient(transport=script.transport),
            executor=executor,
            store=store,
            settings=settings,
        )
        created.append(ctx)
        return ctx

    yield _make

    for ctx in created:
        ctx.executor.close()
        ctx.client.close()
