"""Sync httpx provider client.

Sends a normalized conversation to any supported provider and returns a
normalized AgentReply. Exactly one HTTP POST per call; retry policy
belongs to the conversation loop.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import httpx

from toolbench.llm.adapters import GenerationOptions, get_adapter
from toolbench.llm.errors import (
    EmptyHistoryError,
    MissingCredentialError,
    ProviderHTTPStatusError,
    ProviderMalformedError,
    ProviderNetworkError,
)
from toolbench.models.message import AgentReply

if TYPE_CHECKING:
    from toolbench.models.config import BenchSettings, ProviderConfig
    from toolbench.models.message import Message

logger = logging.getLogger(__name__)

_ERROR_BODY_LIMIT = 500


class ProviderClient:
    """Sync httpx client for all supported providers.

    Usage::

        with ProviderClient(timeout=90) as client:
            reply = client.send(config, conversation.messages)
            print(reply.text)
    """

    def __init__(
        self,
        *,
        timeout: float = 90.0,
        options: GenerationOptions | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            timeout: Request timeout in seconds.
            options: Sampling parameters. Defaults to temperature/top_p 0.1.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self._options = options or GenerationOptions()
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls,
        settings: BenchSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> ProviderClient:
        return cls(
            timeout=settings.request_timeout,
            options=GenerationOptions(temperature=settings.temperature, top_p=settings.top_p),
            transport=transport,
        )

    def send(self, config: ProviderConfig, history: Sequence[Message]) -> AgentReply:
        """Send *history* to the provider and return its reply.

        Args:
            config: Provider to call.
            history: Conversation so far, seed message first. Not modified.

        Returns:
            AgentReply with the flat reply text (no directive parsed yet).

        Raises:
            MissingCredentialError: No API key (raised before any request).
            EmptyHistoryError: Empty history (raised before any request).
            ProviderNetworkError: Connection failure or timeout.
            ProviderHTTPStatusError: Non-2xx response.
            ProviderMalformedError: Body is not the expected JSON shape.
        """
        if not config.has_credentials:
            raise MissingCredentialError(config.kind.value, config.preset.api_key_env)
        if not history:
            raise EmptyHistoryError("Cannot call a provider with an empty conversation")

        adapter = get_adapter(config.kind)
        request = adapter.build_request(config, history, self._options)
        logger.debug(
            "POST %s (%s, %d messages)", request.url, config.model_name, len(history)
        )

        started = time.monotonic()
        try:
            response = self._client.post(
                request.url, headers=request.headers, json=request.body
            )
        except httpx.RequestError as exc:
            raise ProviderNetworkError(
                f"{config.kind.value} request failed: {type(exc).__name__}: {exc}"
            ) from exc
        latency = time.monotonic() - started

        if not response.is_success:
            raise ProviderHTTPStatusError(
                response.status_code, response.text[:_ERROR_BODY_LIMIT]
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderMalformedError(
                f"Response is not JSON: {response.text[:_ERROR_BODY_LIMIT]}"
            ) from exc

        decoded = adapter.parse_response(payload)
        logger.debug("%s replied in %.2fs", config.kind.value, latency)
        return AgentReply(
            text=decoded.text,
            provider=config.kind.value,
            model=config.model_name,
            latency_s=latency,
            usage=decoded.usage,
        )

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> ProviderClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
