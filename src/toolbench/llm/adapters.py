"""Per-provider wire format adapters.

Each adapter is a closed mapping between the normalized conversation
(``Message`` sequence) and one provider family's JSON schema:

- ``OpenAIChatAdapter``: OpenAI and Sambanova chat completions
  (``messages`` in, ``choices[0].message.content`` out)
- ``GeminiAdapter``: Google Gemini generateContent
  (``contents/parts`` in, ``candidates[0].content.parts`` out)

Adapters never touch the network and never mutate their inputs; the
provider client owns the HTTP call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from toolbench.llm.errors import ProviderMalformedError
from toolbench.models.config import ProviderConfig, ProviderKind
from toolbench.models.message import Message, Role


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling parameters sent to providers that accept them."""

    temperature: float | None = 0.1
    top_p: float | None = 0.1


@dataclass(frozen=True)
class PreparedRequest:
    """A fully-built provider request, ready to POST."""

    url: str
    headers: dict[str, str]
    body: dict[str, Any]


@dataclass(frozen=True)
class DecodedResponse:
    """Provider-neutral view of a response body."""

    text: str
    usage: dict[str, Any] | None = None


class ProviderAdapter(ABC):
    """Abstract request encoder / response decoder for one provider family."""

    @abstractmethod
    def build_request(
        self,
        config: ProviderConfig,
        history: Sequence[Message],
        options: GenerationOptions,
    ) -> PreparedRequest:
        """Serialize *history* into the provider's request schema."""
        ...

    @abstractmethod
    def parse_response(self, payload: Any) -> DecodedResponse:
        """Decode a response body.

        Raises:
            ProviderMalformedError: If the body does not match the schema.
        """
        ...


class OpenAIChatAdapter(ProviderAdapter):
    """OpenAI-compatible chat completions (OpenAI, Sambanova).

    Tool results are sent back as ``system`` messages: the chat API's own
    ``tool`` role requires a native function-call id, which textual
    directives do not have.
    """

    _ROLE_MAP: dict[Role, str] = {
        Role.SYSTEM: "system",
        Role.USER: "user",
        Role.ASSISTANT: "assistant",
        Role.TOOL: "system",
    }

    def build_request(
        self,
        config: ProviderConfig,
        history: Sequence[Message],
        options: GenerationOptions,
    ) -> PreparedRequest:
        body: dict[str, Any] = {
            "model": config.model_name,
            "messages": [
                {"role": self._ROLE_MAP[m.role], "content": m.content}
                for m in history
            ],
        }
        if options.temperature is not None:
            body["temperature"] = options.temperature
        if options.top_p is not None:
            body["top_p"] = options.top_p
        return PreparedRequest(
            url=config.base_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {config.api_key.get_secret_value()}",
            },
            body=body,
        )

    def parse_response(self, payload: Any) -> DecodedResponse:
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderMalformedError(
                f"Cannot extract content from response: missing {exc}. "
                f"Response: {_preview(payload)}"
            ) from exc
        if not isinstance(content, str):
            raise ProviderMalformedError(
                f"Response content is {type(content).__name__}, expected text. "
                f"Response: {_preview(payload)}"
            )
        usage = payload.get("usage") if isinstance(payload, dict) else None
        return DecodedResponse(text=content, usage=usage)


class GeminiAdapter(ProviderAdapter):
    """Google Gemini generateContent.

    Gemini knows only ``user`` and ``model`` roles and rejects two
    consecutive turns with the same role. A leading system message is sent
    as a user turn acknowledged by a synthetic model turn, and adjacent
    same-role messages are merged into one turn with several parts.
    """

    SYSTEM_ACK = "Understood."

    def build_request(
        self,
        config: ProviderConfig,
        history: Sequence[Message],
        options: GenerationOptions,
    ) -> PreparedRequest:
        contents: list[dict[str, Any]] = []
        remaining = list(history)
        if remaining and remaining[0].role is Role.SYSTEM:
            contents.append({"role": "user", "parts": [{"text": remaining[0].content}]})
            contents.append({"role": "model", "parts": [{"text": self.SYSTEM_ACK}]})
            remaining = remaining[1:]

        for message in remaining:
            role = "model" if message.role is Role.ASSISTANT else "user"
            part = {"text": message.content}
            if contents and contents[-1]["role"] == role:
                contents[-1]["parts"].append(part)
            else:
                contents.append({"role": role, "parts": [part]})

        body: dict[str, Any] = {"contents": contents}
        generation_config: dict[str, Any] = {}
        if options.temperature is not None:
            generation_config["temperature"] = options.temperature
        if options.top_p is not None:
            generation_config["topP"] = options.top_p
        if generation_config:
            body["generationConfig"] = generation_config

        return PreparedRequest(
            url=self._endpoint(config),
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": config.api_key.get_secret_value(),
            },
            body=body,
        )

    @staticmethod
    def _endpoint(config: ProviderConfig) -> str:
        base = config.base_url.rstrip("/")
        if base.endswith(":generateContent"):
            return base
        return f"{base}/{config.model_name}:generateContent"

    def parse_response(self, payload: Any) -> DecodedResponse:
        try:
            candidate = payload["candidates"][0]
        except (KeyError, IndexError, TypeError) as exc:
            reason = ""
            if isinstance(payload, dict):
                block = (payload.get("promptFeedback") or {}).get("blockReason")
                if block:
                    reason = f" (prompt blocked: {block})"
            raise ProviderMalformedError(
                f"Response has no candidates{reason}. Response: {_preview(payload)}"
            ) from exc
        try:
            parts = candidate["content"]["parts"]
            texts = [p["text"] for p in parts if isinstance(p, dict) and "text" in p]
        except (KeyError, TypeError) as exc:
            raise ProviderMalformedError(
                f"Cannot extract text from candidate: missing {exc}. "
                f"Response: {_preview(payload)}"
            ) from exc
        if not all(isinstance(t, str) for t in texts):
            raise ProviderMalformedError(
                f"Candidate has a non-string text part. Response: {_preview(payload)}"
            )
        if not texts:
            raise ProviderMalformedError(
                f"Candidate has no text parts. Response: {_preview(payload)}"
            )
        return DecodedResponse(text="".join(texts), usage=payload.get("usageMetadata"))


def _preview(payload: Any, limit: int = 300) -> str:
    text = repr(payload)
    return text if len(text) <= limit else text[:limit] + "..."


ADAPTERS: dict[ProviderKind, ProviderAdapter] = {
    ProviderKind.OPENAI: OpenAIChatAdapter(),
    ProviderKind.SAMBANOVA: OpenAIChatAdapter(),
    ProviderKind.GEMINI: GeminiAdapter(),
}


def get_adapter(kind: ProviderKind) -> ProviderAdapter:
    """Return the adapter for a provider kind."""
    return ADAPTERS[kind]
