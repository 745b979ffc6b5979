"""Tests for the per-provider wire adapters."""

from __future__ import annotations

import pytest

from tests.conftest import gemini_response, openai_response
from toolbench.llm.adapters import (
    GeminiAdapter,
    GenerationOptions,
    OpenAIChatAdapter,
    get_adapter,
)
from toolbench.llm.errors import ProviderMalformedError
from toolbench.models.config import ProviderConfig, ProviderKind
from toolbench.models.message import Message, Role
from toolbench.toolkit.models import RunCommand, ToolKind, ToolResult


def _tool_round_trip() -> list[Message]:
    return [
        Message.system("You can run commands."),
        Message.user("What's in here?"),
        Message(role=Role.ASSISTANT, content="[RUN_COMMAND ls]", directive=RunCommand("ls")),
        Message(
            role=Role.TOOL,
            content="Command output:\na.txt",
            tool_result=ToolResult(kind=ToolKind.RUN_COMMAND, success=True, output="a.txt"),
        ),
    ]


class TestAdapterRegistry:
    def test_openai_compatible_providers_share_adapter(self):
        assert isinstance(get_adapter(ProviderKind.OPENAI), OpenAIChatAdapter)
        assert isinstance(get_adapter(ProviderKind.SAMBANOVA), OpenAIChatAdapter)

    def test_gemini_adapter(self):
        assert isinstance(get_adapter(ProviderKind.GEMINI), GeminiAdapter)


# ---------------------------------------------------------------------------
# OpenAI-compatible
# ---------------------------------------------------------------------------


class TestOpenAIChatAdapter:
    def test_request_shape(self, openai_config):
        history = [Message.system("sys"), Message.user("hi")]
        req = OpenAIChatAdapter().build_request(openai_config, history, GenerationOptions())

        assert req.url == "https://api.openai.com/v1/chat/completions"
        assert req.headers["Authorization"] == "Bearer test-key"
        assert req.body == {
            "model": "gpt-4-turbo",
            "messages": [
                {"role": "system", "content": "sys"},
                {"role": "user", "content": "hi"},
            ],
            "temperature": 0.1,
            "top_p": 0.1,
        }

    def test_tool_message_sent_as_system(self, openai_config):
        req = OpenAIChatAdapter().build_request(
            openai_config, _tool_round_trip(), GenerationOptions()
        )
        roles = [m["role"] for m in req.body["messages"]]
        assert roles == ["system", "user", "assistant", "system"]
        assert req.body["messages"][-1]["content"] == "Command output:\na.txt"

    def test_sampling_options_omitted_when_none(self, openai_config):
        req = OpenAIChatAdapter().build_request(
            openai_config,
            [Message.user("hi")],
            GenerationOptions(temperature=None, top_p=None),
        )
        assert "temperature" not in req.body
        assert "top_p" not in req.body

    def test_sambanova_uses_its_own_model(self):
        config = ProviderConfig.from_preset("sambanova", api_key="k")
        req = OpenAIChatAdapter().build_request(config, [Message.user("hi")], GenerationOptions())
        assert req.url == "https://api.sambanova.ai/v1/chat/completions"
        assert req.body["model"] == "Meta-Llama-3.2-1B-Instruct"

    def test_history_not_mutated(self, openai_config):
        history = _tool_round_trip()
        snapshot = list(history)
        OpenAIChatAdapter().build_request(openai_config, history, GenerationOptions())
        assert history == snapshot

    def test_parse_response(self):
        decoded = OpenAIChatAdapter().parse_response(openai_response("Hello there"))
        assert decoded.text == "Hello there"
        assert decoded.usage["total_tokens"] == 15

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"choices": []},
            {"choices": [{"message": {}}]},
            {"choices": [{"message": {"content": None}}]},
            ["not", "a", "dict"],
        ],
    )
    def test_malformed_response(self, payload):
        with pytest.raises(ProviderMalformedError):
            OpenAIChatAdapter().parse_response(payload)


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


class TestGeminiAdapter:
    def test_system_message_becomes_acknowledged_user_turn(self, gemini_config):
        history = [Message.system("Be brief."), Message.user("hi")]
        req = GeminiAdapter().build_request(gemini_config, history, GenerationOptions())

        assert req.body["contents"] == [
            {"role": "user", "parts": [{"text": "Be brief."}]},
            {"role": "model", "parts": [{"text": "Understood."}]},
            {"role": "user", "parts": [{"text": "hi"}]},
        ]

    def test_endpoint_and_key_header(self, gemini_config):
        req = GeminiAdapter().build_request(gemini_config, [Message.user("hi")], GenerationOptions())
        assert req.url == (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "gemini-2.0-flash:generateContent"
        )
        assert req.headers["x-goog-api-key"] == "test-key"
        assert "key=" not in req.url

    def test_full_endpoint_kept(self):
        config = ProviderConfig.from_preset(
            "gemini",
            api_key="k",
            base_url="https://example.test/v1/models/custom:generateContent",
        )
        req = GeminiAdapter().build_request(config, [Message.user("hi")], GenerationOptions())
        assert req.url == "https://example.test/v1/models/custom:generateContent"

    def test_tool_round_trip_roles(self, gemini_config):
        req = GeminiAdapter().build_request(
            gemini_config, _tool_round_trip(), GenerationOptions()
        )
        roles = [c["role"] for c in req.body["contents"]]
        assert roles == ["user", "model", "user", "model", "user"]
        assert req.body["contents"][-1]["parts"] == [{"text": "Command output:\na.txt"}]

    def test_adjacent_same_role_merged(self, gemini_config):
        history = [Message.user("first"), Message.user("second")]
        req = GeminiAdapter().build_request(gemini_config, history, GenerationOptions())
        assert req.body["contents"] == [
            {"role": "user", "parts": [{"text": "first"}, {"text": "second"}]},
        ]

    def test_generation_config(self, gemini_config):
        req = GeminiAdapter().build_request(
            gemini_config, [Message.user("hi")], GenerationOptions(temperature=0.5, top_p=None)
        )
        assert req.body["generationConfig"] == {"temperature": 0.5}

    def test_history_not_mutated(self, gemini_config):
        history = _tool_round_trip()
        snapshot = list(history)
        GeminiAdapter().build_request(gemini_config, history, GenerationOptions())
        assert history == snapshot

    def test_parse_joins_text_parts(self):
        decoded = GeminiAdapter().parse_response(gemini_response("Hello ", "world"))
        assert decoded.text == "Hello world"
        assert decoded.usage == {"promptTokenCount": 12, "candidatesTokenCount": 4}

    def test_blocked_prompt_reason_reported(self):
        payload = {"promptFeedback": {"blockReason": "SAFETY"}}
        with pytest.raises(ProviderMalformedError, match="SAFETY"):
            GeminiAdapter().parse_response(payload)

    @pytest.mark.parametrize(
        "payload",
        [
            {"candidates": []},
            {"candidates": [{}]},
            {"candidates": [{"content": {"parts": []}}]},
            {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
            {"candidates": [{"content": {"parts": [{"text": None}]}}]},
            {"candidates": [{"content": {"parts": [{"text": "ok"}, {"text": 7}]}}]},
            "nope",
        ],
    )
    def test_malformed_response(self, payload):
        with pytest.raises(ProviderMalformedError):
            GeminiAdapter().parse_response(payload)
