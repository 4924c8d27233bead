"""Tests for the OpenAI and Anthropic provider adapters.

The SDK clients are replaced by mocks, so no network calls are made.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from tasador.config import settings
from tasador.llm.base import describe_status_error
from tasador.llm.claude_provider import ClaudeProvider
from tasador.llm.openai_provider import OpenAIProvider
from tasador.llm.prompts.valuation import (
    VALUATION_FUNCTION_NAME,
    VALUATION_TOOL,
    VALUATION_TOOL_CHOICE,
)
from tasador.utils.exceptions import (
    ConfigurationError,
    UpstreamError,
    UpstreamTimeoutError,
)

MESSAGES = [
    {"role": "system", "content": "Eres un tasador."},
    {"role": "user", "content": "Honda PCX125 2019"},
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _request(url: str) -> httpx.Request:
    return httpx.Request("POST", url)


def _openai_completion(content: str | None, tool_calls: list | None = None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _openai_tool_call(name: str, arguments: str, type_: str = "function"):
    return SimpleNamespace(
        type=type_, function=SimpleNamespace(name=name, arguments=arguments)
    )


def _openai_provider(create: AsyncMock) -> OpenAIProvider:
    provider = OpenAIProvider()
    provider._client = MagicMock()
    provider._client.chat.completions.create = create
    return provider


def _claude_provider(create: AsyncMock) -> ClaudeProvider:
    provider = ClaudeProvider()
    provider._client = MagicMock()
    provider._client.messages.create = create
    return provider


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_request_carries_model_settings_and_tools(self):
        create = AsyncMock(return_value=_openai_completion("ok"))
        provider = _openai_provider(create)

        await provider.complete(
            MESSAGES, tools=[VALUATION_TOOL], tool_choice=VALUATION_TOOL_CHOICE
        )

        create.assert_awaited_once_with(
            model=settings.openai_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            messages=MESSAGES,
            tools=[VALUATION_TOOL],
            tool_choice=VALUATION_TOOL_CHOICE,
        )

    @pytest.mark.asyncio
    async def test_tools_are_omitted_when_not_given(self):
        create = AsyncMock(return_value=_openai_completion("ok"))
        await _openai_provider(create).complete(MESSAGES)

        assert "tools" not in create.call_args.kwargs
        assert "tool_choice" not in create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_function_call_is_mapped(self):
        completion = _openai_completion(
            None, [_openai_tool_call(VALUATION_FUNCTION_NAME, '{"oferta_compra": 1}')]
        )
        raw = await _openai_provider(AsyncMock(return_value=completion)).complete(MESSAGES)

        assert raw.content == ""
        assert raw.tool_call is not None
        assert raw.tool_call.name == VALUATION_FUNCTION_NAME
        assert raw.tool_call.arguments == '{"oferta_compra": 1}'

    @pytest.mark.asyncio
    async def test_non_function_tool_calls_are_skipped(self):
        completion = _openai_completion(
            "texto", [_openai_tool_call("x", "{}", type_="custom")]
        )
        raw = await _openai_provider(AsyncMock(return_value=completion)).complete(MESSAGES)

        assert raw.content == "texto"
        assert raw.tool_call is None

    @pytest.mark.asyncio
    async def test_no_choices_gives_empty_response(self):
        completion = SimpleNamespace(choices=[])
        raw = await _openai_provider(AsyncMock(return_value=completion)).complete(MESSAGES)

        assert raw.content == ""
        assert raw.tool_call is None

    @pytest.mark.asyncio
    async def test_status_error_uses_provider_message(self):
        url = "https://api.openai.com/v1/chat/completions"
        error = openai.RateLimitError(
            "Error code: 429",
            response=httpx.Response(429, request=_request(url)),
            body={"message": "Rate limit reached for gpt-4o"},
        )
        provider = _openai_provider(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamError) as exc_info:
            await provider.complete(MESSAGES)

        assert str(exc_info.value) == "Rate limit reached for gpt-4o"
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_timeout_is_translated(self):
        error = openai.APITimeoutError(request=_request("https://api.openai.com"))
        provider = _openai_provider(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamTimeoutError):
            await provider.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_missing_key_raises_configuration_error(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", "")

        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            await OpenAIProvider().complete(MESSAGES)

    def test_client_is_built_lazily_and_reused(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", "sk-test")
        provider = OpenAIProvider()

        assert provider._client is None
        assert provider.client is provider.client
        assert provider.client.max_retries == 0


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


class TestClaudeProvider:
    @pytest.mark.asyncio
    async def test_request_is_converted(self):
        create = AsyncMock(return_value=SimpleNamespace(content=[]))
        provider = _claude_provider(create)

        await provider.complete(
            MESSAGES, tools=[VALUATION_TOOL], tool_choice=VALUATION_TOOL_CHOICE
        )

        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "Eres un tasador."
        assert kwargs["messages"] == [{"role": "user", "content": "Honda PCX125 2019"}]
        assert kwargs["tools"] == [
            {
                "name": VALUATION_FUNCTION_NAME,
                "description": VALUATION_TOOL["function"]["description"],
                "input_schema": VALUATION_TOOL["function"]["parameters"],
            }
        ]
        assert kwargs["tool_choice"] == {"type": "tool", "name": VALUATION_FUNCTION_NAME}

    def test_split_messages_maps_roles(self):
        system, conversation = ClaudeProvider._split_messages(
            [
                {"role": "system", "content": "A"},
                {"role": "user", "content": "hola"},
                {"role": "system", "content": "B"},
                {"role": "assistant", "content": "dime"},
                {"role": "tool", "content": "{}"},
            ]
        )

        assert system == "A\n\nB"
        assert [m["role"] for m in conversation] == ["user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_tool_use_block_is_reencoded(self):
        response = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Oferta: "),
                SimpleNamespace(type="text", text="1.575 €"),
                SimpleNamespace(
                    type="tool_use",
                    name=VALUATION_FUNCTION_NAME,
                    input={"oferta_compra": 1575, "notas": ["revisión"]},
                ),
            ]
        )
        raw = await _claude_provider(AsyncMock(return_value=response)).complete(MESSAGES)

        assert raw.content == "Oferta: 1.575 €"
        assert raw.tool_call.name == VALUATION_FUNCTION_NAME
        assert json.loads(raw.tool_call.arguments) == {
            "oferta_compra": 1575,
            "notas": ["revisión"],
        }

    @pytest.mark.asyncio
    async def test_status_error_uses_provider_message(self):
        url = "https://api.anthropic.com/v1/messages"
        error = anthropic.APIStatusError(
            "Error code: 529",
            response=httpx.Response(529, request=_request(url)),
            body={"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
        )
        provider = _claude_provider(AsyncMock(side_effect=error))

        with pytest.raises(UpstreamError, match="Overloaded"):
            await provider.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_missing_key_raises_configuration_error(self, monkeypatch):
        monkeypatch.setattr(settings, "anthropic_api_key", "")

        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            await ClaudeProvider().complete(MESSAGES)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"message": "Invalid model"}, "Invalid model"),
        ({"error": {"message": "Bad key"}}, "Bad key"),
        ({"error": "plain"}, "HTTP 502"),
        ("upstream down", "HTTP 502"),
        (None, "HTTP 502"),
    ],
)
def test_describe_status_error(body, expected):
    assert describe_status_error(502, body) == expected


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@pytest.fixture
def fresh_factory(monkeypatch):
    from tasador.llm import factory

    monkeypatch.setattr(factory, "_provider_instance", None)
    return factory


@pytest.mark.parametrize(
    ("name", "provider_cls"), [("openai", OpenAIProvider), ("claude", ClaudeProvider)]
)
def test_factory_selects_configured_provider(fresh_factory, monkeypatch, name, provider_cls):
    monkeypatch.setattr(settings, "llm_provider", name)

    provider = fresh_factory.get_llm_provider()

    assert isinstance(provider, provider_cls)
    assert fresh_factory.get_llm_provider() is provider


def test_unknown_provider_is_rejected_by_settings():
    from pydantic import ValidationError

    from tasador.config import Settings

    with pytest.raises(ValidationError):
        Settings(llm_provider="gemini")
