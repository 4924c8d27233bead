from __future__ import annotations

import json
from typing import Any

import anthropic

from tasador.config import settings
from tasador.llm.base import LLMProvider, describe_status_error
from tasador.schemas.valuation import RawModelResponse, ToolCall
from tasador.utils.exceptions import (
    ConfigurationError,
    UpstreamError,
    UpstreamTimeoutError,
)


class ClaudeProvider(LLMProvider):
    def __init__(self) -> None:
        self._client: anthropic.AsyncAnthropic | None = None
        self._model = settings.anthropic_model

    @property
    def provider_name(self) -> str:
        return "claude"

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            if not settings.anthropic_api_key:
                raise ConfigurationError(
                    "Falta ANTHROPIC_API_KEY en variables de entorno."
                )
            self._client = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.llm_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        messages: list[dict[str, str]],
        tools: list[dict[str, Any]] | None = None,
        tool_choice: dict[str, Any] | None = None,
    ) -> RawModelResponse:
        system, conversation = self._split_messages(messages)
        request: dict[str, Any] = {
            "model": self._model,
            "max_tokens": settings.llm_max_tokens,
            "temperature": settings.llm_temperature,
            "system": system,
            "messages": conversation,
        }
        if tools:
            request["tools"] = [self._convert_tool(tool) for tool in tools]
            if tool_choice:
                request["tool_choice"] = {
                    "type": "tool",
                    "name": tool_choice["function"]["name"],
                }

        try:
            response = await self.client.messages.create(**request)
        except anthropic.APITimeoutError as e:
            raise UpstreamTimeoutError("Anthropic no respondió a tiempo.") from e
        except anthropic.APIStatusError as e:
            raise UpstreamError(
                describe_status_error(e.status_code, e.body), status_code=e.status_code
            ) from e

        return self._to_raw_response(response)

    @staticmethod
    def _split_messages(
        messages: list[dict[str, str]],
    ) -> tuple[str, list[dict[str, str]]]:
        """Fold system turns into the system prompt; everything else is user or assistant."""
        system_parts: list[str] = []
        conversation: list[dict[str, str]] = []
        for message in messages:
            role = message["role"]
            if role == "system":
                system_parts.append(message["content"])
            else:
                conversation.append(
                    {
                        "role": "assistant" if role == "assistant" else "user",
                        "content": message["content"],
                    }
                )
        return "\n\n".join(system_parts), conversation

    @staticmethod
    def _convert_tool(tool: dict[str, Any]) -> dict[str, Any]:
        function = tool["function"]
        return {
            "name": function["name"],
            "description": function.get("description", ""),
            "input_schema": function["parameters"],
        }

    @staticmethod
    def _to_raw_response(response: Any) -> RawModelResponse:
        texts: list[str] = []
        tool_call = None
        for block in response.content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use" and tool_call is None:
                tool_call = ToolCall(
                    name=block.name, arguments=json.dumps(block.input, ensure_ascii=False)
                )
        return RawModelResponse(content="".join(texts), tool_call=tool_call)
