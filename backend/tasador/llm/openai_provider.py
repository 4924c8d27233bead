from __future__ import annotations

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from tasador.config import settings
from tasador.llm.base import LLMProvider, describe_status_error
from tasador.schemas.valuation import RawModelResponse, ToolCall
from tasador.utils.exceptions import (
    ConfigurationError,
    UpstreamError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    def __init__(self) -> None:
        self._client: AsyncOpenAI | None = None
        self._model = settings.openai_model

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def client(self) -> AsyncOpenAI:
        # Built on first use so a missing key fails the request, not the import.
        if self._client is None:
            if not settings.openai_api_key:
                raise ConfigurationError("Falta OPENAI_API_KEY en variables de entorno.")
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url or None,
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
        request: dict[str, Any] = {
            "model": self._model,
            "temperature": settings.llm_temperature,
            "max_tokens": settings.llm_max_tokens,
            "messages": messages,
        }
        if tools:
            request["tools"] = tools
            if tool_choice:
                request["tool_choice"] = tool_choice

        logger.debug(
            "OpenAI completion: model=%s messages=%d tools=%d",
            self._model,
            len(messages),
            len(tools or []),
        )
        try:
            response = await self.client.chat.completions.create(**request)
        except openai.APITimeoutError as e:
            raise UpstreamTimeoutError("OpenAI no respondió a tiempo.") from e
        except openai.APIStatusError as e:
            raise UpstreamError(
                describe_status_error(e.status_code, e.body), status_code=e.status_code
            ) from e

        return self._to_raw_response(response)

    @staticmethod
    def _to_raw_response(response: Any) -> RawModelResponse:
        if not response.choices:
            return RawModelResponse()
        message = response.choices[0].message
        tool_call = None
        for call in message.tool_calls or []:
            if call.type == "function":
                tool_call = ToolCall(
                    name=call.function.name, arguments=call.function.arguments or ""
                )
                break
        return RawModelResponse(content=message.content or "", tool_call=tool_call)
