from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tasador.schemas.valuation import RawModelResponse


class LLMProvider(ABC):
    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        tools: list[dict[str, Any]] | None = None,
        tool_choice: dict[str, Any] | None = None,
    ) -> RawModelResponse:
        """Run one chat completion.

        ``tools`` and ``tool_choice`` use the OpenAI chat-completions format.
        Raises ``ConfigurationError`` when the credential is missing,
        ``UpstreamError`` on a non-2xx answer and ``UpstreamTimeoutError``
        when the provider times out.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str: ...

    @property
    @abstractmethod
    def model_name(self) -> str: ...


def describe_status_error(status_code: int, body: Any) -> str:
    """Provider error message when the body carries one, else ``HTTP <status>``."""
    if isinstance(body, dict):
        detail = body.get("error", body)
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
    return f"HTTP {status_code}"
