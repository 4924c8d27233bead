from __future__ import annotations

from tasador.config import settings
from tasador.llm.base import LLMProvider

_provider_instance: LLMProvider | None = None


def get_llm_provider() -> LLMProvider:
    # llm_provider is a Literal["openai", "claude"]; settings rejects anything else.
    global _provider_instance
    if _provider_instance is None:
        if settings.llm_provider == "openai":
            from tasador.llm.openai_provider import OpenAIProvider

            _provider_instance = OpenAIProvider()
        else:
            from tasador.llm.claude_provider import ClaudeProvider

            _provider_instance = ClaudeProvider()
    return _provider_instance
