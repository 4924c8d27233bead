from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from tasador.config import settings
from tasador.llm.prompts.valuation import (
    VALUATION_TOOL,
    VALUATION_TOOL_CHOICE,
    build_valuation_messages,
)
from tasador.schemas.valuation import Valuation, ValuationResult
from tasador.services.extraction_service import extract_valuation
from tasador.utils.exceptions import UpstreamTimeoutError

if TYPE_CHECKING:
    from tasador.llm.base import LLMProvider
    from tasador.schemas.valuation import ValuationRequest

logger = logging.getLogger(__name__)


def _describe_offer(valuation: Any) -> str | None:
    """Offer label for logging; tolerates any shape the model produced."""
    if not isinstance(valuation, dict):
        return None
    try:
        offer = {"oferta_compra": valuation.get("oferta_compra")}
        return Valuation.model_validate(offer).offer_label()
    except ValidationError:
        return None


async def request_valuation(
    request: ValuationRequest, llm: LLMProvider
) -> ValuationResult:
    messages = build_valuation_messages(request, request.chat_history)

    try:
        raw = await asyncio.wait_for(
            llm.complete(
                messages,
                tools=[VALUATION_TOOL],
                tool_choice=VALUATION_TOOL_CHOICE,
            ),
            timeout=settings.llm_timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        raise UpstreamTimeoutError(
            f"El proveedor LLM no respondió en {settings.llm_timeout_seconds:g} s."
        ) from e

    valuation = extract_valuation(raw)
    if valuation is None:
        logger.warning(
            "No structured valuation in %s response (%d chars of text)",
            llm.provider_name,
            len(raw.content),
        )
    else:
        logger.info(
            "Valuation for %s %s via %s/%s: offer=%s",
            request.marca or "?",
            request.modelo or "?",
            llm.provider_name,
            llm.model_name,
            _describe_offer(valuation) or "n/a",
        )

    return ValuationResult(response_text=raw.content, valuation=valuation)
