from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from tasador.config import settings
from tasador.llm.base import LLMProvider
from tasador.llm.factory import get_llm_provider
from tasador.schemas.valuation import ErrorResponse, ValuationRequest, ValuationResponse
from tasador.services import valuation_service
from tasador.utils.exceptions import SERVER_ERROR, TasadorError

logger = logging.getLogger(__name__)

router = APIRouter()


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.allowed_origin,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }


def _error_response(error_code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=error_code, message=message)
    return JSONResponse(
        status_code=500, content=body.model_dump(), headers=cors_headers()
    )


async def _read_payload(request: Request) -> ValuationRequest:
    raw_body = await request.body()
    data = json.loads(raw_body) if raw_body.strip() else {}
    if not isinstance(data, dict):
        data = {}
    return ValuationRequest.model_validate(data)


@router.options("/valuation")
def valuation_preflight() -> Response:
    return Response(status_code=204, headers=cors_headers())


@router.post(
    "/valuation",
    response_model=ValuationResponse,
    responses={500: {"model": ErrorResponse}},
)
async def create_valuation(
    request: Request,
    llm: LLMProvider = Depends(get_llm_provider),
) -> JSONResponse:
    try:
        payload = await _read_payload(request)
        result = await valuation_service.request_valuation(payload, llm)
    except TasadorError as e:
        logger.error("Valuation failed (%s): %s", e.error_code, e)
        return _error_response(e.error_code, str(e))
    except Exception as e:
        logger.exception("Unexpected error while producing a valuation")
        return _error_response(SERVER_ERROR, str(e) or "Error desconocido")

    body = ValuationResponse(
        response_text=result.response_text, valuation=result.valuation
    )
    return JSONResponse(content=body.model_dump(by_alias=True), headers=cors_headers())
