from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant", "tool"]
    content: str


class ValuationRequest(BaseModel):
    """Inbound body: either the flat form fields or a prior conversation."""

    # Free text is rendered into the prompt as-is, so numbers are accepted
    # wherever text is expected.
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True
    )

    marca: str | None = None
    modelo: str | None = None
    version: str | None = None
    ano: int | float | None = None
    kms: int | float | None = None
    estado: str | None = None
    extras: str | None = None
    provincia: str | None = None
    chat_history: list[ChatMessage] | None = None


class ToolCall(BaseModel):
    name: str
    # Raw JSON blob exactly as the provider sent it; may be malformed.
    arguments: str = ""


class RawModelResponse(BaseModel):
    content: str = ""
    tool_call: ToolCall | None = None


class ValuationResult(BaseModel):
    response_text: str
    valuation: Any = None


class ValuationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: Literal[True] = True
    response_text: str
    valuation: Any = None


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
    message: str


# ── Tolerant read-only view of an extracted valuation ─────────────────────
#
# The extractor returns whatever JSON the model produced. These models are
# only used where individual fields are read (logging); every field is
# optional and unknown keys are kept.


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="allow")


class Resumen(_Lenient):
    marca: str | None = None
    modelo: str | None = None
    version: str | None = None
    ano: float | None = None
    kms: float | None = None


class Estimaciones(_Lenient):
    pvp_estimado: float | None = None
    ajuste_km: float | None = None
    ajuste_antiguedad: float | None = None
    coste_reacond: float | None = None
    margen_concesionario_pct: float | None = None
    margen_concesionario_eur: float | None = None


class Rango(_Lenient):
    min: float | None = None
    max: float | None = None


class OfertaDetallada(_Lenient):
    valor: float | None = None
    rango: Rango | None = None
    notas: str | None = None


class Supuestos(_Lenient):
    estado: str | None = None
    extras: str | None = None
    provincia: str | None = None


class Valuation(_Lenient):
    resumen: Resumen | None = None
    estimaciones: Estimaciones | None = None
    oferta_compra: float | OfertaDetallada | None = None
    supuestos: Supuestos | None = None
    notas: list[str] | None = None

    def offer_label(self) -> str | None:
        """Human-readable offer: a single amount or a ``min - max`` range."""
        offer = self.oferta_compra
        if offer is None:
            return None
        if isinstance(offer, (int, float)):
            return f"{offer:.0f} EUR"
        if offer.valor is not None:
            return f"{offer.valor:.0f} EUR"
        if offer.rango is not None and offer.rango.min is not None and offer.rango.max is not None:
            return f"{offer.rango.min:.0f} - {offer.rango.max:.0f} EUR"
        return None
