from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tasador.schemas.valuation import ChatMessage, ValuationRequest

VALUATION_FUNCTION_NAME = "registrar_tasacion"

VALUATION_SYSTEM_PROMPT = """Rol y objetivo:
Eres un tasador de motocicletas profesional que trabaja para una red de concesionarios multimarca en España.
Calculas el valor de compra (trade-in) para un concesionario, no el precio entre particulares.

Instrucciones de tasación:
1) Normaliza marca, modelo, versión, año y kms.
2) Estima un PVP de reventa medio en España (orientativo).
3) Aplica ajustes por kms y antigüedad.
4) Calcula coste de reacondicionamiento (revisión, consumibles, neumáticos si procede).
5) Aplica margen concesionario entre 20% y 35% según rotación/demanda/estado.
6) Devuelve un precio de compra estimado para el concesionario.

Reglas de cálculo:
- oferta_compra = max(0, pvp_estimado + ajuste_km + ajuste_antiguedad - coste_reacond - margen_concesionario_eur)
- oferta_compra debe ser siempre inferior a pvp_estimado.
- Los ajustes que reducen el valor se expresan como números negativos.
- Todos los importes en EUR y como números, sin símbolos ni separadores de miles.

Formato de salida:
- Primero, texto claro y breve con:
  • Resumen (marca, modelo, versión, año, kms)
  • Análisis breve del mercado
  • Desglose: PVP estimado, reacondicionamiento, margen
  • Oferta de compra final (EUR)
  • Nota: oferta sujeta a inspección física y documentación
- Después, llama a la función "registrar_tasacion" con los mismos datos estructurados.
  Si no puedes llamar a la función, termina tu respuesta con un único bloque JSON válido con esa misma estructura."""

VALUATION_USER_INSTRUCTION = (
    "Devuélveme una valoración breve en texto y, a continuación, llama a la "
    f'función "{VALUATION_FUNCTION_NAME}" con la tasación estructurada.'
)


def _number() -> dict[str, str]:
    return {"type": "number"}


def _string() -> dict[str, str]:
    return {"type": "string"}


def _object(properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


VALUATION_PARAMETERS: dict[str, Any] = _object(
    {
        "resumen": _object(
            {
                "marca": _string(),
                "modelo": _string(),
                "version": _string(),
                "ano": _number(),
                "kms": _number(),
            }
        ),
        "estimaciones": _object(
            {
                "pvp_estimado": _number(),
                "ajuste_km": _number(),
                "ajuste_antiguedad": _number(),
                "coste_reacond": _number(),
                "margen_concesionario_pct": _number(),
                "margen_concesionario_eur": _number(),
            }
        ),
        "oferta_compra": _number(),
        "supuestos": _object(
            {
                "estado": _string(),
                "extras": _string(),
                "provincia": _string(),
            }
        ),
        "notas": {"type": "array", "items": _string()},
    }
)

# OpenAI chat-completions tool format; other providers convert from this.
VALUATION_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": VALUATION_FUNCTION_NAME,
        "description": (
            "Registra la tasación de compra de la motocicleta para el concesionario "
            "con todos los importes en EUR."
        ),
        "parameters": VALUATION_PARAMETERS,
    },
}

VALUATION_TOOL_CHOICE: dict[str, Any] = {
    "type": "function",
    "function": {"name": VALUATION_FUNCTION_NAME},
}


def _field(value: Any) -> str:
    return "" if value is None else str(value)


def build_valuation_user_prompt(request: ValuationRequest) -> str:
    return f"""Tasación solicitada:
- Marca: {_field(request.marca)}
- Modelo: {_field(request.modelo)}
- Versión: {_field(request.version)}
- Año: {_field(request.ano)}
- Kilómetros: {_field(request.kms)}
- Estado: {_field(request.estado)}
- Extras: {_field(request.extras)}
- Provincia: {_field(request.provincia)}

{VALUATION_USER_INSTRUCTION}"""


def build_valuation_messages(
    request: ValuationRequest, chat_history: list[ChatMessage] | None = None
) -> list[dict[str, str]]:
    """System prompt first, then either the replayed history or a fresh user turn."""
    messages = [{"role": "system", "content": VALUATION_SYSTEM_PROMPT}]
    if chat_history:
        messages.extend(
            {"role": message.role, "content": message.content}
            for message in chat_history
        )
    else:
        messages.append(
            {"role": "user", "content": build_valuation_user_prompt(request)}
        )
    return messages
