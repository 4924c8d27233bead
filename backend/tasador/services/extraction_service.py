"""Structured valuation extraction from a raw model response.

The forced function call is tried first; if it is missing, names another
function, or carries arguments that cannot be recovered, the free text is
scanned for the last brace-delimited region instead. Nothing here raises:
an unusable response simply yields ``None``.

Only the region between the *last* ``{`` and the *last* ``}`` is considered,
because the model writes its narrative before the JSON block. A narrative that
contains several JSON-like regions, or a nested object whose closing braces
trail the last opening one, is not disambiguated.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tasador.llm.prompts.valuation import VALUATION_FUNCTION_NAME

if TYPE_CHECKING:
    from tasador.schemas.valuation import RawModelResponse

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"```[a-z0-9_+-]*", re.IGNORECASE)
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_WHITESPACE_RUN_RE = re.compile(r"\s{2,}")
_SMART_QUOTES = str.maketrans({"“": '"', "”": '"'})


@dataclass(frozen=True)
class ParseResult:
    """Outcome of one parse attempt: a JSON value, or malformed input."""

    ok: bool
    value: Any = None

    @classmethod
    def success(cls, value: Any) -> ParseResult:
        return cls(ok=True, value=value)

    @classmethod
    def malformed(cls) -> ParseResult:
        return cls(ok=False)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_json_strict(text: str) -> ParseResult:
    """Strict JSON parse; ``NaN``/``Infinity`` are refused like ``JSON.parse`` does."""
    try:
        return ParseResult.success(json.loads(text, parse_constant=_reject_constant))
    except (ValueError, RecursionError):
        return ParseResult.malformed()


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", text)


def repair_json_text(text: str) -> str:
    """Single lenient pass: flatten whitespace and straighten curly double quotes."""
    text = _LINE_BREAK_RE.sub(" ", text)
    text = _WHITESPACE_RUN_RE.sub(" ", text)
    return text.translate(_SMART_QUOTES)


def recover_json(text: Any) -> ParseResult:
    """Recover the last brace-delimited JSON object embedded in ``text``."""
    if not isinstance(text, str):
        return ParseResult.malformed()

    cleaned = strip_code_fences(text)
    open_idx = cleaned.rfind("{")
    close_idx = cleaned.rfind("}")
    if open_idx == -1 or close_idx == -1 or close_idx < open_idx:
        return ParseResult.malformed()

    candidate = cleaned[open_idx : close_idx + 1].strip()
    result = parse_json_strict(candidate)
    if result.ok:
        return result

    repaired = parse_json_strict(repair_json_text(candidate))
    if not repaired.ok:
        logger.debug("JSON region still malformed after repair: %.200s", candidate)
    return repaired


def _from_tool_call(raw: RawModelResponse) -> ParseResult:
    tool_call = raw.tool_call
    if tool_call is None:
        return ParseResult.malformed()
    if tool_call.name != VALUATION_FUNCTION_NAME:
        logger.warning("Ignoring call to unexpected function %r", tool_call.name)
        return ParseResult.malformed()

    result = parse_json_strict(tool_call.arguments)
    if result.ok:
        return result
    logger.info("Function-call arguments are not valid JSON, attempting recovery")
    return recover_json(tool_call.arguments)


def extract_valuation(raw: RawModelResponse) -> Any | None:
    """Return the structured valuation carried by ``raw``, or ``None``.

    No schema validation is applied: any parseable JSON value is returned as
    is and callers must read every field defensively.
    """
    from_tool = _from_tool_call(raw)
    if from_tool.ok and from_tool.value is not None:
        return from_tool.value

    from_text = recover_json(raw.content)
    if from_text.ok:
        return from_text.value
    return None
