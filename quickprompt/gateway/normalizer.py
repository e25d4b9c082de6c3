"""Response Normalizer: turns raw reply text into a CanonicalResult.

Models are asked for a JSON object but routinely wrap it in code fences,
surround it with prose, leave raw newlines inside strings or get cut off
mid-object. The cascade below tries, in order:

  1. fence-strip + direct parse
  2. brace-bounded parse (first "{" to last "}")
  3. newline repair inside string values, then parse
  4. per-field regex extraction
  5. raw text as the plain prompt

Structured strategies return a dict or None. The first dict wins; it is
accepted only if it carries a non-empty ``prompt_plain``, otherwise the
raw fallback is used. normalize() never raises.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Callable, Iterable

from quickprompt.gateway.types import CanonicalResult

logger = logging.getLogger(__name__)

Strategy = Callable[[str], "dict[str, Any] | None"]

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")

# A string value after a colon, up to the next double quote
_STRING_VALUE = re.compile(r'(:\s*")([^"]*)(")')

_ESCAPE = re.compile(r'\\(["\\n])')
_UNESCAPED = {'"': '"', "\\": "\\", "n": "\n"}


def _field_pattern(name: str) -> re.Pattern[str]:
    return re.compile(r'"' + name + r'"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)


_PLAIN_FIELD = _field_pattern("prompt_plain")
_STRUCTURED_FIELD = _field_pattern("prompt_structured")
_NOTES_FIELD = _field_pattern("optimization_notes")
_TOKENS_FIELD = re.compile(r'"token_estimate"\s*:\s*(\d+)')
_JSON_FIELD = re.compile(r'"prompt_json"\s*:\s*(\{[\s\S]*?\})\s*[,}]')


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def strip_code_fence(text: str) -> str:
    """Remove a leading ```/```json fence and a trailing ``` fence."""
    text = text.strip()
    text = _FENCE_OPEN.sub("", text)
    return _FENCE_CLOSE.sub("", text)


def _loads_mapping(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):  # JSONDecodeError, or an over-long int literal
        return None
    return parsed if isinstance(parsed, dict) else None


def _brace_bounds(text: str) -> tuple[int, int]:
    return text.find("{"), text.rfind("}")


def _unescape(value: str) -> str:
    return _ESCAPE.sub(lambda m: _UNESCAPED[m.group(1)], value)


def estimate_tokens(text: str) -> int:
    """Rough token count: 1.3 tokens per whitespace-delimited word."""
    return math.ceil(len(text.split()) * 1.3)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def parse_fenced(text: str) -> dict[str, Any] | None:
    """Strategy 1: strip code fences, then strict parse."""
    return _loads_mapping(strip_code_fence(text))


def parse_brace_bounded(text: str) -> dict[str, Any] | None:
    """Strategy 2: parse only the outermost {...} span."""
    text = strip_code_fence(text)
    first, last = _brace_bounds(text)
    if first == -1 or last <= first:
        return None
    return _loads_mapping(text[first : last + 1])


def repair_newlines(text: str) -> str:
    """Escape literal newlines inside ``"key": "value"`` string values.

    Best effort: an escaped quote inside a value ends the match early, so
    newlines after it are left alone.
    """

    def _escape(m: re.Match[str]) -> str:
        return m.group(1) + m.group(2).replace("\r", "\\r").replace("\n", "\\n") + m.group(3)

    return _STRING_VALUE.sub(_escape, text)


def parse_repaired_newlines(text: str) -> dict[str, Any] | None:
    """Strategy 3: brace-bounded span with raw newlines escaped."""
    text = strip_code_fence(text)
    first, last = _brace_bounds(text)
    span = text[first if first != -1 else 0 : last + 1 if last != -1 else len(text)]
    return _loads_mapping(repair_newlines(span))


def extract_fields(text: str) -> dict[str, Any] | None:
    """Strategy 4: pull each expected field out with a regex.

    Works on truncated or otherwise unparsable JSON. Succeeds only when
    ``prompt_plain`` is present.
    """
    plain_match = _PLAIN_FIELD.search(text)
    if not plain_match:
        return None
    plain = _unescape(plain_match.group(1))

    structured_match = _STRUCTURED_FIELD.search(text)
    notes_match = _NOTES_FIELD.search(text)
    tokens_match = _TOKENS_FIELD.search(text)

    prompt_json: dict[str, Any] = {"prompt": plain}
    json_match = _JSON_FIELD.search(text)
    if json_match:
        prompt_json = _loads_mapping(json_match.group(1)) or prompt_json

    return {
        "prompt_plain": plain,
        "prompt_structured": _unescape(structured_match.group(1)) if structured_match else plain,
        "prompt_json": prompt_json,
        "optimization_notes": _unescape(notes_match.group(1)) if notes_match else "",
        "token_estimate": _as_count(tokens_match.group(1)) if tokens_match else 0,
    }


STRUCTURED_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("fenced", parse_fenced),
    ("brace_bounded", parse_brace_bounded),
    ("repaired_newlines", parse_repaired_newlines),
    ("field_regex", extract_fields),
)


def first_success(
    strategies: Iterable[tuple[str, Strategy]],
    text: str,
) -> tuple[str, dict[str, Any]] | None:
    """Run strategies in order; return the first (name, mapping) produced."""
    for name, strategy in strategies:
        parsed = strategy(text)
        if parsed is not None:
            return name, parsed
    return None


# ---------------------------------------------------------------------------
# Canonical shape
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, indent=2)
    return str(value)


def _as_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        return _loads_mapping(value) or {}
    return {}


def _as_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(count, 0)


def to_canonical(parsed: dict[str, Any]) -> CanonicalResult | None:
    """Coerce a parsed object into the canonical shape.

    Returns None when ``prompt_plain`` is missing or empty.
    """
    if not parsed.get("prompt_plain"):
        return None
    return CanonicalResult(
        prompt_plain=_as_text(parsed.get("prompt_plain")),
        prompt_structured=_as_text(parsed.get("prompt_structured")),
        prompt_json=_as_mapping(parsed.get("prompt_json")),
        optimization_notes=_as_text(parsed.get("optimization_notes")),
        token_estimate=_as_count(parsed.get("token_estimate")),
    )


def raw_fallback(text: str) -> CanonicalResult:
    """Strategy 5: the reply itself is the prompt."""
    plain = strip_code_fence(text).strip() or text.strip()
    return CanonicalResult(
        prompt_plain=plain,
        prompt_structured=plain,
        prompt_json={"prompt": plain},
        optimization_notes="",
        token_estimate=estimate_tokens(plain),
    )


def normalize_with_strategy(raw: str) -> tuple[CanonicalResult, str]:
    """Normalize ``raw`` and report which strategy produced the result."""
    if not isinstance(raw, str):
        raw = _as_text(raw)

    outcome = first_success(STRUCTURED_STRATEGIES, raw)
    if outcome is not None:
        name, parsed = outcome
        result = to_canonical(parsed)
        if result is not None:
            return result, name
        logger.debug("Strategy %s parsed an object without prompt_plain, using raw text", name)

    return raw_fallback(raw), "raw"


def normalize(raw: str) -> CanonicalResult:
    """Turn any reply text into a CanonicalResult. Never raises."""
    result, _ = normalize_with_strategy(raw)
    return result
