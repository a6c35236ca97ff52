"""Scalar coercion and array reconstruction for rendered field values."""
from __future__ import annotations

import logging
import math
import os
import re
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_ARRAY_INDEX = 1_000_000

TRUTHY_ENV_VALUES = {"1", "true", "yes", "on"}

DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)
RADIX_RE = re.compile(r"^0(?:[xX](?P<hex>[0-9a-fA-F]+)|[oO](?P<oct>[0-7]+)|[bB](?P<bin>[01]+))$")
INDEX_RE = re.compile(r"^\d+$", re.ASCII)

NON_FINITE_NUMBERS = {
    "NaN": math.nan,
    "Infinity": math.inf,
    "+Infinity": math.inf,
    "-Infinity": -math.inf,
}
INFINITIES = {text: value for text, value in NON_FINITE_NUMBERS.items() if math.isinf(value)}

# Integers above this lose precision as float64.
MAX_SAFE_INTEGER = 2**53 - 1


class UncoercibleNumber(ValueError):
    """A ``(number)`` field whose display text is not a number."""

    def __init__(self, text: str) -> None:
        super().__init__(f"Cannot read {text!r} as a number")
        self.text = text


def resolve_strict_numbers(value: bool | None) -> bool:
    if value is not None:
        return value
    env_value = os.environ.get("FIRESTORE_JSON_STRICT_NUMBERS")
    if not env_value:
        return False
    return env_value.strip().lower() in TRUTHY_ENV_VALUES


def resolve_max_array_index(value: int | None) -> int:
    if value is not None:
        return max(value, 0)
    env_value = os.environ.get("FIRESTORE_JSON_MAX_ARRAY_INDEX")
    if env_value:
        try:
            return max(int(env_value), 0)
        except ValueError:
            logger.debug("Invalid FIRESTORE_JSON_MAX_ARRAY_INDEX value: %s", env_value)
    return DEFAULT_MAX_ARRAY_INDEX


def _as_number(value: float) -> int | float:
    if value.is_integer() and abs(value) <= MAX_SAFE_INTEGER:
        return int(value)
    return value


def parse_number(text: str) -> int | float | None:
    """Parse ``text`` the way the console's ``Number()`` reads finite literals.

    Returns ``None`` when the text is not a number. The empty string is
    never a number here; callers decide what an empty field means.
    """
    candidate = text.strip()
    if not candidate:
        return None
    if DECIMAL_RE.match(candidate):
        return _as_number(float(candidate))
    match = RADIX_RE.match(candidate)
    if not match:
        return None
    if match.group("hex"):
        integer = int(match.group("hex"), 16)
    elif match.group("oct"):
        integer = int(match.group("oct"), 8)
    else:
        integer = int(match.group("bin"), 2)
    try:
        return _as_number(float(integer))
    except OverflowError:
        return math.inf


def _strip_quotes(text: str) -> str:
    if text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def coerce_untyped(raw: str | None) -> Any:
    """Coerce leaf text from the production console, which has no type hint."""
    value = _strip_quotes((raw or "").strip())
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    if value in INFINITIES:
        return INFINITIES[value]
    number = parse_number(value)
    if number is not None:
        return number
    return value


def coerce_typed(raw: str | None, type_label: str | None, *, strict: bool | None = None) -> Any:
    """Coerce leaf text from the emulator using its ``(type)`` label.

    Unknown labels (timestamps, references, geopoints) come back as the
    trimmed display text.
    """
    label = (type_label or "").strip().lower()
    text = "" if raw is None else str(raw).strip()
    if label == "(null)":
        return None
    if label == "(boolean)":
        return text == "true"
    if label == "(number)":
        return coerce_number(text, strict=strict)
    if label == "(string)":
        return _strip_quotes(text)
    return text


def coerce_number(text: str, *, strict: bool | None = None) -> int | float:
    if not text:
        return 0
    if text in NON_FINITE_NUMBERS:
        return NON_FINITE_NUMBERS[text]
    number = parse_number(text)
    if number is not None:
        return number
    if resolve_strict_numbers(strict):
        raise UncoercibleNumber(text)
    logger.warning("Number field shows %r; using NaN", text)
    return math.nan


def _parse_index(key: str) -> int | None:
    candidate = key.strip()
    if not INDEX_RE.match(candidate):
        return None
    return int(candidate)


def reconstruct_array(entries: Mapping[str, Any], *, max_index: int | None = None) -> list[Any]:
    """Turn index-keyed entries into a dense list.

    ``{"2": a, "0": b}`` becomes ``[b, None, a]``. Keys that are not
    non-negative integers are dropped.
    """
    limit = resolve_max_array_index(max_index)
    positioned: dict[int, Any] = {}
    for key, value in entries.items():
        index = _parse_index(key)
        if index is None:
            logger.debug("Dropping non-index array key %r", key)
            continue
        if index > limit:
            logger.warning("Dropping array index %d above limit %d", index, limit)
            continue
        positioned[index] = value
    if not positioned:
        return []
    result: list[Any] = [None] * (max(positioned) + 1)
    for index, value in positioned.items():
        result[index] = value
    return result
