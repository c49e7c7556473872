"""Utility functions."""

import json
import logging
import math
from typing import Any, Dict, Optional

from nutrilens.models import (
    DEFAULT_CATEGORY,
    DEFAULT_CONFIDENCE,
    DEFAULT_FOOD_NAME,
    DEFAULT_PORTION,
    ParsedFoodGuess,
)

logger = logging.getLogger(__name__)

HEURISTIC_PORTION = "medium"
MAX_HEURISTIC_LABEL = 80


def extract_json(text: str) -> Dict[str, Any]:
    """
    Return the JSON object between the first "{" and the last "}".
    Raises ValueError if nothing decodable is found.
    """
    text = text or ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ValueError("No JSON object detected")

    try:
        parsed = json.loads(text[start:end + 1])
    except RecursionError as e:
        raise ValueError("JSON object is nested too deeply") from e
    if not isinstance(parsed, dict):
        raise ValueError("Decoded JSON is not an object")
    return parsed


def to_number(value: Any) -> Optional[float]:
    """Finite number or None. Numeric strings like "85" or "85%" are accepted."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    try:
        finite = math.isfinite(value)
    except OverflowError:
        return None
    return value if finite else None


def _text_field(value: Any) -> Optional[str]:
    if value is None or value == "" or isinstance(value, (dict, list)):
        return None
    text = value.strip() if isinstance(value, str) else str(value)
    return text or None


def _confidence(value: Any) -> float:
    number = to_number(value)
    if number is None:
        return DEFAULT_CONFIDENCE
    return min(max(number, 0), 100)


def _heuristic_guess(text: str) -> ParsedFoodGuess:
    first_line = next((line.strip() for line in (text or "").splitlines() if line.strip()), "")
    return ParsedFoodGuess(
        food_name=first_line[:MAX_HEURISTIC_LABEL] or DEFAULT_FOOD_NAME,
        confidence=DEFAULT_CONFIDENCE,
        portion_desc=HEURISTIC_PORTION,
        category=DEFAULT_CATEGORY,
    )


def parse_food_guess(text: str) -> ParsedFoodGuess:
    """
    Turn vision text into a fully populated ParsedFoodGuess.

    Strict JSON first; if the text holds no decodable object, the first
    non-empty line becomes the label. Never raises.
    """
    try:
        parsed = extract_json(text)
    except ValueError as e:
        logger.info("Vision text is not JSON (%s), using first line as label", e)
        return _heuristic_guess(text)

    return ParsedFoodGuess(
        food_name=_text_field(parsed.get("food_name")) or _text_field(parsed.get("food")) or DEFAULT_FOOD_NAME,
        confidence=_confidence(parsed.get("confidence")),
        portion_desc=_text_field(parsed.get("portion_desc")) or DEFAULT_PORTION,
        category=_text_field(parsed.get("category")) or DEFAULT_CATEGORY,
    )
