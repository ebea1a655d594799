"""Model response parsing for BrandPulse.

Model output is free text that is supposed to contain JSON. This module
locates the JSON fragment, decodes it and validates the shape each stage
expects. Every function raises MalformedResponseError (or ValueError for a
well-formed payload with invalid fields); callers decide the stage-specific
fallback.

Key Functions:
    extract_json_array(): first [...] fragment, greedy or lazy
    extract_json_object(): first {...} fragment, flat or nested
    parse_sentiment_response(): {"sentiment", "score"} with clamping
    parse_id_list(): relevance filter id arrays
    parse_string_list(): topic name arrays
    strip_wrapping_quotes(): remove one leading/trailing quote character
"""

import json
import re
from typing import Any, Dict, List

import structlog

from brandpulse.models.content_models import SENTIMENT_LABELS, SentimentResult


logger = structlog.get_logger(__name__)

SCORE_MIN = -100.0
SCORE_MAX = 100.0

_GREEDY_ARRAY = re.compile(r"\[[\s\S]*\]")
_LAZY_ARRAY = re.compile(r"\[[\s\S]*?\]")
_NESTED_OBJECT = re.compile(r"\{[\s\S]*\}")
_FLAT_OBJECT = re.compile(r"\{[^}]+\}")
_WRAPPING_QUOTES = re.compile(r"^[\"']|[\"']$")


class MalformedResponseError(Exception):
    """Raised when a model response contains no decodable JSON of the expected shape."""
    pass


def strip_code_fences(raw_content: str) -> str:
    """Remove ```json ... ``` fences and surrounding whitespace."""
    stripped = (raw_content or "").strip()

    if stripped.startswith("```"):
        start_idx = stripped.find("\n")
        start_idx = 3 if start_idx == -1 else start_idx + 1

        end_idx = stripped.rfind("```")
        if end_idx > start_idx:
            stripped = stripped[start_idx:end_idx].strip()
        else:
            stripped = stripped[start_idx:].strip()

    return stripped


def _decode(fragment: str, raw_content: str) -> Any:
    try:
        return json.loads(fragment)
    except json.JSONDecodeError as e:
        logger.warning("model_json_decode_failed", error=str(e), raw_content=raw_content[:200])
        raise MalformedResponseError(f"Invalid JSON: {e}")


def extract_json_array(raw_content: str, lazy: bool = False) -> List[Any]:
    """Extract and decode the first JSON array in a model response.

    Args:
        raw_content: Raw model response (may include prose or code fences)
        lazy: Match the shortest [...] fragment instead of the longest

    Raises:
        MalformedResponseError: No array found, invalid JSON, or not a list
    """
    text = strip_code_fences(raw_content)
    pattern = _LAZY_ARRAY if lazy else _GREEDY_ARRAY
    match = pattern.search(text)
    if not match:
        raise MalformedResponseError("No JSON array found in response")

    data = _decode(match.group(0), text)
    if not isinstance(data, list):
        raise MalformedResponseError(f"Expected a JSON array, got {type(data).__name__}")
    return data


def extract_json_object(raw_content: str, flat: bool = False) -> Dict[str, Any]:
    """Extract and decode the first JSON object in a model response.

    Args:
        raw_content: Raw model response
        flat: Only match objects without nested braces

    Raises:
        MalformedResponseError: No object found, invalid JSON, or not a dict
    """
    text = strip_code_fences(raw_content)
    pattern = _FLAT_OBJECT if flat else _NESTED_OBJECT
    match = pattern.search(text)
    if not match:
        raise MalformedResponseError("No JSON object found in response")

    data = _decode(match.group(0), text)
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def clamp_score(score: float) -> float:
    """Clamp a sentiment score to [-100, 100]."""
    return max(SCORE_MIN, min(SCORE_MAX, float(score)))


def parse_sentiment_response(raw_content: str) -> SentimentResult:
    """Parse {"sentiment": ..., "score": ...} into a SentimentResult.

    Validation Rules:
        - sentiment: one of positive/neutral/negative (case-insensitive)
        - score: required, numeric (booleans rejected), clamped to [-100, 100]
        - extra fields: ignored

    Raises:
        MalformedResponseError: No JSON object found
        ValueError: Invalid label or missing/non-numeric score

    Examples:
        >>> parse_sentiment_response('{"sentiment": "Positive", "score": 500}')
        SentimentResult(label='positive', score=100.0)
    """
    data = extract_json_object(raw_content, flat=True)

    label = data.get("sentiment")
    if not isinstance(label, str) or label.strip().lower() not in SENTIMENT_LABELS:
        raise ValueError(f"Invalid sentiment: {label!r}. Must be one of {SENTIMENT_LABELS}")
    label = label.strip().lower()

    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValueError(f"Score must be numeric, got {type(score).__name__}")

    clamped = clamp_score(score)
    if clamped != score:
        logger.debug("sentiment_score_clamped", original=score, clamped=clamped)

    return SentimentResult(label=label, score=clamped)


def parse_id_list(raw_content: str) -> List[str]:
    """Parse a relevance-filter response into the list of kept ids.

    Non-string entries are ignored.

    Raises:
        MalformedResponseError: No array found or invalid JSON
    """
    ids = extract_json_array(raw_content, lazy=True)
    return [item_id for item_id in ids if isinstance(item_id, str)]


def parse_string_list(raw_content: str) -> List[str]:
    """Parse an array of names, keeping trimmed non-empty strings.

    Duplicates are removed case-insensitively, first occurrence wins.

    Raises:
        MalformedResponseError: No array found or invalid JSON
    """
    values = extract_json_array(raw_content)

    result = []
    seen = set()
    for value in values:
        if not isinstance(value, str):
            continue
        value = value.strip()
        if not value or value.lower() in seen:
            continue
        seen.add(value.lower())
        result.append(value)
    return result


def strip_wrapping_quotes(text: str) -> str:
    """Trim whitespace, then remove one leading and one trailing quote character."""
    return _WRAPPING_QUOTES.sub("", (text or "").strip())
