"""
Helpers for turning untrusted model text into JSON values.

Models often wrap JSON in markdown fences or surround it with prose, and long
arrays sometimes arrive truncated. Strict parsing is used where a wrong guess
is dangerous (triage, topic mapping); the lenient extractors are used where
the caller has a safe recovery path.
"""
import json
import re
from typing import Any, Dict, List


_OPENING_FENCE = re.compile(r"^```[a-zA-Z]*\s*")
_CLOSING_FENCE = re.compile(r"\s*```$")

_decoder = json.JSONDecoder()


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _OPENING_FENCE.sub("", cleaned)
    cleaned = _CLOSING_FENCE.sub("", cleaned)
    return cleaned.strip()


def loads_fenced_json(text: str) -> Any:
    """json.loads after removing markdown fences. Raises ValueError."""
    return json.loads(strip_code_fences(text))


def _decode_from(text: str, opener: str, expected_type: type):
    for start, char in enumerate(text):
        if char != opener:
            continue
        try:
            value, _ = _decoder.raw_decode(text, start)
        except ValueError:
            continue
        if isinstance(value, expected_type):
            return value
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first JSON object embedded in the text. Raises ValueError."""
    cleaned = strip_code_fences(text)
    value = _decode_from(cleaned, "{", dict)
    if value is None:
        raise ValueError("no JSON object found in response")
    return value


def _salvage_objects(text: str) -> List[Dict[str, Any]]:
    objects: List[Dict[str, Any]] = []
    position = text.find("{")
    while position != -1:
        try:
            value, end = _decoder.raw_decode(text, position)
        except ValueError:
            position = text.find("{", position + 1)
            continue
        if isinstance(value, dict):
            objects.append(value)
        position = text.find("{", end)
    return objects


def extract_json_array(text: str) -> List[Any]:
    """
    Return the first complete JSON array in the text.

    If the array was cut off (a truncated response), the complete objects
    inside it are salvaged instead. Raises ValueError when nothing usable
    is found.
    """
    cleaned = strip_code_fences(text)
    start = cleaned.find("[")
    if start == -1:
        raise ValueError("no JSON array found in response")

    try:
        value, _ = _decoder.raw_decode(cleaned, start)
    except ValueError:
        value = None
    if isinstance(value, list):
        return value

    salvaged = _salvage_objects(cleaned[start:])
    if salvaged:
        return salvaged

    value = _decode_from(cleaned[start + 1:], "[", list)
    if value is not None:
        return value

    raise ValueError("no JSON array found in response")


def preview(text: str, limit: int = 200) -> str:
    """Truncated model output for log lines."""
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "..."
