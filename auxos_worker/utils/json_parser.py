import json
import re
from typing import Any, Dict, Optional

from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json|JSON)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove an optional markdown code fence wrapping the text."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned)
        cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a single JSON object from LLM output.

    Handles:
    - Markdown code blocks (```json ... ```)
    - Leading/trailing prose around the object
    - Trailing garbage after a complete object

    Args:
        text: The text containing JSON

    Returns:
        Parsed JSON object, or None if no object can be located
    """
    if not text:
        return None

    cleaned_text = strip_code_fences(text)

    try:
        parsed = json.loads(cleaned_text)
        return parsed if isinstance(parsed, dict) else None
    except json.JSONDecodeError as e:
        LOGGER.debug(f"Initial JSON parse failed: {e}, attempting to locate object...")

    start = cleaned_text.find("{")
    if start == -1:
        LOGGER.warning("No JSON object found in LLM response")
        return None

    # Outermost braces first, then the first complete object from the opening brace
    end = cleaned_text.rfind("}")
    if end > start:
        try:
            parsed = json.loads(cleaned_text[start:end + 1])
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    try:
        parsed, _ = json.JSONDecoder().raw_decode(cleaned_text, start)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError as e:
        LOGGER.warning(f"Failed to parse JSON object from LLM response: {e}")

    return None
