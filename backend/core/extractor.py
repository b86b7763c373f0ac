"""
Best-effort recovery of a JSON object from free-form model output.

Model replies are not guaranteed to be clean JSON: they may be wrapped in
prose or a markdown fence. Three tiers are tried in order, each exposed on its
own so it can be exercised independently:

1. parse_direct      - the whole reply is JSON
2. parse_fenced      - the interior of a ```json (or bare ```) fence
3. parse_brace_span  - the text between the first '{' and the last '}'

There is no deeper repair and no re-asking the model.
"""
import json
import logging
import re
from typing import Any, Callable, Dict, List

from core.errors import ParseError, SchemaError

logger = logging.getLogger("extractor")

# Characters of raw output kept on a ParseError for diagnostics
RAW_PREFIX_CHARS = 200

_JSON_FENCE_RE = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_BARE_FENCE_RE = re.compile(r"```[a-zA-Z]*\s*(.*?)```", re.DOTALL)

REQUIRED_ARRAY_FIELDS = ("keyThemes", "disagreements")


def _loads_object(text: str) -> Dict[str, Any]:
    result = json.loads(text)
    if not isinstance(result, dict):
        raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
    return result


def parse_direct(raw_text: str) -> Dict[str, Any]:
    """Parse the reply as-is."""
    return _loads_object(raw_text.strip())


def parse_fenced(raw_text: str) -> Dict[str, Any]:
    """Parse the interior of the first ```json fence, falling back to a bare ``` fence."""
    match = _JSON_FENCE_RE.search(raw_text) or _BARE_FENCE_RE.search(raw_text)
    if not match:
        raise ValueError("No fenced code block found")
    return _loads_object(match.group(1).strip())


def parse_brace_span(raw_text: str) -> Dict[str, Any]:
    """Parse from the first '{' to the last '}' inclusive."""
    start_idx = raw_text.find('{')
    end_idx = raw_text.rfind('}') + 1

    if start_idx == -1 or end_idx <= start_idx:
        raise ValueError("No JSON object boundaries found")

    return _loads_object(raw_text[start_idx:end_idx])


STRATEGIES: List[Callable[[str], Dict[str, Any]]] = [
    parse_direct,
    parse_fenced,
    parse_brace_span,
]


def extract_json(raw_text: str) -> Dict[str, Any]:
    """
    Recover a JSON object from model output.

    Args:
        raw_text: Raw text returned by the generation call

    Returns:
        dict: The parsed object

    Raises:
        ParseError: when no strategy yields a JSON object
    """
    raw_text = raw_text or ""

    for strategy in STRATEGIES:
        try:
            return strategy(raw_text)
        except (ValueError, RecursionError) as e:
            logger.debug(f"{strategy.__name__} failed: {e}")

    raw_prefix = raw_text[:RAW_PREFIX_CHARS]
    logger.warning(f"⚠️  No JSON recoverable from model output: {raw_prefix!r}")
    raise ParseError(
        f"Failed to parse AI response as JSON: {raw_prefix}",
        raw_prefix=raw_prefix,
    )


def validate_analysis_shape(parsed: Any) -> Dict[str, Any]:
    """
    Shallow shape check: keyThemes and disagreements must both be lists.

    Raises:
        SchemaError: when either field is missing or not an array
    """
    if not isinstance(parsed, dict):
        raise SchemaError("AI response is not a JSON object")

    for field in REQUIRED_ARRAY_FIELDS:
        if not isinstance(parsed.get(field), list):
            raise SchemaError(f"AI response is missing required array field '{field}'")

    return parsed
