"""
Post-hoc removal of the excluded speaker (the interviewer) from model output.

The prompt already tells the model never to quote the interviewer; this is the
safety net for when it does anyway. Matching is a loose bidirectional
substring test on normalized names, so "Jamie", "Jamie Horton" and
"Dr. Horton" are all caught, at the cost of the occasional false positive on
an unrelated name sharing a substring.
"""
import copy
import logging
import re
from typing import Any, Dict, Iterable, List

logger = logging.getLogger("speaker-filter")


def normalize_name(name: str) -> str:
    return re.sub(r"\s+", " ", (name or "").strip().lower())


def _normalized_aliases(excluded_aliases: Iterable[str]) -> List[str]:
    normalized = [normalize_name(a) for a in excluded_aliases if isinstance(a, str)]
    return [a for a in normalized if a]


def _matches(name: Any, aliases: List[str]) -> bool:
    if not isinstance(name, str):
        return False
    n = normalize_name(name)
    if not n:
        return False
    return any(alias in n or n in alias for alias in aliases)


def is_excluded_speaker(name: Any, excluded_aliases: Iterable[str]) -> bool:
    """True when name contains, or is contained by, any alias (case-insensitive)."""
    return _matches(name, _normalized_aliases(excluded_aliases))


def _quote_is_excluded(quote: Any, aliases: List[str]) -> bool:
    # Plain-string quotes carry no attribution
    return isinstance(quote, dict) and _matches(quote.get("participant"), aliases)


def _position_is_excluded(position: Any, aliases: List[str]) -> bool:
    if not isinstance(position, dict):
        return False
    if _matches(position.get("supporter"), aliases):
        return True
    return _quote_is_excluded(position.get("quote"), aliases)


def _text_names_speaker(quote: Any, canonical: str) -> bool:
    if not canonical or not isinstance(quote, dict) or not isinstance(quote.get("text"), str):
        return False
    return canonical in normalize_name(quote["text"])


def filter_quotes(quotes: Any, excluded_aliases: Iterable[str]) -> Any:
    """
    Drop chat quotes attributed to the excluded speaker, or whose text contains
    the speaker's full (first-listed) name. Non-list input is returned untouched.
    """
    if not isinstance(quotes, list):
        return quotes
    aliases = _normalized_aliases(excluded_aliases)
    canonical = aliases[0] if aliases else ""
    return [
        copy.deepcopy(q) for q in quotes
        if not _quote_is_excluded(q, aliases) and not _text_names_speaker(q, canonical)
    ]


def _filter_theme(theme: Dict[str, Any], aliases: List[str]) -> Dict[str, Any]:
    quotes = theme.get("quotes")
    if isinstance(quotes, list):
        theme["quotes"] = [q for q in quotes if not _quote_is_excluded(q, aliases)]
    return theme


def _filter_disagreement(disagreement: Dict[str, Any], aliases: List[str]) -> Dict[str, Any]:
    positions = disagreement.get("positions")
    if isinstance(positions, list):
        disagreement["positions"] = [p for p in positions if not _position_is_excluded(p, aliases)]

    participants = disagreement.get("participants")
    if isinstance(participants, list):
        disagreement["participants"] = [p for p in participants if not _matches(p, aliases)]

    return disagreement


def _is_emptied(entry: Any, field: str) -> bool:
    return isinstance(entry, dict) and isinstance(entry.get(field), list) and not entry[field]


def filter_excluded_speaker(analysis: Dict[str, Any], excluded_aliases: Iterable[str]) -> Dict[str, Any]:
    """
    Remove every quote, position and participant attributable to the excluded speaker.

    Themes left without quotes and disagreements left without positions are
    dropped. Malformed or missing sub-fields are left as they are. The input is
    not mutated, and applying the filter twice gives the same result as once.

    Args:
        analysis: Parsed analysis object (keyThemes / disagreements)
        excluded_aliases: Names the excluded speaker may appear under

    Returns:
        dict: A filtered copy of the analysis
    """
    if not isinstance(analysis, dict):
        return analysis

    aliases = _normalized_aliases(excluded_aliases)
    result = copy.deepcopy(analysis)

    themes = result.get("keyThemes")
    if isinstance(themes, list):
        filtered = [_filter_theme(t, aliases) if isinstance(t, dict) else t for t in themes]
        result["keyThemes"] = [t for t in filtered if not _is_emptied(t, "quotes")]
        dropped = len(themes) - len(result["keyThemes"])
        if dropped:
            logger.info(f"🧹 Dropped {dropped} theme(s) left without quotes after speaker filtering")

    disagreements = result.get("disagreements")
    if isinstance(disagreements, list):
        filtered = [_filter_disagreement(d, aliases) if isinstance(d, dict) else d for d in disagreements]
        result["disagreements"] = [d for d in filtered if not _is_emptied(d, "positions")]
        dropped = len(disagreements) - len(result["disagreements"])
        if dropped:
            logger.info(f"🧹 Dropped {dropped} disagreement(s) left without positions after speaker filtering")

    return result
