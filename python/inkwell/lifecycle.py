"""
Accept / dismiss / filter operations over the current suggestion list.

All functions are pure: the caller owns the list and threads the result
back in. Accepting does not edit the document; `replacement_for` builds the
request the editing surface carries out.
"""

from collections import Counter
from typing import AbstractSet, Dict, List, Optional, Sequence

import structlog

from inkwell.annotate.mapper import PositionMap
from inkwell.annotate.projector import resolve_snapped_span
from inkwell.errors import MappingMiss
from inkwell.models import Category, ReplacementRequest, Suggestion

logger = structlog.get_logger(__name__)


def _remove(suggestions: Sequence[Suggestion], suggestion_id: str) -> List[Suggestion]:
    return [s for s in suggestions if s.id != suggestion_id]


def accept(suggestions: Sequence[Suggestion], suggestion_id: str) -> List[Suggestion]:
    return _remove(suggestions, suggestion_id)


def dismiss(suggestions: Sequence[Suggestion], suggestion_id: str) -> List[Suggestion]:
    return _remove(suggestions, suggestion_id)


def filter_by_category(suggestions: Sequence[Suggestion], category: Category) -> List[Suggestion]:
    return [s for s in suggestions if s.category == category]


def find(suggestions: Sequence[Suggestion], suggestion_id: str) -> Optional[Suggestion]:
    return next((s for s in suggestions if s.id == suggestion_id), None)


def count_by_category(suggestions: Sequence[Suggestion]) -> Dict[Category, int]:
    counts = Counter(s.category for s in suggestions)
    return {c: counts.get(c, 0) for c in Category}


def suggestion_key(suggestion: Suggestion) -> str:
    """
    Position-independent identity used to remember dismissals: the id
    embeds an offset that shifts as the user keeps typing.
    """
    return f"{suggestion.title}-{suggestion.excerpt_html}"


def without_dismissed(suggestions: Sequence[Suggestion], dismissed_keys: AbstractSet[str]) -> List[Suggestion]:
    if not dismissed_keys:
        return list(suggestions)
    return [s for s in suggestions if suggestion_key(s) not in dismissed_keys]


def replacement_for(
    suggestion: Suggestion,
    position_map: PositionMap,
    plain_text: str,
    choice: Optional[str] = None,
) -> Optional[ReplacementRequest]:
    """
    Builds the text replacement for an accepted suggestion, targeting exactly
    the span the projector highlights. Returns None when there is nothing to
    apply or the span no longer maps onto the document.
    """
    replacement = choice
    if replacement is None and suggestion.candidates:
        replacement = suggestion.candidates[0]
    if replacement is None:
        logger.debug(f"No replacement available for {suggestion.id}")
        return None

    if plain_text != position_map.plain_text:
        logger.debug(f"Replacement for {suggestion.id} skipped: text is out of date")
        return None

    start, end = resolve_snapped_span(suggestion, plain_text)
    try:
        from_pos = position_map.require_tree(start)
        to_pos = position_map.require_tree(end)
    except MappingMiss as e:
        logger.debug(f"Replacement for {suggestion.id} dropped: {e}")
        return None
    if to_pos <= from_pos:
        return None

    return ReplacementRequest(from_=from_pos, to=to_pos, replacement=replacement)
