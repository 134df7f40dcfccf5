from typing import Iterable, List, Mapping, Optional, Tuple

import structlog

from inkwell.annotate.mapper import PositionMap
from inkwell.config import DEFAULT_STYLE_CLASSES, HIGHLIGHT_CLASS
from inkwell.models import Caret, Category, Decoration, Suggestion
from inkwell.utils.text import TERMINALS, snap_to_word

logger = structlog.get_logger(__name__)

_CARET_BREAKS = (" ", "\n", "\t")


def resolve_span(suggestion: Suggestion, text: str) -> Tuple[int, int, bool]:
    """
    Returns (start, end, explicit). An explicit length gives a token span;
    length=None extends to the next sentence terminal (inclusive) or to the
    end of the text.
    """
    start = suggestion.flat_offset
    if suggestion.length is not None:
        return start, start + suggestion.length, True

    end = len(text)
    for i in range(start, len(text)):
        if text[i] in TERMINALS:
            end = i + 1
            break
    return start, end, False


def resolve_snapped_span(suggestion: Suggestion, text: str) -> Tuple[int, int]:
    start, end, explicit = resolve_span(suggestion, text)
    if explicit:
        start, end = snap_to_word(text, start, end)
    return start, end


def caret_cutoff(text: str, caret: Optional[Caret]) -> Optional[int]:
    """
    Start offset of the word being typed, or None when nothing is suppressed.
    Everything at or after the cut-off is withheld for this pass.
    """
    if caret is None or not caret.is_collapsed_selection:
        return None
    before = text[: min(caret.flat_offset, len(text))]
    last_break = max(before.rfind(ch) for ch in _CARET_BREAKS)
    return 0 if last_break == -1 else last_break + 1


def project(
    suggestions: Iterable[Suggestion],
    position_map: PositionMap,
    plain_text: str,
    caret: Optional[Caret] = None,
    style_classes: Optional[Mapping[Category, str]] = None,
    highlighted_id: Optional[str] = None,
    highlight_class: str = HIGHLIGHT_CLASS,
) -> List[Decoration]:
    """
    Converts suggestions into tree-position decorations for one document state.
    Pure: identical inputs give identical output.
    """
    if plain_text != position_map.plain_text:
        logger.warning(
            f"Projection skipped: text ({len(plain_text)} chars) does not match "
            f"position map ({len(position_map.plain_text)} chars)"
        )
        return []

    classes = dict(DEFAULT_STYLE_CLASSES)
    if style_classes:
        classes.update(style_classes)

    cutoff = caret_cutoff(plain_text, caret)
    decorations: List[Decoration] = []

    for suggestion in suggestions:
        start, end = resolve_snapped_span(suggestion, plain_text)

        if cutoff is not None and start >= cutoff:
            continue

        from_pos = position_map.flat_to_tree(start)
        to_pos = position_map.flat_to_tree(end, assoc=-1)
        if from_pos is None or to_pos is None or to_pos <= from_pos:
            logger.debug(f"Dropping decoration for {suggestion.id}: [{start}, {end}) does not map")
            continue

        style_class = classes[suggestion.category]
        if highlighted_id is not None and suggestion.id == highlighted_id:
            style_class = f"{style_class} {highlight_class}"

        decorations.append(
            Decoration(from_=from_pos, to=to_pos, style_class=style_class, suggestion_id=suggestion.id)
        )

    return decorations
