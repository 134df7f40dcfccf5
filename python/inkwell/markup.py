"""
Renders suggestions over plain text as CriticMarkup highlights, for
reviewing a document's findings outside an editor.
"""

import html
import re
from typing import Iterable, List, Tuple

import structlog

from inkwell.annotate.projector import resolve_snapped_span
from inkwell.models import Suggestion

logger = structlog.get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


def _excerpt_as_text(excerpt_html: str) -> str:
    """Strips the excerpt's inline tags; CriticMarkup comments are plain text."""
    return html.unescape(_TAG_RE.sub("", excerpt_html)).strip()


def _build_critic_markup(target_text: str, suggestion: Suggestion, include_id: bool) -> str:
    parts = [f"{{=={target_text}==}}"]

    meta_parts = [suggestion.title]
    excerpt = _excerpt_as_text(suggestion.excerpt_html)
    if excerpt:
        meta_parts[0] += f": {excerpt}"
    if include_id:
        meta_parts.append(f"[{suggestion.id}]")

    parts.append(f"{{>>{' '.join(meta_parts)}<<}}")
    return "".join(parts)


def render_suggestions_as_markup(
    plain_text: str,
    suggestions: Iterable[Suggestion],
    include_id: bool = False,
) -> str:
    """
    Wraps each suggestion's span in {==...==}{>>Title: excerpt<<}.

    Spans resolve like highlights in the editor (whole-word snapping,
    sentence extension for suggestions without a length). Overlapping spans:
    first in list wins.
    """
    spans: List[Tuple[int, int, Suggestion]] = []
    occupied: List[Tuple[int, int]] = []

    for suggestion in suggestions:
        start, end = resolve_snapped_span(suggestion, plain_text)
        end = min(end, len(plain_text))
        if start >= end:
            logger.debug(f"Skipping {suggestion.id}: empty span")
            continue
        if any(start < occ_end and end > occ_start for occ_start, occ_end in occupied):
            logger.debug(f"Skipping {suggestion.id}: overlaps with an earlier suggestion")
            continue
        spans.append((start, end, suggestion))
        occupied.append((start, end))

    # Apply from end to start so earlier offsets stay valid.
    spans.sort(key=lambda x: x[0], reverse=True)

    result = plain_text
    for start, end, suggestion in spans:
        markup = _build_critic_markup(plain_text[start:end], suggestion, include_id)
        result = result[:start] + markup + result[end:]

    return result
