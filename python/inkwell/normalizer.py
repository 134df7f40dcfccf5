import hashlib
from html import escape
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

import structlog
from pydantic import ValidationError

from inkwell.models import EXTERNAL_CATEGORIES, Category, Issue, IssueKind, RawSuggestion, Suggestion

logger = structlog.get_logger(__name__)

MAX_PER_CATEGORY = 3

# Issue kinds whose card previews the fix as <del>old</del> → <strong>new</strong>.
_PREVIEW_KINDS = {IssueKind.CAPITALISATION, IssueKind.SENTENCE_START, IssueKind.PUNCTUATION}


def normalize(
    issues: Iterable[Issue],
    external: Optional[Mapping[Category, Iterable[Any]]] = None,
    max_per_category: int = MAX_PER_CATEGORY,
) -> List[Suggestion]:
    """
    Merges analyzer issues and externally supplied suggestions into one list.

    Correctness suggestions are never capped. External categories keep at
    most `max_per_category` valid entries each, in arrival order.
    """
    result: List[Suggestion] = []
    seen_ids: Set[str] = set()

    for issue in issues:
        suggestion = suggestion_from_issue(issue)
        if suggestion.id in seen_ids:
            continue
        seen_ids.add(suggestion.id)
        result.append(suggestion)

    for category, entries in _ordered_external(external or {}):
        result.extend(normalize_external(category, entries, max_per_category, seen_ids))

    return result


def suggestion_from_issue(issue: Issue) -> Suggestion:
    candidates = list(issue.candidates) or None
    excerpt = escape(issue.message, quote=False)

    if issue.kind in _PREVIEW_KINDS and candidates:
        original = issue.text
        if original:
            excerpt = f"<del>{escape(original, quote=False)}</del> → <strong>{escape(candidates[0], quote=False)}</strong>"

    return Suggestion(
        id=f"{issue.kind.value}-{issue.flat_offset}",
        category=Category.CORRECTNESS,
        title=issue.kind.value,
        excerpt_html=excerpt,
        flat_offset=issue.flat_offset,
        length=issue.length,
        candidates=candidates,
    )


def normalize_external(
    category: Category,
    entries: Iterable[Any],
    max_per_category: int = MAX_PER_CATEGORY,
    seen_ids: Optional[Set[str]] = None,
) -> List[Suggestion]:
    """
    Validates raw suggestions requested under `category`.
    Entries declaring another category are discarded.
    """
    if seen_ids is None:
        seen_ids = set()

    if category == Category.CORRECTNESS:
        logger.warning("Discarding external Correctness suggestions; Correctness is rule-based only")
        return []

    accepted: List[Suggestion] = []
    for position, entry in enumerate(entries or []):
        if len(accepted) >= max_per_category:
            logger.debug(f"{category.value}: cap of {max_per_category} reached, dropping the rest")
            break

        raw = _validate_raw(entry, category, position)
        if raw is None:
            continue

        if raw.category is not None and raw.category != category:
            logger.warning(
                f"{category.value}: discarding entry {position} declared as {raw.category.value}"
            )
            continue

        if raw.flat_offset is None:
            logger.warning(f"{category.value}: discarding entry {position} without an offset")
            continue

        suggestion_id = external_id(category, raw.flat_offset, raw.title)
        if suggestion_id in seen_ids:
            logger.debug(f"{category.value}: duplicate suggestion {suggestion_id} ignored")
            continue
        seen_ids.add(suggestion_id)

        accepted.append(
            Suggestion(
                id=suggestion_id,
                category=category,
                title=raw.title,
                excerpt_html=raw.excerpt_html,
                flat_offset=raw.flat_offset,
                length=raw.length,
                candidates=raw.candidates,
            )
        )
    return accepted


def external_id(category: Category, flat_offset: int, title: str) -> str:
    digest = hashlib.sha1(title.encode("utf-8")).hexdigest()[:10]
    return f"{category.value}-{flat_offset}-{digest}"


def _validate_raw(entry: Any, category: Category, position: int) -> Optional[RawSuggestion]:
    if isinstance(entry, RawSuggestion):
        return entry
    if not isinstance(entry, dict):
        logger.warning(f"{category.value}: entry {position} is {type(entry).__name__}, not an object")
        return None
    try:
        return RawSuggestion.model_validate(entry)
    except ValidationError as e:
        logger.warning(f"{category.value}: entry {position} failed validation: {e.error_count()} errors")
        return None


def _ordered_external(external: Mapping[Category, Iterable[Any]]):
    # Stable category order regardless of the order responses arrived in.
    order = {c: i for i, c in enumerate((Category.CORRECTNESS,) + EXTERNAL_CATEGORIES)}
    keys: Dict[Category, Iterable[Any]] = {}
    for key, entries in external.items():
        try:
            keys[Category(key)] = entries
        except ValueError:
            logger.warning(f"Ignoring suggestions for unknown category {key!r}")
    return sorted(keys.items(), key=lambda kv: order[kv[0]])

