"""
Application-side owner of the annotation state for one open document.

The session threads the current snapshot, suggestions and decorations
through the pure pipeline functions:

    snapshot -> PositionMap -> analyze + external -> normalize -> project

Every edit remaps the previous decorations; a full recompute happens only
on `recheck()` or when external suggestions arrive. Public methods never
raise for data problems: failures are logged and leave fewer or older
highlights in place.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

import structlog

from inkwell import lifecycle
from inkwell.analyzer import analyze
from inkwell.annotate.mapper import PositionMap, build_position_map
from inkwell.annotate.projector import project
from inkwell.annotate.remap import remap
from inkwell.config import EngineSettings
from inkwell.dictionary import Dictionary, default_dictionary
from inkwell.errors import ExternalSuggestionFailure, StaleAnalysis
from inkwell.models import (
    EXTERNAL_CATEGORIES,
    Caret,
    Category,
    Decoration,
    DocumentSnapshot,
    EditTransform,
    ExternalRequest,
    ReplacementRequest,
    Suggestion,
)
from inkwell.normalizer import normalize, normalize_external

logger = structlog.get_logger(__name__)

# Async callable asked for suggestions of one category; returns a list of
# raw suggestion objects or a JSON string encoding one.
ExternalSuggestionSource = Callable[[ExternalRequest], Awaitable[Any]]


@dataclass(frozen=True)
class AnalysisPass:
    """Tags a unit of analysis work with the text it was computed against."""

    text: str
    revision: int

    def ensure_current(self, current_text: str):
        if current_text != self.text:
            raise StaleAnalysis(len(self.text), len(current_text))


def parse_external_payload(payload: Any, category: Category) -> List[Any]:
    """
    Accepts a list of raw suggestions, a {"suggestions": [...]} envelope, or
    a JSON string of either.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ExternalSuggestionFailure(category, f"invalid JSON: {e.msg}") from e

    if isinstance(payload, dict) and isinstance(payload.get("suggestions"), list):
        payload = payload["suggestions"]

    if not isinstance(payload, list):
        raise ExternalSuggestionFailure(category, f"expected a list, got {type(payload).__name__}")
    return payload


class AnnotationSession:
    def __init__(
        self,
        snapshot: Optional[DocumentSnapshot] = None,
        dictionary: Optional[Dictionary] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.settings = settings or EngineSettings()
        self.dictionary = dictionary
        self.caret: Optional[Caret] = None
        self.highlighted_id: Optional[str] = None
        self.dismissed_keys: Set[str] = set()
        self.decorations: List[Decoration] = []
        self.revision = 0

        self._correctness: List[Suggestion] = []
        self._external: Dict[Category, List[Suggestion]] = {}
        self.snapshot = snapshot or DocumentSnapshot()
        self.position_map: PositionMap = build_position_map(self.snapshot)

    @property
    def plain_text(self) -> str:
        return self.position_map.plain_text

    @property
    def suggestions(self) -> List[Suggestion]:
        merged = list(self._correctness)
        for category in EXTERNAL_CATEGORIES:
            merged.extend(self._external.get(category, []))
        return lifecycle.without_dismissed(merged, self.dismissed_keys)

    def suggestions_for(self, category: Category) -> List[Suggestion]:
        return lifecycle.filter_by_category(self.suggestions, category)

    # --- Document lifecycle ---

    def load(self, snapshot: DocumentSnapshot):
        """Starts over on a different document; dismissals are forgotten."""
        self.snapshot = snapshot
        self.position_map = build_position_map(snapshot)
        self._correctness = []
        self._external = {}
        self.decorations = []
        self.dismissed_keys = set()
        self.highlighted_id = None
        self.revision += 1

    def apply_edit(self, new_snapshot: DocumentSnapshot, transform: EditTransform):
        """
        Must be called once per edit, in order. Decorations are remapped, not
        recomputed; suggestions are re-anchored through the same transform
        so accept() keeps targeting the right text until the next recheck.
        The caret moves with the edit and is cleared if the edit deleted it.
        """
        old_map = self.position_map
        self.decorations = remap(self.decorations, transform)

        self.snapshot = new_snapshot
        self.position_map = build_position_map(new_snapshot)
        self.revision += 1

        self._correctness = self._reanchor(self._correctness, old_map, transform)
        self._external = {c: self._reanchor(items, old_map, transform) for c, items in self._external.items()}

        if self.caret is not None:
            offset = self._map_offset(self.caret.flat_offset, old_map, transform)
            self.caret = None if offset is None else self.caret.model_copy(update={"flat_offset": offset})

    def set_caret(self, caret: Optional[Caret]):
        self.caret = caret
        self._project()

    def select(self, suggestion_id: Optional[str]):
        """Emphasises one suggestion's highlight, e.g. when its card is focused."""
        self.highlighted_id = suggestion_id
        self._project()

    # --- Analysis ---

    def begin_pass(self) -> AnalysisPass:
        return AnalysisPass(text=self.plain_text, revision=self.revision)

    def recheck(self) -> List[Suggestion]:
        """Full rule-based pass over the current text, e.g. after typing pauses."""
        pass_ = self.begin_pass()
        try:
            issues = analyze(
                pass_.text,
                dictionary=self._dictionary(),
                max_candidates=self.settings.max_spelling_candidates,
            )
        except Exception as e:
            logger.error(f"Analysis failed: {e}", exc_info=True)
            return self.suggestions

        self._correctness = normalize(issues)
        self._project()
        logger.info(f"Recheck found {len(self._correctness)} correctness suggestions")
        return self.suggestions

    def merge_external(self, pass_: AnalysisPass, category: Category, payload: Any) -> bool:
        """
        Integrates one category's external response. Returns False when the
        response was discarded: stale text, failure, or unparsable data. On
        failure the category's previous suggestions stay in place.
        """
        try:
            pass_.ensure_current(self.plain_text)
        except StaleAnalysis as e:
            logger.debug(f"Discarding {category.value} suggestions: {e}")
            return False

        if payload is None:
            logger.warning(str(ExternalSuggestionFailure(category, "no response")))
            return False

        try:
            entries = parse_external_payload(payload, category)
        except ExternalSuggestionFailure as e:
            logger.warning(str(e))
            return False

        seen_ids = {s.id for s in self._correctness}
        accepted = normalize_external(category, entries, self.settings.max_external_per_category, seen_ids)
        if entries and not accepted and self.settings.max_external_per_category > 0:
            logger.warning(str(ExternalSuggestionFailure(category, f"none of {len(entries)} entries were valid")))
            return False

        self._external[category] = accepted
        self._project()
        return True

    async def fetch_external(
        self,
        source: ExternalSuggestionSource,
        categories: Iterable[Category] = EXTERNAL_CATEGORIES,
    ) -> Dict[Category, bool]:
        """
        Requests every category concurrently and merges each response as it
        arrives, provided it still matches the document text.
        """
        pass_ = self.begin_pass()

        async def request(category: Category):
            try:
                return category, await source(ExternalRequest(text=pass_.text, category=category))
            except Exception as e:
                logger.warning(str(ExternalSuggestionFailure(category, str(e))))
                return category, None

        results: Dict[Category, bool] = {}
        for next_response in asyncio.as_completed([request(Category(c)) for c in categories]):
            category, payload = await next_response
            results[category] = self.merge_external(pass_, category, payload)
        return results

    # --- Suggestion lifecycle ---

    def accept(self, suggestion_id: str, choice: Optional[str] = None) -> Optional[ReplacementRequest]:
        """
        Removes the suggestion and returns the replacement for the editing
        surface to apply, or None when it has no applicable fix.
        """
        suggestion = lifecycle.find(self.suggestions, suggestion_id)
        if suggestion is None:
            return None

        request = lifecycle.replacement_for(suggestion, self.position_map, self.plain_text, choice)
        self._correctness = lifecycle.accept(self._correctness, suggestion_id)
        self._external = {c: lifecycle.accept(items, suggestion_id) for c, items in self._external.items()}
        self._drop_decorations(suggestion_id)
        return request

    def dismiss(self, suggestion_id: str):
        suggestion = lifecycle.find(self.suggestions, suggestion_id)
        if suggestion is not None:
            # Remembered so the same finding is not shown again on recheck.
            self.dismissed_keys.add(lifecycle.suggestion_key(suggestion))
        self._correctness = lifecycle.dismiss(self._correctness, suggestion_id)
        self._external = {c: lifecycle.dismiss(items, suggestion_id) for c, items in self._external.items()}
        self._drop_decorations(suggestion_id)

    # --- Internals ---

    def _dictionary(self) -> Dictionary:
        if self.dictionary is not None:
            return self.dictionary
        return default_dictionary(self.settings.max_edit_distance)

    def _project(self):
        self.decorations = project(
            self.suggestions,
            self.position_map,
            self.plain_text,
            caret=self.caret,
            style_classes=self.settings.style_classes,
            highlighted_id=self.highlighted_id,
            highlight_class=self.settings.highlight_class,
        )

    def _drop_decorations(self, suggestion_id: str):
        self.decorations = [d for d in self.decorations if d.suggestion_id != suggestion_id]

    def _reanchor(
        self, suggestions: List[Suggestion], old_map: PositionMap, transform: EditTransform
    ) -> List[Suggestion]:
        result = []
        for s in suggestions:
            start = self._map_offset(s.flat_offset, old_map, transform)
            if start is None:
                continue
            length = s.length
            if length is not None:
                end = self._map_offset(s.flat_offset + length, old_map, transform, assoc=-1)
                if end is None or end <= start:
                    continue
                length = end - start
            if start == s.flat_offset and length == s.length:
                result.append(s)
            else:
                result.append(s.model_copy(update={"flat_offset": start, "length": length}))
        return result

    def _map_offset(
        self, offset: int, old_map: PositionMap, transform: EditTransform, assoc: int = 1
    ) -> Optional[int]:
        old_pos = old_map.flat_to_tree(offset, assoc)
        if old_pos is None:
            return None
        try:
            new_pos = transform(old_pos, assoc)
        except Exception as e:
            logger.warning(f"Edit transform failed at offset {offset}: {e}")
            return None
        if new_pos is None:
            return None
        return self.position_map.tree_to_flat(new_pos)
