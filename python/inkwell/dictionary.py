"""
Read-only English word list with bounded edit-distance suggestions.

Backed by SymSpell. The default instance loads the frequency dictionary
bundled with symspellpy once and is shared by every analysis.
"""

from functools import lru_cache
from importlib.resources import files
from typing import FrozenSet, Iterable, List

import structlog
from symspellpy import SymSpell, Verbosity

logger = structlog.get_logger(__name__)

FREQUENCY_DICT = "frequency_dictionary_en_82_765.txt"

# Contraction suffixes accepted after a known stem ("dog's", "isn't", "we'll").
_CONTRACTION_SUFFIXES = {"s", "t", "re", "ve", "ll", "d", "m"}


class Dictionary:
    def __init__(self, sym_spell: SymSpell, max_edit_distance: int = 2):
        self._sym_spell = sym_spell
        self.max_edit_distance = max_edit_distance
        self._words: FrozenSet[str] = frozenset(sym_spell.words)

    @classmethod
    def from_words(cls, words: Iterable[str], max_edit_distance: int = 2) -> "Dictionary":
        """Builds a dictionary from a plain word list; earlier words rank higher."""
        sym_spell = SymSpell(max_dictionary_edit_distance=max_edit_distance, prefix_length=7)
        word_list = [w.strip().lower() for w in words if w and w.strip()]
        for rank, word in enumerate(word_list):
            sym_spell.create_dictionary_entry(word, len(word_list) - rank)
        return cls(sym_spell, max_edit_distance=max_edit_distance)

    @classmethod
    def bundled(cls, max_edit_distance: int = 2) -> "Dictionary":
        sym_spell = SymSpell(max_dictionary_edit_distance=max_edit_distance, prefix_length=7)
        dict_path = files("symspellpy") / FREQUENCY_DICT
        if not sym_spell.load_dictionary(str(dict_path), term_index=0, count_index=1):
            logger.warning(f"Could not load bundled dictionary from {dict_path}")
        else:
            logger.debug(f"Loaded {len(sym_spell.words)} dictionary words")
        return cls(sym_spell, max_edit_distance=max_edit_distance)

    def __len__(self) -> int:
        return len(self._words)

    def contains(self, word: str) -> bool:
        lower = word.lower().strip("'")
        if not lower:
            return True
        if lower in self._words:
            return True
        if "'" in lower:
            stem, _, suffix = lower.rpartition("'")
            if suffix in _CONTRACTION_SUFFIXES:
                # "isn't" -> "isn", so also try dropping the n of n't.
                return stem in self._words or (suffix == "t" and stem.endswith("n") and stem[:-1] in self._words)
        return False

    def suggest(self, word: str, limit: int = 3) -> List[str]:
        """
        Up to `limit` replacements ranked by edit distance, then frequency.
        The casing of the original token is carried over.
        """
        if limit <= 0 or not word:
            return []
        lower = word.lower()
        items = self._sym_spell.lookup(lower, Verbosity.ALL, max_edit_distance=self.max_edit_distance)

        results: List[str] = []
        seen = {lower}
        for item in items:
            if item.term in seen:
                continue
            seen.add(item.term)
            results.append(_match_casing(word, item.term))
            if len(results) >= limit:
                break
        return results


def _match_casing(original: str, candidate: str) -> str:
    if original.isupper() and len(original) > 1:
        return candidate.upper()
    if original[:1].isupper():
        return candidate[:1].upper() + candidate[1:]
    return candidate


@lru_cache(maxsize=None)
def default_dictionary(max_edit_distance: int = 2) -> Dictionary:
    return Dictionary.bundled(max_edit_distance=max_edit_distance)
