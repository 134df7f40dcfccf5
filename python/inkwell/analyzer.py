"""
Deterministic local writing checks over the flat plain text.

Every check consumes a fresh `finditer` per call; compiled patterns carry
no match state between invocations.
"""

import re
from typing import List, Optional

import structlog

from inkwell.dictionary import Dictionary, default_dictionary
from inkwell.models import Issue, IssueKind
from inkwell.utils.text import TERMINALS, snap_to_word

logger = structlog.get_logger(__name__)

RE_WORD = re.compile(r"\b[a-zA-Z']+\b")
RE_REPEAT = re.compile(r"\b(\w+)\b\s+\1\b", re.IGNORECASE)
RE_SENTENCE = re.compile(r"[^.!?]+[.!?]*")
RE_LEADING_WORD = re.compile(r"[a-zA-Z']+")

_KIND_ORDER = {
    IssueKind.SPELLING: 0,
    IssueKind.REPEATED_WORD: 1,
    IssueKind.SENTENCE_START: 2,
    IssueKind.CAPITALISATION: 3,
    IssueKind.PUNCTUATION: 4,
}


def analyze(text: str, dictionary: Optional[Dictionary] = None, max_candidates: int = 3) -> List[Issue]:
    """
    Runs all rule-based checks against plain text.
    Returns issues ordered by offset, then by check.
    """
    if not text:
        return []
    if dictionary is None:
        dictionary = default_dictionary()

    issues: List[Issue] = []
    issues.extend(check_spelling(text, dictionary, max_candidates))
    issues.extend(check_repeated_words(text))
    issues.extend(check_sentence_starts(text))
    issues.extend(check_capitalisation(text, dictionary))
    issues.extend(check_terminal_punctuation(text))

    issues.sort(key=lambda i: (i.flat_offset, _KIND_ORDER[i.kind]))
    logger.debug(f"Analyzed {len(text)} chars: {len(issues)} issues")
    return issues


def check_spelling(text: str, dictionary: Dictionary, max_candidates: int = 3) -> List[Issue]:
    issues = []
    for m in RE_WORD.finditer(text):
        word = m.group(0)
        if not word.strip("'") or dictionary.contains(word):
            continue
        issues.append(
            Issue(
                kind=IssueKind.SPELLING,
                flat_offset=m.start(),
                length=len(word),
                text=word,
                message=f'"{word}" is not in the dictionary.',
                candidates=dictionary.suggest(word, limit=max_candidates),
            )
        )
    return issues


def check_repeated_words(text: str) -> List[Issue]:
    issues = []
    for m in RE_REPEAT.finditer(text):
        word = m.group(1)
        issues.append(
            Issue(
                kind=IssueKind.REPEATED_WORD,
                flat_offset=m.start(),
                length=m.end() - m.start(),
                text=m.group(0),
                message=f'Repeated word "{word}".',
                candidates=[word],
            )
        )
    return issues


def check_sentence_starts(text: str) -> List[Issue]:
    issues = []
    for m in RE_SENTENCE.finditer(text):
        sentence = m.group(0)
        stripped = sentence.lstrip()
        if not stripped:
            continue
        first_idx = m.start() + (len(sentence) - len(stripped))
        if not text[first_idx].islower():
            continue

        word_match = RE_LEADING_WORD.match(text, first_idx)
        word = word_match.group(0) if word_match else text[first_idx]
        issues.append(
            Issue(
                kind=IssueKind.SENTENCE_START,
                flat_offset=first_idx,
                length=len(word),
                text=word,
                message="Sentence should start with a capital letter.",
                candidates=[word[0].upper() + word[1:]],
            )
        )
    return issues


def check_terminal_punctuation(text: str) -> List[Issue]:
    trimmed = text.rstrip()
    if not trimmed or trimmed[-1] in TERMINALS:
        return []
    last_idx = len(trimmed) - 1
    # Highlights snap to whole words, so the fix rewrites the final word.
    start, end = snap_to_word(text, last_idx, last_idx + 1)
    tail = text[start:end]
    return [
        Issue(
            kind=IssueKind.PUNCTUATION,
            flat_offset=last_idx,
            length=1,
            text=tail,
            message="Add a period, question mark, or exclamation point.",
            candidates=[tail + ".", tail + "?", tail + "!"],
        )
    ]


def check_capitalisation(text: str, dictionary: Dictionary) -> List[Issue]:
    """
    Flags irregular mixed case, and Title-case common words mid-sentence.

    The second rule is a heuristic: it cannot tell a proper noun from a
    capitalised common word, so legitimate names are reported too.
    """
    issues = []
    for m in RE_WORD.finditer(text):
        word = m.group(0)
        idx = m.start()

        prev = _previous_non_space(text, idx)
        if not prev or prev in TERMINALS:
            continue

        lower = word.lower()
        is_all_caps = word == word.upper()
        is_all_lower = word == lower
        is_title = word[0].isupper() and word[1:] == word[1:].lower()

        if not (is_all_caps or is_all_lower or is_title):
            issues.append(
                Issue(
                    kind=IssueKind.CAPITALISATION,
                    flat_offset=idx,
                    length=len(word),
                    text=word,
                    message=f'Unexpected casing in "{word}".',
                    candidates=[lower, lower[0].upper() + lower[1:]],
                )
            )
        elif is_title and not is_all_caps and dictionary.contains(lower):
            issues.append(
                Issue(
                    kind=IssueKind.CAPITALISATION,
                    flat_offset=idx,
                    length=len(word),
                    text=word,
                    message=f'"{word}" should be lowercase here.',
                    candidates=[lower],
                )
            )
    return issues


def _previous_non_space(text: str, idx: int) -> str:
    j = idx - 1
    while j >= 0 and text[j].isspace():
        j -= 1
    return text[j] if j >= 0 else ""
