"""
Tests for inkwell.analyzer and inkwell.dictionary: rule-based checks.

Run: python3 test_analyzer.py
From: python/
"""

import sys

sys.path.insert(0, '.')

from inkwell.analyzer import analyze, check_capitalisation, check_spelling, check_terminal_punctuation
from inkwell.dictionary import Dictionary
from inkwell.models import IssueKind

WORDS = [
    "the", "a", "is", "i", "this", "that", "cat", "sat", "on", "mat", "hello", "world",
    "test", "saw", "definitely", "wrong", "big", "dog", "isn't",
]

DICT = Dictionary.from_words(WORDS)


def _kinds_at(issues, offset):
    return {i.kind for i in issues if i.flat_offset == offset}


def test_empty_text():
    assert analyze("", dictionary=DICT) == []
    print("PASS: test_empty_text")


def test_repeated_word():
    issues = analyze("the the cat sat.", dictionary=DICT)
    repeated = [i for i in issues if i.kind == IssueKind.REPEATED_WORD]
    assert len(repeated) == 1
    assert repeated[0].flat_offset == 0
    assert repeated[0].length == len("the the")
    assert repeated[0].candidates == ["the"]
    print("PASS: test_repeated_word")


def test_repeated_word_case_insensitive():
    issues = analyze("The the cat sat.", dictionary=DICT)
    assert IssueKind.REPEATED_WORD in _kinds_at(issues, 0)
    print("PASS: test_repeated_word_case_insensitive")


def test_terminal_punctuation():
    issues = analyze("hello world", dictionary=DICT)
    punct = [i for i in issues if i.kind == IssueKind.PUNCTUATION]
    assert len(punct) == 1
    assert punct[0].flat_offset == len("hello world") - 1
    assert punct[0].text == "world"
    assert punct[0].candidates == ["world.", "world?", "world!"]

    assert not [i for i in analyze("hello world.", dictionary=DICT) if i.kind == IssueKind.PUNCTUATION]
    assert not [i for i in analyze("Hello world!  \n", dictionary=DICT) if i.kind == IssueKind.PUNCTUATION]
    print("PASS: test_terminal_punctuation")


def test_sentence_start():
    issues = analyze("this is a test.", dictionary=DICT)
    starts = [i for i in issues if i.kind == IssueKind.SENTENCE_START]
    assert len(starts) == 1
    assert starts[0].flat_offset == 0
    assert starts[0].candidates == ["This"]

    assert not [i for i in analyze("This is a test.", dictionary=DICT) if i.kind == IssueKind.SENTENCE_START]
    print("PASS: test_sentence_start")


def test_sentence_start_after_terminal():
    text = "This is a test. that is a cat."
    issues = analyze(text, dictionary=DICT)
    starts = [i for i in issues if i.kind == IssueKind.SENTENCE_START]
    assert [i.flat_offset for i in starts] == [text.index("that")]
    print("PASS: test_sentence_start_after_terminal")


def test_spelling():
    issues = check_spelling("the cat sta on teh mat", DICT)
    assert [(i.flat_offset, i.text) for i in issues] == [(8, "sta"), (15, "teh")]
    assert "sat" in issues[0].candidates
    assert "the" in issues[1].candidates
    assert all(len(i.candidates) <= 3 for i in issues)
    print("PASS: test_spelling")


def test_spelling_candidate_limit():
    issues = check_spelling("definately", DICT, max_candidates=0)
    assert issues[0].candidates == []
    issues = check_spelling("Definately", DICT)
    assert issues[0].candidates[0] == "Definitely"
    print("PASS: test_spelling_candidate_limit")


def test_contractions_known():
    assert check_spelling("This isn't a cat's mat.", DICT) == []
    print("PASS: test_contractions_known")


def test_capitalisation_mixed_case():
    issues = check_capitalisation("the cAt sat.", DICT)
    assert len(issues) == 1
    assert issues[0].flat_offset == 4
    assert issues[0].candidates == ["cat", "Cat"]
    print("PASS: test_capitalisation_mixed_case")


def test_capitalisation_title_mid_sentence():
    issues = check_capitalisation("I saw The cat.", DICT)
    assert [(i.flat_offset, i.candidates) for i in issues] == [(6, ["the"])]
    # Not after a terminal, and unknown words are left alone
    assert check_capitalisation("I saw it. The cat sat.", DICT) == []
    assert check_capitalisation("I saw Rex.", DICT) == []
    print("PASS: test_capitalisation_title_mid_sentence")


def test_issues_sorted_by_offset():
    issues = analyze("the the cat sta", dictionary=DICT)
    offsets = [i.flat_offset for i in issues]
    assert offsets == sorted(offsets)
    assert analyze("the the cat sta", dictionary=DICT) == issues
    print("PASS: test_issues_sorted_by_offset")


def test_repeated_calls_are_stateless():
    text = "the the cat. the the dog."
    first = analyze(text, dictionary=DICT)
    second = analyze(text, dictionary=DICT)
    assert first == second
    assert len([i for i in first if i.kind == IssueKind.REPEATED_WORD]) == 2
    print("PASS: test_repeated_calls_are_stateless")


def test_no_punctuation_issue_for_whitespace_only():
    assert check_terminal_punctuation("   \n ") == []
    print("PASS: test_no_punctuation_issue_for_whitespace_only")


def test_bundled_dictionary():
    dictionary = Dictionary.bundled()
    assert len(dictionary) > 10000
    assert dictionary.contains("the")
    assert dictionary.contains("The")
    assert "definitely" in dictionary.suggest("definately")
    print("PASS: test_bundled_dictionary")


# ---------------------------------------------------------------------------

if __name__ == '__main__':
    tests = [
        test_empty_text,
        test_repeated_word,
        test_repeated_word_case_insensitive,
        test_terminal_punctuation,
        test_sentence_start,
        test_sentence_start_after_terminal,
        test_spelling,
        test_spelling_candidate_limit,
        test_contractions_known,
        test_capitalisation_mixed_case,
        test_capitalisation_title_mid_sentence,
        test_issues_sorted_by_offset,
        test_repeated_calls_are_stateless,
        test_no_punctuation_issue_for_whitespace_only,
        test_bundled_dictionary,
    ]

    passed = 0
    failed = 0
    for t in tests:
        try:
            t()
            passed += 1
        except Exception as e:
            print(f"FAIL: {t.__name__}: {e}")
            failed += 1

    print(f"\n{'=' * 50}")
    print(f"Results: {passed} passed, {failed} failed out of {len(tests)} tests")
    if failed > 0:
        sys.exit(1)
    else:
        print("All tests passed!")
