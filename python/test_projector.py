"""
Tests for inkwell.annotate.projector: suggestions to decorations.

Run: python3 test_projector.py
From: python/
"""

import sys

sys.path.insert(0, '.')

from inkwell.annotate.mapper import build_position_map
from inkwell.annotate.projector import caret_cutoff, project, resolve_span
from inkwell.config import DEFAULT_STYLE_CLASSES, HIGHLIGHT_CLASS
from inkwell.models import Caret, Category, DocumentSnapshot, Suggestion, TreePosition


def _suggestion(sid, offset, length=None, category=Category.CORRECTNESS, title="Spelling"):
    return Suggestion(id=sid, category=category, title=title, flat_offset=offset, length=length)


def _project(text, suggestions, **kwargs):
    pm = build_position_map(DocumentSnapshot.from_text(text))
    return project(suggestions, pm, pm.plain_text, **kwargs)


def test_word_boundary_snapping():
    """A span one character short of the token still covers the whole token."""
    decorations = _project("definately wrong", [_suggestion("s1", 0, 9)])
    assert len(decorations) == 1
    d = decorations[0]
    assert d.from_ == TreePosition(0, 0)
    assert d.to == TreePosition(0, 10)
    assert d.style_class == DEFAULT_STYLE_CLASSES[Category.CORRECTNESS]
    assert d.suggestion_id == "s1"
    print("PASS: test_word_boundary_snapping")


def test_snapping_widens_start():
    decorations = _project("I saw definately.", [_suggestion("s1", 8, 3)])
    assert decorations[0].from_ == TreePosition(0, 6)
    assert decorations[0].to == TreePosition(0, 16)
    print("PASS: test_snapping_widens_start")


def test_null_length_extends_to_sentence_end():
    text = "This is long. Next one"
    s = _suggestion("c1", 0, None, category=Category.CLARITY, title="Wordy")
    assert resolve_span(s, text) == (0, 13, False)
    assert resolve_span(_suggestion("c2", 14, None), text) == (14, len(text), False)

    decorations = _project(text, [s])
    assert decorations[0].to == TreePosition(0, 13)
    assert decorations[0].style_class == DEFAULT_STYLE_CLASSES[Category.CLARITY]
    print("PASS: test_null_length_extends_to_sentence_end")


def test_caret_suppression():
    text = "I wrote helo"
    s = _suggestion("s1", text.index("helo"), 4)

    # Caret right after the word being typed: withheld.
    assert _project(text, [s], caret=Caret(flat_offset=len(text))) == []

    # Caret has moved past the following whitespace: shown again.
    text2 = text + " "
    decorations = _project(text2, [s], caret=Caret(flat_offset=len(text2)))
    assert [d.suggestion_id for d in decorations] == ["s1"]

    # Same after a newline, which starts a new block.
    text3 = text + "\n"
    decorations = _project(text3, [s], caret=Caret(flat_offset=len(text3)))
    assert [d.suggestion_id for d in decorations] == ["s1"]
    print("PASS: test_caret_suppression")


def test_caret_suppression_only_affects_later_words():
    text = "teh cat helo"
    s_early = _suggestion("early", 0, 3)
    s_typing = _suggestion("typing", 8, 4)
    decorations = _project(text, [s_early, s_typing], caret=Caret(flat_offset=len(text)))
    assert [d.suggestion_id for d in decorations] == ["early"]
    print("PASS: test_caret_suppression_only_affects_later_words")


def test_caret_range_selection_does_not_suppress():
    text = "I wrote helo"
    s = _suggestion("s1", 8, 4)
    caret = Caret(flat_offset=len(text), is_collapsed_selection=False)
    assert caret_cutoff(text, caret) is None
    assert len(_project(text, [s], caret=caret)) == 1
    print("PASS: test_caret_range_selection_does_not_suppress")


def test_caret_without_whitespace_suppresses_everything():
    assert caret_cutoff("helo", Caret(flat_offset=4)) == 0
    assert _project("helo", [_suggestion("s1", 0, 4)], caret=Caret(flat_offset=4)) == []
    print("PASS: test_caret_without_whitespace_suppresses_everything")


def test_multi_block_positions():
    text = "First line.\nteh second"
    decorations = _project(text, [_suggestion("s1", text.index("teh"), 3)])
    assert decorations[0].from_ == TreePosition(1, 0)
    assert decorations[0].to == TreePosition(1, 3)
    print("PASS: test_multi_block_positions")


def test_span_touching_separator():
    # A null-length suggestion in an unterminated block runs to the end of
    # the text, across the separator into the next block.
    text = "no end here\nNext."
    decorations = _project(text, [_suggestion("s1", 0, None)])
    assert decorations[0].from_ == TreePosition(0, 0)
    assert decorations[0].to == TreePosition(1, 5)
    print("PASS: test_span_touching_separator")


def test_out_of_range_suggestion_dropped():
    decorations = _project("short", [_suggestion("far", 40, 3), _suggestion("ok", 0, 5)])
    assert [d.suggestion_id for d in decorations] == ["ok"]
    print("PASS: test_out_of_range_suggestion_dropped")


def test_stale_text_projects_nothing():
    pm = build_position_map(DocumentSnapshot.from_text("old text"))
    assert project([_suggestion("s1", 0, 3)], pm, "new text!") == []
    print("PASS: test_stale_text_projects_nothing")


def test_highlighted_and_custom_classes():
    suggestions = [_suggestion("a", 0, 3), _suggestion("b", 4, 3, category=Category.DELIVERY)]
    decorations = _project(
        "teh cat",
        suggestions,
        style_classes={Category.DELIVERY: "tone"},
        highlighted_id="b",
    )
    assert decorations[0].style_class == DEFAULT_STYLE_CLASSES[Category.CORRECTNESS]
    assert decorations[1].style_class == f"tone {HIGHLIGHT_CLASS}"
    print("PASS: test_highlighted_and_custom_classes")


def test_projection_is_deterministic():
    suggestions = [_suggestion("a", 0, 3), _suggestion("b", 4, None)]
    assert _project("teh cat sat. More", suggestions) == _project("teh cat sat. More", suggestions)
    print("PASS: test_projection_is_deterministic")


# ---------------------------------------------------------------------------

if __name__ == '__main__':
    tests = [
        test_word_boundary_snapping,
        test_snapping_widens_start,
        test_null_length_extends_to_sentence_end,
        test_caret_suppression,
        test_caret_suppression_only_affects_later_words,
        test_caret_range_selection_does_not_suppress,
        test_caret_without_whitespace_suppresses_everything,
        test_multi_block_positions,
        test_span_touching_separator,
        test_out_of_range_suggestion_dropped,
        test_stale_text_projects_nothing,
        test_highlighted_and_custom_classes,
        test_projection_is_deterministic,
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
