from typing import Tuple

TERMINALS = ".!?"


def is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_" or ch == "'"


def snap_to_word(text: str, start: int, end: int) -> Tuple[int, int]:
    """Widens [start, end) so neither edge splits a word."""
    if start > len(text):
        return start, end
    while start > 0 and is_word_char(text[start - 1]):
        start -= 1
    while 0 <= end < len(text) and is_word_char(text[end]):
        end += 1
    return start, end
