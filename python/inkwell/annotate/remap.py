"""
Maps existing decorations through document edits without re-analysis.

A transform takes a tree position in the document before an edit and
returns its position afterwards, or None if the edit deleted it. The
helpers here build transforms for the common single-edit shapes.

Decoration ends are not inclusive: `from` maps with assoc=1 and `to` with
assoc=-1, so text inserted exactly at either edge lands outside the span.
"""

from typing import List, Optional, Sequence

import structlog

from inkwell.models import BLOCK_START, Decoration, EditTransform, TreePosition

logger = structlog.get_logger(__name__)


def remap(decorations: Sequence[Decoration], transform: EditTransform) -> List[Decoration]:
    """
    O(len(decorations)); never consults the analyzer. Decorations whose
    endpoints are deleted, or which collapse to an empty span, are dropped.
    """
    result: List[Decoration] = []
    for deco in decorations:
        try:
            new_from = transform(deco.from_, 1)
            new_to = transform(deco.to, -1)
        except Exception as e:
            logger.warning(f"Edit transform failed for {deco.suggestion_id}: {e}")
            continue

        if new_from is None or new_to is None or new_to <= new_from:
            continue

        if new_from == deco.from_ and new_to == deco.to:
            result.append(deco)
        else:
            result.append(deco.model_copy(update={"from_": TreePosition(*new_from), "to": TreePosition(*new_to)}))
    return result


def identity(pos: TreePosition, assoc: int = 1) -> Optional[TreePosition]:
    return pos


def _after(offset: int, point: int, assoc: int) -> bool:
    return offset > point or (offset == point and assoc >= 0)


def insert_text(at: TreePosition, length: int) -> EditTransform:
    """Text of `length` characters inserted at inline position `at`."""

    def transform(pos: TreePosition, assoc: int = 1) -> Optional[TreePosition]:
        if pos.block == at.block and pos.offset != BLOCK_START and _after(pos.offset, at.offset, assoc):
            return TreePosition(pos.block, pos.offset + length)
        return pos

    return transform


def delete_range(start: TreePosition, end: TreePosition) -> EditTransform:
    """
    Content between `start` and `end` removed. When the range spans blocks
    the remainder of `end`'s block joins `start`'s block.
    """
    if end < start:
        start, end = end, start
    removed_blocks = end.block - start.block
    start_offset = max(0, start.offset)
    end_offset = max(0, end.offset)

    def transform(pos: TreePosition, assoc: int = 1) -> Optional[TreePosition]:
        if pos <= start:
            return pos
        if pos < end:
            # A block boundary whose separator was removed has no width.
            return start if pos.offset == BLOCK_START else None
        if pos.block == end.block:
            return TreePosition(start.block, start_offset + max(0, pos.offset) - end_offset)
        return TreePosition(pos.block - removed_blocks, pos.offset)

    return transform


def split_block(at: TreePosition) -> EditTransform:
    """
    A block boundary inserted at `at` (e.g. the user pressed Enter). With
    assoc < 0 a position on the split point or on the boundary after
    `at`'s block stays in the old block.
    """
    boundary = TreePosition(at.block + 1, BLOCK_START)

    def transform(pos: TreePosition, assoc: int = 1) -> Optional[TreePosition]:
        if assoc < 0 and pos == boundary:
            return pos
        if pos.block > at.block:
            return TreePosition(pos.block + 1, pos.offset)
        if pos.block == at.block and pos.offset != BLOCK_START and _after(pos.offset, at.offset, assoc):
            return TreePosition(pos.block + 1, pos.offset - at.offset)
        return pos

    return transform


def compose(*transforms: EditTransform) -> EditTransform:
    """Applies transforms left to right; a deletion short-circuits."""

    def transform(pos: TreePosition, assoc: int = 1) -> Optional[TreePosition]:
        current: Optional[TreePosition] = pos
        for t in transforms:
            if current is None:
                return None
            current = t(current, assoc)
        return current

    return transform
