from bisect import bisect_right
from typing import List, Optional, Tuple

import structlog
from diff_match_patch import diff_match_patch

from inkwell.annotate.mapper import PositionMap
from inkwell.models import EditTransform, TreePosition

logger = structlog.get_logger(__name__)


class OffsetMapping:
    """
    Maps flat offsets in `old_text` to flat offsets in `new_text` using a
    character-level diff. Offsets strictly inside deleted text map to None.
    An offset where text was inserted maps after the insertion, or before
    it with assoc < 0.
    """

    def __init__(self, old_text: str, new_text: str):
        dmp = diff_match_patch()
        dmp.Diff_Timeout = 0.5
        diffs = dmp.diff_main(old_text, new_text, False)

        # (old_start, old_end, new_start, deleted)
        self.segments: List[Tuple[int, int, int, bool]] = []
        old_pos = 0
        new_pos = 0
        # New offset just after the last old character, before trailing inserts.
        self.old_end_in_new = 0
        for op, text in diffs:
            n = len(text)
            if op == 0:
                self.segments.append((old_pos, old_pos + n, new_pos, False))
                old_pos += n
                new_pos += n
                self.old_end_in_new = new_pos
            elif op == -1:
                self.segments.append((old_pos, old_pos + n, new_pos, True))
                old_pos += n
                self.old_end_in_new = new_pos
            else:
                new_pos += n

        self.old_length = old_pos
        self.new_length = new_pos
        self._starts = [s[0] for s in self.segments]
        logger.debug(f"Diffed {len(old_text)} -> {len(new_text)} chars into {len(diffs)} ops")

    def map_offset(self, offset: int, assoc: int = 1) -> Optional[int]:
        if offset < 0 or offset > self.old_length:
            return None
        if offset == self.old_length:
            return self.old_end_in_new if assoc < 0 else self.new_length

        idx = bisect_right(self._starts, offset) - 1
        old_start, _, new_start, deleted = self.segments[idx]
        if assoc < 0 and offset == old_start and idx > 0:
            prev_start, prev_end, prev_new_start, prev_deleted = self.segments[idx - 1]
            if not prev_deleted:
                return prev_new_start + (prev_end - prev_start)
        if not deleted:
            return new_start + (offset - old_start)
        if offset == old_start:
            return new_start
        return None


def transform_from_texts(old_map: PositionMap, new_map: PositionMap) -> EditTransform:
    """
    Derives an edit transform by diffing two snapshots' flat texts.
    For editing surfaces that report new content rather than the edit steps.
    """
    mapping = OffsetMapping(old_map.plain_text, new_map.plain_text)

    def transform(pos: TreePosition, assoc: int = 1) -> Optional[TreePosition]:
        new_offset = mapping.map_offset(old_map.tree_to_flat(pos), assoc)
        if new_offset is None:
            return None
        return new_map.flat_to_tree(new_offset, assoc)

    return transform
