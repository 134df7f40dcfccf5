from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterator, List, Optional

import structlog

from inkwell.errors import MappingMiss
from inkwell.models import BLOCK_START, DocumentSnapshot, TreePosition

logger = structlog.get_logger(__name__)

SEPARATOR = "\n"


@dataclass
class BlockSpan:
    index: int
    start: int
    end: int
    text: str


class PositionMap:
    """
    Bidirectional mapping between flat character offsets and tree positions
    for one DocumentSnapshot.

    The flat text is every block's text joined by a single separator. The
    separator after block b is not a character of any node; its offset maps
    to the starting position of block b + 1, (b + 1, BLOCK_START).

    CRITICAL: plain_text must match DocumentSnapshot.plain_text() exactly.
    """

    def __init__(self, snapshot: DocumentSnapshot):
        self.snapshot = snapshot
        self.spans: List[BlockSpan] = []
        self.plain_text = ""
        self._starts: List[int] = []
        self._build_map()

    def _build_map(self):
        current_offset = 0
        parts = []
        self.spans = []

        for i, block in enumerate(self.snapshot.blocks):
            if i > 0:
                parts.append(SEPARATOR)
                current_offset += len(SEPARATOR)

            text = "".join(run.text for run in block.runs)
            self.spans.append(BlockSpan(index=i, start=current_offset, end=current_offset + len(text), text=text))
            parts.append(text)
            current_offset += len(text)

        self.plain_text = "".join(parts)
        self._starts = [s.start for s in self.spans]

    @property
    def block_count(self) -> int:
        return len(self.spans)

    @property
    def separator_count(self) -> int:
        return max(0, len(self.spans) - 1)

    def flat_to_tree(self, offset: int, assoc: int = 1) -> Optional[TreePosition]:
        """
        Returns the tree position whose range contains offset, or None if
        the offset is outside the document.

        With assoc < 0 a separator offset resolves to the end of the block
        before it instead, which is where the end of a span belongs.
        """
        if offset < 0 or offset > len(self.plain_text) or not self.spans:
            return None

        # Block 0 starts at 0 and starts never repeat, so idx >= 0.
        idx = bisect_right(self._starts, offset) - 1
        span = self.spans[idx]

        if offset < span.end or idx == len(self.spans) - 1 or assoc < 0:
            return TreePosition(span.index, offset - span.start)

        # offset == span.end on a non-final block: the separator.
        return TreePosition(span.index + 1, BLOCK_START)

    def tree_to_flat(self, pos: TreePosition) -> int:
        """
        Exact inverse of flat_to_tree on canonical positions. Out-of-range
        parts are clamped rather than rejected.
        """
        if not self.spans:
            return 0
        block, offset = pos
        if block < 0:
            return 0
        if block >= len(self.spans):
            return len(self.plain_text)

        span = self.spans[block]
        if offset == BLOCK_START:
            # The separator before this block; block 0 has none.
            return max(0, span.start - len(SEPARATOR))
        return span.start + max(0, min(offset, span.end - span.start))

    def require_tree(self, offset: int) -> TreePosition:
        pos = self.flat_to_tree(offset)
        if pos is None:
            raise MappingMiss(offset, reason=f"outside [0, {len(self.plain_text)}]")
        return pos

    def positions(self) -> Iterator[TreePosition]:
        """Canonical tree positions, one per flat offset in document order."""
        for offset in range(len(self.plain_text) + 1):
            yield self.flat_to_tree(offset)


def build_position_map(snapshot: DocumentSnapshot) -> PositionMap:
    return PositionMap(snapshot)
