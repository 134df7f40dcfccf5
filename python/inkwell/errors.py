"""
Error taxonomy for the annotation engine.

None of these cross the public contract: they are raised inside helpers,
caught at the boundary, logged, and turned into "fewer or stale highlights".
"""

from typing import Optional


class InkwellError(Exception):
    pass


class MappingMiss(InkwellError):
    """A flat offset or tree position has no counterpart in the current snapshot."""

    def __init__(self, where, reason: str = "not found"):
        self.where = where
        super().__init__(f"Cannot map {where!r}: {reason}")


class StaleAnalysis(InkwellError):
    """An analysis pass was computed against text that is no longer current."""

    def __init__(self, expected_length: int, actual_length: int):
        self.expected_length = expected_length
        self.actual_length = actual_length
        super().__init__(f"Analysis computed on {expected_length} chars, document now has {actual_length}")


class ExternalSuggestionFailure(InkwellError):
    """The external suggestion source errored or returned unparsable data."""

    def __init__(self, category, detail: Optional[str] = None):
        self.category = category
        msg = f"External suggestions for {getattr(category, 'value', category)} failed"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
