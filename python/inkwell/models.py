from enum import Enum
from typing import Callable, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

# Inline offset that addresses the boundary just before a block's content.
BLOCK_START = -1


class TreePosition(NamedTuple):
    """
    Address inside the document tree: a block index plus an inline character
    offset within that block. Tuple ordering is document order.
    """

    block: int
    offset: int


# Maps a position in the old document to the new one; None means deleted.
# Called as transform(pos, assoc): assoc < 0 keeps a position that sits
# exactly on an insertion point before the inserted content, assoc > 0
# (the default) moves it after.
EditTransform = Callable[..., Optional[TreePosition]]


class TextRun(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""


class Block(BaseModel):
    model_config = ConfigDict(frozen=True)

    runs: List[TextRun] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)


class DocumentSnapshot(BaseModel):
    """
    Immutable view of the document tree at one instant.
    Owned by the editing surface; the engine only reads it.
    """

    model_config = ConfigDict(frozen=True)

    blocks: List[Block] = Field(default_factory=lambda: [Block()])

    @classmethod
    def from_text(cls, text: str) -> "DocumentSnapshot":
        return cls(blocks=[Block(runs=[TextRun(text=line)] if line else []) for line in text.split("\n")])

    def plain_text(self) -> str:
        """The editing surface's own plain-text projection: one newline per block boundary."""
        return "\n".join(b.text for b in self.blocks)


class IssueKind(str, Enum):
    SPELLING = "Spelling"
    CAPITALISATION = "Capitalisation"
    REPEATED_WORD = "Repeated word"
    PUNCTUATION = "Punctuation"
    SENTENCE_START = "Sentence start"


class Issue(BaseModel):
    """Output of the rule-based analyzer, in flat offsets."""

    kind: IssueKind
    flat_offset: int = Field(..., ge=0)
    message: str
    length: Optional[int] = Field(None, ge=1)
    text: Optional[str] = None  # the flagged source text, when known
    candidates: List[str] = Field(default_factory=list)


class Category(str, Enum):
    CORRECTNESS = "Correctness"
    CLARITY = "Clarity"
    ENGAGEMENT = "Engagement"
    DELIVERY = "Delivery"


EXTERNAL_CATEGORIES = (Category.CLARITY, Category.ENGAGEMENT, Category.DELIVERY)


class Suggestion(BaseModel):
    """
    The unit consumed by the sidebar and by the decoration projector.
    length=None means "extend to the natural sentence boundary".
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    category: Category
    title: str
    excerpt_html: str = Field("", alias="excerpt")
    flat_offset: int = Field(..., ge=0, alias="index")
    length: Optional[int] = Field(None, ge=1)
    candidates: Optional[List[str]] = None


class RawSuggestion(BaseModel):
    """
    A suggestion as returned by an external source, before normalization.
    Unknown keys (e.g. a source-generated uuid) are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    category: Optional[Category] = None
    title: str = Field(..., min_length=1)
    excerpt_html: str = Field("", alias="excerpt")
    flat_offset: Optional[int] = Field(None, ge=0, alias="index")
    length: Optional[int] = Field(None, ge=1)
    candidates: Optional[List[str]] = None


class Caret(BaseModel):
    flat_offset: int = Field(..., ge=0)
    is_collapsed_selection: bool = True


class Decoration(BaseModel):
    """A renderable highlight span in tree-position space."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: TreePosition = Field(..., alias="from")
    to: TreePosition
    style_class: str
    suggestion_id: Optional[str] = None


class ReplacementRequest(BaseModel):
    """Text replacement issued to the editing surface when a suggestion is accepted."""

    model_config = ConfigDict(populate_by_name=True)

    from_: TreePosition = Field(..., alias="from")
    to: TreePosition
    replacement: str


class ExternalRequest(BaseModel):
    text: str
    category: Category
