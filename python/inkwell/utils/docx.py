"""
Low-level helpers for walking DOCX content in document order.
"""

from typing import Iterator, Union

import structlog
from docx.document import Document as DocumentObject
from docx.oxml.ns import qn
from docx.table import Table, _Cell
from docx.text.paragraph import Paragraph
from docx.text.run import Run

logger = structlog.get_logger(__name__)


def get_run_text(run: Run) -> str:
    """
    Extracts the visible text of a run. <w:tab/> becomes a tab; line breaks
    become spaces, since newlines in the flat text are reserved for block
    boundaries. Tracked deletions (<w:delText>) are not visible text.
    """
    text = ""
    for child in run._element:
        if child.tag == qn("w:t"):
            text += child.text or ""
        elif child.tag == qn("w:tab"):
            text += "\t"
        elif child.tag in (qn("w:br"), qn("w:cr")):
            text += " "
    return text.replace("\n", " ")


def iter_block_items(parent) -> Iterator[Union[Paragraph, Table]]:
    """
    Yields Paragraph or Table objects in the order they appear in the XML.
    Supports Document, Header, Footer, and Cell objects.
    Recursion is left to the caller.
    """
    if isinstance(parent, DocumentObject):
        parent_elm = parent.element.body
    elif isinstance(parent, _Cell):
        parent_elm = parent._tc
    else:
        if hasattr(parent, "_element"):
            parent_elm = parent._element
        else:
            raise ValueError(f"Unsupported parent type for iteration: {type(parent)}")

    for child in parent_elm.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, parent)
        elif child.tag == qn("w:tbl"):
            yield Table(child, parent)


def iter_paragraphs(container) -> Iterator[Paragraph]:
    """Every paragraph in document order, descending into table cells."""
    for item in iter_block_items(container):
        if isinstance(item, Paragraph):
            yield item
        elif isinstance(item, Table):
            for row in item.rows:
                # Merged cells are yielded once per grid column.
                seen_cells = set()
                for cell in row.cells:
                    if cell._tc in seen_cells:
                        continue
                    seen_cells.add(cell._tc)
                    yield from iter_paragraphs(cell)


def iter_visible_runs(paragraph: Paragraph) -> Iterator[Run]:
    """Runs that are direct children of the paragraph, hyperlinks, or tracked insertions."""
    for child in paragraph._p.iterchildren():
        if child.tag == qn("w:r"):
            yield Run(child, paragraph)
        elif child.tag in (qn("w:hyperlink"), qn("w:ins"), qn("w:smartTag")):
            for r in child.iterchildren(qn("w:r")):
                yield Run(r, paragraph)
