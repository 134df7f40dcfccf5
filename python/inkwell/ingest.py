import io

import structlog
from docx import Document

from inkwell.models import Block, DocumentSnapshot, TextRun
from inkwell.utils.docx import get_run_text, iter_paragraphs, iter_visible_runs

logger = structlog.get_logger(__name__)


def snapshot_from_text(text: str) -> DocumentSnapshot:
    """One block per line; `plain_text()` of the result returns `text` unchanged."""
    return DocumentSnapshot.from_text(text.replace("\r\n", "\n").replace("\r", "\n"))


def snapshot_from_stream(file_stream: io.BytesIO) -> DocumentSnapshot:
    """
    Builds a snapshot from a DOCX stream: one block per paragraph (table
    cells included, in document order), one text run per visible run.
    """
    try:
        file_stream.seek(0)
        doc = Document(file_stream)

        blocks = []
        for paragraph in iter_paragraphs(doc):
            runs = [TextRun(text=t) for t in (get_run_text(r) for r in iter_visible_runs(paragraph)) if t]
            blocks.append(Block(runs=runs))

        if not blocks:
            blocks.append(Block())
        logger.debug(f"Ingested {len(blocks)} blocks")
        return DocumentSnapshot(blocks=blocks)

    except Exception as e:
        logger.error(f"Text extraction failed: {e}", exc_info=True)
        raise ValueError(f"Could not extract text: {str(e)}") from e


def extract_text_from_stream(file_stream: io.BytesIO) -> str:
    """
    Flat plain text of a DOCX stream.

    CRITICAL: This must match PositionMap's flattening exactly; both go
    through DocumentSnapshot.
    """
    return snapshot_from_stream(file_stream).plain_text()
