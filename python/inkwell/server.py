import json
import logging
import sys
from io import BytesIO
from pathlib import Path
from typing import List, Optional

import structlog
from mcp.server.fastmcp import FastMCP

from inkwell.annotate.mapper import build_position_map
from inkwell.annotate.projector import project
from inkwell.config import EngineSettings
from inkwell.ingest import snapshot_from_stream, snapshot_from_text
from inkwell.markup import render_suggestions_as_markup
from inkwell.models import Caret, Category, DocumentSnapshot, Suggestion
from inkwell.session import AnnotationSession

# --- LOGGING CONFIGURATION ---
# MCP communicates over stdio.
# CRITICAL: All logs must go to stderr. Any print to stdout will break the JSON-RPC protocol.
logging.basicConfig(stream=sys.stderr, level=logging.INFO, force=True)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

mcp = FastMCP("Inkwell Suggestion Service")


def _read_file_bytes(path: str) -> BytesIO:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(p, "rb") as f:
        return BytesIO(f.read())


def _check(snapshot: DocumentSnapshot, caret_offset: Optional[int] = None) -> AnnotationSession:
    session = AnnotationSession(snapshot, settings=EngineSettings.from_env())
    session.recheck()
    if caret_offset is not None:
        session.set_caret(Caret(flat_offset=caret_offset))
    return session


def _dump(session: AnnotationSession, category: Optional[str]) -> str:
    suggestions = session.suggestions
    if category:
        suggestions = session.suggestions_for(Category(category))
    shown = {s.id for s in suggestions}
    return json.dumps(
        {
            "suggestions": [s.model_dump(mode="json", by_alias=True) for s in suggestions],
            "decorations": [
                d.model_dump(mode="json", by_alias=True) for d in session.decorations if d.suggestion_id in shown
            ],
        },
        indent=2,
    )


@mcp.tool()
def check_text(text: str, caret_offset: Optional[int] = None, category: Optional[str] = None) -> str:
    """
    Runs the rule-based checks over plain text and returns suggestions and
    highlight decorations as JSON.

    Args:
        text: The document text. Newlines separate blocks (paragraphs).
        caret_offset: Optional flat offset of a collapsed caret. Highlights from
                      the start of the word being typed onwards are withheld.
        category: Optional filter: Correctness, Clarity, Engagement or Delivery.
    """
    try:
        return _dump(_check(snapshot_from_text(text), caret_offset), category)
    except Exception as e:
        return f"Error checking text: {str(e)}"


@mcp.tool()
def check_docx(file_path: str, markup: bool = False, include_id: bool = False) -> str:
    """
    Checks a DOCX file.

    Args:
        file_path: Absolute path to the DOCX file.
        markup: If False (default), returns suggestions and decorations as JSON.
                If True, returns the document text with each suggestion highlighted
                as CriticMarkup: {==flagged text==}{>>Title: explanation<<}
        include_id: In markup mode, append each suggestion's id as [id].
    """
    try:
        snapshot = snapshot_from_stream(_read_file_bytes(file_path))
        session = _check(snapshot)
        if markup:
            return render_suggestions_as_markup(session.plain_text, session.suggestions, include_id=include_id)
        return _dump(session, None)
    except FileNotFoundError:
        return f"Error: File not found: {file_path}"
    except Exception as e:
        return f"Error checking file: {str(e)}"


@mcp.tool()
def project_decorations(
    text: str,
    suggestions: List[Suggestion],
    caret_offset: Optional[int] = None,
    highlighted_id: Optional[str] = None,
) -> str:
    """
    Converts suggestions (e.g. from an external reviewer) into highlight
    decorations for the given text, without running any checks.

    Args:
        text: The document text the suggestions' offsets refer to.
        suggestions: Suggestions with id, category, title, index (flat offset)
                     and optional length. A missing length extends the highlight
                     to the end of the sentence.
        caret_offset: Optional flat offset of a collapsed caret.
        highlighted_id: Optional id of a suggestion to emphasise.
    """
    try:
        settings = EngineSettings.from_env()
        position_map = build_position_map(snapshot_from_text(text))
        caret = Caret(flat_offset=caret_offset) if caret_offset is not None else None
        decorations = project(
            suggestions,
            position_map,
            position_map.plain_text,
            caret=caret,
            style_classes=settings.style_classes,
            highlighted_id=highlighted_id,
            highlight_class=settings.highlight_class,
        )
        return json.dumps([d.model_dump(mode="json", by_alias=True) for d in decorations], indent=2)
    except Exception as e:
        return f"Error projecting decorations: {str(e)}"


def main():
    mcp.run()


if __name__ == "__main__":
    main()
