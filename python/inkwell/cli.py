import argparse
import json
import logging
import sys
from io import BytesIO
from pathlib import Path

import structlog

from inkwell import __version__
from inkwell.config import EngineSettings
from inkwell.ingest import snapshot_from_stream, snapshot_from_text
from inkwell.markup import render_suggestions_as_markup
from inkwell.models import Caret, Category, DocumentSnapshot
from inkwell.session import AnnotationSession


def _configure_logging(verbose: bool):
    # Logs go to stderr; stdout carries the command's output.
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(stream=sys.stderr, level=level, force=True)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _read_snapshot(path: Path) -> DocumentSnapshot:
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)

    if path.suffix.lower() == ".docx":
        with open(path, "rb") as f:
            stream = BytesIO(f.read())
        try:
            return snapshot_from_stream(stream)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    with open(path, "r", encoding="utf-8") as f:
        return snapshot_from_text(f.read())


def _settings_from_args(args) -> EngineSettings:
    try:
        return EngineSettings.from_env(max_spelling_candidates=args.max_candidates)
    except ValueError as e:
        print(f"Error: invalid settings: {e}", file=sys.stderr)
        sys.exit(1)


def handle_extract(args):
    text = _read_snapshot(args.input).plain_text()
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Extracted text to {args.output}", file=sys.stderr)
    else:
        print(text)


def handle_check(args):
    snapshot = _read_snapshot(args.input)
    session = AnnotationSession(snapshot, settings=_settings_from_args(args))
    session.recheck()
    if args.caret is not None:
        if args.caret < 0:
            print("Error: --caret must be a non-negative offset", file=sys.stderr)
            sys.exit(1)
        session.set_caret(Caret(flat_offset=args.caret))

    suggestions = session.suggestions
    if args.category:
        suggestions = session.suggestions_for(Category(args.category))

    if args.json:
        shown = {s.id for s in suggestions}
        output = {
            "suggestions": [s.model_dump(mode="json", by_alias=True) for s in suggestions],
            "decorations": [
                d.model_dump(mode="json", by_alias=True) for d in session.decorations if d.suggestion_id in shown
            ],
        }
        print(json.dumps(output, indent=2))
    elif args.markup:
        print(render_suggestions_as_markup(session.plain_text, suggestions, include_id=args.index))
    else:
        print(f"Found {len(suggestions)} suggestions:", file=sys.stderr)
        text = session.plain_text
        for s in suggestions:
            end = s.flat_offset + s.length if s.length else s.flat_offset + 1
            fix = f" -> {', '.join(s.candidates)}" if s.candidates else ""
            print(f"[{s.category.value}] {s.flat_offset}: {s.title} '{text[s.flat_offset:end]}'{fix}")


def main():
    parser = argparse.ArgumentParser(prog="inkwell", description="Inkwell: writing suggestion engine")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Subcommands")

    p_extract = subparsers.add_parser("extract", help="Extract the flat plain text of a document")
    p_extract.add_argument("input", type=Path, help="Input DOCX, text or Markdown file")
    p_extract.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_extract.set_defaults(func=handle_extract)

    p_check = subparsers.add_parser("check", help="Check a document and list suggestions")
    p_check.add_argument("input", type=Path, help="Input DOCX, text or Markdown file")
    output_mode = p_check.add_mutually_exclusive_group()
    output_mode.add_argument("--json", action="store_true", help="Output suggestions and decorations as JSON")
    output_mode.add_argument(
        "--markup",
        action="store_true",
        help="Output the text with suggestions highlighted as CriticMarkup",
    )
    p_check.add_argument("-i", "--index", action="store_true", help="Include suggestion ids in markup output")
    p_check.add_argument("--caret", type=int, help="Flat offset of a collapsed caret; suppresses the word being typed")
    p_check.add_argument(
        "--category",
        choices=[c.value for c in Category],
        help="Only show suggestions of this category",
    )
    p_check.add_argument("--max-candidates", type=int, help="Replacement candidates per spelling issue")
    p_check.set_defaults(func=handle_check)

    args = parser.parse_args()
    _configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
