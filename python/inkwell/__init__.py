from importlib.metadata import PackageNotFoundError, version

from inkwell.analyzer import analyze
from inkwell.annotate.mapper import PositionMap, build_position_map
from inkwell.annotate.projector import project
from inkwell.annotate.remap import remap
from inkwell.ingest import extract_text_from_stream, snapshot_from_stream, snapshot_from_text
from inkwell.markup import render_suggestions_as_markup
from inkwell.models import Caret, Category, Decoration, DocumentSnapshot, Suggestion, TreePosition
from inkwell.normalizer import normalize
from inkwell.session import AnnotationSession

try:
    __version__ = version("inkwell")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "AnnotationSession",
    "PositionMap",
    "build_position_map",
    "analyze",
    "normalize",
    "project",
    "remap",
    "snapshot_from_text",
    "snapshot_from_stream",
    "extract_text_from_stream",
    "render_suggestions_as_markup",
    "Caret",
    "Category",
    "Decoration",
    "DocumentSnapshot",
    "Suggestion",
    "TreePosition",
    "__version__",
]
