"""Syntax layer: tree-sitter dialects, source documents and edit transactions.

Public API:
    get_dialect(name) → SyntaxDialect
    detect_dialect(file_path) → str | None
    SourceDocument.from_path(path) / SourceDocument.from_source(text, dialect)
    document.transaction(label) → EditTransaction (context manager)
"""

from .base import SyntaxDialect, node_text, normalize_code
from .document import EditTransaction, SourceDocument
from .models import Anchor, Fragment, TextEdit
from .utils import detect_dialect, get_dialect, should_skip_directory

__all__ = [
    "SyntaxDialect",
    "SourceDocument",
    "EditTransaction",
    "Anchor",
    "Fragment",
    "TextEdit",
    "node_text",
    "normalize_code",
    "detect_dialect",
    "get_dialect",
    "should_skip_directory",
]
