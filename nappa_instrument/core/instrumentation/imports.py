"""Import management for instrumented files."""

import logging
from typing import Iterable, List

from ..syntax.document import EditTransaction, SourceDocument

logger = logging.getLogger(__name__)


def is_imported(path: str, existing: Iterable[str]) -> bool:
    """Whether ``path`` is covered by an exact or a parent on-demand import."""
    existing = set(existing)
    if path in existing:
        return True
    if path.endswith(".*"):
        return False
    parent = path.rsplit(".", 1)[0]
    return f"{parent}.*" in existing


def ensure_imports(document: SourceDocument, tx: EditTransaction, paths: Iterable[str]) -> List[str]:
    """Stage imports for every path the document does not import yet.

    Imports go after the last import, else after the package declaration,
    else at the top of the file.

    Returns:
        The paths that were added
    """
    dialect = document.dialect
    source = document.source
    root = document.root
    existing = dialect.import_paths(root, source)

    missing: List[str] = []
    for path in paths:
        if path not in missing and not is_imported(path, existing):
            missing.append(path)
    if not missing:
        return []

    lines = [dialect.import_statement(path) for path in missing]
    imports = dialect.import_nodes(root)
    package = dialect.package_node(root)

    if imports:
        tx.insert(_trimmed_end(source, imports[-1]), "".join("\n" + line for line in lines))
    elif package is not None:
        tx.insert(_trimmed_end(source, package), "\n\n" + "\n".join(lines))
    else:
        tx.insert(0, "\n".join(lines) + "\n\n")

    logger.debug(f"Adding imports {', '.join(missing)} to {document.path}")
    return missing


def _trimmed_end(source: bytes, node) -> int:
    # Kotlin header nodes can include the terminating newline
    return node.start_byte + len(source[node.start_byte:node.end_byte].rstrip())
