"""Scope-local name allocation for synthesized variables."""

import logging
from typing import Optional

import tree_sitter

from ..syntax.document import EditTransaction, SourceDocument

logger = logging.getLogger(__name__)


class UniqueNameAllocator:
    """Pick a variable name that does not textually collide in its scope.

    The scope is the nearest enclosing method (or block, outside methods).
    A candidate collides when one of the dialect's binding patterns for it
    occurs in the scope text, or when the surrounding transaction has
    already handed it out for the same scope.
    """

    def allocate(
        self,
        document: SourceDocument,
        reference: tree_sitter.Node,
        base: str,
        tx: Optional[EditTransaction] = None,
    ) -> str:
        dialect = document.dialect
        scope = dialect.enclosing_scope(reference)
        if scope is None:
            return base

        scope_text = document.node_text(scope)
        reserved = tx.reserved_names(scope) if tx is not None else set()

        suffix = 0
        while True:
            candidate = base if suffix == 0 else f"{base}{suffix}"
            suffix += 1
            if candidate in reserved:
                continue
            if any(pattern in scope_text for pattern in dialect.binding_patterns(candidate)):
                continue
            reserved.add(candidate)
            if candidate != base:
                logger.debug(f"Allocated {candidate} (base {base} taken) in {document.path}")
            return candidate
