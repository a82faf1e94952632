"""Call-site scanning for activity-start operations."""

import logging
from typing import FrozenSet, List, Optional

import tree_sitter

from ..constants import (
    DEFAULT_PAYLOAD_POSITION,
    LEGACY_OPERATION_NAMES,
    LEGACY_PAYLOAD_POSITION,
    OPERATION_FRAGMENT,
    OPERATION_NAMES,
)
from ..syntax.document import SourceDocument
from .models import CallSite, InstrumentationResult

logger = logging.getLogger(__name__)


def payload_position(operation: str) -> int:
    """1-based position of the Intent argument for an operation."""
    if operation in LEGACY_OPERATION_NAMES:
        return LEGACY_PAYLOAD_POSITION
    return DEFAULT_PAYLOAD_POSITION


class CallSiteScanner:
    """Find invocations of the activity-start operations inside a class.

    Depth-first, pre-order walk over the class subtree. Subtrees whose
    text does not mention ``startActivity`` are not descended into, and
    comments and string literals are never inspected.
    """

    def __init__(self, operation_names: FrozenSet[str] = OPERATION_NAMES):
        self.operation_names = operation_names

    def scan(
        self,
        document: SourceDocument,
        class_node: tree_sitter.Node,
        result: InstrumentationResult,
    ) -> List[CallSite]:
        dialect = document.dialect
        source = document.source
        fragment = OPERATION_FRAGMENT.encode("utf-8")
        sites: List[CallSite] = []

        stack = [class_node]
        while stack:
            node = stack.pop()
            result.increment_processed()

            if dialect.is_comment(node) or dialect.is_string(node):
                continue
            if fragment not in source[node.start_byte:node.end_byte]:
                continue

            if dialect.is_identifier(node):
                name = document.node_text(node)
                if name in self.operation_names:
                    call = dialect.invoked_call(node)
                    if call is not None:
                        site = self._match(document, node, call, name, result)
                        if site is not None:
                            sites.append(site)

            stack.extend(reversed(node.children))

        return sites

    def _match(
        self,
        document: SourceDocument,
        identifier: tree_sitter.Node,
        call: tree_sitter.Node,
        operation: str,
        result: InstrumentationResult,
    ) -> Optional[CallSite]:
        dialect = document.dialect
        result.increment_possible()
        line = SourceDocument.line_of(call)

        position = payload_position(operation)
        arguments = dialect.call_arguments(call)
        if arguments is None or len(arguments) < position:
            logger.debug(
                f"Skipping {operation} at {document.path}:{line}: "
                f"no argument at position {position}"
            )
            return None

        argument = dialect.argument_expression(arguments[position - 1])
        if argument is None:
            return None

        return CallSite(
            file_path=document.path,
            operation=operation,
            identifier=identifier,
            call=call,
            argument=argument,
            position=position,
            line=line,
        )
