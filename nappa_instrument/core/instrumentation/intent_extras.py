"""Intent extras reporting for activity-start call sites.

For every matched call the injector places ``Nappa.notifyExtras(...)``
right before the statement containing the call:

- variable-reference form (``startActivity(intent)``): report only;
- constructed-value form (``startActivity(new Intent(...))``): declare a
  fresh local bound to the expression, report it, and pass the local to
  the call instead.

When the call is the sole body of an expression lambda or an unbraced
branch, there is no statement list to insert into; the body is replaced
by a block holding the new statements followed by the original call,
returned when the body is the value of a lambda with a declared result.
"""

import logging
from typing import List, Optional

import tree_sitter

from ..constants import NOTIFY_CALLEE
from ..errors import StructuralMismatch
from ..syntax.base import normalize_code
from ..syntax.document import EditTransaction, SourceDocument
from .models import CallSite, InstrumentationResult, Outcome, SiteDescriptor
from .naming import UniqueNameAllocator

logger = logging.getLogger(__name__)

CONCERN = "intent_extras"


class IntentExtrasInjector:
    """Plans the reporting edits for one call site at a time."""

    def __init__(
        self,
        allocator: Optional[UniqueNameAllocator] = None,
        variable_base: str = "intent",
        indent_unit: str = "    ",
    ):
        self.allocator = allocator or UniqueNameAllocator()
        self.variable_base = variable_base
        self.indent_unit = indent_unit

    def plan(
        self,
        document: SourceDocument,
        site: CallSite,
        tx: EditTransaction,
        result: InstrumentationResult,
        class_name: str = "",
    ) -> Outcome:
        """Stage the edits for ``site`` in ``tx``.

        Raises:
            StructuralMismatch: If the call is not inside any statement, or
                its edits overlap edits already staged for another site
        """
        dialect = document.dialect
        anchor = dialect.locate_anchor(site.call)
        if anchor is None:
            raise StructuralMismatch(
                f"{site.operation} at {site.file_path}:{site.line} is not inside a statement"
            )

        if not anchor.inline:
            previous = dialect.previous_statement(anchor.node)
            if previous is not None and self._is_notify_call(document, previous):
                logger.debug(f"Extras already reported before {site.operation} at {site.file_path}:{site.line}")
                result.increment_already_instrumented()
                return Outcome.ALREADY_INSTRUMENTED

        argument = site.argument
        declaration: Optional[str] = None
        if dialect.is_name_reference(argument):
            variable = document.node_text(argument)
        else:
            variable = self.allocator.allocate(document, site.call, self.variable_base, tx)
            declaration = dialect.local_declaration(variable, document.node_text(argument))

        statements = [declaration] if declaration else []
        statements.append(dialect.notify_statement(variable))
        statements = [dialect.build_fragment(statement).text for statement in statements]

        if anchor.inline:
            self._encapsulate(document, anchor.node, argument, variable, declaration, statements, tx)
        else:
            self._insert_before(document, anchor.node, argument, variable, declaration, statements, tx)

        result.record_instrumented(SiteDescriptor(
            file_path=site.file_path,
            line=site.line,
            class_name=class_name,
            method_name=self._method_name(document, site.call),
            concern=CONCERN,
            detail=f"{site.operation}: reported {variable}" + (" (declared)" if declaration else ""),
        ))
        return Outcome.INSTRUMENTED

    # ── Edits ──────────────────────────────────────────────────────────

    def _insert_before(
        self,
        document: SourceDocument,
        anchor: tree_sitter.Node,
        argument: tree_sitter.Node,
        variable: str,
        declaration: Optional[str],
        statements: List[str],
        tx: EditTransaction,
    ) -> None:
        if document.starts_line(anchor.start_byte):
            indent = document.line_indent(anchor.start_byte)
            text = "".join(f"{statement}\n{indent}" for statement in statements)
        else:
            text = "".join(statement + document.dialect.inline_separator for statement in statements)

        edits = [(anchor.start_byte, anchor.start_byte, text)]
        if declaration:
            edits.append((argument.start_byte, argument.end_byte, variable))
        tx.stage(edits)

    def _encapsulate(
        self,
        document: SourceDocument,
        anchor: tree_sitter.Node,
        argument: tree_sitter.Node,
        variable: str,
        declaration: Optional[str],
        statements: List[str],
        tx: EditTransaction,
    ) -> None:
        dialect = document.dialect
        source = document.source

        if declaration:
            call_text = (
                source[anchor.start_byte:argument.start_byte].decode("utf-8", errors="replace")
                + variable
                + source[argument.end_byte:anchor.end_byte].decode("utf-8", errors="replace")
            )
        else:
            call_text = document.node_text(anchor)
        if dialect.yields_lambda_value(anchor, source):
            call_text = dialect.return_statement(call_text)
        elif not dialect.is_statement(anchor):
            call_text = dialect.as_statement(call_text)

        outer = document.line_indent(anchor.start_byte)
        inner = outer + self.indent_unit
        body = "".join(f"{inner}{statement}\n" for statement in statements + [call_text])
        tx.stage([(anchor.start_byte, anchor.end_byte, "{\n" + body + outer + "}")])

    # ── Helpers ────────────────────────────────────────────────────────

    @staticmethod
    def _is_notify_call(document: SourceDocument, statement: tree_sitter.Node) -> bool:
        dialect = document.dialect
        expression = dialect.statement_expression(statement)
        if expression is None or not dialect.is_call(expression):
            return False
        callee = dialect.callee_text(expression, document.source)
        return normalize_code(callee) == normalize_code(NOTIFY_CALLEE)

    @staticmethod
    def _method_name(document: SourceDocument, node: tree_sitter.Node) -> str:
        dialect = document.dialect
        current = node.parent
        while current is not None and current.type not in dialect.METHOD_KINDS:
            current = current.parent
        if current is None:
            return "<init>"
        return dialect.method_name(current, document.source) or "<anonymous>"
