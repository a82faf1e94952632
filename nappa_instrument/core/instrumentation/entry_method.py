"""Top-of-method insertion plan for a class's entry method (``onCreate``).

Injectors that need a statement at the top of the entry method add it to
an EntryMethodSlot; the slot renders everything it collected as a single
edit when flushed, so statements planned together keep their order.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional

import tree_sitter

from ..constants import ENTRY_METHOD, ENTRY_METHOD_PARAMETER
from ..errors import StructuralMismatch
from ..syntax.base import normalize_code
from ..syntax.document import EditTransaction, SourceDocument

logger = logging.getLogger(__name__)


class EntryMethodState(Enum):
    ABSENT = "absent"
    EMPTY = "empty"
    POPULATED = "populated"
    BODILESS = "bodiless"  # abstract, or a Kotlin expression body


class EntryMethodSlot:
    """Pending statements for the top of one class's entry method.

    Statement placement by state:
    - ABSENT: a complete overriding method is appended to the class, with
      the base-class call first.
    - EMPTY: the base-class call and the statements fill the body.
    - POPULATED: statements go after the later of a leading base-class call
      and the last body statement matching one of ``follow_markers``; with
      neither present, before the first statement.
    """

    def __init__(
        self,
        document: SourceDocument,
        class_node: tree_sitter.Node,
        method_name: str = ENTRY_METHOD,
        indent_unit: str = "    ",
        follow_markers: Iterable[str] = (),
    ):
        self.document = document
        self.dialect = document.dialect
        self.class_node = class_node
        self.method_name = method_name
        self.indent_unit = indent_unit
        self._follow_markers = {normalize_code(marker) for marker in follow_markers}
        self._pending: List[str] = []
        self.synthesized = False

        self.method = self.dialect.find_method(class_node, method_name, document.source)
        self.body = self.dialect.method_body(self.method) if self.method is not None else None

        if self.method is None:
            self.state = EntryMethodState.ABSENT
        elif self.body is None:
            self.state = EntryMethodState.BODILESS
        elif not self.dialect.body_statements(self.body):
            self.state = EntryMethodState.EMPTY
        else:
            self.state = EntryMethodState.POPULATED

    @property
    def line(self) -> int:
        node = self.method if self.method is not None else self.class_node
        return SourceDocument.line_of(node)

    def add(self, statement: str) -> None:
        if self.state is EntryMethodState.BODILESS:
            raise StructuralMismatch(
                f"{self.method_name} in {self.document.path} has no block body"
            )
        self._pending.append(statement)

    def flush(self, tx: EditTransaction) -> None:
        """Stage the collected statements as one edit."""
        if not self._pending:
            return
        if self.state is EntryMethodState.ABSENT:
            self._append_method(tx)
        elif self.state is EntryMethodState.EMPTY:
            self._fill_body(tx)
        else:
            self._insert_at_top(tx)
        self._pending = []

    # ── Cases ──────────────────────────────────────────────────────────

    def _append_method(self, tx: EditTransaction) -> None:
        dialect = self.dialect
        source = self.document.source
        class_indent = self.document.line_indent(self.class_node.start_byte)
        member_indent = class_indent + self.indent_unit

        statements = [dialect.base_call_statement(self.method_name, ENTRY_METHOD_PARAMETER)] + self._pending
        lines = dialect.entry_method_lines(self.method_name, ENTRY_METHOD_PARAMETER, statements, self.indent_unit)
        fragment = dialect.build_fragment("\n".join(lines), context="member")
        method_text = "\n".join(member_indent + line for line in fragment.text.split("\n"))

        body = dialect.class_body(self.class_node)
        if body is None:
            tx.insert(self.class_node.end_byte, f" {{\n{method_text}\n{class_indent}}}")
        else:
            members = body.named_children
            open_brace = dialect.open_brace(body)
            close_brace = dialect.close_brace(body)
            if open_brace is None or close_brace is None:
                raise StructuralMismatch(f"Class body without braces in {self.document.path}")
            if members:
                tx.insert(members[-1].end_byte, "\n\n" + method_text)
            else:
                interior = source[open_brace.end_byte:close_brace.start_byte]
                text = "\n" + method_text
                if b"\n" not in interior:
                    text += "\n" + class_indent
                tx.insert(open_brace.end_byte, text)

        self.synthesized = True
        logger.debug(f"Synthesized {self.method_name} in {self.document.path}")

    def _fill_body(self, tx: EditTransaction) -> None:
        dialect = self.dialect
        source = self.document.source
        open_brace = dialect.open_brace(self.body)
        close_brace = dialect.close_brace(self.body)
        if open_brace is None or close_brace is None:
            raise StructuralMismatch(f"{self.method_name} body without braces in {self.document.path}")

        parameters = dialect.parameter_names(self.method, source)
        parameter = parameters[0] if parameters else ENTRY_METHOD_PARAMETER
        statements = [dialect.base_call_statement(self.method_name, parameter)] + self._pending

        method_indent = self.document.line_indent(self.method.start_byte)
        statement_indent = method_indent + self.indent_unit
        text = "".join(f"\n{statement_indent}{statement}" for statement in statements)

        interior = source[open_brace.end_byte:close_brace.start_byte]
        if not interior.strip():
            tx.replace_range(open_brace.end_byte, close_brace.start_byte, text + "\n" + method_indent)
        else:
            # Only comments inside; keep them after the new statements
            tx.insert(open_brace.end_byte, text)

    def _insert_at_top(self, tx: EditTransaction) -> None:
        dialect = self.dialect
        source = self.document.source
        statements = dialect.body_statements(self.body)

        anchor: Optional[tree_sitter.Node] = None
        if dialect.is_base_call(statements[0], source, self.method_name):
            anchor = statements[0]
        markers = [
            statement for statement in statements
            if normalize_code(self.document.node_text(statement)) in self._follow_markers
        ]
        if markers and (anchor is None or markers[-1].start_byte > anchor.start_byte):
            anchor = markers[-1]

        if anchor is not None:
            if self.document.starts_line(anchor.start_byte):
                indent = self.document.line_indent(anchor.start_byte)
                text = "".join(f"\n{indent}{statement}" for statement in self._pending)
            else:
                text = "".join(dialect.inline_separator + statement for statement in self._pending)
            tx.insert(anchor.end_byte, text)
            return

        first = statements[0]
        if self.document.starts_line(first.start_byte):
            indent = self.document.line_indent(first.start_byte)
            text = "".join(f"{statement}\n{indent}" for statement in self._pending)
        else:
            text = "".join(statement + dialect.inline_separator for statement in self._pending)
        tx.insert(first.start_byte, text)
