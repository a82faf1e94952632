"""Capability interface for the source dialects the engine rewrites.

Defines the Strategy pattern base class that the Java and Kotlin adapters
implement. The instrumentation algorithms are written once against this
interface; grammar-specific node shapes stay in the subclasses.

Capabilities:
- node-kind tests (class, method, call, identifier, comment, string)
- modifier tests (effective public visibility)
- statement-list access (method bodies, statement siblings, anchors)
- template-based fragment factory (statement texts validated by parsing)
"""

import re
from abc import ABC, abstractmethod
from typing import FrozenSet, Iterator, List, Optional, Tuple

import tree_sitter

from ..constants import (
    INTENT_TYPE,
    LIBRARY_INIT_CALL,
    NOTIFY_CALLEE,
)
from ..errors import StructuralMismatch
from .models import Anchor, Fragment

_WHITESPACE = re.compile(r"\s+")


def node_text(node: tree_sitter.Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def normalize_code(text: str) -> str:
    """Collapse code for structural comparison: no whitespace, no trailing ';'."""
    return _WHITESPACE.sub("", text).rstrip(";")


def same_node(a: Optional[tree_sitter.Node], b: Optional[tree_sitter.Node]) -> bool:
    if a is None or b is None:
        return False
    return a.start_byte == b.start_byte and a.end_byte == b.end_byte and a.type == b.type


class SyntaxDialect(ABC):
    """Abstract base for the tree-sitter backed dialect adapters.

    Subclasses declare their node kinds as class attributes and implement
    the grammar-specific navigation and statement templates.
    """

    name: str = ""
    extensions: Tuple[str, ...] = ()

    # Appended to an expression to make it a statement
    statement_terminator: str = ""

    # Separates two statements written on the same line
    inline_separator: str = " "

    CLASS_KINDS: FrozenSet[str] = frozenset()
    METHOD_KINDS: FrozenSet[str] = frozenset()
    CALL_KINDS: FrozenSet[str] = frozenset()
    IDENTIFIER_KINDS: FrozenSet[str] = frozenset()
    COMMENT_KINDS: FrozenSet[str] = frozenset()
    STRING_KINDS: FrozenSet[str] = frozenset()
    STATEMENT_LIST_KINDS: FrozenSet[str] = frozenset()
    BOUNDARY_KINDS: FrozenSet[str] = frozenset()
    IMPORT_KINDS: FrozenSet[str] = frozenset()
    PACKAGE_KINDS: FrozenSet[str] = frozenset()

    # Scopes searched by the unique name allocator, nearest first
    SCOPE_METHOD_KINDS: FrozenSet[str] = frozenset()
    SCOPE_BLOCK_KINDS: FrozenSet[str] = frozenset()

    # (prefix, suffix) wrapped around template text before validation
    STATEMENT_SCAFFOLD: Tuple[str, str] = ("", "")
    MEMBER_SCAFFOLD: Tuple[str, str] = ("", "")

    def __init__(self):
        self._parser = tree_sitter.Parser(self.get_tree_sitter_language())

    @abstractmethod
    def get_tree_sitter_language(self) -> tree_sitter.Language:
        """Return the tree-sitter Language object for this dialect."""
        ...

    def parse(self, source: bytes) -> tree_sitter.Tree:
        return self._parser.parse(source)

    # =========================================================================
    # Node-kind tests
    # =========================================================================

    def is_class(self, node: tree_sitter.Node) -> bool:
        return node.type in self.CLASS_KINDS

    def is_call(self, node: tree_sitter.Node) -> bool:
        return node.type in self.CALL_KINDS

    def is_identifier(self, node: tree_sitter.Node) -> bool:
        return node.type in self.IDENTIFIER_KINDS

    def is_comment(self, node: tree_sitter.Node) -> bool:
        return node.type in self.COMMENT_KINDS

    def is_string(self, node: tree_sitter.Node) -> bool:
        return node.type in self.STRING_KINDS

    def is_statement(self, node: tree_sitter.Node) -> bool:
        """Whether the node's text is already a complete statement."""
        return True

    # =========================================================================
    # Classes and methods
    # =========================================================================

    def top_level_classes(self, root: tree_sitter.Node) -> List[tree_sitter.Node]:
        return [child for child in root.named_children if self.is_class(child)]

    @abstractmethod
    def class_name(self, class_node: tree_sitter.Node, source: bytes) -> str:
        ...

    @abstractmethod
    def is_public(self, class_node: tree_sitter.Node, source: bytes) -> bool:
        """Whether the class is effectively public under the dialect's defaults."""
        ...

    @abstractmethod
    def class_body(self, class_node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        ...

    def methods(self, class_node: tree_sitter.Node) -> List[tree_sitter.Node]:
        body = self.class_body(class_node)
        if body is None:
            return []
        return [child for child in body.named_children if child.type in self.METHOD_KINDS]

    def find_method(
        self, class_node: tree_sitter.Node, method_name: str, source: bytes
    ) -> Optional[tree_sitter.Node]:
        for method in self.methods(class_node):
            if self.method_name(method, source) == method_name:
                return method
        return None

    @abstractmethod
    def method_name(self, method: tree_sitter.Node, source: bytes) -> Optional[str]:
        ...

    @abstractmethod
    def method_body(self, method: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        """Return the braced body of a method, or None if it has none."""
        ...

    @abstractmethod
    def body_statements(self, body: tree_sitter.Node) -> List[tree_sitter.Node]:
        ...

    @abstractmethod
    def parameter_names(self, method: tree_sitter.Node, source: bytes) -> List[str]:
        ...

    @staticmethod
    def open_brace(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        for child in node.children:
            if child.type == "{":
                return child
        return None

    @staticmethod
    def close_brace(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        for child in reversed(node.children):
            if child.type == "}":
                return child
        return None

    # =========================================================================
    # Calls
    # =========================================================================

    @abstractmethod
    def invoked_call(self, identifier: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        """Return the call expression invoking ``identifier``, if it is invoked."""
        ...

    @abstractmethod
    def callee_text(self, call: tree_sitter.Node, source: bytes) -> str:
        ...

    @abstractmethod
    def call_arguments(self, call: tree_sitter.Node) -> Optional[List[tree_sitter.Node]]:
        """Return the positional value arguments, or None without an argument list."""
        ...

    def argument_expression(self, argument: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        return argument

    def is_name_reference(self, expression: tree_sitter.Node) -> bool:
        return self.is_identifier(expression)

    @abstractmethod
    def statement_expression(self, statement: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        """Return the expression a statement evaluates, if it is an expression statement."""
        ...

    def iter_calls(self, node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
        """Yield call nodes under ``node`` in document order, skipping comments and strings."""
        stack = [node]
        while stack:
            current = stack.pop()
            if self.is_comment(current) or self.is_string(current):
                continue
            if self.is_call(current):
                yield current
            stack.extend(reversed(current.children))

    def contains_statement(self, node: tree_sitter.Node, source: bytes, statement: str) -> bool:
        """Whether a call structurally equal to ``statement`` occurs under ``node``."""
        expected = normalize_code(statement)
        return any(
            normalize_code(node_text(call, source)) == expected
            for call in self.iter_calls(node)
        )

    def is_base_call(self, statement: tree_sitter.Node, source: bytes, method_name: str) -> bool:
        """Whether the statement invokes the base-class implementation of ``method_name``."""
        expression = self.statement_expression(statement)
        if expression is None or not self.is_call(expression):
            return False
        return normalize_code(self.callee_text(expression, source)) == f"super.{method_name}"

    # =========================================================================
    # Statement lists
    # =========================================================================

    @abstractmethod
    def is_inline_slot(self, parent: tree_sitter.Node, child: tree_sitter.Node) -> bool:
        """Whether ``child`` is the sole, unbraced body of ``parent``."""
        ...

    def locate_anchor(self, call: tree_sitter.Node) -> Optional[Anchor]:
        """Find the statement that transitively contains ``call``.

        Walks towards the root until the current node sits in a statement
        list (siblings can be inserted) or in an inline slot (the node must
        be replaced by a block). Returns None when a declaration boundary
        is reached first, e.g. a call in a field initializer.
        """
        node = call
        while node.parent is not None:
            parent = node.parent
            if parent.type in self.STATEMENT_LIST_KINDS:
                return Anchor(node=node, inline=False)
            if self.is_inline_slot(parent, node):
                return Anchor(node=node, inline=True)
            if parent.type in self.BOUNDARY_KINDS:
                return None
            node = parent
        return None

    def previous_statement(self, statement: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        sibling = statement.prev_named_sibling
        while sibling is not None and self.is_comment(sibling):
            sibling = sibling.prev_named_sibling
        return sibling

    def enclosing_scope(self, node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        """Nearest enclosing method, or the nearest block when outside any method."""
        method = self._ancestor(node, self.SCOPE_METHOD_KINDS)
        if method is not None:
            return method
        return self._ancestor(node, self.SCOPE_BLOCK_KINDS)

    @staticmethod
    def _ancestor(node: tree_sitter.Node, kinds: FrozenSet[str]) -> Optional[tree_sitter.Node]:
        current = node.parent
        while current is not None:
            if current.type in kinds:
                return current
            current = current.parent
        return None

    @abstractmethod
    def binding_patterns(self, name: str) -> List[str]:
        """Text patterns that indicate ``name`` is already bound in a scope."""
        ...

    # =========================================================================
    # Packages and imports
    # =========================================================================

    def package_name(self, root: tree_sitter.Node, source: bytes) -> str:
        node = self.package_node(root)
        if node is None:
            return ""
        text = node_text(node, source).strip()
        if text.startswith("package"):
            text = text[len("package"):]
        return _WHITESPACE.sub("", text).rstrip(";")

    def package_node(self, root: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        for child in root.children:
            if child.type in self.PACKAGE_KINDS:
                return child
        return None

    def import_nodes(self, root: tree_sitter.Node) -> List[tree_sitter.Node]:
        # Kotlin names both the import node and its keyword token "import"
        return [child for child in root.named_children if child.type in self.IMPORT_KINDS]

    def import_paths(self, root: tree_sitter.Node, source: bytes) -> List[str]:
        """Imported paths, e.g. ``android.os.Bundle`` or ``nl.vu.cs.s2group.nappa.*``."""
        paths = []
        for node in self.import_nodes(root):
            text = node_text(node, source).strip()
            if text.startswith("import"):
                text = text[len("import"):]
            text = text.split(" as ")[0]
            text = _WHITESPACE.sub(" ", text).strip().rstrip(";").strip()
            if text.startswith("static "):
                text = text[len("static "):]
            paths.append(text.replace(" ", ""))
        return paths

    @abstractmethod
    def import_statement(self, path: str) -> str:
        ...

    # =========================================================================
    # Statement templates
    # =========================================================================

    def as_statement(self, expression: str) -> str:
        return expression + self.statement_terminator

    def return_statement(self, expression: str) -> str:
        return self.as_statement(f"return {expression}")

    def yields_lambda_value(self, body: tree_sitter.Node, source: bytes) -> bool:
        """Whether ``body`` is an expression lambda body whose value is consumed.

        A block replacing such a body must end in an explicit return.
        """
        return False

    def lifecycle_observer_statement(self) -> str:
        return self.as_statement(self._lifecycle_observer_expression())

    @abstractmethod
    def _lifecycle_observer_expression(self) -> str:
        ...

    def library_init_statement(self) -> str:
        return self.as_statement(LIBRARY_INIT_CALL)

    def base_call_statement(self, method_name: str, parameter: str) -> str:
        return self.as_statement(f"super.{method_name}({parameter})")

    def notify_statement(self, variable: str) -> str:
        return self.as_statement(f"{NOTIFY_CALLEE}({self._extras_access(variable)})")

    @abstractmethod
    def _extras_access(self, variable: str) -> str:
        ...

    @abstractmethod
    def local_declaration(self, variable: str, expression: str, type_name: str = INTENT_TYPE) -> str:
        ...

    @abstractmethod
    def entry_method_lines(
        self, method_name: str, parameter: str, statements: List[str], indent: str
    ) -> List[str]:
        """Lines of a complete overriding entry method containing ``statements``."""
        ...

    # =========================================================================
    # Fragment factory
    # =========================================================================

    def build_fragment(self, text: str, context: str = "statement") -> Fragment:
        """Validate template text by parsing it inside a dialect scaffold.

        Raises:
            StructuralMismatch: If the text does not parse in that context
        """
        prefix, suffix = self.STATEMENT_SCAFFOLD if context == "statement" else self.MEMBER_SCAFFOLD
        tree = self.parse((prefix + text + suffix).encode("utf-8"))
        if tree.root_node.has_error:
            raise StructuralMismatch(
                f"{self.name} template does not parse as a {context}: {text!r}"
            )
        return Fragment(text=text, context=context)

