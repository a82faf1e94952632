"""Kotlin dialect adapter using tree-sitter.

Kotlin statements carry no terminator, classes are public unless a
visibility modifier says otherwise, and calls are ``call_expression``
nodes whose callee is either a bare identifier or a navigation
expression (``this.startActivity``). Statements are the direct children
of a ``block`` or of a ``lambda_literal``; unbraced if/when/loop bodies
are bare expressions sitting in the control structure itself.
"""

from typing import List, Optional

import tree_sitter
import tree_sitter_kotlin

from ..constants import INTENT_TYPE, LIFECYCLE_OBSERVER_CLASS
from .base import SyntaxDialect, same_node

_KOTLIN_LANGUAGE = tree_sitter.Language(tree_sitter_kotlin.language())

# Control structures whose body may be a single unbraced expression
_BRANCHING_EXPRESSIONS = frozenset({
    "if_expression",
    "while_statement",
    "for_statement",
    "do_while_statement",
    "when_entry",
})

# Token right before a body slot of a control structure
_BODY_OPENERS = frozenset({")", "else", "->", "do"})


class KotlinDialect(SyntaxDialect):
    """tree-sitter based Kotlin adapter."""

    name = "kotlin"
    extensions = (".kt",)
    statement_terminator = ""
    inline_separator = "; "

    CLASS_KINDS = frozenset({"class_declaration"})
    METHOD_KINDS = frozenset({"function_declaration"})
    CALL_KINDS = frozenset({"call_expression"})
    IDENTIFIER_KINDS = frozenset({"identifier"})
    COMMENT_KINDS = frozenset({"line_comment", "block_comment", "multiline_comment"})
    STRING_KINDS = frozenset({"string_literal", "multiline_string_literal", "character_literal"})
    STATEMENT_LIST_KINDS = frozenset({"block", "lambda_literal"})
    BOUNDARY_KINDS = frozenset({
        "class_body",
        "enum_class_body",
        "source_file",
        "function_body",
        "class_declaration",
        "object_declaration",
        "companion_object",
    })
    IMPORT_KINDS = frozenset({"import"})
    PACKAGE_KINDS = frozenset({"package_header"})

    SCOPE_METHOD_KINDS = frozenset({"function_declaration", "secondary_constructor", "anonymous_initializer"})
    SCOPE_BLOCK_KINDS = frozenset({"block", "lambda_literal"})

    STATEMENT_SCAFFOLD = ("fun __scaffold() {\n", "\n}\n")
    MEMBER_SCAFFOLD = ("class __Scaffold {\n", "\n}\n")

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _KOTLIN_LANGUAGE

    # =========================================================================
    # Classes and functions
    # =========================================================================

    def class_name(self, class_node: tree_sitter.Node, source: bytes) -> str:
        return self._get_child_text(class_node, "name", source) or ""

    def is_public(self, class_node: tree_sitter.Node, source: bytes) -> bool:
        modifiers = self._get_child_by_type(class_node, "modifiers")
        if modifiers is None:
            return True
        visibility = self._get_child_by_type(modifiers, "visibility_modifier")
        if visibility is None:
            return True
        text = source[visibility.start_byte:visibility.end_byte].decode("utf-8", errors="replace")
        return text.strip() == "public"

    def class_body(self, class_node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        for child in class_node.children:
            if child.type in ("class_body", "enum_class_body"):
                return child
        return None

    def method_name(self, method: tree_sitter.Node, source: bytes) -> Optional[str]:
        return self._get_child_text(method, "name", source)

    def method_body(self, method: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        body = self._get_child_by_type(method, "function_body")
        if body is None:
            return None
        # ``fun f() = expr`` has no block
        return self._get_child_by_type(body, "block")

    def body_statements(self, body: tree_sitter.Node) -> List[tree_sitter.Node]:
        return [child for child in body.named_children if not self.is_comment(child)]

    def parameter_names(self, method: tree_sitter.Node, source: bytes) -> List[str]:
        parameters = self._get_child_by_type(method, "function_value_parameters")
        if parameters is None:
            return []
        names = []
        for param in parameters.named_children:
            if param.type != "parameter":
                continue
            name = self._get_child_by_type(param, "identifier")
            if name is not None:
                names.append(source[name.start_byte:name.end_byte].decode("utf-8", errors="replace"))
        return names

    # =========================================================================
    # Calls
    # =========================================================================

    def invoked_call(self, identifier: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        parent = identifier.parent
        if parent is None:
            return None
        if parent.type == "call_expression":
            return parent if same_node(parent.children[0], identifier) else None
        if parent.type == "navigation_expression":
            # ``startActivity.foo()`` references the name without invoking it
            if not same_node(parent.named_children[-1], identifier):
                return None
            call = parent.parent
            if call is not None and call.type == "call_expression" and same_node(call.children[0], parent):
                return call
        return None

    def callee_text(self, call: tree_sitter.Node, source: bytes) -> str:
        callee = call.children[0]
        return source[callee.start_byte:callee.end_byte].decode("utf-8", errors="replace")

    def call_arguments(self, call: tree_sitter.Node) -> Optional[List[tree_sitter.Node]]:
        value_arguments = self._get_child_by_type(call, "value_arguments")
        if value_arguments is None:
            return None
        return [child for child in value_arguments.named_children if child.type == "value_argument"]

    def argument_expression(self, argument: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        # Named arguments (``intent = i``) keep the value as the last child
        candidates = [child for child in argument.named_children if not self.is_comment(child)]
        return candidates[-1] if candidates else None

    def statement_expression(self, statement: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        return statement

    # =========================================================================
    # Statement lists
    # =========================================================================

    def is_inline_slot(self, parent: tree_sitter.Node, child: tree_sitter.Node) -> bool:
        if parent.type not in _BRANCHING_EXPRESSIONS:
            return False
        if child.type == "block" or not child.is_named or self.is_comment(child):
            return False
        previous = child.prev_sibling
        while previous is not None and self.is_comment(previous):
            previous = previous.prev_sibling
        return previous is not None and previous.type in _BODY_OPENERS

    def binding_patterns(self, name: str) -> List[str]:
        return [
            f" {name}=",
            f" {name} =",
            f" {name}:",
            f"({name}:",
            f" {name})",
            f" {name},",
            f" {name} ->",
        ]

    # =========================================================================
    # Templates
    # =========================================================================

    def import_statement(self, path: str) -> str:
        return f"import {path}"

    def _lifecycle_observer_expression(self) -> str:
        return f"lifecycle.addObserver({LIFECYCLE_OBSERVER_CLASS}(this))"

    def _extras_access(self, variable: str) -> str:
        return f"{variable}.extras"

    def local_declaration(self, variable: str, expression: str, type_name: str = INTENT_TYPE) -> str:
        return f"val {variable}: {type_name} = {expression}"

    def entry_method_lines(
        self, method_name: str, parameter: str, statements: List[str], indent: str
    ) -> List[str]:
        return [
            f"override fun {method_name}({parameter}: Bundle?) {{",
            *[indent + statement for statement in statements],
            "}",
        ]

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _get_child_text(node: tree_sitter.Node, field_name: str, source: bytes) -> Optional[str]:
        child = node.child_by_field_name(field_name)
        if child:
            return source[child.start_byte:child.end_byte].decode("utf-8", errors="replace")
        return None

    @staticmethod
    def _get_child_by_type(node: tree_sitter.Node, type_name: str) -> Optional[tree_sitter.Node]:
        for child in node.children:
            if child.type == type_name:
                return child
        return None
