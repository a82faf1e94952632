"""Java dialect adapter using tree-sitter.

Maps tree-sitter-java node shapes onto the SyntaxDialect capabilities:
class declarations and their modifiers, method bodies, method
invocations with positional argument lists, and the inline slots
(expression lambdas, unbraced if/else/loop branches, switch rules).
"""

from typing import List, Optional

import tree_sitter
import tree_sitter_java

from ..constants import INTENT_TYPE, LIFECYCLE_OBSERVER_CLASS
from .base import SyntaxDialect, node_text, same_node

_JAVA_LANGUAGE = tree_sitter.Language(tree_sitter_java.language())

# Statements whose body slot may hold a single unbraced statement
_BRANCHING_STATEMENTS = frozenset({
    "if_statement",
    "while_statement",
    "for_statement",
    "enhanced_for_statement",
    "do_statement",
})

# Functional interfaces whose single method returns a value
_VALUE_FUNCTIONAL_TYPES = frozenset({
    "Callable",
    "Supplier",
    "BooleanSupplier",
    "Function",
    "BiFunction",
    "Predicate",
    "BiPredicate",
})


class JavaDialect(SyntaxDialect):
    """tree-sitter based Java adapter.

    Java classes are package-private unless declared ``public``, so only
    an explicit ``public`` modifier makes a class eligible.
    """

    name = "java"
    extensions = (".java",)
    statement_terminator = ";"
    inline_separator = " "

    CLASS_KINDS = frozenset({"class_declaration"})
    METHOD_KINDS = frozenset({"method_declaration"})
    CALL_KINDS = frozenset({"method_invocation"})
    IDENTIFIER_KINDS = frozenset({"identifier"})
    COMMENT_KINDS = frozenset({"line_comment", "block_comment", "comment"})
    STRING_KINDS = frozenset({"string_literal", "text_block", "character_literal"})
    STATEMENT_LIST_KINDS = frozenset({"block", "constructor_body", "switch_block_statement_group"})
    BOUNDARY_KINDS = frozenset({"class_body", "interface_body", "enum_body", "program"})
    IMPORT_KINDS = frozenset({"import_declaration"})
    PACKAGE_KINDS = frozenset({"package_declaration"})

    SCOPE_METHOD_KINDS = frozenset({"method_declaration", "constructor_declaration"})
    SCOPE_BLOCK_KINDS = frozenset({"block", "static_initializer"})

    STATEMENT_SCAFFOLD = ("class __Scaffold {\n    void __scaffold() {\n", "\n    }\n}\n")
    MEMBER_SCAFFOLD = ("class __Scaffold {\n", "\n}\n")

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _JAVA_LANGUAGE

    def is_statement(self, node: tree_sitter.Node) -> bool:
        return node.type.endswith("statement") or node.type == "local_variable_declaration"

    # =========================================================================
    # Classes and methods
    # =========================================================================

    def class_name(self, class_node: tree_sitter.Node, source: bytes) -> str:
        return self._get_child_text(class_node, "name", source) or ""

    def is_public(self, class_node: tree_sitter.Node, source: bytes) -> bool:
        modifiers = self._get_child_by_type(class_node, "modifiers")
        if modifiers is None:
            return False
        return any(child.type == "public" for child in modifiers.children)

    def class_body(self, class_node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        return class_node.child_by_field_name("body")

    def method_name(self, method: tree_sitter.Node, source: bytes) -> Optional[str]:
        return self._get_child_text(method, "name", source)

    def method_body(self, method: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        body = method.child_by_field_name("body")
        if body is not None and body.type == "block":
            return body
        return None

    def body_statements(self, body: tree_sitter.Node) -> List[tree_sitter.Node]:
        return [child for child in body.named_children if not self.is_comment(child)]

    def parameter_names(self, method: tree_sitter.Node, source: bytes) -> List[str]:
        parameters = method.child_by_field_name("parameters")
        if parameters is None:
            return []
        names = []
        for param in parameters.named_children:
            if param.type in ("formal_parameter", "spread_parameter"):
                name = self._get_child_text(param, "name", source)
                if name:
                    names.append(name)
        return names

    # =========================================================================
    # Calls
    # =========================================================================

    def invoked_call(self, identifier: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        parent = identifier.parent
        if parent is None or parent.type != "method_invocation":
            return None
        # ``startActivity.foo()`` references the name without invoking it
        if not same_node(parent.child_by_field_name("name"), identifier):
            return None
        return parent

    def callee_text(self, call: tree_sitter.Node, source: bytes) -> str:
        arguments = call.child_by_field_name("arguments")
        end = arguments.start_byte if arguments is not None else call.end_byte
        return source[call.start_byte:end].decode("utf-8", errors="replace")

    def call_arguments(self, call: tree_sitter.Node) -> Optional[List[tree_sitter.Node]]:
        arguments = call.child_by_field_name("arguments")
        if arguments is None:
            return None
        return [child for child in arguments.named_children if not self.is_comment(child)]

    def statement_expression(self, statement: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        if statement.type != "expression_statement" or not statement.named_children:
            return None
        return statement.named_children[0]

    # =========================================================================
    # Statement lists
    # =========================================================================

    def is_inline_slot(self, parent: tree_sitter.Node, child: tree_sitter.Node) -> bool:
        if child.type == "block":
            return False
        if parent.type == "lambda_expression":
            return same_node(parent.child_by_field_name("body"), child)
        if parent.type in _BRANCHING_STATEMENTS:
            return any(
                same_node(parent.child_by_field_name(field_name), child)
                for field_name in ("consequence", "alternative", "body")
            )
        if parent.type == "switch_rule":
            return child.type == "expression_statement"
        return False

    def yields_lambda_value(self, body: tree_sitter.Node, source: bytes) -> bool:
        # Only a declared target type tells a value lambda from a void one;
        # lambdas passed as arguments are treated as void-compatible
        lambda_node = body.parent
        if lambda_node is None or lambda_node.type != "lambda_expression":
            return False
        if not same_node(lambda_node.child_by_field_name("body"), body):
            return False
        declarator = lambda_node.parent
        if declarator is None or declarator.type != "variable_declarator":
            return False
        declaration = declarator.parent
        type_node = declaration.child_by_field_name("type") if declaration is not None else None
        if type_node is None:
            return False
        type_name = node_text(type_node, source).split("<")[0].strip().rsplit(".", 1)[-1]
        return type_name in _VALUE_FUNCTIONAL_TYPES

    def binding_patterns(self, name: str) -> List[str]:
        return [
            f" {name}=",
            f" {name} =",
            f" {name};",
            f" {name})",
            f" {name},",
        ]

    # =========================================================================
    # Templates
    # =========================================================================

    def import_statement(self, path: str) -> str:
        return f"import {path};"

    def _lifecycle_observer_expression(self) -> str:
        return f"getLifecycle().addObserver(new {LIFECYCLE_OBSERVER_CLASS}(this))"

    def _extras_access(self, variable: str) -> str:
        return f"{variable}.getExtras()"

    def local_declaration(self, variable: str, expression: str, type_name: str = INTENT_TYPE) -> str:
        return f"{type_name} {variable} = {expression};"

    def entry_method_lines(
        self, method_name: str, parameter: str, statements: List[str], indent: str
    ) -> List[str]:
        return [
            "@Override",
            f"protected void {method_name}(Bundle {parameter}) {{",
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
