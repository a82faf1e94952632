"""Tests for the syntax layer: dialects, documents and edit transactions."""

import pytest

from nappa_instrument.core.errors import EditConflict, HostMutationFailure, StructuralMismatch
from nappa_instrument.core.syntax import SourceDocument, detect_dialect, get_dialect, normalize_code
from nappa_instrument.core.syntax.models import TextEdit
from nappa_instrument.core.syntax.utils import should_skip_directory


# =========================================================================
# Sample sources
# =========================================================================

SIMPLE_JAVA = """package com.example;

import android.content.Intent;
import nl.vu.cs.s2group.nappa.*;

public class Greeter {
    void greet() {
        hello();
    }
}

class Helper {
}
"""

SIMPLE_KOTLIN = """package com.example.app

import android.os.Bundle

class Visible

private class Hidden

internal class Module

public class Explicit
"""

KOTLIN_ACTIVITY = """package com.example.app

import android.content.Intent
import nl.vu.cs.s2group.nappa.*
import com.example.app.util.Router as R

class Home : AppCompatActivity() {
    override fun onCreate(savedInstanceState: Bundle?) {
        super.onCreate(savedInstanceState)
        if (ready) go(intent)
        button.setOnClickListener { go(intent) }
    }

    fun label() = "home"
}
"""


def _find(node, predicate):
    stack = [node]
    while stack:
        current = stack.pop()
        if predicate(current):
            return current
        stack.extend(reversed(current.children))
    return None


# =========================================================================
# Tests: dialect registry
# =========================================================================

class TestDialectDetection:
    def test_java(self):
        assert detect_dialect("app/src/Main.java") == "java"

    def test_kotlin(self):
        assert detect_dialect("app/src/Main.kt") == "kotlin"

    def test_unknown(self):
        assert detect_dialect("build.gradle") is None

    def test_registry_caches_instances(self):
        assert get_dialect("java") is get_dialect("java")

    def test_unsupported_dialect(self):
        with pytest.raises(ValueError):
            get_dialect("scala")

    def test_skip_directories(self):
        assert should_skip_directory("build")
        assert should_skip_directory(".gradle")
        assert not should_skip_directory("src")


# =========================================================================
# Tests: dialect queries
# =========================================================================

class TestJavaDialect:
    def test_top_level_classes(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        classes = doc.dialect.top_level_classes(doc.root)
        names = [doc.dialect.class_name(c, doc.source) for c in classes]
        assert names == ["Greeter", "Helper"]

    def test_visibility(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        greeter, helper = doc.dialect.top_level_classes(doc.root)
        assert doc.dialect.is_public(greeter, doc.source)
        assert not doc.dialect.is_public(helper, doc.source)

    def test_package_and_imports(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        assert doc.dialect.package_name(doc.root, doc.source) == "com.example"
        assert doc.dialect.import_paths(doc.root, doc.source) == [
            "android.content.Intent",
            "nl.vu.cs.s2group.nappa.*",
        ]

    def test_find_method(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        greeter = doc.dialect.top_level_classes(doc.root)[0]
        method = doc.dialect.find_method(greeter, "greet", doc.source)
        assert method is not None
        assert doc.dialect.find_method(greeter, "onCreate", doc.source) is None

    def test_build_fragment(self):
        dialect = get_dialect("java")
        fragment = dialect.build_fragment(dialect.lifecycle_observer_statement())
        assert fragment.text == "getLifecycle().addObserver(new NappaLifecycleObserver(this));"

    def test_build_fragment_rejects_broken_text(self):
        with pytest.raises(StructuralMismatch):
            get_dialect("java").build_fragment("foo(;")


class TestKotlinDialect:
    def test_effective_visibility(self):
        doc = SourceDocument.from_source(SIMPLE_KOTLIN, "kotlin")
        classes = doc.dialect.top_level_classes(doc.root)
        visibility = {
            doc.dialect.class_name(c, doc.source): doc.dialect.is_public(c, doc.source)
            for c in classes
        }
        assert visibility == {
            "Visible": True,
            "Hidden": False,
            "Module": False,
            "Explicit": True,
        }

    def test_package_and_imports(self):
        doc = SourceDocument.from_source(SIMPLE_KOTLIN, "kotlin")
        assert doc.dialect.package_name(doc.root, doc.source) == "com.example.app"
        assert doc.dialect.import_paths(doc.root, doc.source) == ["android.os.Bundle"]

    def test_statement_templates(self):
        dialect = get_dialect("kotlin")
        assert dialect.notify_statement("intent") == "Nappa.notifyExtras(intent.extras)"
        assert dialect.local_declaration("intent", "make()") == "val intent: Intent = make()"
        dialect.build_fragment(dialect.library_init_statement())

    def test_wildcard_and_aliased_imports(self):
        doc = SourceDocument.from_source(KOTLIN_ACTIVITY, "kotlin")
        assert doc.dialect.import_paths(doc.root, doc.source) == [
            "android.content.Intent",
            "nl.vu.cs.s2group.nappa.*",
            "com.example.app.util.Router",
        ]

    def test_block_body_statements(self):
        doc = SourceDocument.from_source(KOTLIN_ACTIVITY, "kotlin")
        dialect = doc.dialect
        home = dialect.top_level_classes(doc.root)[0]
        method = dialect.find_method(home, "onCreate", doc.source)

        statements = dialect.body_statements(dialect.method_body(method))

        assert len(statements) == 3
        assert dialect.is_base_call(statements[0], doc.source, "onCreate")
        assert dialect.parameter_names(method, doc.source) == ["savedInstanceState"]

    def test_expression_body_has_no_block(self):
        doc = SourceDocument.from_source(KOTLIN_ACTIVITY, "kotlin")
        home = doc.dialect.top_level_classes(doc.root)[0]
        label = doc.dialect.find_method(home, "label", doc.source)
        assert label is not None
        assert doc.dialect.method_body(label) is None

    def test_anchors_for_branch_and_lambda(self):
        doc = SourceDocument.from_source(KOTLIN_ACTIVITY, "kotlin")
        dialect = doc.dialect
        calls = [
            call for call in dialect.iter_calls(doc.root)
            if dialect.callee_text(call, doc.source) == "go"
        ]

        branch, lambda_call = (dialect.locate_anchor(call) for call in calls)

        assert branch.inline
        assert doc.node_text(branch.node) == "go(intent)"
        assert not lambda_call.inline
        assert lambda_call.node.parent.type == "lambda_literal"


class TestNormalizeCode:
    def test_ignores_whitespace_and_terminator(self):
        assert normalize_code("Nappa.init( this,\n  X );") == normalize_code("Nappa.init(this, X)")


# =========================================================================
# Tests: edits and transactions
# =========================================================================

class TestTextEdit:
    def test_insertions_never_conflict(self):
        assert not TextEdit(5, 5, "a").conflicts_with(TextEdit(5, 5, "b"))

    def test_insertion_at_replacement_edge(self):
        replacement = TextEdit(5, 10, "x")
        assert not TextEdit(5, 5, "a").conflicts_with(replacement)
        assert not TextEdit(10, 10, "a").conflicts_with(replacement)
        assert TextEdit(7, 7, "a").conflicts_with(replacement)

    def test_overlapping_replacements(self):
        assert TextEdit(0, 6, "x").conflicts_with(TextEdit(5, 10, "y"))
        assert not TextEdit(0, 5, "x").conflicts_with(TextEdit(5, 10, "y"))


class TestTransactions:
    def _hello_call(self, doc):
        return _find(doc.root, lambda n: n.type == "expression_statement")

    def test_commit_applies_edits_and_reparses(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        statement = self._hello_call(doc)
        with doc.transaction("insert") as tx:
            tx.insert(statement.start_byte, "world();\n        ")

        assert "world();\n        hello();" in doc.text
        assert doc.version == 1
        assert doc.modified
        assert not doc.root.has_error

    def test_same_offset_insertions_keep_order(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        statement = self._hello_call(doc)
        with doc.transaction() as tx:
            tx.insert(statement.start_byte, "first();")
            tx.insert(statement.start_byte, "second();")

        assert "first();second();hello();" in doc.text

    def test_conflicting_stage_is_all_or_nothing(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        statement = self._hello_call(doc)
        with doc.transaction() as tx:
            tx.replace(statement, "bye();")
            with pytest.raises(EditConflict):
                tx.stage([
                    (0, 0, "// header\n"),
                    (statement.start_byte + 1, statement.start_byte + 1, "x"),
                ])
            assert len(tx.edits) == 1

        assert "bye();" in doc.text
        assert "// header" not in doc.text

    def test_unparseable_commit_leaves_document_untouched(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        statement = self._hello_call(doc)
        with pytest.raises(HostMutationFailure):
            with doc.transaction("break") as tx:
                tx.replace(statement, "hello(;")

        assert doc.text == SIMPLE_JAVA
        assert doc.version == 0
        assert not doc.modified

    def test_exception_discards_edits(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        with pytest.raises(KeyError):
            with doc.transaction() as tx:
                tx.insert(0, "// discarded\n")
                raise KeyError("boom")

        assert doc.text == SIMPLE_JAVA

    def test_nested_transaction_refused(self):
        doc = SourceDocument.from_source(SIMPLE_JAVA, "java")
        with doc.transaction("outer"):
            with pytest.raises(RuntimeError):
                with doc.transaction("inner"):
                    pass

        # The document is usable again once the outer transaction closed
        with doc.transaction("after") as tx:
            tx.insert(0, "// ok\n")
        assert doc.text.startswith("// ok\n")

    def test_save_writes_modified_document(self, tmp_path):
        path = tmp_path / "Greeter.java"
        path.write_text(SIMPLE_JAVA)
        doc = SourceDocument.from_path(str(path))
        assert not doc.save()

        with doc.transaction() as tx:
            tx.insert(0, "// saved\n")
        assert doc.save()
        assert path.read_text().startswith("// saved\n")
