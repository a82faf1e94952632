"""Tests for lifecycle observer injection (the ``activities`` action, non-launcher)."""

from nappa_instrument.core.instrumentation import ActivityInstrumentation, InstrumentationResult
from nappa_instrument.core.settings import InstrumentSettings
from nappa_instrument.core.syntax import SourceDocument


JAVA_OBSERVER = "getLifecycle().addObserver(new NappaLifecycleObserver(this));"
KOTLIN_OBSERVER = "lifecycle.addObserver(NappaLifecycleObserver(this))"


# =========================================================================
# Java fixtures: one per entry-method case
# =========================================================================

JAVA_NO_ON_CREATE = """package com.example;

import android.os.Bundle;

public class MainActivity extends AppCompatActivity {
    private int count;
}
"""

JAVA_EMPTY_ON_CREATE = """package com.example;

public class MainActivity extends AppCompatActivity {
    @Override
    protected void onCreate(Bundle state) {
    }
}
"""

JAVA_BASE_CALL_FIRST = """package com.example;

public class MainActivity extends AppCompatActivity {
    @Override
    protected void onCreate(Bundle b) {
        super.onCreate(b);
        setContentView(R.layout.main);
    }
}
"""

JAVA_NO_BASE_CALL = """package com.example;

public class MainActivity extends AppCompatActivity {
    @Override
    protected void onCreate(Bundle b) {
        setContentView(R.layout.main);
        super.onCreate(b);
    }
}
"""

JAVA_PACKAGE_PRIVATE = """package com.example;

class HiddenActivity extends AppCompatActivity {
    @Override
    protected void onCreate(Bundle b) {
        super.onCreate(b);
    }
}
"""

JAVA_ABSTRACT_ON_CREATE = """package com.example;

public abstract class BaseActivity extends AppCompatActivity {
    protected abstract void onCreate(Bundle b);
}
"""

# =========================================================================
# Kotlin fixtures
# =========================================================================

KOTLIN_BASE_CALL_FIRST = """package com.example

import android.os.Bundle

class MainActivity : AppCompatActivity() {
    override fun onCreate(savedInstanceState: Bundle?) {
        super.onCreate(savedInstanceState)
        setContentView(R.layout.main)
    }
}
"""

KOTLIN_NO_ON_CREATE = """package com.example

import androidx.appcompat.app.AppCompatActivity

class SecondActivity : AppCompatActivity() {
}
"""

KOTLIN_EMPTY_ON_CREATE = """package com.example

class MainActivity : AppCompatActivity() {
    override fun onCreate(savedInstanceState: Bundle?) {
    }
}
"""

KOTLIN_NO_BASE_CALL = """package com.example

class MainActivity : AppCompatActivity() {
    override fun onCreate(savedInstanceState: Bundle?) {
        setContentView(R.layout.main)
        super.onCreate(savedInstanceState)
    }
}
"""

KOTLIN_EXPRESSION_ON_CREATE = """package com.example

class MainActivity : AppCompatActivity() {
    override fun onCreate(savedInstanceState: Bundle?) = super.onCreate(savedInstanceState)
}
"""

KOTLIN_PRIVATE = """package com.example

private class HiddenActivity : AppCompatActivity() {
    override fun onCreate(savedInstanceState: Bundle?) {
        super.onCreate(savedInstanceState)
    }
}
"""


def _instrument(source, dialect, is_launcher=False):
    doc = SourceDocument.from_source(source, dialect)
    result = InstrumentationResult()
    ActivityInstrumentation(InstrumentSettings()).instrument_document(doc, is_launcher, result)
    return doc, result


# =========================================================================
# Tests: Java
# =========================================================================

class TestJavaLifecycleCases:
    def test_absent_on_create_is_synthesized(self):
        doc, result = _instrument(JAVA_NO_ON_CREATE, "java")

        assert (
            "    private int count;\n"
            "\n"
            "    @Override\n"
            "    protected void onCreate(Bundle savedInstanceState) {\n"
            "        super.onCreate(savedInstanceState);\n"
            f"        {JAVA_OBSERVER}\n"
            "    }\n"
            "}\n"
        ) in doc.text
        assert result.instrumented_count == 1
        assert result.possible_count == 1
        assert not doc.root.has_error

    def test_absent_on_create_keeps_existing_bundle_import(self):
        doc, _ = _instrument(JAVA_NO_ON_CREATE, "java")
        assert doc.text.count("import android.os.Bundle;") == 1
        assert "import android.os.Bundle;\nimport nl.vu.cs.s2group.nappa.*;" in doc.text

    def test_empty_on_create_gets_base_call_and_observer(self):
        doc, result = _instrument(JAVA_EMPTY_ON_CREATE, "java")

        assert (
            "protected void onCreate(Bundle state) {\n"
            "        super.onCreate(state);\n"
            f"        {JAVA_OBSERVER}\n"
            "    }"
        ) in doc.text
        assert result.instrumented_count == 1

    def test_observer_follows_base_call(self):
        doc, _ = _instrument(JAVA_BASE_CALL_FIRST, "java")

        assert (
            "        super.onCreate(b);\n"
            f"        {JAVA_OBSERVER}\n"
            "        setContentView(R.layout.main);"
        ) in doc.text

    def test_observer_before_first_statement_without_base_call(self):
        doc, _ = _instrument(JAVA_NO_BASE_CALL, "java")

        assert (
            "    protected void onCreate(Bundle b) {\n"
            f"        {JAVA_OBSERVER}\n"
            "        setContentView(R.layout.main);"
        ) in doc.text

    def test_library_import_added_after_package(self):
        doc, _ = _instrument(JAVA_BASE_CALL_FIRST, "java")
        assert doc.text.startswith("package com.example;\n\nimport nl.vu.cs.s2group.nappa.*;\n\npublic class")


class TestJavaLifecycleGating:
    def test_idempotent(self):
        doc, first = _instrument(JAVA_BASE_CALL_FIRST, "java")
        once = doc.text

        second = InstrumentationResult()
        ActivityInstrumentation(InstrumentSettings()).instrument_document(doc, False, second)

        assert doc.text == once
        assert first.instrumented_count == 1
        assert second.instrumented_count == 0
        assert second.already_instrumented_count == 1

    def test_package_private_class_is_not_eligible(self):
        doc, result = _instrument(JAVA_PACKAGE_PRIVATE, "java")

        assert doc.text == JAVA_PACKAGE_PRIVATE
        assert result.instrumented_count == 0
        assert result.already_instrumented_count == 0
        assert result.possible_count == 1

    def test_bodiless_on_create_is_a_warning(self):
        doc, result = _instrument(JAVA_ABSTRACT_ON_CREATE, "java")

        assert doc.text == JAVA_ABSTRACT_ON_CREATE
        assert [f.severity for f in result.faults] == ["warning"]
        assert result.faults[0].class_name == "BaseActivity"
        assert not result.has_errors


# =========================================================================
# Tests: Kotlin
# =========================================================================

class TestKotlinLifecycle:
    def test_observer_follows_base_call(self):
        doc, result = _instrument(KOTLIN_BASE_CALL_FIRST, "kotlin")

        assert (
            "        super.onCreate(savedInstanceState)\n"
            f"        {KOTLIN_OBSERVER}\n"
            "        setContentView(R.layout.main)"
        ) in doc.text
        assert "import android.os.Bundle\nimport nl.vu.cs.s2group.nappa.*" in doc.text
        assert result.instrumented_count == 1

    def test_absent_on_create_is_synthesized_with_bundle_import(self):
        doc, result = _instrument(KOTLIN_NO_ON_CREATE, "kotlin")

        assert (
            "    override fun onCreate(savedInstanceState: Bundle?) {\n"
            "        super.onCreate(savedInstanceState)\n"
            f"        {KOTLIN_OBSERVER}\n"
            "    }"
        ) in doc.text
        assert "import android.os.Bundle" in doc.text
        assert "import nl.vu.cs.s2group.nappa.*" in doc.text
        assert result.instrumented_count == 1

    def test_private_class_is_not_eligible(self):
        doc, result = _instrument(KOTLIN_PRIVATE, "kotlin")
        assert doc.text == KOTLIN_PRIVATE
        assert result.instrumented_count == 0

    def test_idempotent(self):
        doc, _ = _instrument(KOTLIN_BASE_CALL_FIRST, "kotlin")
        once = doc.text

        second = InstrumentationResult()
        ActivityInstrumentation(InstrumentSettings()).instrument_document(doc, False, second)

        assert doc.text == once
        assert second.already_instrumented_count == 1

    def test_empty_on_create_gets_base_call_and_observer(self):
        doc, result = _instrument(KOTLIN_EMPTY_ON_CREATE, "kotlin")

        assert (
            "    override fun onCreate(savedInstanceState: Bundle?) {\n"
            "        super.onCreate(savedInstanceState)\n"
            f"        {KOTLIN_OBSERVER}\n"
            "    }\n"
        ) in doc.text
        assert result.instrumented_count == 1
        assert not doc.root.has_error

    def test_observer_before_first_statement_without_base_call(self):
        doc, _ = _instrument(KOTLIN_NO_BASE_CALL, "kotlin")

        assert (
            "    override fun onCreate(savedInstanceState: Bundle?) {\n"
            f"        {KOTLIN_OBSERVER}\n"
            "        setContentView(R.layout.main)\n"
            "        super.onCreate(savedInstanceState)\n"
        ) in doc.text

    def test_expression_body_is_a_warning(self):
        doc, result = _instrument(KOTLIN_EXPRESSION_ON_CREATE, "kotlin")

        assert doc.text == KOTLIN_EXPRESSION_ON_CREATE
        assert [f.severity for f in result.faults] == ["warning"]
        assert result.instrumented_count == 0
