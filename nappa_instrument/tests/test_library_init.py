"""Tests for library initialization in the launcher activity."""

from nappa_instrument.core.instrumentation import ActivityInstrumentation, InstrumentationResult
from nappa_instrument.core.settings import InstrumentSettings
from nappa_instrument.core.syntax import SourceDocument


OBSERVER = "getLifecycle().addObserver(new NappaLifecycleObserver(this));"
INIT = "Nappa.init(this, PrefetchingStrategyType.STRATEGY_GREEDY_VISIT_FREQUENCY);"

LAUNCHER = """package com.example;

public class A extends Activity {
    @Override
    protected void onCreate(Bundle b) {
        super.onCreate(b);
        doWork();
    }
}
"""

LAUNCHER_WITH_OBSERVER = """package com.example;

import nl.vu.cs.s2group.nappa.*;

public class A extends Activity {
    @Override
    protected void onCreate(Bundle b) {
        super.onCreate(b);
        getLifecycle().addObserver(new NappaLifecycleObserver(this));
        doWork();
    }
}
"""

LAUNCHER_WITH_LATE_OBSERVER = """package com.example;

import nl.vu.cs.s2group.nappa.*;

public class A extends Activity {
    @Override
    protected void onCreate(Bundle b) {
        super.onCreate(b);
        setContentView(R.layout.main);
        getLifecycle().addObserver(new NappaLifecycleObserver(this));
        doWork();
    }
}
"""

LAUNCHER_WITHOUT_ON_CREATE = """package com.example;

public class A extends Activity {
}
"""

KOTLIN_LAUNCHER = """package com.example

class A : Activity() {
    override fun onCreate(b: Bundle?) {
        super.onCreate(b)
        doWork()
    }
}
"""


def _launch(source, dialect="java"):
    doc = SourceDocument.from_source(source, dialect)
    result = InstrumentationResult()
    ActivityInstrumentation(InstrumentSettings()).instrument_document(doc, True, result)
    return doc, result


class TestLibraryInit:
    def test_end_to_end_order(self):
        doc, result = _launch(LAUNCHER)

        assert (
            "        super.onCreate(b);\n"
            f"        {OBSERVER}\n"
            f"        {INIT}\n"
            "        doWork();"
        ) in doc.text
        assert result.instrumented_count == 2
        assert result.already_instrumented_count == 0
        assert result.possible_count == 2

    def test_imports_for_init(self):
        doc, _ = _launch(LAUNCHER)
        assert (
            "package com.example;\n\n"
            "import nl.vu.cs.s2group.nappa.*;\n"
            "import nl.vu.cs.s2group.nappa.prefetch.PrefetchingStrategyType;\n"
        ) in doc.text

    def test_init_goes_after_existing_observer(self):
        doc, result = _launch(LAUNCHER_WITH_OBSERVER)

        assert (
            f"        {OBSERVER}\n"
            f"        {INIT}\n"
            "        doWork();"
        ) in doc.text
        assert result.already_instrumented_count == 1
        assert result.instrumented_count == 1
        # The on-demand import does not cover the prefetch subpackage
        assert "import nl.vu.cs.s2group.nappa.*;\nimport nl.vu.cs.s2group.nappa.prefetch.PrefetchingStrategyType;" in doc.text
        assert doc.text.count("import nl.vu.cs.s2group.nappa.*;") == 1

    def test_init_follows_observer_registered_later_in_body(self):
        doc, result = _launch(LAUNCHER_WITH_LATE_OBSERVER)

        assert (
            "        super.onCreate(b);\n"
            "        setContentView(R.layout.main);\n"
            f"        {OBSERVER}\n"
            f"        {INIT}\n"
            "        doWork();"
        ) in doc.text
        assert doc.text.index(OBSERVER) < doc.text.index("Nappa.init(")
        assert result.already_instrumented_count == 1
        assert result.instrumented_count == 1

    def test_idempotent(self):
        doc, _ = _launch(LAUNCHER)
        once = doc.text

        second = InstrumentationResult()
        ActivityInstrumentation(InstrumentSettings()).instrument_document(doc, True, second)

        assert doc.text == once
        assert second.already_instrumented_count == 2
        assert second.instrumented_count == 0

    def test_launcher_without_on_create_skips_init(self):
        doc, result = _launch(LAUNCHER_WITHOUT_ON_CREATE)

        assert OBSERVER in doc.text
        assert "Nappa.init" not in doc.text
        assert result.instrumented_count == 1
        assert any("library init skipped" in f.message for f in result.faults)
        assert all(f.severity == "warning" for f in result.faults)
        assert any(s.concern == "library_init" for s in result.sites)
        assert not result.has_errors

    def test_kotlin_end_to_end_order(self):
        doc, result = _launch(KOTLIN_LAUNCHER, "kotlin")

        assert (
            "        super.onCreate(b)\n"
            "        lifecycle.addObserver(NappaLifecycleObserver(this))\n"
            "        Nappa.init(this, PrefetchingStrategyType.STRATEGY_GREEDY_VISIT_FREQUENCY)\n"
            "        doWork()"
        ) in doc.text
        assert "import nl.vu.cs.s2group.nappa.prefetch.PrefetchingStrategyType" in doc.text
        assert result.instrumented_count == 2
