"""Instrumentation engine: orchestrates the passes over a project corpus.

Two actions:
- ``activities``: for every activity declared in the manifests, register the
  lifecycle observer in its entry method and, for the launcher, initialize
  the prefetching library.
- ``intent-extras``: report the extras of every Intent passed to an
  activity-start operation.

Edits for one class are grouped into a single document transaction.
Structural mismatches skip the smallest enclosing unit; any other failure
is fatal for the file and turns the run into an InstrumentationFailure.
"""

import logging
import threading
from typing import Callable, Optional

from ..constants import BUNDLE_IMPORT, LIBRARY_IMPORT, STRATEGY_TYPE_IMPORT
from ..errors import InstrumentationFailure, StructuralMismatch
from ..manifest import discover_activities
from ..project.corpus import ProjectCorpus
from ..settings import InstrumentSettings, get_settings
from ..syntax.document import SourceDocument
from ..syntax.utils import get_dialect
from .entry_method import EntryMethodSlot
from .imports import ensure_imports
from .intent_extras import IntentExtrasInjector
from .library_init import LibraryInitInjector
from .lifecycle import LifecycleInjector
from .models import InstrumentationFault, InstrumentationResult, Outcome
from .naming import UniqueNameAllocator
from .scanner import CallSiteScanner

logger = logging.getLogger(__name__)

ACTIONS = ("activities", "intent-extras")

ACTION_TITLES = {
    "activities": "Lifecycle Observer Instrumentation Result",
    "intent-extras": "Intent Extras Instrumentation Result",
}


class ActivityInstrumentation:
    """Lifecycle observer and library init for one activity document."""

    def __init__(self, settings: InstrumentSettings):
        self.settings = settings
        self.lifecycle = LifecycleInjector()
        self.library_init = LibraryInitInjector()

    def instrument_document(
        self,
        document: SourceDocument,
        is_launcher: bool,
        result: InstrumentationResult,
    ) -> None:
        result.increment_possible()
        if is_launcher:
            result.increment_possible()

        dialect = document.dialect
        class_count = len(dialect.top_level_classes(document.root))
        for index in range(class_count):
            # Re-fetched every time: the previous commit reparsed the document
            class_node = dialect.top_level_classes(document.root)[index]
            class_name = dialect.class_name(class_node, document.source)
            class_result = InstrumentationResult()
            try:
                with document.transaction(f"activity {class_name}") as tx:
                    slot = EntryMethodSlot(
                        document,
                        class_node,
                        method_name=self.settings.entry_method,
                        indent_unit=self.settings.indent,
                        follow_markers=[dialect.lifecycle_observer_statement()],
                    )
                    lifecycle = self.lifecycle.plan(document, class_node, slot, class_result)
                    init = None
                    if is_launcher:
                        init = self.library_init.plan(document, class_node, slot, class_result)
                    slot.flush(tx)

                    if Outcome.INSTRUMENTED in (lifecycle, init):
                        imports = [LIBRARY_IMPORT]
                        if init is Outcome.INSTRUMENTED:
                            imports.append(STRATEGY_TYPE_IMPORT)
                        if slot.synthesized:
                            imports.append(BUNDLE_IMPORT)
                        ensure_imports(document, tx, imports)
            except StructuralMismatch as e:
                logger.warning(f"Skipping class {class_name} in {document.path}: {e}")
                result.record_fault(InstrumentationFault(
                    file_path=document.path,
                    message=str(e),
                    severity="warning",
                    class_name=class_name,
                ))
                continue
            result.merge(class_result)


class IntentExtrasInstrumentation:
    """Intent extras reporting for one document."""

    def __init__(self, settings: InstrumentSettings):
        self.settings = settings
        self.scanner = CallSiteScanner()
        self.injector = IntentExtrasInjector(
            allocator=UniqueNameAllocator(),
            variable_base=settings.intent_variable,
            indent_unit=settings.indent,
        )

    def instrument_document(self, document: SourceDocument, result: InstrumentationResult) -> None:
        if self.settings.file_filter and self.settings.file_filter not in document.text:
            logger.debug(f"Skipping {document.path}: no {self.settings.file_filter}")
            return

        dialect = document.dialect
        class_count = len(dialect.top_level_classes(document.root))
        for index in range(class_count):
            class_node = dialect.top_level_classes(document.root)[index]
            class_name = dialect.class_name(class_node, document.source)
            if self.settings.class_filter and self.settings.class_filter not in document.node_text(class_node):
                continue

            class_result = InstrumentationResult()
            try:
                with document.transaction(f"intent extras {class_name}") as tx:
                    instrumented = 0
                    for site in self.scanner.scan(document, class_node, class_result):
                        try:
                            outcome = self.injector.plan(document, site, tx, class_result, class_name)
                        except StructuralMismatch as e:
                            logger.warning(f"Skipping {site.operation} call site: {e}")
                            class_result.record_fault(InstrumentationFault(
                                file_path=document.path,
                                message=str(e),
                                severity="warning",
                                class_name=class_name,
                            ))
                            continue
                        if outcome is Outcome.INSTRUMENTED:
                            instrumented += 1
                    if instrumented:
                        ensure_imports(document, tx, [LIBRARY_IMPORT])
            except StructuralMismatch as e:
                logger.warning(f"Skipping class {class_name} in {document.path}: {e}")
                result.record_fault(InstrumentationFault(
                    file_path=document.path,
                    message=str(e),
                    severity="warning",
                    class_name=class_name,
                ))
                continue
            result.merge(class_result)


class InstrumentationEngine:
    """Runs the instrumentation actions over a ProjectCorpus.

    Single-threaded; a run owns the corpus until it returns. An optional
    ``threading.Event`` is checked between files to cancel the run.
    """

    def __init__(self, corpus: ProjectCorpus, settings: Optional[InstrumentSettings] = None):
        self.corpus = corpus
        self.settings = settings or get_settings()
        self.activities = ActivityInstrumentation(self.settings)
        self.intent_extras = IntentExtrasInstrumentation(self.settings)

    def instrument_activities(self, cancel_event: Optional[threading.Event] = None) -> InstrumentationResult:
        result = InstrumentationResult()
        activities = discover_activities(self.corpus.manifest_paths)
        logger.info(f"Discovered {len(activities)} activities")

        for activity_name, is_launcher in activities.items():
            for dialect_name in self.settings.dialects:
                for extension in get_dialect(dialect_name).extensions:
                    for path in self.corpus.files_named(activity_name + extension):
                        if self._cancelled(cancel_event):
                            return result
                        self._guarded(
                            path,
                            result,
                            lambda document: self.activities.instrument_document(document, is_launcher, result),
                        )
        return result

    def instrument_intent_extras(self, cancel_event: Optional[threading.Event] = None) -> InstrumentationResult:
        result = InstrumentationResult()
        for path in self.corpus.source_paths:
            if self._cancelled(cancel_event):
                return result
            self._guarded(
                path,
                result,
                lambda document: self.intent_extras.instrument_document(document, result),
            )
        return result

    def run(self, action: str, cancel_event: Optional[threading.Event] = None) -> InstrumentationResult:
        """Run one action, persist the edits, and fail if any file failed.

        Raises:
            ValueError: If the action is unknown
            InstrumentationFailure: If any file recorded an error fault
        """
        if action == "activities":
            result = self.instrument_activities(cancel_event)
        elif action == "intent-extras":
            result = self.instrument_intent_extras(cancel_event)
        else:
            raise ValueError(f"Unknown action: {action}. Supported: {list(ACTIONS)}")

        if self.settings.dry_run:
            logger.info(f"Dry run: {len(self.corpus.modified_documents)} files left unsaved")
        else:
            self.corpus.save()

        logger.info(
            f"{action}: {result.instrumented_count} instrumented, "
            f"{result.already_instrumented_count} already instrumented, "
            f"{result.possible_count} possible"
        )
        if result.has_errors:
            raise InstrumentationFailure(result)
        return result

    # ── Helpers ────────────────────────────────────────────────────────

    def _guarded(
        self,
        path: str,
        result: InstrumentationResult,
        action: Callable[[SourceDocument], None],
    ) -> None:
        """Run ``action`` on one file, folding any failure into a file fault."""
        try:
            if self.corpus.is_library_source(path):
                return
            action(self.corpus.document(path))
        except Exception as e:
            logger.error(f"Failed to instrument {path}: {e}")
            result.record_fault(InstrumentationFault(
                file_path=path,
                message=str(e),
                severity="error",
            ))

    @staticmethod
    def _cancelled(cancel_event: Optional[threading.Event]) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning("Instrumentation cancelled")
            return True
        return False
