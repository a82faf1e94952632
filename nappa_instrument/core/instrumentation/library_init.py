"""One-time library initialization in the launcher activity."""

import logging

import tree_sitter

from ..syntax.document import SourceDocument
from .entry_method import EntryMethodSlot, EntryMethodState
from .models import InstrumentationFault, InstrumentationResult, Outcome, SiteDescriptor

logger = logging.getLogger(__name__)

CONCERN = "library_init"


class LibraryInitInjector:
    """Insert the library init call at the top of the launcher's entry method.

    Shares the slot with the LifecycleInjector, which plans first, so the
    init call always follows the observer registration. A launcher without
    an entry method is left alone and reported.
    """

    def plan(
        self,
        document: SourceDocument,
        class_node: tree_sitter.Node,
        slot: EntryMethodSlot,
        result: InstrumentationResult,
    ) -> Outcome:
        dialect = document.dialect
        source = document.source
        class_name = dialect.class_name(class_node, source)
        statement = dialect.library_init_statement()

        if dialect.contains_statement(class_node, source, statement):
            logger.debug(f"{class_name} in {document.path} already initializes the library")
            result.increment_already_instrumented()
            return Outcome.ALREADY_INSTRUMENTED

        if not dialect.is_public(class_node, source):
            return Outcome.NOT_ELIGIBLE

        if slot.state is EntryMethodState.ABSENT:
            message = f"library init skipped: launcher {class_name} has no {slot.method_name}"
            logger.warning(f"{message} ({document.path})")
            result.record_fault(InstrumentationFault(
                file_path=document.path,
                message=message,
                severity="warning",
                class_name=class_name,
            ))
            result.record_site(SiteDescriptor(
                file_path=document.path,
                line=slot.line,
                class_name=class_name,
                method_name=slot.method_name,
                concern=CONCERN,
                detail="skipped library init (no entry method)",
            ))
            return Outcome.SKIPPED

        slot.add(dialect.build_fragment(statement).text)
        result.record_instrumented(SiteDescriptor(
            file_path=document.path,
            line=slot.line,
            class_name=class_name,
            method_name=slot.method_name,
            concern=CONCERN,
            detail="initialized the prefetching library",
        ))
        logger.info(f"Library init planned for launcher {class_name} in {document.path}")
        return Outcome.INSTRUMENTED
