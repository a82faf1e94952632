"""Lifecycle observer registration for activity classes."""

import logging

import tree_sitter

from ..syntax.document import SourceDocument
from .entry_method import EntryMethodSlot, EntryMethodState
from .models import InstrumentationResult, Outcome, SiteDescriptor

logger = logging.getLogger(__name__)

CONCERN = "lifecycle"


class LifecycleInjector:
    """Make sure an activity's entry method registers the lifecycle observer.

    The statement goes through the class's EntryMethodSlot, which decides
    where it lands (synthesized method, empty body, or top of an existing
    body after the base-class call).
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
        statement = dialect.lifecycle_observer_statement()

        if dialect.contains_statement(class_node, source, statement):
            logger.debug(f"{class_name} in {document.path} already registers the lifecycle observer")
            result.increment_already_instrumented()
            return Outcome.ALREADY_INSTRUMENTED

        if not dialect.is_public(class_node, source):
            logger.debug(f"Skipping non-public class {class_name} in {document.path}")
            return Outcome.NOT_ELIGIBLE

        slot.add(dialect.build_fragment(statement).text)

        if slot.state is EntryMethodState.ABSENT:
            detail = f"added {slot.method_name} registering the lifecycle observer"
        else:
            detail = "registered the lifecycle observer"
        result.record_instrumented(SiteDescriptor(
            file_path=document.path,
            line=slot.line,
            class_name=class_name,
            method_name=slot.method_name,
            concern=CONCERN,
            detail=detail,
        ))
        logger.info(f"Lifecycle observer planned for {class_name} in {document.path}")
        return Outcome.INSTRUMENTED
