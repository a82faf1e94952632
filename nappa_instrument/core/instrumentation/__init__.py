"""Instrumentation engine and injectors.

Public API:
    InstrumentationEngine(corpus, settings).run(action) → InstrumentationResult
    InstrumentationResult, InstrumentationFault, SiteDescriptor, Outcome
"""

from .engine import (
    ACTION_TITLES,
    ACTIONS,
    ActivityInstrumentation,
    InstrumentationEngine,
    IntentExtrasInstrumentation,
)
from .entry_method import EntryMethodSlot, EntryMethodState
from .intent_extras import IntentExtrasInjector
from .library_init import LibraryInitInjector
from .lifecycle import LifecycleInjector
from .models import (
    CallSite,
    InstrumentationFault,
    InstrumentationResult,
    Outcome,
    SiteDescriptor,
)
from .naming import UniqueNameAllocator
from .scanner import CallSiteScanner, payload_position

__all__ = [
    "ACTIONS",
    "ACTION_TITLES",
    "InstrumentationEngine",
    "ActivityInstrumentation",
    "IntentExtrasInstrumentation",
    "EntryMethodSlot",
    "EntryMethodState",
    "LifecycleInjector",
    "LibraryInitInjector",
    "IntentExtrasInjector",
    "CallSiteScanner",
    "payload_position",
    "UniqueNameAllocator",
    "CallSite",
    "InstrumentationFault",
    "InstrumentationResult",
    "Outcome",
    "SiteDescriptor",
]
