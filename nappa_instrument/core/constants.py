"""Shared constants for nappa-instrument.

Library coordinates, injected call texts and the activity-start API
surface that the instrumentation recognizes. Dialect adapters compose
their statement templates from these values.
"""

# =============================================================================
# Prefetching Library Coordinates
# =============================================================================

# Root package of the prefetching library; sources under it are not instrumented
LIBRARY_PACKAGE = "nl.vu.cs.s2group.nappa"

# The library's sample app lives under the library package but is a regular app
SAMPLE_APP_PACKAGE = "nl.vu.cs.s2group.nappa.sample.app"

# On-demand import added to every instrumented file
LIBRARY_IMPORT = LIBRARY_PACKAGE + ".*"

# Import required by the library initialization call
STRATEGY_TYPE_IMPORT = LIBRARY_PACKAGE + ".prefetch.PrefetchingStrategyType"

# Import required when an onCreate method is synthesized
BUNDLE_IMPORT = "android.os.Bundle"

# =============================================================================
# Injected Calls
# =============================================================================

LIFECYCLE_OBSERVER_CLASS = "NappaLifecycleObserver"

LIBRARY_INIT_CALL = "Nappa.init(this, PrefetchingStrategyType.STRATEGY_GREEDY_VISIT_FREQUENCY)"

# Callee of the statement that reports intent extras to the library
NOTIFY_CALLEE = "Nappa.notifyExtras"

# Static type of the variable declared for constructed intents
INTENT_TYPE = "Intent"

# =============================================================================
# Entry Point
# =============================================================================

ENTRY_METHOD = "onCreate"

ENTRY_METHOD_PARAMETER = "savedInstanceState"

# =============================================================================
# Activity-Start Operations
# =============================================================================

# https://developer.android.com/reference/android/app/Activity#startActivity(android.content.Intent)
# and its variants
OPERATION_NAMES = frozenset({
    "startActivity",
    "startActivityForResult",
    # Deprecated in API level 30
    "startActivityFromChild",
    # Deprecated in API level 28
    "startActivityFromFragment",
    "startActivityIfNeeded",
})

# Legacy overloads receive the caller (child activity / fragment) first
LEGACY_OPERATION_NAMES = frozenset({
    "startActivityFromChild",
    "startActivityFromFragment",
})

# 1-based position of the Intent argument
DEFAULT_PAYLOAD_POSITION = 1
LEGACY_PAYLOAD_POSITION = 2

# Text shared by every operation name, used to prune the call-site scan
OPERATION_FRAGMENT = "startActivity"

# =============================================================================
# Manifest
# =============================================================================

MANIFEST_FILE_NAME = "AndroidManifest.xml"

ANDROID_NAMESPACE = "http://schemas.android.com/apk/res/android"

MAIN_ACTION = "android.intent.action.MAIN"

LAUNCHER_CATEGORY = "android.intent.category.LAUNCHER"
