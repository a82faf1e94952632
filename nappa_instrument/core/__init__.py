# Lazy imports to avoid loading the tree-sitter grammars on package import.
# This allows targeted imports like `from nappa_instrument.core.errors import StructuralMismatch`
# without parsing anything.

__all__ = [
    # Engine
    "InstrumentationEngine",
    "InstrumentationResult",
    "ProjectCorpus",
    # Syntax
    "SourceDocument",
    "get_dialect",
    # Settings
    "InstrumentSettings",
    "get_settings",
    "load_settings",
    # Errors
    "InstrumentationError",
    "InstrumentationFailure",
    "StructuralMismatch",
    "HostMutationFailure",
]

_IMPORT_MAP = {
    "InstrumentationEngine": ".instrumentation",
    "InstrumentationResult": ".instrumentation",
    "ProjectCorpus": ".project",
    "SourceDocument": ".syntax",
    "get_dialect": ".syntax",
    "InstrumentSettings": ".settings",
    "get_settings": ".settings",
    "load_settings": ".settings",
    "InstrumentationError": ".errors",
    "InstrumentationFailure": ".errors",
    "StructuralMismatch": ".errors",
    "HostMutationFailure": ".errors",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'nappa_instrument.core' has no attribute {name}")
