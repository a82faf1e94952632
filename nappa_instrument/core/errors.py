"""Error taxonomy for the instrumentation engine.

StructuralMismatch skips the smallest enclosing unit (a class or a call
site). HostMutationFailure is fatal for the file being edited. Both are
folded into an InstrumentationFailure by the top-level loop.
"""


class InstrumentationError(Exception):
    """Base class for instrumentation errors."""


class StructuralMismatch(InstrumentationError):
    """An expected node shape is absent (missing body, missing arguments, ...)."""


class EditConflict(StructuralMismatch):
    """Two edits planned in the same transaction overlap."""


class HostMutationFailure(InstrumentationError):
    """A transaction could not be committed to its document."""


class InstrumentationFailure(InstrumentationError):
    """Aggregate failure raised after a run that recorded file-level faults.

    Carries the complete result so callers can still report what was
    instrumented before (and after) the failing files.
    """

    def __init__(self, result):
        self.result = result
        errors = [f for f in result.faults if f.severity == "error"]
        files = sorted({f.file_path for f in errors})
        super().__init__(
            f"Instrumentation failed for {len(files)} file(s): {', '.join(files)}"
        )
