"""Instrumentation data models.

Result collection shared by every injector: counters, per-site
descriptors and per-file faults.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import tree_sitter


class Outcome(str, Enum):
    """Terminal outcome of one injector for one unit (class or call site)."""

    INSTRUMENTED = "instrumented"
    ALREADY_INSTRUMENTED = "already_instrumented"
    SKIPPED = "skipped"
    NOT_ELIGIBLE = "not_eligible"


@dataclass
class SiteDescriptor:
    """A place the engine instrumented (or deliberately left alone)."""

    file_path: str
    line: int
    class_name: str
    method_name: str
    concern: str  # "lifecycle" | "library_init" | "intent_extras"
    detail: str = ""

    def render(self) -> str:
        location = f"{self.file_path}:{self.line}" if self.line else self.file_path
        return f"{location} {self.class_name}.{self.method_name}: {self.detail or self.concern}"


@dataclass
class InstrumentationFault:
    """A unit the engine could not process."""

    file_path: str
    message: str
    severity: str = "warning"  # "warning" | "error"
    class_name: Optional[str] = None

    def render(self) -> str:
        where = f"{self.file_path} ({self.class_name})" if self.class_name else self.file_path
        return f"[{self.severity}] {where}: {self.message}"


@dataclass
class CallSite:
    """A matched activity-start call and its payload argument."""

    file_path: str
    operation: str
    identifier: tree_sitter.Node
    call: tree_sitter.Node
    argument: tree_sitter.Node
    position: int  # 1-based
    line: int


@dataclass
class InstrumentationResult:
    """Counters and descriptors collected over one run."""

    possible_count: int = 0
    already_instrumented_count: int = 0
    instrumented_count: int = 0
    processed_elements_count: int = 0
    sites: List[SiteDescriptor] = field(default_factory=list)
    faults: List[InstrumentationFault] = field(default_factory=list)

    def increment_possible(self, amount: int = 1) -> "InstrumentationResult":
        self.possible_count += amount
        return self

    def increment_already_instrumented(self) -> "InstrumentationResult":
        self.already_instrumented_count += 1
        return self

    def increment_processed(self, amount: int = 1) -> "InstrumentationResult":
        self.processed_elements_count += amount
        return self

    def record_instrumented(self, site: SiteDescriptor) -> "InstrumentationResult":
        self.instrumented_count += 1
        self.sites.append(site)
        return self

    def record_site(self, site: SiteDescriptor) -> "InstrumentationResult":
        """Record a descriptor without counting it as instrumented."""
        self.sites.append(site)
        return self

    def record_fault(self, fault: InstrumentationFault) -> "InstrumentationResult":
        self.faults.append(fault)
        return self

    @property
    def has_errors(self) -> bool:
        return any(fault.severity == "error" for fault in self.faults)

    def merge(self, other: "InstrumentationResult") -> "InstrumentationResult":
        self.possible_count += other.possible_count
        self.already_instrumented_count += other.already_instrumented_count
        self.instrumented_count += other.instrumented_count
        self.processed_elements_count += other.processed_elements_count
        self.sites.extend(other.sites)
        self.faults.extend(other.faults)
        return self

    def render_summary(self, title: str) -> str:
        """Render the text report printed by the CLI."""
        lines = [
            title,
            "=" * len(title),
            f"Possible instrumentation points: {self.possible_count}",
            f"Already instrumented: {self.already_instrumented_count}",
            f"Instrumented: {self.instrumented_count}",
        ]
        if self.processed_elements_count:
            lines.append(f"Processed elements: {self.processed_elements_count}")

        if self.sites:
            lines.append("")
            lines.append("Instrumented sites:")
            lines.extend(f"  {site.render()}" for site in self.sites)

        if self.faults:
            lines.append("")
            lines.append("Faults:")
            lines.extend(f"  {fault.render()}" for fault in self.faults)

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "possible_count": self.possible_count,
            "already_instrumented_count": self.already_instrumented_count,
            "instrumented_count": self.instrumented_count,
            "processed_elements_count": self.processed_elements_count,
            "sites": [asdict(site) for site in self.sites],
            "faults": [asdict(fault) for fault in self.faults],
        }
