"""Syntax layer data models.

Pure data containers shared by the dialect adapters and the document
transaction machinery.
"""

from dataclasses import dataclass

import tree_sitter


@dataclass(frozen=True)
class TextEdit:
    """A byte-range replacement; an insertion when ``start == end``."""

    start: int
    end: int
    text: str
    seq: int = 0  # Registration order, breaks ties between same-offset edits

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end

    def conflicts_with(self, other: "TextEdit") -> bool:
        """Check whether applying both edits would be ambiguous.

        Insertions never conflict with each other (they are applied in
        registration order). An insertion conflicts with a replacement
        only when it falls strictly inside the replaced range.
        """
        if self.is_insertion and other.is_insertion:
            return False
        if self.is_insertion:
            return other.start < self.start < other.end
        if other.is_insertion:
            return self.start < other.start < self.end
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class Fragment:
    """Template text validated against the dialect grammar."""

    text: str
    context: str  # "statement" | "member"


@dataclass
class Anchor:
    """The statement-level node a call site is attached to.

    ``inline`` is True when the node sits in a slot that holds a single
    statement or expression without braces (expression lambda body, bare
    if/else/loop branch). Siblings cannot be inserted next to it.
    """

    node: tree_sitter.Node
    inline: bool = False
