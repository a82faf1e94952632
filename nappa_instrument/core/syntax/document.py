"""Source documents and scoped edit transactions.

A SourceDocument owns the bytes of one source file and the tree-sitter
tree parsed from them. Mutation happens only through an EditTransaction:
edits are collected against the current tree, checked for overlap, and
applied together on commit, after which the document is reparsed. Nodes
obtained before a commit must not be used after it.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple

import tree_sitter

from ..errors import EditConflict, HostMutationFailure
from .base import SyntaxDialect, node_text
from .models import TextEdit
from .utils import detect_dialect, get_dialect

logger = logging.getLogger(__name__)


class SourceDocument:
    """One parsed source file."""

    def __init__(self, path: str, dialect: SyntaxDialect, source: bytes):
        self.path = path
        self.dialect = dialect
        self._source = source
        self._tree = dialect.parse(source)
        self._version = 0
        self._modified = False
        self._active: Optional["EditTransaction"] = None

    @classmethod
    def from_path(cls, path: str, dialect_name: Optional[str] = None) -> "SourceDocument":
        """Read and parse a file, detecting the dialect from its extension.

        Raises:
            ValueError: If the dialect cannot be determined
        """
        name = dialect_name or detect_dialect(path)
        if name is None:
            raise ValueError(f"Unsupported source file: {path}")
        source = Path(path).read_bytes()
        return cls(path, get_dialect(name), source)

    @classmethod
    def from_source(cls, text: str, dialect_name: str, path: str = "<memory>") -> "SourceDocument":
        return cls(path, get_dialect(dialect_name), text.encode("utf-8"))

    # =========================================================================
    # State
    # =========================================================================

    @property
    def source(self) -> bytes:
        return self._source

    @property
    def text(self) -> str:
        return self._source.decode("utf-8", errors="replace")

    @property
    def tree(self) -> tree_sitter.Tree:
        return self._tree

    @property
    def root(self) -> tree_sitter.Node:
        return self._tree.root_node

    @property
    def version(self) -> int:
        """Number of committed transactions."""
        return self._version

    @property
    def modified(self) -> bool:
        return self._modified

    # =========================================================================
    # Text helpers
    # =========================================================================

    def node_text(self, node: tree_sitter.Node) -> str:
        return node_text(node, self._source)

    def line_indent(self, offset: int) -> str:
        """Leading whitespace of the line containing ``offset``."""
        line_start = self._source.rfind(b"\n", 0, offset) + 1
        end = line_start
        while end < len(self._source) and self._source[end:end + 1] in (b" ", b"\t"):
            end += 1
        return self._source[line_start:end].decode("utf-8")

    def starts_line(self, offset: int) -> bool:
        """Whether only whitespace precedes ``offset`` on its line."""
        line_start = self._source.rfind(b"\n", 0, offset) + 1
        return not self._source[line_start:offset].strip()

    @staticmethod
    def line_of(node: tree_sitter.Node) -> int:
        return node.start_point.row + 1

    # =========================================================================
    # Transactions
    # =========================================================================

    @contextmanager
    def transaction(self, label: str = "") -> Iterator["EditTransaction"]:
        """Open a scoped transaction that commits on normal exit.

        An exception inside the block discards every collected edit.

        Raises:
            RuntimeError: If a transaction is already open on this document
            HostMutationFailure: If the committed text no longer parses
        """
        if self._active is not None:
            raise RuntimeError(
                f"Nested transaction '{label}' on {self.path} "
                f"(open: '{self._active.label}')"
            )
        tx = EditTransaction(self, label)
        self._active = tx
        try:
            yield tx
        except BaseException:
            logger.debug(f"Discarding transaction '{label}' on {self.path}")
            raise
        else:
            tx.commit()
        finally:
            self._active = None

    def _apply(self, edits: List[TextEdit], label: str) -> None:
        if not edits:
            return

        ordered = sorted(edits, key=lambda e: (e.start, 0 if e.is_insertion else 1, e.seq))
        pieces = []
        position = 0
        for edit in ordered:
            pieces.append(self._source[position:edit.start])
            pieces.append(edit.text.encode("utf-8"))
            position = max(position, edit.end)
        pieces.append(self._source[position:])
        new_source = b"".join(pieces)

        new_tree = self.dialect.parse(new_source)
        if new_tree.root_node.has_error and not self._tree.root_node.has_error:
            raise HostMutationFailure(
                f"Transaction '{label}' on {self.path} produced unparseable {self.dialect.name} source"
            )

        self._source = new_source
        self._tree = new_tree
        self._version += 1
        self._modified = True
        logger.debug(
            f"Committed transaction '{label}' on {self.path} "
            f"({len(edits)} edits, version {self._version})"
        )

    def save(self) -> bool:
        """Write the document back to disk if it was modified."""
        if not self._modified:
            return False
        Path(self.path).write_bytes(self._source)
        self._modified = False
        logger.info(f"Saved {self.path}")
        return True


class EditTransaction:
    """Edits collected against one version of a document."""

    def __init__(self, document: SourceDocument, label: str = ""):
        self.document = document
        self.label = label
        self._edits: List[TextEdit] = []
        self._seq = 0
        self._reserved: Dict[Tuple[int, int], Set[str]] = {}
        self._committed = False

    @property
    def edits(self) -> List[TextEdit]:
        return list(self._edits)

    def insert(self, offset: int, text: str) -> TextEdit:
        return self.stage([(offset, offset, text)])[0]

    def replace(self, node: tree_sitter.Node, text: str) -> TextEdit:
        return self.stage([(node.start_byte, node.end_byte, text)])[0]

    def replace_range(self, start: int, end: int, text: str) -> TextEdit:
        return self.stage([(start, end, text)])[0]

    def stage(self, edits: List[Tuple[int, int, str]]) -> List[TextEdit]:
        """Add a group of edits, all or nothing.

        Raises:
            EditConflict: If any edit overlaps a staged edit or another in the group
        """
        group: List[TextEdit] = []
        for offset, (start, end, text) in enumerate(edits):
            if start > end:
                raise ValueError(f"Invalid edit range {start}..{end}")
            group.append(TextEdit(start=start, end=end, text=text, seq=self._seq + offset))

        for index, edit in enumerate(group):
            for other in self._edits + group[:index]:
                if edit.conflicts_with(other):
                    raise EditConflict(
                        f"Edit {edit.start}..{edit.end} overlaps {other.start}..{other.end} "
                        f"in transaction '{self.label}'"
                    )

        self._seq += len(group)
        self._edits.extend(group)
        return group

    def reserved_names(self, scope: tree_sitter.Node) -> Set[str]:
        """Names allocated in ``scope`` by this transaction but not yet committed."""
        return self._reserved.setdefault((scope.start_byte, scope.end_byte), set())

    def commit(self) -> None:
        if self._committed:
            raise RuntimeError(f"Transaction '{self.label}' already committed")
        self.document._apply(self._edits, self.label)
        self._committed = True
