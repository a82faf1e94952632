"""Project corpus: the Android sources and manifests under a project root.

Documents are parsed lazily and cached, so every pass of a run sees the
edits committed by the previous ones. Nothing is written to disk until
``save()``.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from ..constants import MANIFEST_FILE_NAME
from ..settings import InstrumentSettings
from ..syntax.document import SourceDocument
from ..syntax.utils import detect_dialect, should_skip_directory

logger = logging.getLogger(__name__)


class ProjectCorpus:
    """Source files and manifests of one Android project."""

    def __init__(self, root: str, settings: Optional[InstrumentSettings] = None):
        self.root = str(Path(root).resolve())
        self.settings = settings or InstrumentSettings()
        self._sources: List[str] = []
        self._manifests: List[str] = []
        self._documents: Dict[str, SourceDocument] = {}
        self._excluded: Dict[str, bool] = {}
        self._scan()

    def _scan(self) -> None:
        if not os.path.isdir(self.root):
            raise FileNotFoundError(f"Project root not found: {self.root}")

        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if not should_skip_directory(d))
            for filename in sorted(filenames):
                path = os.path.join(dirpath, filename)
                if filename == MANIFEST_FILE_NAME:
                    self._manifests.append(path)
                elif detect_dialect(filename) in self.settings.dialects:
                    self._sources.append(path)

        logger.info(
            f"Scanned {self.root}: {len(self._sources)} source files, "
            f"{len(self._manifests)} manifests"
        )

    # =========================================================================
    # Lookup
    # =========================================================================

    @property
    def manifest_paths(self) -> List[str]:
        return list(self._manifests)

    @property
    def source_paths(self) -> List[str]:
        return list(self._sources)

    def document(self, path: str) -> SourceDocument:
        """Return the cached document for ``path``, parsing it on first use."""
        if path not in self._documents:
            self._documents[path] = SourceDocument.from_path(path)
        return self._documents[path]

    def files_named(self, file_name: str) -> List[str]:
        """Source files with the given base name (library sources included)."""
        return [path for path in self._sources if os.path.basename(path) == file_name]

    def is_library_source(self, path: str) -> bool:
        """Whether the file belongs to the prefetching library itself."""
        if path not in self._excluded:
            document = self.document(path)
            package = document.dialect.package_name(document.root, document.source)
            library = self.settings.library_package
            sample = self.settings.sample_app_package
            in_library = package == library or package.startswith(library + ".")
            in_sample = package == sample or package.startswith(sample + ".")
            self._excluded[path] = in_library and not in_sample
            if self._excluded[path]:
                logger.debug(f"Excluding library source {path}")
        return self._excluded[path]

    # =========================================================================
    # Persistence
    # =========================================================================

    @property
    def modified_documents(self) -> List[SourceDocument]:
        return [doc for doc in self._documents.values() if doc.modified]

    def save(self) -> int:
        """Write every modified document back to disk."""
        saved = 0
        for document in self.modified_documents:
            if document.save():
                saved += 1
        logger.info(f"Saved {saved} modified files")
        return saved
