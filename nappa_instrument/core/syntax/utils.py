"""Syntax layer utilities.

Dialect detection, dialect registry, and directory filtering helpers.
"""

import os
from typing import Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import SyntaxDialect

# Extension → dialect mapping
SUPPORTED_EXTENSIONS: Dict[str, str] = {
    ".java": "java",
    ".kt": "kotlin",
}

# Directories to skip during file walking
SKIP_DIRECTORIES = frozenset({
    ".git",
    ".gradle",
    ".idea",
    ".cxx",
    ".externalNativeBuild",
    "build",
    "out",
    "captures",
    "node_modules",
    "__pycache__",
})

# Dialect registry, lazy-loaded so a missing grammar only fails when used
_dialect_registry: Dict[str, "SyntaxDialect"] = {}


def detect_dialect(file_path: str) -> Optional[str]:
    """Detect the source dialect from a file extension.

    Args:
        file_path: Path to the source file

    Returns:
        Dialect name ("java" or "kotlin") or None if unsupported
    """
    _, ext = os.path.splitext(file_path)
    return SUPPORTED_EXTENSIONS.get(ext.lower())


def get_dialect(name: str) -> "SyntaxDialect":
    """Get the dialect adapter for the given name.

    Raises:
        ValueError: If the dialect is not supported
    """
    if name not in _dialect_registry:
        if name == "java":
            from .java_dialect import JavaDialect
            _dialect_registry["java"] = JavaDialect()
        elif name == "kotlin":
            from .kotlin_dialect import KotlinDialect
            _dialect_registry["kotlin"] = KotlinDialect()
        else:
            raise ValueError(
                f"Unsupported dialect: {name}. "
                f"Supported: {sorted(set(SUPPORTED_EXTENSIONS.values()))}"
            )

    return _dialect_registry[name]


def should_skip_directory(dir_name: str) -> bool:
    """Check if a directory should be skipped during file walking."""
    return dir_name in SKIP_DIRECTORIES or dir_name.startswith(".")
