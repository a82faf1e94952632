"""Activity discovery from AndroidManifest.xml files (ElementTree).

Navigates manifest → application → activity and reports, for every
declared activity, its simple class name and whether it is the launcher
(its intent filters declare both the MAIN action and the LAUNCHER
category).
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..constants import ANDROID_NAMESPACE, LAUNCHER_CATEGORY, MAIN_ACTION

logger = logging.getLogger(__name__)

_ANDROID_NAME = "{%s}name" % ANDROID_NAMESPACE


def _strip_namespace(tag: str) -> str:
    """Remove XML namespace prefix from a tag."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _local_find(element: ET.Element, local_name: str) -> Optional[ET.Element]:
    """Find a child element by local name, ignoring namespaces."""
    for child in element:
        if _strip_namespace(child.tag) == local_name:
            return child
    return None


def _local_findall(element: ET.Element, local_name: str) -> List[ET.Element]:
    """Find all child elements by local name, ignoring namespaces."""
    return [
        child for child in element
        if _strip_namespace(child.tag) == local_name
    ]


def _android_name(element: ET.Element) -> str:
    # ElementTree expands the android: prefix only when the namespace is declared
    value = element.get(_ANDROID_NAME) or element.get("android:name") or ""
    return value.strip()


@dataclass
class DeclaredActivity:
    """An activity declared in a manifest."""

    qualified_name: str
    is_launcher: bool
    manifest_path: str = ""

    @property
    def simple_name(self) -> str:
        return self.qualified_name.rsplit(".", 1)[-1]


class ManifestReader:
    """Reads activity declarations from AndroidManifest.xml documents."""

    def parse_file(self, file_path: str) -> List[DeclaredActivity]:
        try:
            source_text = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.error(f"Cannot read {file_path}: {e}")
            return []
        return self.parse_source(source_text, file_path)

    def parse_source(self, source_text: str, file_path: str = "<memory>") -> List[DeclaredActivity]:
        """Parse manifest text; malformed documents yield no activities."""
        try:
            root = ET.fromstring(source_text)
        except ET.ParseError as e:
            logger.warning(f"Malformed manifest {file_path}: {e}")
            return []

        application = _local_find(root, "application")
        if application is None:
            logger.debug(f"No <application> element in {file_path}")
            return []

        activities: List[DeclaredActivity] = []
        for activity in _local_findall(application, "activity"):
            name = _android_name(activity)
            if not name:
                continue
            activities.append(DeclaredActivity(
                qualified_name=name,
                is_launcher=self._is_launcher(activity),
                manifest_path=file_path,
            ))
        return activities

    @staticmethod
    def _is_launcher(activity: ET.Element) -> bool:
        actions = set()
        categories = set()
        for intent_filter in _local_findall(activity, "intent-filter"):
            for action in _local_findall(intent_filter, "action"):
                actions.add(_android_name(action))
            for category in _local_findall(intent_filter, "category"):
                categories.add(_android_name(category))
        return MAIN_ACTION in actions and LAUNCHER_CATEGORY in categories


def activities_from_declarations(declarations: Iterable[DeclaredActivity]) -> Dict[str, bool]:
    """Map simple activity names to their launcher flag.

    Two declarations with the same simple name collide; the later one wins.
    """
    activities: Dict[str, bool] = {}
    origins: Dict[str, str] = {}
    for declared in declarations:
        name = declared.simple_name
        if name in activities:
            logger.warning(
                f"Activity name {name} declared by {declared.qualified_name} "
                f"overrides the declaration from {origins[name]}"
            )
        activities[name] = declared.is_launcher
        origins[name] = declared.qualified_name
    return activities


def discover_activities(manifest_paths: Iterable[str]) -> Dict[str, bool]:
    """Read every manifest and return {simple activity name: is launcher}."""
    reader = ManifestReader()
    declarations: List[DeclaredActivity] = []
    for path in manifest_paths:
        found = reader.parse_file(path)
        logger.info(f"Found {len(found)} activities in {path}")
        declarations.extend(found)
    return activities_from_declarations(declarations)
