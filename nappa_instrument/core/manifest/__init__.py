"""Android manifest reading."""

from .discovery import (
    DeclaredActivity,
    ManifestReader,
    activities_from_declarations,
    discover_activities,
)

__all__ = [
    "DeclaredActivity",
    "ManifestReader",
    "activities_from_declarations",
    "discover_activities",
]
