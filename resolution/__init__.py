"""Mod resolution engine: version rules, dependency expansion, target selection"""
from resolution.changelog import compile_changelog
from resolution.dependencies import mod_id_from_url, resolve_dependencies
from resolution.models import (
    ACTION_UP_TO_DATE,
    ACTION_UPDATE,
    DependencyNode,
    ManifestEntry,
    ModPage,
    ResolutionResult,
    UpdateReport,
    VersionRecord,
)
from resolution.selector import select_version
from resolution.versions import (
    compare_versions,
    is_below_match,
    is_exact_match,
    is_minor_match,
    is_prerelease,
    parse_version,
)

__all__ = [
    "ACTION_UP_TO_DATE",
    "ACTION_UPDATE",
    "DependencyNode",
    "ManifestEntry",
    "ModPage",
    "ResolutionResult",
    "UpdateReport",
    "VersionRecord",
    "compare_versions",
    "compile_changelog",
    "is_below_match",
    "is_exact_match",
    "is_minor_match",
    "is_prerelease",
    "mod_id_from_url",
    "parse_version",
    "resolve_dependencies",
    "select_version",
]
