"""Data models shared by the resolution engine and the updater."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ACTION_UPDATE = "update"
ACTION_UP_TO_DATE = "up-to-date"


@dataclass
class ManifestEntry:
    """One persisted mod record, keyed by mod id in the manifest file."""

    url: str
    title: Optional[str] = None
    version: Optional[str] = None
    game_version: Optional[str] = None
    lock_to_version: Optional[str] = None
    requires: List[str] = field(default_factory=list)
    last_updated: Optional[str] = None
    auto: bool = False
    disabled: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestEntry":
        return cls(
            url=data["url"],
            title=data.get("title"),
            version=data.get("version"),
            game_version=data.get("gameVersion"),
            lock_to_version=data.get("lockToVersion"),
            requires=list(data.get("requires") or []),
            last_updated=data.get("lastUpdated"),
            auto=bool(data.get("auto", False)),
            disabled=bool(data.get("disabled", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        if self.title is not None:
            data["title"] = self.title
        data["url"] = self.url
        if self.version is not None:
            data["version"] = self.version
        if self.game_version is not None:
            data["gameVersion"] = self.game_version
        if self.lock_to_version is not None:
            data["lockToVersion"] = self.lock_to_version
        if self.requires:
            data["requires"] = list(self.requires)
        if self.last_updated is not None:
            data["lastUpdated"] = self.last_updated
        if self.auto:
            data["auto"] = True
        if self.disabled:
            data["disabled"] = True
        return data


@dataclass
class DependencyNode:
    """A mod reachable from the manifest, built fresh on every run."""

    id: str
    url: str
    title: Optional[str] = None
    current_version: Optional[str] = None
    game_version: Optional[str] = None
    lock_to_version: Optional[str] = None
    requires: List[str] = field(default_factory=list)
    last_updated: Optional[str] = None
    auto: bool = False
    disabled: bool = False
    # Manual mod ids that pulled this node in. Only filled for auto nodes.
    required_by: List[str] = field(default_factory=list)


@dataclass
class VersionRecord:
    """A single release listed on the remote mod page."""

    version: str
    game_versions: List[str] = field(default_factory=list)
    release_date: Optional[str] = None
    changelog: str = ""
    download_file: Optional[str] = None


@dataclass
class ModPage:
    """What the fetcher returns for a mod page: title plus newest-first releases."""

    title: str
    versions: List[VersionRecord] = field(default_factory=list)


@dataclass
class ResolutionResult:
    """Outcome of resolving one node against its remote releases."""

    id: str
    url: str
    action: str = ACTION_UP_TO_DATE
    title: Optional[str] = None
    current_version: Optional[str] = None
    game_version: Optional[str] = None
    target_version: Optional[VersionRecord] = None
    changelog: Optional[str] = None
    requires: List[str] = field(default_factory=list)
    required_by: List[str] = field(default_factory=list)
    lock_to_version: Optional[str] = None
    last_updated: Optional[str] = None
    auto: bool = False
    disabled: bool = False
    cached: bool = False
    error: Optional[str] = None

    @classmethod
    def from_node(cls, node: DependencyNode, **overrides) -> "ResolutionResult":
        values = dict(
            id=node.id,
            url=node.url,
            title=node.title,
            current_version=node.current_version,
            game_version=node.game_version,
            requires=list(node.requires),
            required_by=list(node.required_by),
            lock_to_version=node.lock_to_version,
            last_updated=node.last_updated,
            auto=node.auto,
            disabled=node.disabled,
        )
        values.update(overrides)
        return cls(**values)

    @property
    def display_title(self) -> str:
        return self.title or self.id

    @property
    def needs_update(self) -> bool:
        return self.action == ACTION_UPDATE


@dataclass
class ReportLine:
    """A single line of the run report."""

    id: str
    title: str
    text: str
    changelog: Optional[str] = None


@dataclass
class UpdateReport:
    """Categorized result of one updater pass."""

    up_to_date: List[ReportLine] = field(default_factory=list)
    installed: List[ReportLine] = field(default_factory=list)
    updated: List[ReportLine] = field(default_factory=list)
    uninstalled: List[ReportLine] = field(default_factory=list)
    deleted: List[ReportLine] = field(default_factory=list)
    failed: List[ReportLine] = field(default_factory=list)
    not_declared: List[ReportLine] = field(default_factory=list)

    def has_changes(self) -> bool:
        return bool(self.installed or self.updated or self.uninstalled or self.deleted)
