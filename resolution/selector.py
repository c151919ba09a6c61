"""Pick the release a mod should be on.

Locked mods must land on exactly their pinned version. Everything else walks
the compatibility tiers against the server's game version and takes the best
release of the first tier that has any:

1. exact    - declared for this exact game version
2. minor    - declared for this major.minor, not a later patch
3. below    - declared only for older game versions
4. any      - whatever the mod page lists
"""

import logging
from typing import List, Optional, Sequence

from resolution.changelog import compile_changelog
from resolution.models import (
    ACTION_UP_TO_DATE,
    ACTION_UPDATE,
    DependencyNode,
    ResolutionResult,
    VersionRecord,
)
from resolution.versions import (
    is_below_match,
    is_exact_match,
    is_minor_match,
    is_prerelease,
    version_sort_key,
)

log = logging.getLogger(__name__)

TIERS = (
    ("exact", is_exact_match),
    ("minor", is_minor_match),
    ("below", is_below_match),
)


def _supports(record: VersionRecord, game_version: str, predicate) -> bool:
    return any(predicate(game_version, supported) for supported in record.game_versions)


def compatible_candidates(versions: Sequence[VersionRecord], game_version: str):
    """Return ``(tier_name, candidates)`` for the first non-empty tier."""
    for name, predicate in TIERS:
        candidates = [v for v in versions if _supports(v, game_version, predicate)]
        if candidates:
            return name, candidates
    return "any", list(versions)


def rank_candidates(candidates: Sequence[VersionRecord], prefer_stable: bool = True) -> List[VersionRecord]:
    """Highest version first; with ``prefer_stable`` stable releases go before prereleases."""
    ranked = sorted(candidates, key=lambda v: version_sort_key(v.version), reverse=True)
    if prefer_stable:
        stable = [v for v in ranked if not is_prerelease(v.version)]
        unstable = [v for v in ranked if is_prerelease(v.version)]
        ranked = stable + unstable
    return ranked


def _find_locked(versions: Sequence[VersionRecord], locked: str) -> Optional[VersionRecord]:
    for record in versions:
        if record.version == locked:
            return record
    return None


def select_version(node: DependencyNode, versions: Sequence[VersionRecord], game_version: str,
                   prefer_stable: bool = True, title: Optional[str] = None) -> ResolutionResult:
    """Resolve ``node`` against its remote ``versions`` (newest first)."""
    name = title or node.title or node.id
    target = None

    if not versions:
        log.warning(f"[SELECT] {name}: no versions found online")
    elif node.lock_to_version:
        target = _find_locked(versions, node.lock_to_version)
        if target is None:
            log.warning(f"[SELECT] {name}: locked version {node.lock_to_version} not found online")
        else:
            log.info(f"[SELECT] {name}: locked to {target.version}")
    else:
        tier, candidates = compatible_candidates(versions, game_version)
        target = rank_candidates(candidates, prefer_stable)[0]
        log.info(f"[SELECT] {name}: current {node.current_version or 'not installed'}, "
                 f"online {target.version} ({tier} match, released {target.release_date or '?'})")

    action = ACTION_UP_TO_DATE
    changelog = None
    if target is not None and target.version != node.current_version:
        action = ACTION_UPDATE
        changelog = compile_changelog(versions, node.current_version, target.version)

    return ResolutionResult.from_node(
        node,
        title=name,
        action=action,
        target_version=target,
        changelog=changelog,
    )
