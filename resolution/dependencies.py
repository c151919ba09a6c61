"""Expand the manifest's manually declared mods into the full dependency set."""

import logging
from typing import Dict, Mapping

from resolution.models import DependencyNode, ManifestEntry

log = logging.getLogger(__name__)


def mod_id_from_url(url: str) -> str:
    """Mod id is the last path segment of its page URL."""
    return url.rstrip("/").split("/")[-1]


def resolve_dependencies(manifest: Mapping[str, ManifestEntry]) -> Dict[str, DependencyNode]:
    """
    Build one DependencyNode per reachable mod id.

    Only entries without the ``auto`` flag are walked. Each of their
    ``requires`` URLs yields an auto node seeded from whatever the manifest
    already knows about that id; when several manual mods need the same
    dependency the node is shared and ``required_by`` collects every requirer.
    Disabled entries do not expand their ``requires``. Auto entries
    nobody requires any more are simply not produced, which is what later
    marks their archives as orphans.
    """
    nodes: Dict[str, DependencyNode] = {}

    for entry in manifest.values():
        if entry.auto:
            continue

        mod_id = mod_id_from_url(entry.url)
        node = nodes.get(mod_id)
        if node is None:
            node = DependencyNode(id=mod_id, url=entry.url)
            nodes[mod_id] = node

        # Manual declaration wins over an earlier auto discovery
        node.auto = False
        node.required_by = []
        node.title = entry.title or node.title
        node.current_version = entry.version
        node.game_version = entry.game_version
        node.last_updated = entry.last_updated
        node.lock_to_version = entry.lock_to_version
        node.disabled = entry.disabled
        node.requires = list(entry.requires)

        # A disabled mod keeps its requires list but pulls nothing in
        if entry.disabled:
            continue

        for require_url in entry.requires:
            require_id = mod_id_from_url(require_url)
            dep = nodes.get(require_id)
            if dep is None:
                known = manifest.get(require_id)
                dep = DependencyNode(
                    id=require_id,
                    url=require_url,
                    title=known.title if known else None,
                    current_version=known.version if known else None,
                    game_version=known.game_version if known else None,
                    lock_to_version=known.lock_to_version if known else None,
                    requires=list(known.requires) if known else [],
                    last_updated=known.last_updated if known else None,
                    disabled=known.disabled if known else False,
                    auto=True,
                    required_by=[mod_id],
                )
                nodes[require_id] = dep
                log.debug(f"[DEPS] {require_id} pulled in by {mod_id}")
            elif dep.auto and mod_id not in dep.required_by:
                dep.required_by.append(mod_id)

    return nodes
