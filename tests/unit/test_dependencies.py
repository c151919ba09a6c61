"""Tests for dependency expansion."""

from resolution.dependencies import mod_id_from_url, resolve_dependencies
from resolution.models import ManifestEntry

BASE = "https://mods.vintagestory.at"


def entry(mod_id, **kwargs):
    return ManifestEntry(url=f"{BASE}/{mod_id}", **kwargs)


def test_mod_id_from_url():
    assert mod_id_from_url(f"{BASE}/carryon") == "carryon"
    assert mod_id_from_url(f"{BASE}/carryon/") == "carryon"


def test_manual_entries_become_nodes():
    nodes = resolve_dependencies({
        "carryon": entry("carryon", version="1.7.0", game_version="1.20.0", title="Carry On"),
    })

    node = nodes["carryon"]
    assert node.current_version == "1.7.0"
    assert node.game_version == "1.20.0"
    assert node.title == "Carry On"
    assert not node.auto
    assert node.required_by == []


def test_requires_create_auto_nodes_seeded_from_manifest():
    nodes = resolve_dependencies({
        "expanded": entry("expanded", version="2.0.0", requires=[f"{BASE}/commonlib"]),
        "commonlib": entry("commonlib", version="1.1.0", auto=True, last_updated="2024-01-01T00:00:00.000Z"),
    })

    dep = nodes["commonlib"]
    assert dep.auto
    assert dep.current_version == "1.1.0"
    assert dep.last_updated == "2024-01-01T00:00:00.000Z"
    assert dep.required_by == ["expanded"]


def test_unknown_dependency_has_no_installed_version():
    nodes = resolve_dependencies({
        "expanded": entry("expanded", requires=[f"{BASE}/newlib"]),
    })
    assert nodes["newlib"].current_version is None
    assert nodes["newlib"].auto


def test_shared_dependency_accumulates_requirers():
    nodes = resolve_dependencies({
        "a": entry("a", requires=[f"{BASE}/lib"]),
        "b": entry("b", requires=[f"{BASE}/lib"]),
    })

    assert list(nodes) == ["a", "lib", "b"]
    assert nodes["lib"].required_by == ["a", "b"]


def test_auto_entries_are_not_walked():
    nodes = resolve_dependencies({
        "lonelylib": entry("lonelylib", auto=True),
    })
    assert nodes == {}


def test_manual_dependency_does_not_track_requirers():
    nodes = resolve_dependencies({
        "lib": entry("lib", version="1.0.0"),
        "a": entry("a", requires=[f"{BASE}/lib"]),
    })
    assert not nodes["lib"].auto
    assert nodes["lib"].required_by == []


def test_later_manual_declaration_clears_auto():
    nodes = resolve_dependencies({
        "a": entry("a", requires=[f"{BASE}/lib"]),
        "lib": entry("lib", version="3.0.0"),
    })
    assert not nodes["lib"].auto
    assert nodes["lib"].current_version == "3.0.0"
    assert nodes["lib"].required_by == []


def test_disabled_mod_does_not_pull_in_requires():
    nodes = resolve_dependencies({
        "expanded": entry("expanded", disabled=True, requires=[f"{BASE}/commonlib"]),
        "commonlib": entry("commonlib", version="0.5.0", auto=True),
    })
    assert list(nodes) == ["expanded"]
    assert nodes["expanded"].requires == [f"{BASE}/commonlib"]


def test_dependency_shared_with_disabled_mod_tracks_enabled_requirer():
    nodes = resolve_dependencies({
        "off": entry("off", disabled=True, requires=[f"{BASE}/lib"]),
        "on": entry("on", requires=[f"{BASE}/lib"]),
    })
    assert nodes["lib"].required_by == ["on"]
