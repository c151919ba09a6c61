"""Tests for target version selection."""

import logging

from conftest import GAME_VERSION, record
from resolution.models import ACTION_UP_TO_DATE, ACTION_UPDATE, DependencyNode
from resolution.selector import compatible_candidates, rank_candidates, select_version


def node(current=None, **kwargs):
    return DependencyNode(id="carryon", url="https://mods.vintagestory.at/carryon",
                          current_version=current, **kwargs)


class TestTiers:

    def test_exact_tier_wins(self):
        versions = [record("3.0.0", ["1.21.0"]), record("2.1.0", ["1.20.4"]), record("2.0.0", ["1.20.0"])]
        tier, candidates = compatible_candidates(versions, GAME_VERSION)
        assert tier == "exact"
        assert [v.version for v in candidates] == ["2.1.0"]

    def test_minor_tier_skips_future_patch(self):
        versions = [record("2.2.0", ["1.20.6"]), record("2.1.0", ["1.20.2"])]
        tier, candidates = compatible_candidates(versions, GAME_VERSION)
        assert tier == "minor"
        assert [v.version for v in candidates] == ["2.1.0"]

    def test_below_tier(self):
        versions = [record("3.0.0", ["1.21.0"]), record("2.0.0", ["1.19.8"])]
        tier, candidates = compatible_candidates(versions, GAME_VERSION)
        assert tier == "below"
        assert [v.version for v in candidates] == ["2.0.0"]

    def test_any_tier(self):
        versions = [record("3.0.0", ["1.21.0"]), record("2.5.0", ["1.22.0"])]
        tier, candidates = compatible_candidates(versions, GAME_VERSION)
        assert tier == "any"
        assert len(candidates) == 2

    def test_any_supported_version_qualifies(self):
        versions = [record("2.0.0", ["1.19.8", "1.20.4"])]
        tier, _ = compatible_candidates(versions, GAME_VERSION)
        assert tier == "exact"


class TestRanking:

    def test_sorted_descending(self):
        ranked = rank_candidates([record("1.2.0"), record("1.10.0"), record("1.9.1")])
        assert [v.version for v in ranked] == ["1.10.0", "1.9.1", "1.2.0"]

    def test_stable_preferred_over_higher_prerelease(self):
        ranked = rank_candidates([record("2.0.0-rc.1"), record("1.9.0")])
        assert ranked[0].version == "1.9.0"

    def test_prerelease_used_when_nothing_stable(self):
        ranked = rank_candidates([record("2.0.0-rc.2"), record("2.0.0-rc.1")])
        assert ranked[0].version == "2.0.0-rc.2"

    def test_prefer_stable_disabled(self):
        ranked = rank_candidates([record("2.0.0-rc.1"), record("1.9.0")], prefer_stable=False)
        assert ranked[0].version == "2.0.0-rc.1"


class TestSelectVersion:

    def test_update_when_newer_compatible(self):
        versions = [record("1.1.0"), record("1.0.0")]
        result = select_version(node("1.0.0"), versions, GAME_VERSION)

        assert result.action == ACTION_UPDATE
        assert result.target_version.version == "1.1.0"
        assert result.changelog == "Version 1.1.0:\nChanges in 1.1.0\n"

    def test_up_to_date_when_same(self):
        result = select_version(node("1.1.0"), [record("1.1.0"), record("1.0.0")], GAME_VERSION)
        assert result.action == ACTION_UP_TO_DATE
        assert result.target_version.version == "1.1.0"
        assert result.changelog is None

    def test_empty_versions(self):
        result = select_version(node("1.0.0"), [], GAME_VERSION)
        assert result.action == ACTION_UP_TO_DATE
        assert result.target_version is None

    def test_not_installed_becomes_update(self):
        result = select_version(node(None), [record("1.0.0")], GAME_VERSION)
        assert result.action == ACTION_UPDATE

    def test_locked_version_found(self):
        versions = [record("1.2.0"), record("1.1.0"), record("1.0.0")]
        result = select_version(node("1.0.0", lock_to_version="1.1.0"), versions, GAME_VERSION)
        assert result.action == ACTION_UPDATE
        assert result.target_version.version == "1.1.0"
        assert result.lock_to_version == "1.1.0"

    def test_locked_version_already_installed(self):
        versions = [record("1.2.0"), record("1.1.0")]
        result = select_version(node("1.1.0", lock_to_version="1.1.0"), versions, GAME_VERSION)
        assert result.action == ACTION_UP_TO_DATE

    def test_locked_version_missing(self, caplog):
        versions = [record("1.2.0"), record("1.1.0")]
        with caplog.at_level(logging.WARNING):
            result = select_version(node("1.0.0", lock_to_version="0.9.0"), versions, GAME_VERSION)

        assert result.action == ACTION_UP_TO_DATE
        assert result.target_version is None
        assert "0.9.0" in caplog.text

    def test_locked_ignores_compatibility(self):
        versions = [record("1.2.0", ["1.20.4"]), record("1.1.0", ["1.18.0"])]
        result = select_version(node("1.2.0", lock_to_version="1.1.0"), versions, GAME_VERSION)
        assert result.target_version.version == "1.1.0"

    def test_title_and_node_fields_carried(self):
        n = node("1.0.0", auto=True, required_by=["expanded"], requires=["https://x/y"])
        result = select_version(n, [record("1.0.0")], GAME_VERSION, title="Carry On")
        assert result.title == "Carry On"
        assert result.auto
        assert result.required_by == ["expanded"]
        assert result.requires == ["https://x/y"]
