"""Tests for changelog compilation."""

from conftest import record
from resolution.changelog import compile_changelog

VERSIONS = [record("2.0.0"), record("1.5.2"), record("1.5.1"), record("1.5.0")]


def test_range_is_newest_first_and_excludes_boundaries():
    text = compile_changelog(VERSIONS, "1.5.0", "1.5.2")

    assert text == "Version 1.5.2:\nChanges in 1.5.2\n\nChanges in 1.5.1\n"
    assert "1.5.0" not in text
    assert "2.0.0" not in text
    assert text.index("Changes in 1.5.2") < text.index("Changes in 1.5.1")


def test_only_newest_entry_keeps_header():
    text = compile_changelog(VERSIONS, "1.5.0", "2.0.0")
    assert text.startswith("Version 2.0.0:\n")
    assert "Version 1.5.2:" not in text
    assert "Version 1.5.1:" not in text


def test_old_version_outside_window_collects_to_end():
    text = compile_changelog(VERSIONS, "1.0.0", "1.5.1")
    assert text == "Version 1.5.1:\nChanges in 1.5.1\n\nChanges in 1.5.0\n"


def test_not_installed_collects_to_end():
    text = compile_changelog(VERSIONS, None, "1.5.2")
    assert "Changes in 1.5.0" in text


def test_unknown_new_version_is_empty():
    assert compile_changelog(VERSIONS, "1.5.0", "9.9.9") == ""


def test_single_step():
    assert compile_changelog(VERSIONS, "1.5.2", "2.0.0") == "Version 2.0.0:\nChanges in 2.0.0\n"
