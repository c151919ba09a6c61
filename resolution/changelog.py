"""Changelog compilation across a range of releases."""

from typing import Iterable, Optional

from resolution.models import VersionRecord


def compile_changelog(versions: Iterable[VersionRecord], old_version: Optional[str], new_version: str) -> str:
    """
    Collect changelogs for every release after ``old_version`` up to and
    including ``new_version``, newest first.

    ``versions`` must be newest first, as the mod page lists them. If
    ``old_version`` is older than the fetched window, everything from
    ``new_version`` down is included. Only the newest entry keeps its
    ``Version X:`` header; the others are separated by a blank line.
    """
    entries = []
    collecting = False

    for record in versions:
        if record.version == new_version:
            collecting = True
        elif record.version == old_version:
            break

        if collecting:
            if entries:
                entries.append(f"{record.changelog}\n")
            else:
                entries.append(f"Version {record.version}:\n{record.changelog}\n")

    return "\n".join(entries)
