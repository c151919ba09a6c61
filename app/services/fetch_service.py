"""
Fetch service - remote mod page -> title + recent releases

The updater only talks to ``VersionFetcher``. ``ModDbFetcher`` is the
implementation for the public mod DB; everything it knows about the page
markup stays in this module.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from resolution.models import ModPage, VersionRecord
from resolution.versions import parse_version

log = logging.getLogger(__name__)

USER_AGENT = "VSRunner/1.0"

_RANGE = re.compile(r"^\s*(\S+)\s+[-–]\s+(\S+)\s*$")


class FetchError(Exception):
    """The mod page could not be retrieved."""


class VersionFetcher(ABC):
    """Boundary between the updater and wherever release listings come from."""

    @abstractmethod
    def fetch_mod_page(self, url: str) -> ModPage:
        """Return the mod title and its most recent releases, newest first."""
        ...


def _strip_v(value: str) -> str:
    return re.sub(r"^[#vV]+", "", value.strip())


def _lines(element) -> List[str]:
    """Non-empty, trimmed text lines of an element."""
    return [line.strip() for line in element.get_text("\n").split("\n") if line.strip()]


def expand_game_versions(values: List[str]) -> List[str]:
    """Expand ``1.19.0 - 1.19.3`` style ranges into discrete patch versions."""
    expanded = []
    for value in values:
        match = _RANGE.match(value)
        if not match:
            if value.strip():
                expanded.append(_strip_v(value))
            continue

        low_text, high_text = _strip_v(match.group(1)), _strip_v(match.group(2))
        low, high = parse_version(low_text), parse_version(high_text)
        if (low.major, low.minor) == (high.major, high.minor) and low.has_patch and high.has_patch \
                and low.patch <= high.patch:
            expanded.extend(f"{low.major}.{low.minor}.{patch}" for patch in range(low.patch, high.patch + 1))
        else:
            expanded.extend([low_text, high_text])
    return expanded


def _parse_game_versions(cell) -> List[str]:
    # Multi-version releases carry the full list in the tag tooltip
    tag = cell.select_one(".tag")
    if tag is not None and tag.get("title"):
        return expand_game_versions(tag["title"].split(","))

    text = cell.get_text().strip()
    first = text.split()[0] if text else ""
    return expand_game_versions([first])


def _parse_download(cell, base_url: str) -> Optional[str]:
    button = cell.select_one("a.downloadbutton")
    if button is None or not button.get("href"):
        return None
    return urljoin(base_url, button["href"])


def _parse_row(row, base_url: str) -> Optional[VersionRecord]:
    cells = row.find_all("td", recursive=False)
    if not cells:
        return None

    version_cell = cells[0]
    changelog_div = version_cell.select_one(".changelogtext")
    changelog = "\n".join(_lines(changelog_div)) if changelog_div is not None else ""
    if changelog_div is not None:
        changelog_div.extract()

    heading = _lines(version_cell)
    version = _strip_v(heading[0]) if heading else ""
    if not version:
        return None

    return VersionRecord(
        version=version,
        game_versions=_parse_game_versions(cells[1]) if len(cells) > 1 else [],
        release_date=cells[3].get_text().strip() if len(cells) > 3 else None,
        changelog=changelog,
        download_file=_parse_download(cells[5], base_url) if len(cells) > 5 else None,
    )


def parse_mod_page(page_html: str, base_url: str, recent_count: int = 10) -> ModPage:
    """Extract title and the ``recent_count`` newest releases from a mod page."""
    soup = BeautifulSoup(page_html, "html.parser")

    title_span = soup.select_one("span.title")
    title = re.sub(r"\s+", " ", title_span.get_text()).strip() if title_span is not None else ""

    versions = []
    table = soup.select_one('table[id="Connection types"]')
    if table is not None:
        # Only the release table's own rows; changelogs may contain tables too
        rows = table.select(":scope > tbody > tr") or table.select(":scope > tr")
        for row in rows:
            if len(versions) >= recent_count:
                break
            record = _parse_row(row, base_url)
            if record is not None:
                versions.append(record)

    return ModPage(title=title, versions=versions)


class ModDbFetcher(VersionFetcher):
    """Scrape release listings from the public mod DB."""

    def __init__(self, base_url="https://mods.vintagestory.at", recent_count=10, timeout=30, session=None):
        self.base_url = base_url
        self.recent_count = recent_count
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    def fetch_mod_page(self, url: str) -> ModPage:
        log.info(f"[FETCH] Fetching mod info for: {url}")
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        page = parse_mod_page(r.text, self.base_url, self.recent_count)

        if page.versions:
            log.info(f"[FETCH] {page.title}")
            for record in page.versions:
                log.info(f"[FETCH] ({record.release_date}) {record.version} - Supports: {', '.join(record.game_versions)}")
        else:
            log.warning(f"[FETCH] No versions found on {url}")

        return page
