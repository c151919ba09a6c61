"""Pytest configuration and fixtures."""

import json
from datetime import datetime, timezone

import pytest

from app.services.fetch_service import FetchError, VersionFetcher
from resolution.models import ModPage, VersionRecord

GAME_VERSION = "1.20.4"
NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
MODDB = "https://mods.vintagestory.at"


def record(version, game_versions=(GAME_VERSION,), changelog=None, download=True):
    return VersionRecord(
        version=version,
        game_versions=list(game_versions),
        release_date="2024-05-01",
        changelog=changelog if changelog is not None else f"Changes in {version}",
        download_file=f"{MODDB}/download/{version}.zip" if download else None,
    )


class FakeFetcher(VersionFetcher):
    """Serves canned mod pages and records which URLs were requested."""

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.calls = []

    def fetch_mod_page(self, url):
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(f"Failed to fetch {url}: 404")
        return self.pages[url]


class FakeDownloader:
    def __init__(self, payload=b"PK\x03\x04 archive"):
        self.payload = payload
        self.urls = []

    def __call__(self, url):
        self.urls.append(url)
        return self.payload


class RecordingNotifier:
    """Stands in for NotifierSession; records publish calls and closing."""

    def __init__(self):
        self.published = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    def publish(self, title, messages):
        self.published.append((title, list(messages)))


@pytest.fixture
def mods_dir(tmp_path):
    path = tmp_path / "Mods"
    path.mkdir()
    return path


@pytest.fixture
def manifest_path(tmp_path):
    return tmp_path / "Mods.json5"


@pytest.fixture
def write_manifest(manifest_path):
    def _write(data):
        manifest_path.write_text(json.dumps(data, indent="\t"))
        return manifest_path
    return _write


@pytest.fixture
def read_manifest(manifest_path):
    def _read():
        return json.loads(manifest_path.read_text())
    return _read


@pytest.fixture
def cfg(mods_dir, manifest_path):
    return {
        "game_version": GAME_VERSION,
        "mods_dir": str(mods_dir),
        "manifest_path": str(manifest_path),
        "stale_hours": 23,
        "fetch_delay": 1.0,
        "download_delay": 5.0,
        "prefer_stable": True,
    }


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_updater(cfg, fetcher, downloader, notifier, sleeps):
    from mod_updater import ModUpdater

    def _make(**overrides):
        options = dict(
            fetcher=fetcher,
            downloader=downloader,
            notifier_factory=lambda: notifier,
            sleep=sleeps.append,
            clock=lambda: NOW,
        )
        options.update(overrides)
        return ModUpdater(cfg, **options)
    return _make


def page(title, *versions):
    return ModPage(title=title, versions=list(versions))
