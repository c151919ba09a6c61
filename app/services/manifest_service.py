"""
Manifest service - the declarative Mods.json5 file

The manifest maps mod id -> entry (url, version, gameVersion, requires, ...).
It is read once at the start of a run and replaced wholesale at the end.
"""

import logging
import os
import re
import tempfile
from typing import Dict

import json5

from resolution.models import ManifestEntry

log = logging.getLogger(__name__)

_VOLATILE_URL_PART = re.compile(r"[?#].*$")


class ManifestError(Exception):
    """Manifest file is missing, unreadable or malformed."""


def normalize_url(url: str) -> str:
    """Strip query string and fragment so mod identity is stable across runs."""
    return _VOLATILE_URL_PART.sub("", url.strip())


def load_manifest(path: str) -> Dict[str, ManifestEntry]:
    """Read and normalize the manifest. Any problem is fatal for the run."""
    try:
        with open(path, encoding="utf-8") as f:
            raw = json5.load(f)
    except (OSError, ValueError) as e:
        raise ManifestError(f"Failed to read or parse {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ManifestError(f"{path} must contain a JSON object of mod id -> entry")

    manifest = {}
    for mod_id, data in raw.items():
        if not isinstance(data, dict) or not data.get("url"):
            raise ManifestError(f"Manifest entry '{mod_id}' has no url")
        entry = ManifestEntry.from_dict(data)
        entry.url = normalize_url(entry.url)
        entry.requires = [normalize_url(url) for url in entry.requires]
        manifest[mod_id] = entry

    log.info(f"[MANIFEST] Loaded {len(manifest)} entries from {path}")
    return manifest


def save_manifest(path: str, manifest: Dict[str, ManifestEntry]) -> None:
    """Write the manifest via a temp file in the same directory, then replace."""
    data = {mod_id: entry.to_dict() for mod_id, entry in manifest.items()}
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(prefix=".manifest-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json5.dump(data, f, indent="\t", ensure_ascii=False, quote_keys=True, trailing_commas=False)
            f.write("\n")
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    log.info(f"[MANIFEST] Wrote {len(manifest)} entries to {path}")
