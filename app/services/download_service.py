"""
Download service - archive transport and the local mods directory

Archives are stored as ``<mods_dir>/<mod id>.zip``; the part of the file name
before the first dot is the mod id.
"""

import logging
import os
import tempfile
from typing import Dict

import requests

log = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


def download_archive(url, session=None, timeout=120) -> bytes:
    """Download a mod archive and return its raw bytes."""
    getter = session or requests
    r = getter.get(url, timeout=timeout, headers={"User-Agent": "VSRunner/1.0"})
    r.raise_for_status()
    return r.content


def archive_path(mods_dir: str, mod_id: str) -> str:
    return os.path.join(mods_dir, f"{mod_id}{ARCHIVE_SUFFIX}")


def store_archive(mods_dir: str, mod_id: str, data: bytes) -> str:
    """Write an archive to the mods directory without leaving partial files behind."""
    os.makedirs(mods_dir, exist_ok=True)
    path = archive_path(mods_dir, mod_id)

    fd, tmp_path = tempfile.mkstemp(prefix=f".{mod_id}-", suffix=".part", dir=mods_dir)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    log.info(f"[DOWNLOAD] Saved {os.path.basename(path)} ({len(data)/1024:.0f} KB)")
    return path


def list_archives(mods_dir: str) -> Dict[str, str]:
    """Map mod id -> file name for every archive in the mods directory."""
    archives = {}
    if not os.path.isdir(mods_dir):
        return archives
    for fn in sorted(os.listdir(mods_dir)):
        if fn.startswith(".") or not fn.endswith(ARCHIVE_SUFFIX):
            continue
        if os.path.isfile(os.path.join(mods_dir, fn)):
            archives[fn.split(".")[0]] = fn
    return archives


def remove_archive(mods_dir: str, file_name: str) -> None:
    os.remove(os.path.join(mods_dir, file_name))
    log.info(f"[DOWNLOAD] Removed {file_name}")
