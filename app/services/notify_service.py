"""
Notify service - broadcast run reports to chat channels

One ``NotifierSession`` is created per updater run and used as a context
manager, so the HTTP session is always closed. A destination that fails once
is skipped for the rest of the run; the others keep receiving messages.
"""

import logging
from typing import Dict, List, Optional, Sequence

import requests

log = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Split on line boundaries so every chunk fits the channel limit."""
    chunks = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current.strip():
        chunks.append(current)
    return chunks


class NotifierSession:
    """Posts text to chat channels through a Discord-style REST API."""

    def __init__(self, token: Optional[str], destinations: Sequence[str],
                 api_base="https://discord.com/api/v10", timeout=15, http=None):
        self.token = token
        self.destinations = list(destinations or [])
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.failed = set()
        self._http = http
        self._connected = None

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.destinations)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def connect(self) -> bool:
        """Open the HTTP session and check the token, once per run."""
        if self._connected is not None:
            return self._connected
        if not self.enabled:
            self._connected = False
            return False

        if self._http is None:
            self._http = requests.Session()
        self._http.headers.update({
            "Authorization": f"Bot {self.token}",
            "User-Agent": "VSRunner/1.0",
        })
        try:
            r = self._http.get(f"{self.api_base}/users/@me", timeout=self.timeout)
            r.raise_for_status()
            self._connected = True
            log.info("[NOTIFY] Connected")
        except requests.RequestException as e:
            log.error(f"[NOTIFY] Could not connect: {e}")
            self.failed.update(self.destinations)
            self._connected = False
        return self._connected

    def post(self, destination: str, text: str) -> bool:
        """Send ``text`` to one destination. Returns False if it is (now) failed."""
        if destination in self.failed:
            return False
        if not self.connect():
            return False

        try:
            for chunk in split_message(text):
                r = self._http.post(
                    f"{self.api_base}/channels/{destination}/messages",
                    json={"content": chunk},
                    timeout=self.timeout,
                )
                r.raise_for_status()
        except requests.RequestException as e:
            log.error(f"[NOTIFY] Send to {destination} failed, skipping it for this run: {e}")
            self.failed.add(destination)
            return False
        return True

    def broadcast(self, text: str) -> Dict[str, bool]:
        return {dest: self.post(dest, text) for dest in self.destinations}

    def publish(self, title: str, messages: Sequence[str]) -> None:
        """Title once, then each message, to every healthy destination."""
        if not self.enabled or not messages:
            return
        for text in [title, *messages]:
            self.broadcast(text)

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None
        self._connected = None
