"""Background poller keeping the latest server status in memory."""

import logging
import threading
from typing import Dict, Any, Optional

from .live_log import read_server_log, sanitize_server_status

log = logging.getLogger(__name__)


def get_server_status(log_file: str) -> Dict[str, Any]:
    """Current status derived from the server log."""
    return sanitize_server_status(read_server_log(log_file))


class StatusPoller:
    """Re-reads the server log every ``interval`` seconds on a daemon thread."""

    def __init__(self, log_file: str, interval: float = 1.0):
        self.log_file = log_file
        self.interval = interval
        self.last_status: Optional[Dict[str, Any]] = None
        self._stop = threading.Event()
        self._thread = None

    def poll(self) -> Dict[str, Any]:
        self.last_status = get_server_status(self.log_file)
        return self.last_status

    def _loop(self):
        while not self._stop.wait(self.interval):
            self.poll()

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self.poll()
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()
        log.info(f"[MONITOR] Polling {self.log_file} every {self.interval}s")

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
