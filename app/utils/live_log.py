"""Server log parsing for the status monitor."""

import os
import re
import time
from datetime import datetime
from typing import Dict, Any, Optional

SERVER_RUNNING = "[Server Event] Dedicated Server now running"
_JOINS = re.compile(r"\[Server Event\] .* joins\.")
_LEAVES = re.compile(r"\[Server Event\] Player .* left\.|\[Server Event\] Player .* got removed\.")


def parse_log_date(text: str) -> datetime:
    """Server log dates are day.month.year, e.g. ``2.5.2023 21:33:53``."""
    return datetime.strptime(text.strip(), "%d.%m.%Y %H:%M:%S")


def read_server_log(log_file: str, now: Optional[float] = None) -> Dict[str, Any]:
    """Derive server status from its log file."""
    try:
        if not os.path.exists(log_file):
            return {"status": "unknown", "uptime": None}

        with open(log_file, encoding="utf-8", errors="replace") as f:
            content = f.read()

        if content.strip().startswith("down"):
            return {"status": "down", "uptime": None}

        running_line = next((line for line in content.split("\n") if SERVER_RUNNING in line), None)

        game_uptime = None
        if running_line:
            parts = running_line.split(" ")
            if len(parts) >= 2:
                game_uptime = f"{parts[0]} {parts[1]}"

        connects = len(_JOINS.findall(content))
        disconnects = len(_LEAVES.findall(content))

        if not game_uptime:
            return {"status": "starting", "uptime": int(now if now is not None else time.time())}

        return {
            "status": "running",
            "uptime": {"date": game_uptime},
            "info": {"players": max(0, connects - disconnects)},
        }
    except OSError as e:
        return {"status": "error", "uptime": None, "error": str(e)}


def sanitize_server_status(status: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize ``uptime`` to a unix timestamp."""
    uptime = status.get("uptime")
    if isinstance(uptime, dict):
        try:
            if uptime.get("date"):
                status["uptime"] = int(parse_log_date(uptime["date"]).timestamp())
            elif uptime.get("iso"):
                status["uptime"] = int(datetime.fromisoformat(uptime["iso"]).timestamp())
            elif uptime.get("unix"):
                status["uptime"] = int(float(uptime["unix"]))
        except ValueError:
            status["uptime"] = None
    return status
