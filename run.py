#!/usr/bin/env python3
"""
Vintage Story Server - Mod Updater
- Keeps mods in sync with Mods.json5 (dependencies, versions, cleanup)
- Periodic update runs via scheduler
- Update reports broadcast to chat channels
- Log-tailing status endpoint for health checks
"""

import sys, time, logging

from app.services.manifest_service import ManifestError, load_manifest
from app.utils.config import ConfigError, get_config, require_game_version
from mod_updater import ModUpdater, find_undeclared

log = logging.getLogger(__name__)

USAGE = """
VSRunner - mod updater for Vintage Story servers

Usage: python3 run.py <command>

Commands:
  update      Run one update pass (default)
  schedule    Run update passes periodically (update_interval_hours)
  monitor     Serve the server status endpoint on /api/check
  check       List mods not declared for the configured game version
  --help, -h  Show this help message
"""


def setup_logging(cfg):
    """Setup logging to console and, if configured, to a file"""
    handlers = [logging.StreamHandler()]
    if cfg.get("log_file"):
        handlers.append(logging.FileHandler(cfg["log_file"]))
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s | [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers
    )


def log_event(event_type, msg):
    """Log with event type tag"""
    log.info(f"[{event_type}] {msg}")


def update_command(cfg):
    updater = ModUpdater(cfg)
    updater.run()


def schedule_command(cfg):
    updater = ModUpdater(cfg)
    updater.start_scheduler(cfg.get("update_interval_hours", 4))
    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        log_event("SHUTDOWN", "Scheduler stopping")
        updater.stop_scheduler()


def monitor_command(cfg):
    from app import create_app
    from app.utils.server_status import StatusPoller

    poller = StatusPoller(cfg["monitor_log_file"], cfg.get("monitor_poll_seconds", 1))
    poller.start()
    app = create_app(cfg, poller=poller)
    port = int(cfg.get("monitor_port", 8080))
    log_event("MONITOR", f"Log monitor server started on port {port}: /api/check")
    try:
        app.run(host="0.0.0.0", port=port)
    finally:
        poller.stop()


def check_command(cfg):
    game_version = require_game_version(cfg)
    lines = find_undeclared(load_manifest(cfg["manifest_path"]), game_version)
    if not lines:
        print(f"All mods declare support for game version {game_version}")
        return
    print(f"\nMods not declared for game version {game_version}:")
    for line in lines:
        print(f"  - {line.text}")


COMMANDS = {
    "update": update_command,
    "schedule": schedule_command,
    "monitor": monitor_command,
    "check": check_command,
}


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    cmd = argv[0] if argv else "update"

    if cmd in ("--help", "-h"):
        print(USAGE)
        return 0
    if cmd not in COMMANDS:
        print(f"[ERROR] Unknown command: {cmd}")
        print("Use 'python3 run.py --help' for usage information")
        return 2

    try:
        cfg = get_config()
    except ConfigError as e:
        print(f"[ERROR] {e}")
        return 1
    setup_logging(cfg)

    try:
        COMMANDS[cmd](cfg)
    except (ConfigError, ManifestError) as e:
        log.error(f"[FATAL] {e}")
        return 1
    except Exception as e:
        log.exception(f"[FATAL] Mod updater failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
