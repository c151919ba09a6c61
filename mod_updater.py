#!/usr/bin/env python3
"""
Mod Updater - keeps the server's mods in sync with Mods.json5
Manages:
- Dependency expansion of manually declared mods
- Version resolution against the mod DB (exact / minor / older fallback, locks)
- Archive downloads, orphan and disabled-mod cleanup
- Manifest rewrite and a categorized report, optionally broadcast
- Periodic runs via a background scheduler
"""

import logging
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

import requests
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.services.download_service import download_archive, list_archives, remove_archive, store_archive
from app.services.fetch_service import FetchError, ModDbFetcher
from app.services.manifest_service import load_manifest, save_manifest
from app.services.notify_service import NotifierSession
from app.utils.config import require_game_version
from resolution.dependencies import resolve_dependencies
from resolution.models import (
    DependencyNode,
    ManifestEntry,
    ReportLine,
    ResolutionResult,
    UpdateReport,
)
from resolution.selector import select_version
from resolution.versions import is_exact_match, is_minor_match

log = logging.getLogger(__name__)


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    if not text:
        return None
    try:
        moment = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        log.warning(f"[UPDATER] Ignoring unreadable timestamp: {text}")
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def declared_game_versions(game_version: Optional[str]) -> List[str]:
    return [v.strip() for v in (game_version or "").split(",") if v.strip()]


def find_undeclared(manifest: Dict[str, ManifestEntry], game_version: str) -> List[ReportLine]:
    """Mods whose declared game versions match the server at neither the exact nor the minor tier."""
    lines = []
    for mod_id, entry in manifest.items():
        declared = declared_game_versions(entry.game_version)
        if not declared:
            continue
        if any(is_exact_match(game_version, v) or is_minor_match(game_version, v) for v in declared):
            continue
        title = entry.title or mod_id
        lines.append(ReportLine(
            id=mod_id,
            title=title,
            text=(f"{title} ({mod_id})\n"
                  f"      Version: {entry.version}\n"
                  f"      Supported Versions: {entry.game_version}"),
        ))
    return lines


REPORT_SECTIONS = (
    ("up_to_date", "✅ Up to date"),
    ("installed", "✅ Newly installed"),
    ("updated", "✅ Updated"),
    ("uninstalled", "⛔ Uninstalled (disabled)"),
    ("deleted", "❌ Deleted"),
    ("failed", "⚠ Failed"),
)

# Categories worth broadcasting; up-to-date mods are only logged.
NOTIFY_SECTIONS = ("installed", "updated", "uninstalled", "deleted", "failed")


def format_section(report: UpdateReport, key: str, heading: str) -> str:
    lines = getattr(report, key)
    if not lines:
        return ""
    text = f"{heading}:\n"
    for line in lines:
        text += f"  - {line.text}\n"
        if line.changelog:
            text += "".join(f"      {row}\n" for row in line.changelog.rstrip("\n").split("\n"))
    return text


def format_undeclared(report: UpdateReport, game_version: str) -> str:
    if not report.not_declared:
        return ""
    text = f"Mods not declared for game version {game_version}:\n"
    for line in report.not_declared:
        text += f"  - {line.text}\n"
    return text


def report_messages(report: UpdateReport, game_version: str, sections=NOTIFY_SECTIONS) -> List[str]:
    """One message per non-empty reportable category, in a fixed order."""
    headings = dict(REPORT_SECTIONS)
    messages = [format_section(report, key, headings[key]) for key in sections]
    messages.append(format_undeclared(report, game_version))
    return [m for m in messages if m]


class ModUpdater:
    def __init__(self, cfg, fetcher=None, downloader=None, notifier_factory=None,
                 sleep=time.sleep, clock=None):
        self.cfg = cfg
        self.game_version = require_game_version(cfg)
        self.mods_dir = cfg.get("mods_dir", "/data/Mods")
        self.manifest_path = cfg.get("manifest_path", "/configs/Mods.json5")
        self.stale_hours = float(cfg.get("stale_hours", 23))
        self.fetch_delay = float(cfg.get("fetch_delay", 1.0))
        self.download_delay = float(cfg.get("download_delay", 5.0))
        self.prefer_stable = bool(cfg.get("prefer_stable", True))
        self.fetcher = fetcher or ModDbFetcher(
            base_url=cfg.get("moddb_url", "https://mods.vintagestory.at"),
            recent_count=int(cfg.get("recent_count", 10)),
            timeout=cfg.get("request_timeout", 30),
        )
        self.downloader = downloader or download_archive
        self.notifier_factory = notifier_factory or self._default_notifier
        self.sleep = sleep
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.scheduler = None

    def _default_notifier(self):
        return NotifierSession(
            token=self.cfg.get("notify_token"),
            destinations=self.cfg.get("notify_channels") or [],
            api_base=self.cfg.get("notify_api", "https://discord.com/api/v10"),
        )

    # ------------------------------------------------------------------
    # Full pass
    # ------------------------------------------------------------------

    def run(self) -> UpdateReport:
        """Run one complete update pass and return its report."""
        with self.notifier_factory() as notifier:
            manifest = load_manifest(self.manifest_path)
            nodes = resolve_dependencies(manifest)
            now = self.clock()

            log.info(f"[UPDATER] Fetching mod info for {len(nodes)} mods (game version {self.game_version})...")
            results = self.resolve_all(nodes, now)

            report = UpdateReport()
            new_manifest = self.apply_results(manifest, results, report, now)
            self.cleanup_archives(results, report)
            save_manifest(self.manifest_path, new_manifest)

            report.not_declared = find_undeclared(load_manifest(self.manifest_path), self.game_version)
            self.log_report(report)

            title = f"{self.cfg.get('notify_title', 'Mod updates')} ({self.game_version})"
            notifier.publish(title, report_messages(report, self.game_version))

        log.info("[UPDATER] Done!")
        return report

    def is_fresh(self, last_updated: Optional[str], now: datetime) -> bool:
        """True if the mod was resolved within the staleness window."""
        moment = parse_timestamp(last_updated)
        if moment is None:
            return False
        return (now - moment).total_seconds() / 3600 < self.stale_hours

    def resolve_node(self, node: DependencyNode, now: datetime) -> ResolutionResult:
        if node.disabled:
            return ResolutionResult.from_node(node)
        if self.is_fresh(node.last_updated, now):
            log.debug(f"[UPDATER] {node.id}: checked recently, using cached info")
            return ResolutionResult.from_node(node, cached=True)

        try:
            page = self.fetcher.fetch_mod_page(node.url)
        except FetchError as e:
            log.error(f"[UPDATER] {node.id}: {e}")
            return ResolutionResult.from_node(node, error=str(e))
        finally:
            # Pause out of kindness for the mod DB
            self.sleep(self.fetch_delay)

        return select_version(node, page.versions, self.game_version,
                              prefer_stable=self.prefer_stable, title=page.title or node.title)

    def resolve_all(self, nodes: Dict[str, DependencyNode], now: datetime) -> Dict[str, ResolutionResult]:
        """Resolve nodes in dependency-expansion order."""
        return {mod_id: self.resolve_node(node, now) for mod_id, node in nodes.items()}

    # ------------------------------------------------------------------
    # Applying results
    # ------------------------------------------------------------------

    def _entry_from_result(self, result: ResolutionResult, **overrides) -> ManifestEntry:
        values = dict(
            url=result.url,
            title=result.title,
            version=result.current_version,
            game_version=result.game_version,
            lock_to_version=result.lock_to_version,
            requires=list(result.requires),
            last_updated=result.last_updated,
            auto=result.auto,
            disabled=result.disabled,
        )
        values.update(overrides)
        return ManifestEntry(**values)

    def _carry_forward(self, result: ResolutionResult, manifest: Dict[str, ManifestEntry]) -> ManifestEntry:
        """Keep the previous entry untouched so the mod is retried next run."""
        existing = manifest.get(result.id)
        if existing is not None:
            return replace(existing, auto=result.auto)
        return self._entry_from_result(result)

    def _fail(self, report: UpdateReport, result: ResolutionResult, reason: str) -> None:
        log.error(f"[UPDATER] {result.display_title} ({result.id}): {reason}")
        report.failed.append(ReportLine(
            id=result.id,
            title=result.display_title,
            text=f"{result.display_title} ({result.id})  {reason}",
        ))

    def apply_update(self, result: ResolutionResult, manifest, report: UpdateReport, stamp: str) -> ManifestEntry:
        target = result.target_version
        url = target.download_file
        if not url:
            self._fail(report, result, "no download URL found")
            return self._carry_forward(result, manifest)

        log.info(f"[UPDATER] Downloading {result.display_title} ({result.id}) {target.version}")
        try:
            data = self.downloader(url)
        except requests.RequestException as e:
            self._fail(report, result, f"download failed: {e}")
            return self._carry_forward(result, manifest)

        store_archive(self.mods_dir, result.id, data)

        if result.current_version:
            report.updated.append(ReportLine(
                id=result.id,
                title=result.display_title,
                text=f"{result.display_title} ({result.id})  {result.current_version}  ->  {target.version}",
                changelog=result.changelog or None,
            ))
        else:
            report.installed.append(ReportLine(
                id=result.id,
                title=result.display_title,
                text=f"{result.display_title} ({result.id})  {target.version}",
            ))

        # Pause out of kindness for the CDN
        self.sleep(self.download_delay)

        return self._entry_from_result(
            result,
            version=target.version,
            game_version=", ".join(target.game_versions),
            last_updated=stamp,
        )

    def apply_results(self, manifest: Dict[str, ManifestEntry], results: Dict[str, ResolutionResult],
                      report: UpdateReport, now: datetime) -> Dict[str, ManifestEntry]:
        """Build the new manifest in title order, downloading what needs updating."""
        stamp = format_timestamp(now)
        new_manifest = {}

        for result in sorted(results.values(), key=lambda r: r.display_title.lower()):
            if result.disabled:
                new_manifest[result.id] = self._entry_from_result(result, version=None, game_version=None)
            elif result.cached:
                existing = manifest.get(result.id)
                if existing is not None:
                    new_manifest[result.id] = replace(existing, last_updated=stamp, auto=result.auto)
                else:
                    new_manifest[result.id] = self._entry_from_result(result, last_updated=stamp)
            elif result.needs_update:
                new_manifest[result.id] = self.apply_update(result, manifest, report, stamp)
            elif result.error:
                self._fail(report, result, "could not fetch mod info")
                new_manifest[result.id] = self._carry_forward(result, manifest)
            else:
                report.up_to_date.append(ReportLine(
                    id=result.id,
                    title=result.display_title,
                    text=f"{result.display_title} ({result.id})",
                ))
                new_manifest[result.id] = self._entry_from_result(result, last_updated=stamp)

        return new_manifest

    # ------------------------------------------------------------------
    # Archive cleanup
    # ------------------------------------------------------------------

    @staticmethod
    def is_orphan(mod_id: str, results: Dict[str, ResolutionResult]) -> bool:
        result = results.get(mod_id)
        if result is None:
            return True
        if result.auto:
            return not any(requirer in results for requirer in result.required_by)
        return False

    def cleanup_archives(self, results: Dict[str, ResolutionResult], report: UpdateReport) -> None:
        """Delete orphaned archives and uninstall disabled mods."""
        for mod_id, file_name in list_archives(self.mods_dir).items():
            if self.is_orphan(mod_id, results):
                remove_archive(self.mods_dir, file_name)
                report.deleted.append(ReportLine(id=mod_id, title=mod_id, text=mod_id))
            elif results[mod_id].disabled:
                result = results[mod_id]
                remove_archive(self.mods_dir, file_name)
                report.uninstalled.append(ReportLine(
                    id=mod_id,
                    title=result.display_title,
                    text=f"{result.display_title} ({mod_id})",
                ))

    def log_report(self, report: UpdateReport) -> None:
        text = ""
        for key, heading in REPORT_SECTIONS:
            section = format_section(report, key, heading)
            if section:
                text += f"\n{section}"
        if text:
            log.info(f"[UPDATER] Run summary:\n{text}")
        undeclared = format_undeclared(report, self.game_version)
        if undeclared:
            log.warning(f"[UPDATER] {undeclared}")

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def scheduled_run(self):
        """Scheduled task: one update pass. Errors are logged, the scheduler keeps going."""
        log.info("[UPDATER_TASK] Running scheduled mod update...")
        try:
            self.run()
        except Exception as e:
            log.exception(f"[UPDATER_TASK] Mod update failed: {e}")

    def start_scheduler(self, update_interval_hours=None, run_now=True):
        """Start background scheduler for periodic updates (never overlapping)."""
        if self.scheduler is not None and self.scheduler.running:
            log.warning("[UPDATER_SCHEDULER] Scheduler already running")
            return False

        if update_interval_hours is None:
            update_interval_hours = self.cfg.get("update_interval_hours", 4)
        update_interval_hours = max(0.25, float(update_interval_hours))

        job_options = {}
        if run_now:
            job_options["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            self.scheduled_run,
            IntervalTrigger(hours=update_interval_hours),
            id="mod_update",
            name=f"Update mods (every {update_interval_hours:g}h)",
            max_instances=1,
            coalesce=True,
            **job_options
        )
        self.scheduler.start()
        log.info(f"[UPDATER_SCHEDULER] Scheduler started - updates every {update_interval_hours:g}h")
        return True

    def stop_scheduler(self):
        """Stop background scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            log.info("[UPDATER_SCHEDULER] Scheduler stopped")
            return True
        return False
