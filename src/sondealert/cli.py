"""
sondealert CLI entrypoint.

Runs the landing monitor for one tracked person:

    sondealert --person person.trick --notified-file notified_trick.json

Shared values (hub URL, token, radius) come from the environment / `.env`; per-person
values come from flags so several instances can share one `.env`.
"""

from __future__ import annotations

import argparse
import logging
import signal
from pathlib import Path
from typing import Any

from sondealert.config.settings import Settings, get_settings, load_settings, missing_required
from sondealert.core.logging import configure_logging
from sondealert.ingestion.hub_client import HubClient
from sondealert.ingestion.sondehub_client import SondeHubClient
from sondealert.monitor.cycle import CycleController
from sondealert.monitor.scheduler import Scheduler
from sondealert.notify.notifier import Notifier
from sondealert.state.dedup_store import DedupStore

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2


def _apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return a copy of `settings` with flag values applied (the cached model is never mutated)."""
    hub_updates: dict[str, Any] = {}
    monitor_updates: dict[str, Any] = {}
    if args.person:
        hub_updates["entity_id"] = args.person
    if args.notified_file:
        monitor_updates["notified_file"] = args.notified_file
    if args.radius_km is not None:
        monitor_updates["radius_km"] = float(args.radius_km)
    if args.interval_seconds is not None:
        monitor_updates["poll_interval_seconds"] = float(args.interval_seconds)

    updates: dict[str, Any] = {}
    if hub_updates:
        updates["hub"] = settings.hub.model_copy(update=hub_updates)
    if monitor_updates:
        updates["monitor"] = settings.monitor.model_copy(update=monitor_updates)
    return settings.model_copy(update=updates) if updates else settings


def dedup_path(settings: Settings) -> Path:
    """Absolute dedup file path; relative values resolve against the working directory."""
    return Path(settings.monitor.notified_file or "").expanduser().resolve()


def build_scheduler(settings: Settings) -> Scheduler:
    """Wire the collaborators for one tracked entity."""
    hub = HubClient(settings)
    notifier = Notifier(settings, hub)
    store = DedupStore(dedup_path(settings))
    controller = CycleController(
        settings,
        location_source=hub,
        event_source=SondeHubClient(settings),
        notifier=notifier,
        store=store,
    )
    return Scheduler(
        controller,
        notifier,
        interval_seconds=settings.monitor.poll_interval_seconds,
        jitter_seconds=settings.monitor.jitter_seconds,
        error_title=settings.hub.notify.error_title,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the sondealert CLI."""
    parser = argparse.ArgumentParser(
        prog="sondealert",
        description="Notify a Home Assistant person when a radiosonde lands nearby.",
    )
    parser.add_argument("--person", type=str, default=None, help="Person entity id (e.g. person.trick)")
    parser.add_argument(
        "--notified-file",
        type=str,
        default=None,
        help="Dedup JSON path, relative to the working directory (e.g. notified_trick.json)",
    )
    parser.add_argument("--radius-km", type=float, default=None, help="Overrides DISTANCE_KM")
    parser.add_argument("--interval-seconds", type=float, default=None, help="Poll interval override")
    parser.add_argument("--config", type=str, default=None, help="YAML settings file (replaces defaults)")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m sondealert.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(config_path=args.config) if args.config else get_settings()
    settings = _apply_cli_overrides(settings, args)
    configure_logging(settings)

    missing = missing_required(settings)
    if missing:
        logger.error("Missing required configuration: %s", ", ".join(missing))
        return EXIT_CONFIG_ERROR

    scheduler = build_scheduler(settings)
    logger.info(
        "Starting sondealert for %s (file: %s, radius: %.1f km, interval: %.0f s)",
        settings.hub.entity_id,
        settings.monitor.notified_file,
        settings.monitor.radius_km,
        settings.monitor.poll_interval_seconds,
    )

    if args.once:
        return 0 if scheduler.run_once().ok else 1

    def _handle_signal(signum: int, _frame: Any) -> None:
        logger.info("Received signal %d, stopping after the current cycle", signum)
        scheduler.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
    scheduler.run_forever()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
