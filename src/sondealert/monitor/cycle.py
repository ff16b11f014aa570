"""
One poll cycle: locate the tracked entity, fetch nearby landings, alert once per landing.

Failure scoping:
- location/landing fetch (`UpstreamError`) and dedup load (`StorageError`) abort the cycle;
  the exception propagates to the scheduler, and the dedup file is untouched.
- everything per landing (timestamp parse, event firing, notification, save) is recorded
  as a `CycleIssue` on the report and logged; processing continues with the next landing.

A landing is marked notified only after its notification call succeeded, and the record is
saved before moving on, so a crash loses at most the landing in flight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Protocol

from sondealert.config.settings import Settings
from sondealert.core.errors import MalformedDataError, StorageError, UpstreamError
from sondealert.core.geo import Coordinate, distance_km
from sondealert.core.time import format_elapsed, parse_rfc3339
from sondealert.domain.models import AlertContext, LandingEvent, SondeAlertEvent
from sondealert.state.dedup_store import DedupRecord

logger = logging.getLogger(__name__)


class LocationSource(Protocol):
    def current_location(self, entity_id: str | None = None) -> Coordinate: ...


class EventSource(Protocol):
    def nearby_landings(self, center: Coordinate, radius_km: float) -> dict[str, LandingEvent]: ...


class AlertSink(Protocol):
    def send_alert(self, title: str, message: str, *, link: str | None = None) -> None: ...

    def fire_event(self, event: SondeAlertEvent) -> None: ...


class RecordStore(Protocol):
    def load(self) -> DedupRecord: ...

    def is_notified(self, record: DedupRecord, sonde_id: str) -> bool: ...

    def mark_notified(self, record: DedupRecord, sonde_id: str) -> None: ...

    def save(self, record: DedupRecord) -> None: ...


@dataclass(frozen=True)
class CycleIssue:
    """A non-fatal failure observed during a cycle."""

    operation: str
    event_id: str | None
    error: str


@dataclass
class CycleReport:
    """Side effects of one cycle."""

    location: Coordinate | None = None
    events_seen: int = 0
    notified: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    issues: list[CycleIssue] = field(default_factory=list)
    record: DedupRecord | None = None

    def add_issue(self, operation: str, event_id: str | None, error: Exception) -> None:
        self.issues.append(CycleIssue(operation=operation, event_id=event_id, error=str(error)))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_alert(
    event: LandingEvent,
    *,
    user_location: Coordinate,
    landed_at: datetime,
    now: datetime,
    settings: Settings,
) -> AlertContext:
    """Compute distance/age for one landing and compose its message and deep link."""
    km = distance_km(user_location, event.location)
    age = now - landed_at
    link = f"{settings.sondehub.tracker_url.rstrip('/')}/{event.id}"
    message = (
        f"📡 Sonde {event.id} at {event.altitude:.0f} m about {format_elapsed(age)} ago, "
        f"{km:.1f} km away"
    )
    return AlertContext(
        event=event,
        user_location=user_location,
        distance_km=km,
        age_since_landing=age,
        tracked_entity_id=settings.hub.entity_id or "",
        link=link,
        message=message,
    )


def to_audit_event(alert: AlertContext) -> SondeAlertEvent:
    return SondeAlertEvent(
        sonde_id=alert.event.id,
        sonde_lat=alert.event.location.latitude,
        sonde_lon=alert.event.location.longitude,
        sonde_alt=alert.event.altitude,
        distance_km=alert.distance_km,
        user=alert.tracked_entity_id,
        user_lat=alert.user_location.latitude,
        user_lon=alert.user_location.longitude,
        sonde_url=alert.link,
        landed_ago=format_elapsed(alert.age_since_landing),
        message=alert.message,
    )


class CycleController:
    """Runs one fetch-evaluate-notify pass with injected collaborators."""

    def __init__(
        self,
        settings: Settings,
        *,
        location_source: LocationSource,
        event_source: EventSource,
        notifier: AlertSink,
        store: RecordStore,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._settings = settings
        self._location_source = location_source
        self._event_source = event_source
        self._notifier = notifier
        self._store = store
        self._clock = clock

    def run(self) -> CycleReport:
        """Execute one cycle.

        Raises:
            UpstreamError: If the location or landing fetch fails.
            StorageError: If the dedup record cannot be loaded.
        """
        report = CycleReport()
        entity_id = self._settings.hub.entity_id
        radius_km = float(self._settings.monitor.radius_km or 0)

        location = self._location_source.current_location(entity_id)
        report.location = location

        landings = self._event_source.nearby_landings(location, radius_km)
        report.events_seen = len(landings)
        if not landings:
            logger.info("No nearby landed sondes.")
            return report

        record = self._store.load()
        report.record = record

        for sonde_id, event in landings.items():
            self._process(sonde_id, event, location, record, report)

        logger.info(
            "Cycle complete: %d landings, %d notified, %d already notified, %d issues",
            report.events_seen,
            len(report.notified),
            len(report.skipped),
            len(report.issues),
        )
        return report

    def _process(
        self,
        sonde_id: str,
        event: LandingEvent,
        location: Coordinate,
        record: DedupRecord,
        report: CycleReport,
    ) -> None:
        if self._store.is_notified(record, sonde_id):
            logger.debug("Already notified about sonde %s", sonde_id)
            report.skipped.append(sonde_id)
            return

        try:
            landed_at = parse_rfc3339(event.observed_at)
        except MalformedDataError as exc:
            logger.warning("Could not parse time for sonde %s: %s", sonde_id, exc)
            report.add_issue("parse_timestamp", sonde_id, exc)
            return

        alert = build_alert(
            event,
            user_location=location,
            landed_at=landed_at,
            now=self._clock(),
            settings=self._settings,
        )
        logger.info("%s", alert.message)

        try:
            self._notifier.fire_event(to_audit_event(alert))
        except UpstreamError as exc:
            logger.warning("Failed to fire event for %s: %s", sonde_id, exc)
            report.add_issue("fire_event", sonde_id, exc)

        try:
            self._notifier.send_alert(self._settings.hub.notify.alert_title, alert.message, link=alert.link)
        except UpstreamError as exc:
            logger.warning("Failed to notify for %s: %s", sonde_id, exc)
            report.add_issue("send_alert", sonde_id, exc)
            return

        self._store.mark_notified(record, sonde_id)
        report.notified.append(sonde_id)
        try:
            self._store.save(record)
        except StorageError as exc:
            logger.error("Failed to persist dedup record after notifying %s: %s", sonde_id, exc)
            report.add_issue("save", sonde_id, exc)
