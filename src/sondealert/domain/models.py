"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- landing records read from SondeHub (`LandingEvent`)
- the per-landing evaluation (`AlertContext`)
- outbound hub payloads, one model per endpoint shape

Each outbound payload has exactly one serialization method (`to_json`) so the two
notification shapes cannot drift into each other.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sondealert.core.geo import Coordinate


class LandingEvent(BaseModel):
    """One radiosonde landing as reported by SondeHub."""

    model_config = ConfigDict(frozen=True)

    id: str
    location: Coordinate
    altitude: float = 0.0
    # Raw RFC 3339 string; may be missing or malformed and is parsed per cycle.
    observed_at: str | None = None


class AlertContext(BaseModel):
    """Derived, per-cycle evaluation of one landing relative to the tracked entity."""

    model_config = ConfigDict(frozen=True)

    event: LandingEvent
    user_location: Coordinate
    distance_km: float
    age_since_landing: timedelta
    tracked_entity_id: str
    link: str
    message: str


class _HubPayload(BaseModel):
    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ScriptNotifyPayload(_HubPayload):
    """Body for a script service that fans a message out to one person's devices."""

    person: str
    title: str
    message: str


class NotifyData(BaseModel):
    url: str


class NotifyServicePayload(_HubPayload):
    """Body for a `notify.<target>` service that supports click-through URLs."""

    title: str | None = None
    message: str
    data: NotifyData | None = None


class SondeAlertEvent(_HubPayload):
    """Structured audit/dashboard event fired on the hub's event bus."""

    sonde_id: str
    sonde_lat: float
    sonde_lon: float
    sonde_alt: float
    distance_km: float
    user: str
    user_lat: float
    user_lon: float
    sonde_url: str
    landed_ago: str
    message: str = Field(..., min_length=1)
