"""
SondeHub ingestion client.

Fetches radiosonde landing predictions/reports around a coordinate and parses them into
`LandingEvent` records. The response is a JSON object keyed by sonde serial:

    {"X1234567": {"lat": 40.05, "lon": -74.05, "alt": 1200.0, "datetime": "2025-...Z", ...}}

Timestamps are kept raw; the cycle controller parses them so a malformed value only
affects its own landing.
"""

from __future__ import annotations

import logging
from typing import Any

from sondealert.config.settings import Settings
from sondealert.core.errors import UpstreamError
from sondealert.core.geo import Coordinate
from sondealert.core.http import get_json
from sondealert.domain.models import LandingEvent

logger = logging.getLogger(__name__)


def _parse_landing(sonde_id: str, raw: Any) -> LandingEvent | None:
    """Parse one response entry; returns None (and logs) if its position is unusable."""
    if not isinstance(raw, dict):
        logger.warning("Dropping sonde %s: entry is not an object", sonde_id)
        return None
    try:
        location = Coordinate(latitude=float(raw["lat"]), longitude=float(raw["lon"]))
    except (KeyError, TypeError, ValueError):
        logger.warning("Dropping sonde %s: missing or invalid lat/lon", sonde_id)
        return None

    try:
        altitude = float(raw.get("alt") or 0.0)
    except (TypeError, ValueError):
        altitude = 0.0

    observed_at = raw.get("datetime")
    return LandingEvent(
        id=str(sonde_id),
        location=location,
        altitude=altitude,
        observed_at=observed_at if isinstance(observed_at, str) else None,
    )


class SondeHubClient:
    """Reads landing frames near a coordinate from the SondeHub v2 API."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def nearby_landings(self, center: Coordinate, radius_km: float) -> dict[str, LandingEvent]:
        """Return landings within `radius_km` of `center`, keyed by sonde id.

        An empty mapping means "nothing nearby" and is not an error.

        Raises:
            UpstreamError: On transport/status failures or a non-object response body.
        """
        params = {
            "frame_types": self._settings.sondehub.frame_types,
            "lat": f"{center.latitude:f}",
            "lon": f"{center.longitude:f}",
            "distance": int(radius_km * 1000),
        }
        url = f"{self._settings.sondehub.base_url.rstrip('/')}/sondes"
        logger.info(
            "Fetching landings within %.1f km of %.4f, %.4f", radius_km, center.latitude, center.longitude
        )
        payload = get_json(url, params=params, timeout_seconds=self._settings.app.http_timeout_seconds)
        if not isinstance(payload, dict):
            raise UpstreamError(f"unexpected SondeHub response type: {type(payload).__name__}", url=url)

        landings: dict[str, LandingEvent] = {}
        for sonde_id, raw in payload.items():
            event = _parse_landing(str(sonde_id), raw)
            if event is not None:
                landings[event.id] = event
        return landings
