"""
Home Assistant REST client.

This module is responsible only for:
- reading the tracked entity's coordinates (`GET /api/states/<entity_id>`),
- calling services (`POST /api/services/<domain>/<service>`),
- firing events (`POST /api/events/<event_type>`).

All calls carry the long-lived bearer token and a bounded timeout. Payload shapes are
owned by `sondealert.notify.notifier`; this client only moves JSON.
"""

from __future__ import annotations

import logging
from typing import Any

from sondealert.config.settings import Settings
from sondealert.core.errors import UpstreamError
from sondealert.core.geo import Coordinate
from sondealert.core.http import get_json, post_json

logger = logging.getLogger(__name__)


class HubClient:
    """Authenticated client for the hub's state, service and event endpoints."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def _url(self, path: str) -> str:
        base = (self._settings.hub.base_url or "").rstrip("/")
        return f"{base}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.hub.token}",
            "Content-Type": "application/json",
        }

    def current_location(self, entity_id: str | None = None) -> Coordinate:
        """Return the current coordinates of `entity_id` (defaults to the tracked entity).

        Raises:
            UpstreamError: On transport/status failures or missing/non-numeric attributes.
        """
        entity_id = entity_id or self._settings.hub.entity_id
        payload = get_json(
            self._url(f"api/states/{entity_id}"),
            headers=self._headers(),
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )

        attributes = payload.get("attributes") if isinstance(payload, dict) else None
        if not isinstance(attributes, dict):
            raise UpstreamError(f"state of {entity_id} has no attributes")
        lat = attributes.get("latitude")
        lon = attributes.get("longitude")
        # bool is an int subclass; a boolean coordinate is never valid.
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (lat, lon)):
            raise UpstreamError(
                f"state of {entity_id} has no usable latitude/longitude (got {lat!r}, {lon!r})"
            )

        location = Coordinate(latitude=float(lat), longitude=float(lon))
        logger.info("Entity %s is at %.6f, %.6f", entity_id, location.latitude, location.longitude)
        return location

    def call_service(self, service: str, payload: dict[str, Any]) -> Any:
        """Call `<domain>/<service>` with a JSON body."""
        return post_json(
            self._url(f"api/services/{service.strip('/')}"),
            payload=payload,
            headers=self._headers(),
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )

    def fire_event(self, event_type: str, payload: dict[str, Any]) -> Any:
        """Fire `event_type` on the hub's event bus with a JSON body."""
        return post_json(
            self._url(f"api/events/{event_type}"),
            payload=payload,
            headers=self._headers(),
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )
