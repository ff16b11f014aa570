"""
Notification delivery through the hub.

Two delivery shapes are supported, selected by `hub.notify.mode`:
- `script`: a script service taking `{person, title, message}` that fans out to every
  device of one person (the link is appended to the message).
- `notify`: a `notify/<target>` service taking `{title, message, data: {url}}` so mobile
  clients can open the SondeHub tracker directly.

Structured `sonde_alert` events are fired separately via `fire_event`.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sondealert.config.settings import Settings
from sondealert.domain.models import (
    NotifyData,
    NotifyServicePayload,
    ScriptNotifyPayload,
    SondeAlertEvent,
)

logger = logging.getLogger(__name__)


class HubTransport(Protocol):
    def call_service(self, service: str, payload: dict): ...

    def fire_event(self, event_type: str, payload: dict): ...


class Notifier:
    """Builds hub payloads and sends them. Raises `UpstreamError` on delivery failure."""

    def __init__(self, settings: Settings, hub: HubTransport):
        self._settings = settings
        self._hub = hub

    def build_payload(
        self, title: str, message: str, *, link: str | None = None
    ) -> ScriptNotifyPayload | NotifyServicePayload:
        notify = self._settings.hub.notify
        if notify.mode == "notify":
            return NotifyServicePayload(
                title=title,
                message=message,
                data=NotifyData(url=link) if link else None,
            )
        body = f"{message}\n{link}" if link else message
        return ScriptNotifyPayload(person=self._settings.hub.entity_id or "", title=title, message=body)

    def send_alert(self, title: str, message: str, *, link: str | None = None) -> None:
        payload = self.build_payload(title, message, link=link)
        self._hub.call_service(self._settings.hub.notify.service, payload.to_json())
        logger.info("Sent notification %r via %s", title, self._settings.hub.notify.service)

    def fire_event(self, event: SondeAlertEvent) -> None:
        if not self._settings.hub.fire_events:
            return
        self._hub.fire_event(self._settings.hub.event_type, event.to_json())
        logger.debug("Fired %s for %s", self._settings.hub.event_type, event.sonde_id)
