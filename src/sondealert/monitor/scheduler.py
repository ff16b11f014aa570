"""
Fixed-interval scheduler.

Runs the cycle controller strictly sequentially: one cycle, then a sleep of
`interval + uniform(0, jitter)` seconds, until the stop event is set. A cycle that fails
is reported through the notifier as a best-effort "meta" alert; a failure to deliver that
alert is logged and recorded on the outcome, never retried or escalated.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from typing import Callable, Protocol

from sondealert.monitor.cycle import CycleReport

logger = logging.getLogger(__name__)


class Cycle(Protocol):
    def run(self) -> CycleReport: ...


class ErrorSink(Protocol):
    def send_alert(self, title: str, message: str, *, link: str | None = None) -> None: ...


@dataclass
class CycleOutcome:
    report: CycleReport | None = None
    error: Exception | None = None
    meta_alert_sent: bool = False
    meta_alert_error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Scheduler:
    """Drives `Cycle.run` on a fixed interval until stopped."""

    def __init__(
        self,
        cycle: Cycle,
        notifier: ErrorSink,
        *,
        interval_seconds: float,
        jitter_seconds: float = 0.0,
        error_title: str = "Sonde Alert Error",
        stop_event: threading.Event | None = None,
        rand: Callable[[float, float], float] = random.uniform,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._cycle = cycle
        self._notifier = notifier
        self._interval_seconds = float(interval_seconds)
        self._jitter_seconds = max(0.0, float(jitter_seconds))
        self._error_title = error_title
        self._stop_event = stop_event or threading.Event()
        self._rand = rand

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    def stop(self) -> None:
        self._stop_event.set()

    def next_delay(self) -> float:
        if self._jitter_seconds <= 0:
            return self._interval_seconds
        return self._interval_seconds + self._rand(0.0, self._jitter_seconds)

    def run_once(self) -> CycleOutcome:
        outcome = CycleOutcome()
        try:
            outcome.report = self._cycle.run()
        except Exception as exc:
            # The loop must survive anything a cycle throws.
            logger.error("Cycle failed: %s: %s", type(exc).__name__, exc)
            outcome.error = exc
            self._send_meta_alert(exc, outcome)
        return outcome

    def _send_meta_alert(self, exc: Exception, outcome: CycleOutcome) -> None:
        try:
            self._notifier.send_alert(self._error_title, f"Error checking sondes: {exc}")
        except Exception as meta_exc:
            logger.error("Failed to send error notification: %s", meta_exc)
            outcome.meta_alert_error = meta_exc
        else:
            outcome.meta_alert_sent = True

    def run_forever(self, *, max_cycles: int | None = None) -> int:
        """Run cycles until stopped (or `max_cycles` ran); returns the number of cycles run."""
        cycles = 0
        while not self._stop_event.is_set():
            self.run_once()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            delay = self.next_delay()
            logger.info("Loop complete, sleeping %.0f s", delay)
            if self._stop_event.wait(delay):
                break
        logger.info("Scheduler stopped after %d cycles", cycles)
        return cycles
