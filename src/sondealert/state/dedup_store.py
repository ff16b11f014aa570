"""
Persisted dedup record.

The record is a JSON object mapping sonde id -> true, pretty-printed so operators can
inspect or edit it by hand. It is the only durable state of the monitor:
- A missing file is an empty record, not an error.
- Writes go to a temporary sibling and are atomically renamed into place, so a reader
  never observes a partially written record.
- One file per tracked entity; concurrent writers are not supported.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from sondealert.core.errors import StorageError

logger = logging.getLogger(__name__)

DedupRecord = dict[str, bool]


class DedupStore:
    """File-backed set of already-notified landing ids."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> DedupRecord:
        """Read the record from disk; a missing file yields `{}`."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageError(f"cannot read {self._path}: {exc}") from exc

        try:
            raw = json.loads(text) if text.strip() else {}
        except ValueError as exc:
            raise StorageError(f"cannot decode {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StorageError(f"{self._path} must contain a JSON object, got {type(raw).__name__}")
        bad = sorted(str(k) for k, v in raw.items() if not isinstance(v, bool))
        if bad:
            raise StorageError(f"{self._path} has non-boolean values for: {', '.join(bad)}")
        return {str(k): v for k, v in raw.items()}

    @staticmethod
    def is_notified(record: DedupRecord, sonde_id: str) -> bool:
        return bool(record.get(sonde_id, False))

    @staticmethod
    def mark_notified(record: DedupRecord, sonde_id: str) -> None:
        """Mark in memory only; call `save` to make it durable."""
        record[sonde_id] = True

    def save(self, record: DedupRecord) -> None:
        """Overwrite the file with `record` (temp file + atomic replace)."""
        tmp = self._path.with_name(f"{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(record, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise StorageError(f"cannot write {self._path}: {exc}") from exc
        logger.debug("Saved %d dedup entries to %s", len(record), self._path)
