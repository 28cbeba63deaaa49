"""Read-only history provider backed by a JSON file of snapshots.

Expected document shape (snake_case keys, ISO dates)::

    [
        {"date": "2026-01-01", "total_legacy_devices": 1000,
         "total_cloud_devices": 410, "new_enrollments_count": 6},
        ...
    ]

A missing file is an empty history (the trend becomes UNKNOWN).  A file
that exists but cannot be parsed is an upstream failure and raises.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter

from enrollment_analytics.domain.snapshot import EnrollmentSnapshot, InventoryCounts
from enrollment_analytics.providers.base import HistoryProvider

logger = logging.getLogger(__name__)

_SNAPSHOT_LIST = TypeAdapter(list[EnrollmentSnapshot])


class HistoryFileError(Exception):
    """Raised when a history file exists but is not a valid snapshot list."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"History file '{path}' is invalid: {reason}")


class JsonFileHistoryProvider(HistoryProvider):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def source_name(self) -> str:
        return f"file:{self._path.name}"

    async def fetch_history(self, counts: InventoryCounts) -> list[EnrollmentSnapshot]:
        if not self._path.exists():
            logger.warning("No history file at %s, continuing with empty history", self._path)
            return []

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            snapshots = _SNAPSHOT_LIST.validate_python(raw)
        except (OSError, ValueError) as exc:
            raise HistoryFileError(self._path, str(exc)) from exc

        snapshots.sort(key=lambda s: s.date)
        logger.info("Loaded %d snapshot(s) from %s", len(snapshots), self._path)
        return snapshots
