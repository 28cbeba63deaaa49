"""Optional telemetry sink for analytics runs.

The orchestrator emits one named event per successful run.  Sinks are
fire-and-forget: a failing sink is logged and otherwise ignored.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

ANALYTICS_COMPUTED_EVENT = "EnrollmentAnalyticsComputed"


class TelemetrySink(ABC):
    @abstractmethod
    def track_event(
        self,
        name: str,
        properties: dict[str, str],
        metrics: dict[str, float],
    ) -> None:
        ...


class LoggingTelemetrySink(TelemetrySink):
    """Writes events to the application log at INFO."""

    def track_event(
        self,
        name: str,
        properties: dict[str, str],
        metrics: dict[str, float],
    ) -> None:
        logger.info("Telemetry event %s properties=%s metrics=%s", name, properties, metrics)


class RecordingTelemetrySink(TelemetrySink):
    """Keeps events in memory.  Useful for tests and diagnostics endpoints."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, str], dict[str, float]]] = []

    def track_event(
        self,
        name: str,
        properties: dict[str, str],
        metrics: dict[str, float],
    ) -> None:
        self.events.append((name, dict(properties), dict(metrics)))
