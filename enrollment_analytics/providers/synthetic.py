"""Deterministic synthetic providers for demos and tests.

SyntheticHistoryProvider fabricates a plausible growth curve ending at the
current cloud count.  It is a stand-in until real history is stored; the
seed makes every run with the same counts and date reproducible.

Growth model, for each day d in [days, 0] (days ago):
    progress  = 1 - d / 100
    enrolled  = int(current_cloud * progress * uniform(0.95, 1.05))
    enrolled  = clamp(enrolled, 0, current_cloud)
    new_today = max(0, enrolled - enrolled_yesterday)   (first day: randint 0..9)
"""

from __future__ import annotations

import logging
import random
from datetime import timedelta

from enrollment_analytics.domain.confidence import EstimatedSignals
from enrollment_analytics.domain.playbook import DeviceCandidate
from enrollment_analytics.domain.snapshot import EnrollmentSnapshot, InventoryCounts
from enrollment_analytics.foundation.clock import utc_now, utc_today
from enrollment_analytics.foundation.identifiers import hash_device_name
from enrollment_analytics.providers.base import (
    CandidateProvider,
    HistoryProvider,
    InventoryProvider,
    ReadinessProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_SEED = 42
DEFAULT_HISTORY_DAYS = 90


class StaticInventoryProvider(InventoryProvider):
    """Returns fixed counts."""

    def __init__(self, total_legacy_devices: int, total_cloud_devices: int) -> None:
        self._counts = InventoryCounts(
            total_legacy_devices=total_legacy_devices,
            total_cloud_devices=total_cloud_devices,
            data_source="static",
        )

    async def fetch_counts(self) -> InventoryCounts:
        return self._counts


class SyntheticHistoryProvider(HistoryProvider):
    def __init__(self, days: int = DEFAULT_HISTORY_DAYS, seed: int = DEFAULT_SEED) -> None:
        self._days = days
        self._seed = seed

    @property
    def source_name(self) -> str:
        return "synthetic"

    async def fetch_history(self, counts: InventoryCounts) -> list[EnrollmentSnapshot]:
        return self.generate(counts.total_legacy_devices, counts.total_cloud_devices)

    def generate(self, total_legacy: int, total_cloud: int) -> list[EnrollmentSnapshot]:
        logger.info(
            "Generating SYNTHETIC history: %d days, total=%d, enrolled=%d",
            self._days, total_legacy, total_cloud,
        )
        rng = random.Random(self._seed)
        today = utc_today()
        snapshots: list[EnrollmentSnapshot] = []

        for days_ago in range(self._days, -1, -1):
            progress = 1.0 - days_ago / 100.0
            enrolled = int(total_cloud * progress * (0.95 + rng.random() * 0.1))
            enrolled = max(0, min(enrolled, total_cloud))

            if snapshots:
                new_count = max(0, enrolled - snapshots[-1].total_cloud_devices)
            else:
                new_count = int(rng.random() * 10)

            snapshots.append(EnrollmentSnapshot(
                date=today - timedelta(days=days_ago),
                total_legacy_devices=total_legacy,
                total_cloud_devices=enrolled,
                new_enrollments_count=new_count,
            ))

        return snapshots


class EstimatedReadinessProvider(ReadinessProvider):
    """Placeholder readiness signals, flagged as estimated."""

    def __init__(self, signals: EstimatedSignals | None = None) -> None:
        self._signals = signals or EstimatedSignals()

    async def fetch_signals(self) -> EstimatedSignals:
        return self._signals


class SyntheticCandidateProvider(CandidateProvider):
    """Seeded sample devices, all healthy enough to pass the default filter."""

    def __init__(self, count: int = 20, seed: int = DEFAULT_SEED) -> None:
        self._count = count
        self._seed = seed

    async def fetch_candidates(self) -> list[DeviceCandidate]:
        rng = random.Random(self._seed)
        now = utc_now()
        candidates = []
        for _ in range(self._count):
            name = f"DESKTOP-{rng.randint(1000, 9999)}"
            candidates.append(DeviceCandidate(
                device_name=name,
                device_name_hashed=hash_device_name(name),
                readiness_score=round(80 + rng.random() * 20, 2),
                is_compliant=True,
                last_check_in=now - timedelta(days=rng.randint(1, 4)),
                has_recovery_key_escrowed=True,
                operating_system="Windows 11 23H2",
            ))
        return candidates
