"""Abstract interfaces for the engine's external collaborators.

Providers feed the orchestrator; they never score anything.

Architectural rules:
    1. Providers may block on I/O, so every fetch is a coroutine.
    2. Retry and backoff belong inside a provider, never in the engine.
    3. A provider that cannot produce usable data raises; the orchestrator
       does not invent counts.
    4. Providers return immutable domain models only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from enrollment_analytics.domain.confidence import EstimatedSignals
from enrollment_analytics.domain.playbook import DeviceCandidate
from enrollment_analytics.domain.snapshot import EnrollmentSnapshot, InventoryCounts


class InventoryProvider(ABC):
    """Current legacy and cloud device counts."""

    @abstractmethod
    async def fetch_counts(self) -> InventoryCounts:
        ...


class HistoryProvider(ABC):
    """Ordered daily enrollment snapshots, possibly empty."""

    @abstractmethod
    async def fetch_history(self, counts: InventoryCounts) -> list[EnrollmentSnapshot]:
        """Return snapshots ordered by date, oldest first.

        *counts* lets generators anchor synthetic data on today's totals;
        real stores are free to ignore it.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        ...


class ReadinessProvider(ABC):
    """Readiness signals for the confidence model."""

    @abstractmethod
    async def fetch_signals(self) -> EstimatedSignals:
        ...


class CandidateProvider(ABC):
    """Devices that may be placed in a low-risk enrollment batch."""

    @abstractmethod
    async def fetch_candidates(self) -> list[DeviceCandidate]:
        ...
