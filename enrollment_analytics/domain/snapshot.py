"""Enrollment snapshots and inventory counts, the raw inputs of the engine."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


def enrolled_percentage(total_legacy: int, total_cloud: int) -> float:
    """Cloud-enrolled share of the legacy fleet in percent, 0 when empty."""
    if total_legacy <= 0:
        return 0.0
    return total_cloud / total_legacy * 100


class EnrollmentSnapshot(BaseModel):
    """One calendar day of enrollment counts.

    Produced by a history provider, never mutated afterwards.
    """

    date: dt.date
    total_legacy_devices: int = Field(..., ge=0)
    total_cloud_devices: int = Field(..., ge=0)
    new_enrollments_count: int = Field(0, ge=0)

    model_config = {"frozen": True}

    @property
    def enrolled_pct(self) -> float:
        return enrolled_percentage(self.total_legacy_devices, self.total_cloud_devices)

    @property
    def gap(self) -> int:
        return self.total_legacy_devices - self.total_cloud_devices


class InventoryCounts(BaseModel):
    """Current device counts reported by the inventory collaborators."""

    total_legacy_devices: int = Field(..., ge=0)
    total_cloud_devices: int = Field(..., ge=0)
    data_source: str = ""

    model_config = {"frozen": True}
