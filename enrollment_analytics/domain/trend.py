"""Trend domain model: velocities and the discrete trend state."""

from __future__ import annotations

from pydantic import BaseModel, Field

from enrollment_analytics.domain.enums import TrendState

_TREND_LABELS: dict[TrendState, str] = {
    TrendState.ACCELERATING: "Accelerating",
    TrendState.STEADY: "Steady",
    TrendState.DECLINING: "Declining",
    TrendState.STALLED: "Stalled",
    TrendState.UNKNOWN: "Unknown",
}


class TrendAnalysis(BaseModel):
    """Rolling enrollment velocities (devices/day) and their classification.

    ``week_over_week_change_pct`` is None when the prior week had no
    velocity to compare against.
    """

    velocity_7: float = Field(0.0, ge=0.0)
    velocity_30: float = Field(0.0, ge=0.0)
    velocity_60: float = Field(0.0, ge=0.0)
    velocity_90: float = Field(0.0, ge=0.0)
    week_over_week_change_pct: float | None = None
    trend_state: TrendState = TrendState.UNKNOWN

    model_config = {"frozen": True}

    @property
    def devices_per_week(self) -> float:
        return self.velocity_7 * 7

    @property
    def description(self) -> str:
        return _TREND_LABELS[self.trend_state]
