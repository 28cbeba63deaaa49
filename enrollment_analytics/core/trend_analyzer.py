"""TrendAnalyzer: rolling enrollment velocities and trend classification.

Velocity over an N-day window is a simple moving average:

    velocity_N = sum(new_enrollments_count over the last min(N, len) days)
                 / min(N, len)

Classification, first match wins:
    - STALLED:       velocity_7 < flat_velocity_delta_threshold
    - ACCELERATING:  velocity_7 / velocity_30 > 1.15
    - DECLINING:     velocity_7 / velocity_30 < 0.85
    - STEADY:        everything else
The ratio is taken as 1.0 when velocity_30 is zero.  Fewer than
MIN_SNAPSHOTS snapshots yields UNKNOWN with zeroed velocities.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from enrollment_analytics.domain.enums import TrendState
from enrollment_analytics.domain.scoring_config import ScoringConfig
from enrollment_analytics.domain.snapshot import EnrollmentSnapshot
from enrollment_analytics.domain.trend import TrendAnalysis

logger = logging.getLogger(__name__)

MIN_SNAPSHOTS = 7
ACCELERATING_RATIO = 1.15
DECLINING_RATIO = 0.85

# Used when history holds no day with a new enrollment at all.
DEFAULT_DAYS_SINCE_LAST_ENROLLMENT = 30


def rolling_velocity(snapshots: Sequence[EnrollmentSnapshot], days: int) -> float:
    """Average new enrollments per day over the most recent *days* snapshots."""
    window = min(days, len(snapshots))
    if window < 2:
        return 0.0
    recent = snapshots[-window:]
    return sum(s.new_enrollments_count for s in recent) / window


def days_since_last_enrollment(
    snapshots: Sequence[EnrollmentSnapshot],
    today: date,
) -> int:
    """Whole days between *today* and the latest snapshot with new enrollments."""
    active_days = [s.date for s in snapshots if s.new_enrollments_count > 0]
    if not active_days:
        return DEFAULT_DAYS_SINCE_LAST_ENROLLMENT
    return max(0, (today - max(active_days)).days)


class TrendAnalyzer:
    """Stateless: same snapshots and config always give the same analysis."""

    def __init__(self, config: ScoringConfig) -> None:
        self._config = config

    def compute(self, snapshots: Sequence[EnrollmentSnapshot]) -> TrendAnalysis:
        if len(snapshots) < MIN_SNAPSHOTS:
            logger.warning(
                "Insufficient data for trend analysis: %d snapshot(s), need %d",
                len(snapshots), MIN_SNAPSHOTS,
            )
            return TrendAnalysis(trend_state=TrendState.UNKNOWN)

        ordered = sorted(snapshots, key=lambda s: s.date)

        v7 = rolling_velocity(ordered, 7)
        v30 = rolling_velocity(ordered, 30)
        v60 = rolling_velocity(ordered, 60)
        v90 = rolling_velocity(ordered, 90)

        wow: float | None = None
        prior_week = rolling_velocity(ordered[:-7], 7)
        if prior_week > 0:
            wow = (v7 - prior_week) / prior_week * 100

        state = self._classify(v7, v30)

        logger.debug(
            "Trend: v7=%.2f/day v30=%.2f/day v60=%.2f/day v90=%.2f/day state=%s",
            v7, v30, v60, v90, state.value,
        )

        return TrendAnalysis(
            velocity_7=v7,
            velocity_30=v30,
            velocity_60=v60,
            velocity_90=v90,
            week_over_week_change_pct=wow,
            trend_state=state,
        )

    def _classify(self, velocity_7: float, velocity_30: float) -> TrendState:
        if velocity_7 < self._config.flat_velocity_delta_threshold:
            return TrendState.STALLED

        ratio = velocity_7 / velocity_30 if velocity_30 > 0 else 1.0

        if ratio > ACCELERATING_RATIO:
            return TrendState.ACCELERATING
        if ratio < DECLINING_RATIO:
            return TrendState.DECLINING
        return TrendState.STEADY
