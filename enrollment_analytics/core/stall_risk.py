"""StallRiskAssessor: a priority-ordered decision table.

Rules (first match wins):
    1. Trust trough: enrolled_pct inside [trough_lower, trough_upper] AND
       trend in {DECLINING, STALLED, STEADY} AND days_since_last > 30
       → HIGH, is_trust_trough_risk.
    2. STALLED trend → CRITICAL if days_since_last > stall_risk_days_threshold,
       else MEDIUM.
    3. DECLINING trend → LOW (informational).
    4. Anything else → not at risk.

Total over its inputs: every combination lands on exactly one rule.
"""

from __future__ import annotations

import logging

from enrollment_analytics.domain.enums import StallRiskLevel, TrendState
from enrollment_analytics.domain.scoring_config import ScoringConfig
from enrollment_analytics.domain.stall_risk import StallRiskAssessment

logger = logging.getLogger(__name__)

TRUST_TROUGH_MIN_DAYS = 30

SLOW_TREND_STATES: frozenset[TrendState] = frozenset({
    TrendState.DECLINING,
    TrendState.STALLED,
    TrendState.STEADY,
})


class StallRiskAssessor:
    def __init__(self, config: ScoringConfig) -> None:
        self._config = config

    def is_trust_trough(
        self,
        enrolled_pct: float,
        trend_state: TrendState,
        days_since_last: int,
    ) -> bool:
        cfg = self._config
        in_band = cfg.trust_trough_lower_pct <= enrolled_pct <= cfg.trust_trough_upper_pct
        return (
            in_band
            and trend_state in SLOW_TREND_STATES
            and days_since_last > TRUST_TROUGH_MIN_DAYS
        )

    def assess(
        self,
        enrolled_pct: float,
        trend_state: TrendState,
        days_since_last: int,
    ) -> StallRiskAssessment:
        if self.is_trust_trough(enrolled_pct, trend_state, days_since_last):
            assessment = self._trust_trough(enrolled_pct, days_since_last)
        elif trend_state == TrendState.STALLED:
            assessment = self._stalled(days_since_last)
        elif trend_state == TrendState.DECLINING:
            assessment = StallRiskAssessment(
                is_at_risk=True,
                risk_level=StallRiskLevel.LOW,
                description="Enrollment velocity is declining.",
                contributing_factors=["Week-over-week velocity decrease"],
                recommended_actions=["Monitor closely for potential stall"],
            )
        else:
            assessment = StallRiskAssessment()

        logger.info(
            "Stall risk: %s, trust_trough=%s",
            assessment.risk_level.value, assessment.is_trust_trough_risk,
        )
        return assessment

    # ── Rules ────────────────────────────────────────────────────────────

    def _trust_trough(self, enrolled_pct: float, days_since_last: int) -> StallRiskAssessment:
        cfg = self._config
        band = f"{cfg.trust_trough_lower_pct:g}-{cfg.trust_trough_upper_pct:g}%"
        batch = f"{cfg.min_low_risk_batch_size}-{cfg.max_low_risk_batch_size}"

        return StallRiskAssessment(
            is_at_risk=True,
            is_trust_trough_risk=True,
            risk_level=StallRiskLevel.HIGH,
            description=(
                "Trust Trough Risk: migration has stalled in the critical "
                f"{band} zone where organizational resistance is highest."
            ),
            contributing_factors=[
                "Enrollment velocity has declined or stalled",
                f"Migration is in the 'Trust Trough' zone ({band})",
                f"No significant progress in {days_since_last} days",
                "Remaining devices may have higher complexity",
            ],
            recommended_actions=[
                f"Run 'Rebuild Momentum' playbook with {batch} low-risk devices",
                "Review and reduce ESP blocking applications",
                "Communicate progress to stakeholders",
                "Consider hybrid-joined devices for quick wins",
            ],
            days_at_risk=days_since_last,
            enrollment_pct_at_risk_start=enrolled_pct,
        )

    def _stalled(self, days_since_last: int) -> StallRiskAssessment:
        level = (
            StallRiskLevel.CRITICAL
            if days_since_last > self._config.stall_risk_days_threshold
            else StallRiskLevel.MEDIUM
        )
        return StallRiskAssessment(
            is_at_risk=True,
            risk_level=level,
            description=f"Enrollment has stalled for {days_since_last} days.",
            contributing_factors=["Near-zero enrollment velocity"],
            recommended_actions=[
                "Investigate enrollment blockers",
                "Run 'Rebuild Momentum' playbook",
            ],
            days_at_risk=days_since_last,
        )
