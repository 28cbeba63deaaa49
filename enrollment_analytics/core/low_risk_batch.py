"""Low-risk batch selection for the Rebuild Momentum playbook.

A candidate qualifies when it is compliant, its readiness score meets
``low_risk_readiness_threshold`` and it checked in within
``max_days_since_check_in`` days.  Qualifying devices are ordered by
readiness (highest first) and capped at ``max_low_risk_batch_size``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from enrollment_analytics.domain.enums import PlaybookRiskLevel
from enrollment_analytics.domain.playbook import DeviceCandidate, EnrollmentBatch
from enrollment_analytics.domain.scoring_config import ScoringConfig
from enrollment_analytics.foundation.clock import utc_now

logger = logging.getLogger(__name__)


def is_low_risk(candidate: DeviceCandidate, config: ScoringConfig, now: datetime) -> bool:
    if not candidate.is_compliant:
        return False
    if candidate.readiness_score < config.low_risk_readiness_threshold:
        return False
    if candidate.last_check_in is None:
        return False
    return now - candidate.last_check_in <= timedelta(days=config.max_days_since_check_in)


def select_low_risk_batch(
    candidates: Iterable[DeviceCandidate],
    config: ScoringConfig,
    name: str = "Low-Risk Enrollment Batch",
) -> EnrollmentBatch:
    now = utc_now()
    eligible = [c for c in candidates if is_low_risk(c, config, now)]
    eligible.sort(key=lambda c: c.readiness_score, reverse=True)
    selected = eligible[: config.max_low_risk_batch_size]

    average = (
        sum(c.readiness_score for c in selected) / len(selected)
        if selected else 0.0
    )

    logger.info(
        "Selected %d low-risk device(s) from %d eligible (avg readiness %.1f)",
        len(selected), len(eligible), average,
    )

    return EnrollmentBatch(
        name=name,
        devices=selected,
        average_readiness_score=round(average, 2),
        risk_level=PlaybookRiskLevel.LOW,
        selection_criteria=(
            f"Compliant, readiness >= {config.low_risk_readiness_threshold:g}, "
            f"checked in within {config.max_days_since_check_in} days"
        ),
    )
