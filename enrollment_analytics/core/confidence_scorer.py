"""ConfidenceScorer: weighted, attributed 0–100 enrollment confidence.

Design principles:
    1. Pure function of ConfidenceInputs and the injected ScoringConfig.
    2. Five sub-scores, each an integer clamped to [0, 100].
    3. Every adjustment that moves a sub-score is recorded as a ScoreDriver
       (positive impact) or detractor (negative impact).

Score formula:
    score = clamp(round(
        velocity          * w_velocity / 100
      + success_rate      * w_success_rate / 100
      + complexity        * w_complexity / 100
      + infrastructure    * w_infrastructure / 100
      + conditional_access * w_conditional_access / 100
    ), 0, 100)

Banding:
    HIGH >= 75, MEDIUM >= 50, LOW otherwise.
"""

from __future__ import annotations

import logging

from enrollment_analytics.domain.confidence import (
    ConfidenceInputs,
    ConfidenceResult,
    ScoreBreakdown,
    ScoreDriver,
)
from enrollment_analytics.domain.enums import ConfidenceBand, ScoreCategory
from enrollment_analytics.domain.scoring_config import ScoringConfig

logger = logging.getLogger(__name__)

HIGH_BAND_MIN = 75
MEDIUM_BAND_MIN = 50

TOP_DRIVER_COUNT = 3
TOP_DETRACTOR_COUNT = 2

# Velocity tiers (devices/day averaged over 30/60/90 days)
MIN_ACTIVE_VELOCITY = 1.0
STALL_GRACE_DAYS = 7
MAX_STALL_PENALTY = 30

# Success rate
EXCELLENT_SUCCESS_RATE = 0.95
POOR_SUCCESS_RATE = 0.70
MAX_RETRY_COUNT = 10
MAX_DUPLICATE_COUNT = 5
ENROLLMENT_ISSUES_PENALTY = 15

# Complexity
HIGH_APP_COUNT_PENALTY = 30

# Conditional access
MFA_WITHOUT_ZERO_TOUCH_PENALTY = 10
RISKY_SIGN_IN_POINTS = 2
MAX_RISKY_SIGN_IN_PENALTY = 20


class InvalidWeightsError(ValueError):
    """Raised when a score is requested with weights that do not sum to 100."""


def band_for(score: int) -> ConfidenceBand:
    if score >= HIGH_BAND_MIN:
        return ConfidenceBand.HIGH
    if score >= MEDIUM_BAND_MIN:
        return ConfidenceBand.MEDIUM
    return ConfidenceBand.LOW


def _clamp(value: int) -> int:
    return max(0, min(value, 100))


class _Attribution:
    """Collects drivers and detractors while sub-scores are computed."""

    __slots__ = ("drivers", "detractors")

    def __init__(self) -> None:
        self.drivers: list[ScoreDriver] = []
        self.detractors: list[ScoreDriver] = []

    def add(self, category: ScoreCategory, name: str, description: str, impact: int) -> None:
        driver = ScoreDriver(name=name, description=description, impact=impact, category=category)
        if impact >= 0:
            self.drivers.append(driver)
        else:
            self.detractors.append(driver)


class ConfidenceScorer:
    """Deterministic confidence model over a fixed ScoringConfig snapshot."""

    def __init__(self, config: ScoringConfig) -> None:
        self._config = config

    # ── Public API ───────────────────────────────────────────────────────

    def score(self, inputs: ConfidenceInputs) -> ConfidenceResult:
        """Compute the weighted score, its band and the top attributions.

        Raises:
            InvalidWeightsError: If the config's category weights do not sum
                to 100.  Nothing is corrected silently.
        """
        ok, message = self._config.validate_weights()
        if not ok:
            raise InvalidWeightsError(message)

        cfg = self._config
        attribution = _Attribution()

        breakdown = ScoreBreakdown(
            velocity_score=self._velocity_score(inputs, attribution),
            success_rate_score=self._success_rate_score(inputs, attribution),
            complexity_score=self._complexity_score(inputs, attribution),
            infrastructure_score=self._infrastructure_score(inputs, attribution),
            conditional_access_score=self._conditional_access_score(inputs, attribution),
            velocity_weight=cfg.velocity_weight,
            success_rate_weight=cfg.success_rate_weight,
            complexity_weight=cfg.complexity_weight,
            infrastructure_weight=cfg.infrastructure_weight,
            conditional_access_weight=cfg.conditional_access_weight,
        )

        weighted = sum(sub * weight / 100.0 for _, sub, weight in breakdown.weighted_pairs())
        total = _clamp(int(round(weighted)))
        band = band_for(total)

        top_drivers = sorted(attribution.drivers, key=lambda d: d.impact, reverse=True)
        top_detractors = sorted(attribution.detractors, key=lambda d: d.impact)
        top_drivers = top_drivers[:TOP_DRIVER_COUNT]
        top_detractors = top_detractors[:TOP_DETRACTOR_COUNT]

        logger.info("Confidence score: %d/100 (%s)", total, band.value)
        logger.debug(
            "Breakdown: velocity=%d success=%d complexity=%d infrastructure=%d ca=%d",
            breakdown.velocity_score,
            breakdown.success_rate_score,
            breakdown.complexity_score,
            breakdown.infrastructure_score,
            breakdown.conditional_access_score,
        )

        return ConfidenceResult(
            score=total,
            band=band,
            breakdown=breakdown,
            top_drivers=top_drivers,
            top_detractors=top_detractors,
            explanation=_explain(band, top_drivers, top_detractors),
        )

    # ── Sub-scores ───────────────────────────────────────────────────────

    def _velocity_score(self, inputs: ConfidenceInputs, attr: _Attribution) -> int:
        cfg = self._config
        cat = ScoreCategory.VELOCITY
        avg = (inputs.velocity_30 + inputs.velocity_60 + inputs.velocity_90) / 3

        if avg >= cfg.excellent_velocity_threshold:
            score = 100
            attr.add(cat, "Excellent Velocity", f"Averaging {avg:.1f} devices/day", 25)
        elif avg >= cfg.good_velocity_threshold:
            score = 75
            attr.add(cat, "Good Velocity", f"Averaging {avg:.1f} devices/day", 15)
        elif avg >= MIN_ACTIVE_VELOCITY:
            score = 50
        else:
            score = 25
            attr.add(cat, "Low Velocity", f"Only {avg:.1f} devices/day", -20)

        days = inputs.days_since_last_enrollment
        if days > STALL_GRACE_DAYS:
            penalty = min(MAX_STALL_PENALTY, int(days * cfg.stall_day_penalty))
            score -= penalty
            attr.add(cat, "Recent Stall", f"No enrollments in {days} days", -penalty)

        return _clamp(score)

    def _success_rate_score(self, inputs: ConfidenceInputs, attr: _Attribution) -> int:
        cat = ScoreCategory.SUCCESS_RATE
        rate = inputs.first_attempt_success_rate
        score = int(rate * 100)

        if rate >= EXCELLENT_SUCCESS_RATE:
            attr.add(cat, "Excellent Success Rate", f"{rate:.0%} first-attempt success", 20)
        elif rate < POOR_SUCCESS_RATE:
            attr.add(cat, "Low Success Rate", f"Only {rate:.0%} success rate", -15)

        retries = inputs.enrollment_retry_count
        duplicates = inputs.duplicate_device_object_count
        if retries > MAX_RETRY_COUNT or duplicates > MAX_DUPLICATE_COUNT:
            score -= ENROLLMENT_ISSUES_PENALTY
            attr.add(
                cat,
                "Enrollment Issues",
                f"{retries} retries, {duplicates} duplicates",
                -ENROLLMENT_ISSUES_PENALTY,
            )

        return _clamp(score)

    def _complexity_score(self, inputs: ConfidenceInputs, attr: _Attribution) -> int:
        cfg = self._config
        cat = ScoreCategory.COMPLEXITY
        score = 100
        apps = inputs.required_app_count

        if apps > cfg.high_complexity_app_count:
            score -= HIGH_APP_COUNT_PENALTY
            attr.add(cat, "High App Count", f"{apps} required apps during enrollment", -15)
        elif apps <= cfg.low_complexity_app_count:
            attr.add(cat, "Low Complexity", f"Only {apps} required apps", 10)

        blockers = inputs.blocking_esp_app_count
        if blockers > cfg.esp_blocking_app_warning_threshold:
            penalty = blockers * cfg.esp_blocking_app_penalty
            score -= penalty
            attr.add(cat, "ESP Blockers", f"{blockers} apps blocking the enrollment status page", -penalty)

        return _clamp(score)

    def _infrastructure_score(self, inputs: ConfidenceInputs, attr: _Attribution) -> int:
        cfg = self._config
        cat = ScoreCategory.INFRASTRUCTURE
        score = 50

        if inputs.has_gateway:
            score += cfg.gateway_bonus
            attr.add(
                cat, "Gateway Deployed",
                "Cloud management gateway enables internet enrollment",
                cfg.gateway_bonus,
            )
        else:
            attr.add(cat, "No Gateway", "Missing cloud management gateway", -10)

        if inputs.has_co_management:
            score += cfg.co_management_bonus
            attr.add(
                cat, "Co-Management",
                "Co-management enabled for gradual transition",
                cfg.co_management_bonus,
            )

        if inputs.has_zero_touch:
            score += cfg.zero_touch_bonus
            attr.add(
                cat, "Zero-Touch Ready",
                "Zero-touch provisioning configured",
                cfg.zero_touch_bonus,
            )

        return _clamp(score)

    def _conditional_access_score(self, inputs: ConfidenceInputs, attr: _Attribution) -> int:
        cfg = self._config
        cat = ScoreCategory.CONDITIONAL_ACCESS
        score = 80

        if inputs.has_blocking_ca_policy:
            score -= cfg.blocking_ca_penalty
            attr.add(
                cat, "Blocking CA Policy",
                "Conditional access may block enrollment",
                -cfg.blocking_ca_penalty,
            )

        if inputs.requires_mfa and not inputs.has_zero_touch:
            score -= MFA_WITHOUT_ZERO_TOUCH_PENALTY
            attr.add(
                cat, "MFA Without Zero-Touch",
                "MFA required but zero-touch provisioning not configured",
                -MFA_WITHOUT_ZERO_TOUCH_PENALTY,
            )

        risky = inputs.risky_sign_in_block_count
        if risky > 0:
            penalty = min(MAX_RISKY_SIGN_IN_PENALTY, risky * RISKY_SIGN_IN_POINTS)
            score -= penalty
            attr.add(cat, "Risky Sign-In Blocks", f"{risky} risky sign-ins blocked", -penalty)

        return _clamp(score)


def _explain(
    band: ConfidenceBand,
    drivers: list[ScoreDriver],
    detractors: list[ScoreDriver],
) -> str:
    parts = [f"Enrollment confidence is {band.value}."]
    if drivers:
        parts.append(f"Top factors: {', '.join(d.name for d in drivers[:2])}.")
    if detractors:
        parts.append(f"Areas for improvement: {', '.join(d.name for d in detractors)}.")
    return " ".join(parts)
