"""Confidence domain models: scorer inputs, attributed drivers and results.

Inputs are split in two on purpose.  Velocity, enrollment percentage and
days since last enrollment are observed from inventory history.  Everything
else comes from a readiness source that today only supplies estimates; those
values travel as ``EstimatedSignals`` and the names of the fields that were
estimated are recorded on ``ConfidenceInputs.estimated_fields``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from enrollment_analytics.domain.enums import ConfidenceBand, ScoreCategory


class EstimatedSignals(BaseModel):
    """Readiness signals that do not come from inventory history.

    Defaults are the documented placeholders used until a readiness API
    supplies real values.  ``is_estimated`` is False only when a real
    source filled every field.
    """

    first_attempt_success_rate: float = Field(0.85, ge=0.0, le=1.0)
    enrollment_retry_count: int = Field(0, ge=0)
    duplicate_device_object_count: int = Field(0, ge=0)

    required_app_count: int = Field(8, ge=0)
    blocking_esp_app_count: int = Field(2, ge=0)
    device_targeted_assignment_count: int = Field(0, ge=0)

    has_blocking_ca_policy: bool = False
    requires_mfa: bool = False
    requires_compliant_device: bool = False
    risky_sign_in_block_count: int = Field(0, ge=0)

    has_gateway: bool = True
    has_co_management: bool = True
    has_zero_touch: bool = True

    is_estimated: bool = True

    model_config = {"frozen": True}


class ConfidenceInputs(BaseModel):
    """Aggregated signals consumed by the confidence scorer."""

    # Observed from history
    velocity_30: float = Field(0.0, ge=0.0)
    velocity_60: float = Field(0.0, ge=0.0)
    velocity_90: float = Field(0.0, ge=0.0)
    current_enrollment_pct: float = Field(0.0, ge=0.0)
    days_since_last_enrollment: int = Field(0, ge=0)

    # Success / retry
    first_attempt_success_rate: float = Field(0.85, ge=0.0, le=1.0)
    enrollment_retry_count: int = Field(0, ge=0)
    duplicate_device_object_count: int = Field(0, ge=0)

    # Enrollment-time dependency complexity
    required_app_count: int = Field(0, ge=0)
    blocking_esp_app_count: int = Field(0, ge=0)
    device_targeted_assignment_count: int = Field(0, ge=0)

    # Conditional access
    has_blocking_ca_policy: bool = False
    requires_mfa: bool = False
    requires_compliant_device: bool = False
    risky_sign_in_block_count: int = Field(0, ge=0)

    # Infrastructure
    has_gateway: bool = False
    has_co_management: bool = False
    has_zero_touch: bool = False

    estimated_fields: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @classmethod
    def from_signals(
        cls,
        *,
        velocity_30: float,
        velocity_60: float,
        velocity_90: float,
        current_enrollment_pct: float,
        days_since_last_enrollment: int,
        signals: EstimatedSignals,
    ) -> ConfidenceInputs:
        """Merge observed history figures with readiness signals."""
        readiness = signals.model_dump(exclude={"is_estimated"})
        estimated = sorted(readiness) if signals.is_estimated else []
        return cls(
            velocity_30=velocity_30,
            velocity_60=velocity_60,
            velocity_90=velocity_90,
            current_enrollment_pct=current_enrollment_pct,
            days_since_last_enrollment=days_since_last_enrollment,
            estimated_fields=estimated,
            **readiness,
        )


class ScoreDriver(BaseModel):
    """A named factor that moved a sub-score, with its signed impact in points."""

    name: str
    description: str = ""
    impact: int
    category: ScoreCategory

    model_config = {"frozen": True}

    @property
    def impact_display(self) -> str:
        return f"+{self.impact}" if self.impact >= 0 else str(self.impact)


class ScoreBreakdown(BaseModel):
    """Per-category sub-scores with the weights that combined them."""

    velocity_score: int = Field(0, ge=0, le=100)
    success_rate_score: int = Field(0, ge=0, le=100)
    complexity_score: int = Field(0, ge=0, le=100)
    infrastructure_score: int = Field(0, ge=0, le=100)
    conditional_access_score: int = Field(0, ge=0, le=100)

    velocity_weight: int = 30
    success_rate_weight: int = 25
    complexity_weight: int = 20
    infrastructure_weight: int = 15
    conditional_access_weight: int = 10

    model_config = {"frozen": True}

    def weighted_pairs(self) -> list[tuple[ScoreCategory, int, int]]:
        """(category, sub-score, weight) for all five categories, in model order."""
        return [
            (ScoreCategory.VELOCITY, self.velocity_score, self.velocity_weight),
            (ScoreCategory.SUCCESS_RATE, self.success_rate_score, self.success_rate_weight),
            (ScoreCategory.COMPLEXITY, self.complexity_score, self.complexity_weight),
            (ScoreCategory.INFRASTRUCTURE, self.infrastructure_score, self.infrastructure_weight),
            (
                ScoreCategory.CONDITIONAL_ACCESS,
                self.conditional_access_score,
                self.conditional_access_weight,
            ),
        ]


class ConfidenceResult(BaseModel):
    """The 0–100 confidence score, its band and its attribution."""

    score: int = Field(..., ge=0, le=100)
    band: ConfidenceBand
    breakdown: ScoreBreakdown
    top_drivers: list[ScoreDriver] = Field(default_factory=list, max_length=3)
    top_detractors: list[ScoreDriver] = Field(default_factory=list, max_length=2)
    explanation: str = ""

    model_config = {"frozen": True}

    @property
    def score_display(self) -> str:
        return f"{self.score}/100 {self.band.value.capitalize()} Confidence"
