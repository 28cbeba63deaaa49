"""Stall-risk assessment model."""

from __future__ import annotations

from pydantic import BaseModel, Field

from enrollment_analytics.domain.enums import StallRiskLevel


class StallRiskAssessment(BaseModel):
    """Outcome of the stall-risk decision table.

    ``is_trust_trough_risk`` implies ``is_at_risk`` and a HIGH level.
    """

    is_at_risk: bool = False
    is_trust_trough_risk: bool = False
    risk_level: StallRiskLevel = StallRiskLevel.NONE
    description: str = ""
    contributing_factors: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)
    days_at_risk: int = Field(0, ge=0)
    enrollment_pct_at_risk_start: float | None = None

    model_config = {"frozen": True}
