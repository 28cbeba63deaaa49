"""Aggregate analytics result and the tagged outcome of an orchestration run."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from enrollment_analytics.domain.confidence import ConfidenceInputs, ConfidenceResult
from enrollment_analytics.domain.enums import OutcomeStatus
from enrollment_analytics.domain.milestone import Milestone
from enrollment_analytics.domain.playbook import EnrollmentBatch, Playbook
from enrollment_analytics.domain.snapshot import EnrollmentSnapshot, enrolled_percentage
from enrollment_analytics.domain.stall_risk import StallRiskAssessment
from enrollment_analytics.domain.trend import TrendAnalysis


class AnalyticsResult(BaseModel):
    """Everything one analytics run produced, as a single read-only value."""

    total_legacy_devices: int = Field(..., ge=0)
    total_cloud_devices: int = Field(..., ge=0)
    snapshots: list[EnrollmentSnapshot] = Field(default_factory=list)
    trend: TrendAnalysis
    confidence_inputs: ConfidenceInputs
    confidence: ConfidenceResult
    stall_risk: StallRiskAssessment
    milestones: list[Milestone] = Field(default_factory=list)
    playbooks: list[Playbook] = Field(default_factory=list)
    low_risk_batch: EnrollmentBatch | None = None
    generated_at: datetime
    computation_time_ms: float = Field(..., ge=0.0)
    data_source: str = ""

    model_config = {"frozen": True}

    @property
    def enrolled_pct(self) -> float:
        return enrolled_percentage(self.total_legacy_devices, self.total_cloud_devices)

    @property
    def gap(self) -> int:
        return self.total_legacy_devices - self.total_cloud_devices

    @property
    def next_milestone(self) -> Milestone | None:
        return next((m for m in self.milestones if m.is_next), None)

    @property
    def recommended_playbook(self) -> Playbook | None:
        return next((p for p in self.playbooks if p.is_recommended), None)


class AnalyticsOutcome(BaseModel):
    """Ok | Cancelled | Error.

    Exactly one of ``result`` (OK), ``cancelled_stage`` (CANCELLED) or
    ``error`` (ERROR) is populated.
    """

    status: OutcomeStatus
    result: AnalyticsResult | None = None
    cancelled_stage: str | None = None
    error: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def ok(cls, result: AnalyticsResult) -> AnalyticsOutcome:
        return cls(status=OutcomeStatus.OK, result=result)

    @classmethod
    def cancelled(cls, stage: str) -> AnalyticsOutcome:
        return cls(status=OutcomeStatus.CANCELLED, cancelled_stage=stage)

    @classmethod
    def failed(cls, message: str) -> AnalyticsOutcome:
        return cls(status=OutcomeStatus.ERROR, error=message)

    @property
    def is_ok(self) -> bool:
        return self.status == OutcomeStatus.OK
