"""Playbook domain models: structured remediation plans and device batches.

Playbooks are template instances: their steps are static text with the batch
size substituted in.  Nothing here executes anything.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from enrollment_analytics.domain.enums import ActionType, PlaybookRiskLevel, PlaybookType
from enrollment_analytics.foundation.clock import utc_now
from enrollment_analytics.foundation.identifiers import new_id


class PlaybookStep(BaseModel):
    order: int = Field(..., ge=1)
    title: str
    description: str
    action_type: ActionType
    checklist: list[str] = Field(default_factory=list)
    expected_outcome: str = ""
    rollback_instructions: str | None = None
    requires_confirmation: bool = False
    is_optional: bool = False

    model_config = {"frozen": True}


class Playbook(BaseModel):
    """A named, ordered plan.  Steps are ordered by ``order`` starting at 1."""

    playbook_id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    type: PlaybookType
    risk_level: PlaybookRiskLevel
    estimated_time: str
    expected_impact_devices: int = Field(0, ge=0)
    prerequisites: list[str] = Field(default_factory=list)
    steps: list[PlaybookStep] = Field(default_factory=list)
    is_recommended: bool = False
    recommendation_reason: str = ""
    generated_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}


class DeviceCandidate(BaseModel):
    """A device considered for a low-risk enrollment batch."""

    device_id: str = Field(default_factory=new_id)
    device_name: str
    device_name_hashed: str = ""
    readiness_score: float = Field(..., ge=0.0, le=100.0)
    is_compliant: bool = False
    last_check_in: datetime | None = None
    has_recovery_key_escrowed: bool = False
    operating_system: str = ""
    risk_factors: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("last_check_in")
    @classmethod
    def check_in_must_be_aware(cls, v: datetime | None) -> datetime | None:
        # Naive timestamps from inventory exports are UTC
        if v is not None and v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v


class EnrollmentBatch(BaseModel):
    """A pre-selected set of low-risk devices for the Rebuild Momentum plan."""

    batch_id: str = Field(default_factory=new_id)
    name: str
    devices: list[DeviceCandidate] = Field(default_factory=list)
    average_readiness_score: float = Field(0.0, ge=0.0, le=100.0)
    risk_level: PlaybookRiskLevel = PlaybookRiskLevel.LOW
    selection_criteria: str = ""
    generated_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}

    @property
    def device_count(self) -> int:
        return len(self.devices)
