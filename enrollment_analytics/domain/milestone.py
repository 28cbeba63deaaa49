"""Milestone model for the progress strip."""

from __future__ import annotations

from pydantic import BaseModel, Field

from enrollment_analytics.domain.enums import PlaybookType


class Milestone(BaseModel):
    percentage: int = Field(..., ge=0, le=100)
    name: str
    description: str
    what_changes: str
    recommended_playbook_type: PlaybookType | None = None
    is_trust_trough: bool = False
    is_achieved: bool = False
    is_current: bool = False
    is_next: bool = False

    model_config = {"frozen": True}
