"""MilestoneTracker: maps completion percentage onto the fixed milestone strip."""

from __future__ import annotations

from typing import NamedTuple

from enrollment_analytics.domain.enums import PlaybookType
from enrollment_analytics.domain.milestone import Milestone


class _MilestoneTemplate(NamedTuple):
    percentage: int
    name: str
    description: str
    what_changes: str
    playbook: PlaybookType | None
    is_trust_trough: bool = False


MILESTONE_TEMPLATES: tuple[_MilestoneTemplate, ...] = (
    _MilestoneTemplate(
        25, "Early Adoption", "Initial rollout complete",
        "Pilot group feedback available, ready to expand scope",
        PlaybookType.SCALE_UP,
    ),
    _MilestoneTemplate(
        50, "Trust Trough Entry", "Entering the challenging middle phase",
        "Expect increased resistance, focus on communication",
        PlaybookType.REBUILD_MOMENTUM, is_trust_trough=True,
    ),
    _MilestoneTemplate(
        60, "Trust Trough Exit", "Exiting the challenging phase",
        "Momentum typically accelerates, remaining devices easier",
        PlaybookType.SCALE_UP, is_trust_trough=True,
    ),
    _MilestoneTemplate(
        70, "Majority Enrolled", "Over two-thirds complete",
        "Can begin decommissioning legacy infrastructure",
        PlaybookType.REDUCE_DEPENDENCIES,
    ),
    _MilestoneTemplate(
        85, "Final Push", "Nearing completion",
        "Focus on remaining complex devices, plan cleanup",
        PlaybookType.ZERO_TOUCH_HYGIENE,
    ),
    _MilestoneTemplate(
        100, "Migration Complete", "All devices enrolled",
        "Ready for legacy management decommissioning",
        None,
    ),
)


class MilestoneTracker:
    """Pure mapping; holds no state between calls."""

    def build(self, current_pct: float) -> list[Milestone]:
        milestones: list[Milestone] = []
        next_assigned = False

        for i, tpl in enumerate(MILESTONE_TEMPLATES):
            upper = (
                MILESTONE_TEMPLATES[i + 1].percentage
                if i + 1 < len(MILESTONE_TEMPLATES)
                else None
            )
            achieved = current_pct >= tpl.percentage
            current = achieved and (upper is None or current_pct < upper)
            is_next = not achieved and not next_assigned
            next_assigned = next_assigned or is_next

            milestones.append(Milestone(
                percentage=tpl.percentage,
                name=tpl.name,
                description=tpl.description,
                what_changes=tpl.what_changes,
                recommended_playbook_type=tpl.playbook,
                is_trust_trough=tpl.is_trust_trough,
                is_achieved=achieved,
                is_current=current,
                is_next=is_next,
            ))

        return milestones

    @staticmethod
    def next_milestone(milestones: list[Milestone]) -> Milestone | None:
        return next((m for m in milestones if m.is_next), None)
