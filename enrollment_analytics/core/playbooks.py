"""PlaybookGenerator: instantiates remediation plans from static templates.

Selection:
    - Rebuild Momentum: always, sized clamp(gap // 10, min_batch, max_batch).
    - Reduce Dependencies: when the complexity sub-score is below 70.
    - Zero-Touch Hygiene: always.

Recommendation (at most one plan):
    - Rebuild Momentum if stall risk is MEDIUM or worse, or trust trough.
    - else Reduce Dependencies if the complexity sub-score is below 60.
    - else none.
"""

from __future__ import annotations

import logging

from enrollment_analytics.domain.enums import (
    ActionType,
    PlaybookRiskLevel,
    PlaybookType,
    StallRiskLevel,
)
from enrollment_analytics.domain.playbook import Playbook, PlaybookStep
from enrollment_analytics.domain.scoring_config import ScoringConfig
from enrollment_analytics.domain.stall_risk import StallRiskAssessment

logger = logging.getLogger(__name__)

REDUCE_DEPENDENCIES_INCLUDE_BELOW = 70
REDUCE_DEPENDENCIES_RECOMMEND_BELOW = 60
EXPECTED_BATCH_SUCCESS_RATE = 0.95


class PlaybookGenerator:
    def __init__(self, config: ScoringConfig) -> None:
        self._config = config

    def batch_size(self, gap: int) -> int:
        cfg = self._config
        return min(cfg.max_low_risk_batch_size, max(cfg.min_low_risk_batch_size, gap // 10))

    def generate(
        self,
        gap: int,
        complexity_score: int,
        stall_risk: StallRiskAssessment,
    ) -> list[Playbook]:
        playbooks = [rebuild_momentum(self.batch_size(gap))]
        if complexity_score < REDUCE_DEPENDENCIES_INCLUDE_BELOW:
            playbooks.append(reduce_dependencies())
        playbooks.append(zero_touch_hygiene())

        if stall_risk.is_trust_trough_risk or stall_risk.risk_level.at_least(StallRiskLevel.MEDIUM):
            playbooks = _recommend(
                playbooks,
                PlaybookType.REBUILD_MOMENTUM,
                "Recommended to rebuild enrollment momentum and exit stall",
            )
        elif complexity_score < REDUCE_DEPENDENCIES_RECOMMEND_BELOW:
            playbooks = _recommend(
                playbooks,
                PlaybookType.REDUCE_DEPENDENCIES,
                "Recommended to reduce enrollment complexity",
            )

        logger.debug(
            "Generated %d playbook(s), recommended=%s",
            len(playbooks),
            next((p.type.value for p in playbooks if p.is_recommended), None),
        )
        return playbooks


def _recommend(playbooks: list[Playbook], target: PlaybookType, reason: str) -> list[Playbook]:
    return [
        p.model_copy(update={"is_recommended": True, "recommendation_reason": reason})
        if p.type == target else p
        for p in playbooks
    ]


# ── Templates ────────────────────────────────────────────────────────────────


def rebuild_momentum(batch_size: int) -> Playbook:
    expected = round(batch_size * EXPECTED_BATCH_SUCCESS_RATE)
    return Playbook(
        name="Rebuild Momentum (Low-Risk Batch)",
        description=f"Enroll {batch_size} low-risk devices to restore enrollment velocity safely.",
        type=PlaybookType.REBUILD_MOMENTUM,
        risk_level=PlaybookRiskLevel.LOW,
        estimated_time="1-2 hours",
        expected_impact_devices=batch_size,
        prerequisites=[
            "Co-management enabled",
            "Cloud management gateway deployed (for remote devices)",
            "Cloud enrollment configured",
        ],
        steps=[
            PlaybookStep(
                order=1,
                title="Review Device Selection",
                description=(
                    "Review the auto-selected low-risk devices. Criteria: healthy, "
                    "compliant, recent check-in, recovery key escrowed."
                ),
                action_type=ActionType.REVIEW,
                checklist=[
                    "Verify device count matches expectations",
                    "Check for any VIP/executive devices",
                    "Confirm no production-critical servers included",
                ],
                expected_outcome=f"Validated list of {batch_size} devices ready for enrollment",
            ),
            PlaybookStep(
                order=2,
                title="Verify Enrollment Prerequisites",
                description="Confirm hybrid join status and co-management settings.",
                action_type=ActionType.VERIFY,
                checklist=[
                    "Automatic MDM enrollment enabled",
                    "Co-management authority set correctly",
                    "No blocking conditional access policies",
                ],
                expected_outcome="All prerequisites verified",
            ),
            PlaybookStep(
                order=3,
                title="Initiate Enrollment (Dry Run)",
                description=(
                    "Review the enrollment plan without executing. Creates the device "
                    "collection but does not deploy."
                ),
                action_type=ActionType.EXECUTE,
                requires_confirmation=True,
                checklist=[
                    "Export device list to CSV for records",
                    "Create device collection in the legacy manager",
                    "Verify collection membership is correct",
                ],
                expected_outcome="Device collection created, ready for deployment",
                rollback_instructions="Delete the device collection from the legacy manager",
            ),
            PlaybookStep(
                order=4,
                title="Execute Enrollment",
                description="Deploy the co-management policy to trigger cloud enrollment.",
                action_type=ActionType.EXECUTE,
                requires_confirmation=True,
                checklist=[
                    "Deploy co-management settings to collection",
                    "Monitor enrollment status in the cloud portal",
                    "Check for enrollment errors in device event logs",
                ],
                expected_outcome=f"~{expected} devices enrolled successfully (95%+ success rate)",
                rollback_instructions="Remove devices from collection to stop enrollment",
            ),
            PlaybookStep(
                order=5,
                title="Verify & Document",
                description="Confirm enrollment success and document results.",
                action_type=ActionType.VERIFY,
                checklist=[
                    "Verify cloud device count matches expectations",
                    "Check compliance status of enrolled devices",
                    "Document any failures for investigation",
                    "Update enrollment tracker/dashboard",
                ],
                expected_outcome="Enrollment verified, velocity restored",
            ),
        ],
    )


def reduce_dependencies() -> Playbook:
    return Playbook(
        name="Reduce Enrollment-Time Dependencies",
        description="Reduce ESP blocking apps and streamline the enrollment experience.",
        type=PlaybookType.REDUCE_DEPENDENCIES,
        risk_level=PlaybookRiskLevel.MEDIUM,
        estimated_time="2-4 hours",
        prerequisites=[
            "Access to the cloud management portal",
            "List of required apps during enrollment",
            "Stakeholder approval for changes",
        ],
        steps=[
            PlaybookStep(
                order=1,
                title="Audit ESP Configuration",
                description="Review enrollment status page settings and blocking apps.",
                action_type=ActionType.REVIEW,
                checklist=[
                    "List all apps tracked by the enrollment status page",
                    "Identify apps blocking device use",
                    "Note current ESP timeout settings",
                ],
                expected_outcome="Complete list of ESP dependencies",
            ),
            PlaybookStep(
                order=2,
                title="Classify Apps by Criticality",
                description=(
                    "Determine which apps are truly required during enrollment and "
                    "which can be installed later."
                ),
                action_type=ActionType.REVIEW,
                checklist=[
                    "Security/AV apps: keep required",
                    "VPN apps: keep required if needed for connectivity",
                    "Line-of-business apps: consider making available, not required",
                    "Office suites: consider deploying post-enrollment",
                ],
                expected_outcome="Prioritized app list split into enrollment and post-enrollment",
            ),
            PlaybookStep(
                order=3,
                title="Update App Assignments",
                description="Change non-critical apps from Required to Available during ESP.",
                action_type=ActionType.CONFIGURE,
                requires_confirmation=True,
                checklist=[
                    "Remove each non-critical app from ESP tracking",
                    "Or change its assignment to Available",
                    "Document changes made",
                ],
                expected_outcome="Reduced ESP app count",
                rollback_instructions="Re-add apps to Required assignment",
            ),
            PlaybookStep(
                order=4,
                title="Test Enrollment Experience",
                description="Enroll a test device to verify the improved experience.",
                action_type=ActionType.EXECUTE,
                checklist=[
                    "Wipe or reset a test device",
                    "Complete the provisioning/enrollment flow",
                    "Measure time to desktop",
                    "Verify critical apps installed",
                ],
                expected_outcome="Faster enrollment, same security baseline",
            ),
        ],
    )


def zero_touch_hygiene() -> Playbook:
    return Playbook(
        name="Zero-Touch Provisioning Hygiene",
        description=(
            "Optimize zero-touch provisioning profiles and consider cloud-only join "
            "for new devices."
        ),
        type=PlaybookType.ZERO_TOUCH_HYGIENE,
        risk_level=PlaybookRiskLevel.LOW,
        estimated_time="1-2 hours",
        prerequisites=[
            "Zero-touch provisioning configured",
            "Access to the cloud management portal",
        ],
        steps=[
            PlaybookStep(
                order=1,
                title="Review Current Profiles",
                description="Audit existing zero-touch deployment profiles.",
                action_type=ActionType.REVIEW,
                checklist=[
                    "List all deployment profiles",
                    "Note join type for each (hybrid or cloud-only)",
                    "Check ESP configuration per profile",
                    "Review assignment groups",
                ],
                expected_outcome="Complete deployment profile inventory",
            ),
            PlaybookStep(
                order=2,
                title="Assess Hybrid Join Complexity",
                description="Evaluate whether hybrid join is adding unnecessary complexity.",
                action_type=ActionType.REVIEW,
                checklist=[
                    "Does the organization require on-prem directory access?",
                    "Are there on-prem resources needing Kerberos?",
                    "Is VPN required during first-run setup?",
                    "Warning: hybrid join combined with ESP is a complex setup",
                ],
                expected_outcome="Decision on hybrid or cloud-only join strategy",
            ),
            PlaybookStep(
                order=3,
                title="Create Cloud-Only Join Test Profile",
                description="Create a cloud-only join profile for testing.",
                action_type=ActionType.CONFIGURE,
                requires_confirmation=True,
                is_optional=True,
                checklist=[
                    "Create a new deployment profile",
                    "Select cloud-only join (not hybrid)",
                    "Configure user-driven or self-deploying mode",
                    "Assign to test group only",
                ],
                expected_outcome="Test profile ready for pilot",
                rollback_instructions="Delete the test profile",
            ),
            PlaybookStep(
                order=4,
                title="Test with Pilot Batch",
                description="Enroll 5-10 test devices with the new profile.",
                action_type=ActionType.EXECUTE,
                requires_confirmation=True,
                checklist=[
                    "Select pilot devices (non-production)",
                    "Register devices with the new profile",
                    "Complete zero-touch enrollment",
                    "Verify all apps and policies apply",
                    "Test access to required resources",
                ],
                expected_outcome="Validated simpler enrollment path",
            ),
        ],
    )
