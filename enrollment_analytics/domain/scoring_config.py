"""ScoringConfig: every weight and threshold the analytics engine reads.

An instance is an immutable snapshot.  Components receive one at
construction and never look anything up globally; reloading is the job of
``ScoringConfigStore``, which swaps in a new snapshot.

On disk the config is a flat JSON object with camelCase keys::

    {"velocityWeight": 30, "successRateWeight": 25, ...}

Unknown keys are ignored, missing keys take the defaults below.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

WEIGHT_TOTAL = 100


class ScoringConfig(BaseModel):
    # ── Category weights (must sum to 100) ───────────────────────────────
    velocity_weight: int = Field(30, ge=0)
    success_rate_weight: int = Field(25, ge=0)
    complexity_weight: int = Field(20, ge=0)
    infrastructure_weight: int = Field(15, ge=0)
    conditional_access_weight: int = Field(10, ge=0)

    # ── Velocity (devices/day) ───────────────────────────────────────────
    good_velocity_threshold: float = 5.0
    excellent_velocity_threshold: float = 15.0
    flat_velocity_delta_threshold: float = 0.5
    stall_risk_days_threshold: int = 60

    # ── Trust trough band (%) ────────────────────────────────────────────
    trust_trough_lower_pct: float = 50.0
    trust_trough_upper_pct: float = 60.0

    # ── Complexity ───────────────────────────────────────────────────────
    low_complexity_app_count: int = 5
    high_complexity_app_count: int = 15
    esp_blocking_app_warning_threshold: int = 3

    # ── Low-risk batch ───────────────────────────────────────────────────
    min_low_risk_batch_size: int = Field(20, ge=1)
    max_low_risk_batch_size: int = Field(50, ge=1)
    low_risk_readiness_threshold: float = 75.0
    max_days_since_check_in: int = 7

    # ── Score modifiers (points) ─────────────────────────────────────────
    gateway_bonus: int = 10
    co_management_bonus: int = 8
    zero_touch_bonus: int = 5
    esp_blocking_app_penalty: int = 3
    blocking_ca_penalty: int = 10
    stall_day_penalty: float = 0.5

    model_config = {
        "frozen": True,
        "extra": "ignore",
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def weight_total(self) -> int:
        return (
            self.velocity_weight
            + self.success_rate_weight
            + self.complexity_weight
            + self.infrastructure_weight
            + self.conditional_access_weight
        )

    def validate_weights(self) -> tuple[bool, str]:
        """Check that the five category weights sum to exactly 100.

        Never raises.  Returns ``(True, "")`` or ``(False, message)``; the
        caller decides whether a bad total is fatal.
        """
        total = self.weight_total
        if total != WEIGHT_TOTAL:
            return False, f"Weights must sum to {WEIGHT_TOTAL}, but current total is {total}"
        return True, ""

    def to_json_dict(self) -> dict:
        """camelCase key/value mapping, as written to disk."""
        return self.model_dump(by_alias=True)
