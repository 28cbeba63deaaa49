"""Controlled enumerations for the enrollment-analytics domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class TrendState(str, Enum):
    """Discrete enrollment velocity trend."""

    UNKNOWN = "unknown"
    ACCELERATING = "accelerating"
    STEADY = "steady"
    DECLINING = "declining"
    STALLED = "stalled"


class ConfidenceBand(str, Enum):
    """Banding of the 0–100 confidence score (Low < 50 <= Medium < 75 <= High)."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScoreCategory(str, Enum):
    """The five weighted categories of the confidence model."""

    VELOCITY = "Velocity"
    SUCCESS_RATE = "Success Rate"
    COMPLEXITY = "Complexity"
    INFRASTRUCTURE = "Infrastructure"
    CONDITIONAL_ACCESS = "Conditional Access"


class StallRiskLevel(str, Enum):
    """Ordered stall-risk levels.  Compare with ``.rank``, not by value."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def at_least(self, other: StallRiskLevel) -> bool:
        return self.rank >= other.rank


_RISK_RANK: dict[StallRiskLevel, int] = {
    StallRiskLevel.NONE: 0,
    StallRiskLevel.LOW: 1,
    StallRiskLevel.MEDIUM: 2,
    StallRiskLevel.HIGH: 3,
    StallRiskLevel.CRITICAL: 4,
}


class PlaybookType(str, Enum):
    """Kinds of remediation playbook."""

    REBUILD_MOMENTUM = "rebuild_momentum"
    REDUCE_DEPENDENCIES = "reduce_dependencies"
    ZERO_TOUCH_HYGIENE = "zero_touch_hygiene"
    SCALE_UP = "scale_up"


class PlaybookRiskLevel(str, Enum):
    """Operational risk of running a playbook."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionType(str, Enum):
    """What a playbook step asks the operator to do."""

    REVIEW = "review"
    CONFIGURE = "configure"
    EXECUTE = "execute"
    VERIFY = "verify"


class OutcomeStatus(str, Enum):
    """Terminal status of one orchestration run."""

    OK = "ok"
    CANCELLED = "cancelled"
    ERROR = "error"


class HistorySource(str, Enum):
    """Which history provider backs the orchestrator."""

    SYNTHETIC = "synthetic"
    FILE = "file"
