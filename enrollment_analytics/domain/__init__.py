from enrollment_analytics.domain.confidence import ConfidenceInputs, ConfidenceResult, EstimatedSignals
from enrollment_analytics.domain.result import AnalyticsOutcome, AnalyticsResult
from enrollment_analytics.domain.scoring_config import ScoringConfig
from enrollment_analytics.domain.snapshot import EnrollmentSnapshot, InventoryCounts

__all__ = [
    "AnalyticsOutcome",
    "AnalyticsResult",
    "ConfidenceInputs",
    "ConfidenceResult",
    "EnrollmentSnapshot",
    "EstimatedSignals",
    "InventoryCounts",
    "ScoringConfig",
]
