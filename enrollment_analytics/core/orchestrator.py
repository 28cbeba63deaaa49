"""AnalyticsOrchestrator: the engine's single public entry point.

Pipeline (fixed order):
    gather   → inventory counts, history, readiness signals, batch candidates
    trend    → TrendAnalyzer
    confidence → ConfidenceScorer
    stall_risk → StallRiskAssessor
    milestones → MilestoneTracker
    playbooks  → PlaybookGenerator
    low_risk_batch → select_low_risk_batch

Only ``gather`` and the config read (in a worker thread) await anything.
Every later stage is a pure function of its inputs and one ScoringConfig
snapshot taken at the start of the run, so a reload mid-run never mixes two
configs.

Cancellation is cooperative: the token is sampled after ``gather`` and
after each stage, never inside a stage.  A cancelled run returns
``AnalyticsOutcome.cancelled(stage)``, never a partial result.

Upstream provider failures are logged and re-raised unchanged; the engine
cannot score without counts.
"""

from __future__ import annotations

import asyncio
import logging
import time

from enrollment_analytics.core.confidence_scorer import ConfidenceScorer
from enrollment_analytics.core.low_risk_batch import select_low_risk_batch
from enrollment_analytics.core.milestones import MilestoneTracker
from enrollment_analytics.core.playbooks import PlaybookGenerator
from enrollment_analytics.core.stall_risk import StallRiskAssessor
from enrollment_analytics.core.trend_analyzer import TrendAnalyzer, days_since_last_enrollment
from enrollment_analytics.domain.confidence import ConfidenceInputs
from enrollment_analytics.domain.playbook import DeviceCandidate
from enrollment_analytics.domain.result import AnalyticsOutcome, AnalyticsResult
from enrollment_analytics.domain.snapshot import enrolled_percentage
from enrollment_analytics.foundation.clock import utc_now
from enrollment_analytics.providers.base import (
    CandidateProvider,
    HistoryProvider,
    InventoryProvider,
    ReadinessProvider,
)
from enrollment_analytics.providers.synthetic import EstimatedReadinessProvider
from enrollment_analytics.store.scoring_config_store import ScoringConfigStore
from enrollment_analytics.telemetry.sink import ANALYTICS_COMPUTED_EVENT, TelemetrySink

logger = logging.getLogger(__name__)


class AnalyticsOrchestrator:
    """Wires providers, the config store and the pure stages together.

    Args:
        config_store: Source of the ScoringConfig snapshot for each run.
        inventory: Current device counts.
        history: Daily enrollment snapshots (real or synthetic).
        readiness: Readiness signals; defaults to documented estimates.
        candidates: Devices for the low-risk batch; no batch when omitted.
        telemetry: Optional event sink.
    """

    def __init__(
        self,
        config_store: ScoringConfigStore,
        inventory: InventoryProvider,
        history: HistoryProvider,
        readiness: ReadinessProvider | None = None,
        candidates: CandidateProvider | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self._config_store = config_store
        self._inventory = inventory
        self._history = history
        self._readiness = readiness or EstimatedReadinessProvider()
        self._candidates = candidates
        self._telemetry = telemetry

    # ── Public API ───────────────────────────────────────────────────────

    async def compute(self, cancel: asyncio.Event | None = None) -> AnalyticsOutcome:
        started = time.perf_counter()
        logger.info("Starting enrollment analytics computation")

        # The store stats and reads a file; keep that off the event loop
        config = await asyncio.to_thread(self._config_store.current)
        ok, message = config.validate_weights()
        if not ok:
            logger.error("Scoring config rejected: %s", message)
            return AnalyticsOutcome.failed(message)

        # ── Gather ───────────────────────────────────────────────────
        try:
            counts = await self._inventory.fetch_counts()
            snapshots = await self._history.fetch_history(counts)
            signals = await self._readiness.fetch_signals()
            candidates: list[DeviceCandidate] | None = None
            if self._candidates is not None:
                candidates = await self._candidates.fetch_candidates()
        except Exception as exc:
            logger.error("Analytics data gathering failed: %s", exc)
            raise
        if _cancelled(cancel, "gather"):
            return AnalyticsOutcome.cancelled("gather")

        total = counts.total_legacy_devices
        enrolled = counts.total_cloud_devices
        pct = enrolled_percentage(total, enrolled)
        gap = total - enrolled

        # ── Trend ────────────────────────────────────────────────────
        trend = TrendAnalyzer(config).compute(snapshots)
        if _cancelled(cancel, "trend"):
            return AnalyticsOutcome.cancelled("trend")

        # ── Confidence ───────────────────────────────────────────────
        days_since = days_since_last_enrollment(snapshots, utc_now().date())
        inputs = ConfidenceInputs.from_signals(
            velocity_30=trend.velocity_30,
            velocity_60=trend.velocity_60,
            velocity_90=trend.velocity_90,
            current_enrollment_pct=pct,
            days_since_last_enrollment=days_since,
            signals=signals,
        )
        if inputs.estimated_fields:
            logger.debug("Confidence inputs use estimated signals: %s", inputs.estimated_fields)
        confidence = ConfidenceScorer(config).score(inputs)
        if _cancelled(cancel, "confidence"):
            return AnalyticsOutcome.cancelled("confidence")

        # ── Stall risk ───────────────────────────────────────────────
        stall_risk = StallRiskAssessor(config).assess(pct, trend.trend_state, days_since)
        if _cancelled(cancel, "stall_risk"):
            return AnalyticsOutcome.cancelled("stall_risk")

        # ── Milestones ───────────────────────────────────────────────
        milestones = MilestoneTracker().build(pct)
        if _cancelled(cancel, "milestones"):
            return AnalyticsOutcome.cancelled("milestones")

        # ── Playbooks ────────────────────────────────────────────────
        playbooks = PlaybookGenerator(config).generate(
            gap, confidence.breakdown.complexity_score, stall_risk,
        )
        if _cancelled(cancel, "playbooks"):
            return AnalyticsOutcome.cancelled("playbooks")

        # ── Low-risk batch ───────────────────────────────────────────
        batch = None
        if candidates is not None:
            batch = select_low_risk_batch(candidates, config)
            if _cancelled(cancel, "low_risk_batch"):
                return AnalyticsOutcome.cancelled("low_risk_batch")

        result = AnalyticsResult(
            total_legacy_devices=total,
            total_cloud_devices=enrolled,
            snapshots=snapshots,
            trend=trend,
            confidence_inputs=inputs,
            confidence=confidence,
            stall_risk=stall_risk,
            milestones=milestones,
            playbooks=playbooks,
            low_risk_batch=batch,
            generated_at=utc_now(),
            computation_time_ms=(time.perf_counter() - started) * 1000,
            data_source=f"{counts.data_source or 'inventory'} + {self._history.source_name}",
        )

        _log_result(result)
        self._emit_telemetry(result)
        return AnalyticsOutcome.ok(result)

    # ── Telemetry ────────────────────────────────────────────────────────

    def _emit_telemetry(self, result: AnalyticsResult) -> None:
        if self._telemetry is None:
            return
        next_ms = result.next_milestone
        try:
            self._telemetry.track_event(
                ANALYTICS_COMPUTED_EVENT,
                {
                    "TrendState": result.trend.trend_state.value,
                    "ConfidenceBand": result.confidence.band.value,
                    "StallRiskLevel": result.stall_risk.risk_level.value,
                    "IsTrustTroughRisk": str(result.stall_risk.is_trust_trough_risk),
                    "NextMilestone": next_ms.name if next_ms else "Complete",
                    "PlaybookCount": str(len(result.playbooks)),
                },
                {
                    "EnrolledPct": result.enrolled_pct,
                    "ConfidenceScore": float(result.confidence.score),
                    "Velocity7Day": result.trend.velocity_7,
                    "ComputationTimeMs": result.computation_time_ms,
                },
            )
        except Exception as exc:
            logger.warning("Failed to track analytics telemetry: %s", exc)


def _cancelled(cancel: asyncio.Event | None, stage: str) -> bool:
    if cancel is not None and cancel.is_set():
        logger.warning("Analytics computation cancelled after stage '%s'", stage)
        return True
    return False


def _log_result(result: AnalyticsResult) -> None:
    next_ms = result.next_milestone
    logger.info(
        "Analytics: devices=%d/%d (%.1f%%) gap=%d trend=%s velocity=%.1f/week",
        result.total_cloud_devices,
        result.total_legacy_devices,
        result.enrolled_pct,
        result.gap,
        result.trend.trend_state.value,
        result.trend.devices_per_week,
    )
    logger.info(
        "Analytics: confidence=%d/100 (%s) stall_risk=%s trust_trough=%s",
        result.confidence.score,
        result.confidence.band.value,
        result.stall_risk.risk_level.value,
        result.stall_risk.is_trust_trough_risk,
    )
    logger.info(
        "Analytics: next_milestone=%s playbooks=%d computed_in=%.0fms",
        f"{next_ms.name} ({next_ms.percentage}%)" if next_ms else "None",
        len(result.playbooks),
        result.computation_time_ms,
    )
