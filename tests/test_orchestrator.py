"""Tests for the AnalyticsOrchestrator pipeline.

Uses in-memory providers and clock patching via
enrollment_analytics.core.orchestrator.utc_now.
"""

from __future__ import annotations

import asyncio
import json
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from enrollment_analytics.core.confidence_scorer import ConfidenceScorer
from enrollment_analytics.core.orchestrator import AnalyticsOrchestrator
from enrollment_analytics.domain.confidence import EstimatedSignals
from enrollment_analytics.domain.enums import (
    ConfidenceBand,
    OutcomeStatus,
    PlaybookType,
    StallRiskLevel,
    TrendState,
)
from enrollment_analytics.domain.playbook import DeviceCandidate
from enrollment_analytics.domain.scoring_config import ScoringConfig
from enrollment_analytics.domain.snapshot import EnrollmentSnapshot, InventoryCounts
from enrollment_analytics.providers.base import (
    CandidateProvider,
    HistoryProvider,
    InventoryProvider,
    ReadinessProvider,
)
from enrollment_analytics.providers.synthetic import EstimatedReadinessProvider
from enrollment_analytics.store.scoring_config_store import ScoringConfigStore
from enrollment_analytics.telemetry.sink import (
    ANALYTICS_COMPUTED_EVENT,
    RecordingTelemetrySink,
    TelemetrySink,
)


# ── Helpers ──────────────────────────────────────────────────────────────────

_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
_TODAY = _NOW.date()


@contextmanager
def _frozen_clock(dt: datetime = _NOW):
    """Freeze utc_now() in the orchestrator and batch selection modules."""
    with patch("enrollment_analytics.core.orchestrator.utc_now", return_value=dt), \
         patch("enrollment_analytics.core.low_risk_batch.utc_now", return_value=dt):
        yield


def _stalled_history(days: int = 90, quiet_days: int = 45) -> list[EnrollmentSnapshot]:
    """Steady 5/day enrollment that stopped *quiet_days* ago."""
    snapshots = []
    cloud = 0
    for days_ago in range(days, -1, -1):
        new = 5 if days_ago >= quiet_days else 0
        cloud += new
        snapshots.append(EnrollmentSnapshot(
            date=_TODAY - timedelta(days=days_ago),
            total_legacy_devices=1000,
            total_cloud_devices=cloud,
            new_enrollments_count=new,
        ))
    return snapshots


def _steady_history(rate: int = 6, days: int = 90) -> list[EnrollmentSnapshot]:
    return [
        EnrollmentSnapshot(
            date=_TODAY - timedelta(days=days_ago),
            total_legacy_devices=1000,
            total_cloud_devices=300,
            new_enrollments_count=rate,
        )
        for days_ago in range(days, -1, -1)
    ]


class FakeInventory(InventoryProvider):
    def __init__(self, total: int = 1000, cloud: int = 520, error: Exception | None = None) -> None:
        self.calls = 0
        self._counts = InventoryCounts(
            total_legacy_devices=total, total_cloud_devices=cloud, data_source="test-inventory",
        )
        self._error = error

    async def fetch_counts(self) -> InventoryCounts:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._counts


class FakeHistory(HistoryProvider):
    def __init__(self, snapshots: list[EnrollmentSnapshot]) -> None:
        self.calls = 0
        self._snapshots = snapshots

    @property
    def source_name(self) -> str:
        return "fake-history"

    async def fetch_history(self, counts: InventoryCounts) -> list[EnrollmentSnapshot]:
        self.calls += 1
        return list(self._snapshots)


class FakeReadiness(ReadinessProvider):
    def __init__(self, signals: EstimatedSignals) -> None:
        self._signals = signals

    async def fetch_signals(self) -> EstimatedSignals:
        return self._signals


class FakeCandidates(CandidateProvider):
    async def fetch_candidates(self) -> list[DeviceCandidate]:
        return [
            DeviceCandidate(
                device_name=f"DESKTOP-{i}",
                readiness_score=70.0 + i * 5,
                is_compliant=True,
                last_check_in=_NOW - timedelta(days=1),
            )
            for i in range(5)
        ]


class ExplodingSink(TelemetrySink):
    def track_event(self, name, properties, metrics) -> None:
        raise RuntimeError("sink offline")


class CountdownCancel(asyncio.Event):
    """Reports cancellation from the *trip_at*-th check onwards."""

    def __init__(self, trip_at: int) -> None:
        super().__init__()
        self.checks = 0
        self._trip_at = trip_at

    def is_set(self) -> bool:
        self.checks += 1
        return self.checks >= self._trip_at


def _orchestrator(
    store: ScoringConfigStore,
    inventory: InventoryProvider | None = None,
    history: HistoryProvider | None = None,
    readiness: ReadinessProvider | None = None,
    candidates: CandidateProvider | None = None,
    telemetry: TelemetrySink | None = None,
) -> AnalyticsOrchestrator:
    return AnalyticsOrchestrator(
        config_store=store,
        inventory=inventory or FakeInventory(),
        history=history or FakeHistory(_stalled_history()),
        readiness=readiness,
        candidates=candidates,
        telemetry=telemetry,
    )


# ── Trust trough scenario ────────────────────────────────────────────────────


class TestTrustTroughScenario:
    @pytest.mark.asyncio
    async def test_stalled_in_band_detected(self, config_store: ScoringConfigStore) -> None:
        with _frozen_clock():
            outcome = await _orchestrator(config_store).compute()

        assert outcome.is_ok
        result = outcome.result
        assert result.enrolled_pct == pytest.approx(52.0)
        assert result.gap == 480
        assert result.trend.trend_state == TrendState.STALLED
        assert result.confidence_inputs.days_since_last_enrollment == 45
        assert result.stall_risk.is_trust_trough_risk is True
        assert result.stall_risk.risk_level == StallRiskLevel.HIGH

    @pytest.mark.asyncio
    async def test_rebuild_momentum_recommended(self, config_store: ScoringConfigStore) -> None:
        with _frozen_clock():
            result = (await _orchestrator(config_store).compute()).result

        recommended = result.recommended_playbook
        assert recommended is not None
        assert recommended.type == PlaybookType.REBUILD_MOMENTUM
        assert recommended.expected_impact_devices == 48

    @pytest.mark.asyncio
    async def test_milestones_and_metadata(self, config_store: ScoringConfigStore) -> None:
        with _frozen_clock():
            result = (await _orchestrator(config_store).compute()).result

        assert result.next_milestone.percentage == 60
        assert result.generated_at == _NOW
        assert result.computation_time_ms >= 0
        assert result.data_source == "test-inventory + fake-history"
        assert len(result.snapshots) == 91
        assert result.low_risk_batch is None

    @pytest.mark.asyncio
    async def test_estimated_inputs_flagged(self, config_store: ScoringConfigStore) -> None:
        with _frozen_clock():
            result = (await _orchestrator(config_store).compute()).result
        assert "required_app_count" in result.confidence_inputs.estimated_fields


# ── Healthy scenario ─────────────────────────────────────────────────────────


class TestHealthyScenario:
    @pytest.mark.asyncio
    async def test_steady_progress(self, config_store: ScoringConfigStore) -> None:
        orch = _orchestrator(
            config_store,
            inventory=FakeInventory(cloud=300),
            history=FakeHistory(_steady_history(rate=6)),
        )
        with _frozen_clock():
            result = (await orch.compute()).result

        assert result.trend.trend_state == TrendState.STEADY
        assert result.stall_risk.risk_level == StallRiskLevel.NONE
        assert result.confidence.score == 83
        assert result.confidence.band == ConfidenceBand.HIGH
        assert result.recommended_playbook is None

    @pytest.mark.asyncio
    async def test_confidence_matches_direct_scorer(self, config_store: ScoringConfigStore) -> None:
        with _frozen_clock():
            result = (await _orchestrator(config_store).compute()).result
        direct = ConfidenceScorer(ScoringConfig()).score(result.confidence_inputs)
        assert result.confidence == direct

    @pytest.mark.asyncio
    async def test_low_risk_batch_when_candidates_available(
        self, config_store: ScoringConfigStore,
    ) -> None:
        orch = _orchestrator(config_store, candidates=FakeCandidates())
        with _frozen_clock():
            result = (await orch.compute()).result

        batch = result.low_risk_batch
        assert batch is not None
        assert [d.readiness_score for d in batch.devices] == [90.0, 85.0, 80.0, 75.0]

    @pytest.mark.asyncio
    async def test_real_readiness_signals(self, config_store: ScoringConfigStore) -> None:
        signals = EstimatedSignals(has_gateway=False, is_estimated=False)
        orch = _orchestrator(config_store, readiness=FakeReadiness(signals))
        with _frozen_clock():
            result = (await orch.compute()).result
        assert result.confidence_inputs.estimated_fields == []
        assert result.confidence.breakdown.infrastructure_score == 63

    @pytest.mark.asyncio
    async def test_empty_history_is_unknown(self, config_store: ScoringConfigStore) -> None:
        orch = _orchestrator(config_store, history=FakeHistory([]))
        with _frozen_clock():
            result = (await orch.compute()).result
        assert result.trend.trend_state == TrendState.UNKNOWN
        assert result.confidence_inputs.days_since_last_enrollment == 30
        assert result.stall_risk.risk_level == StallRiskLevel.NONE

    @pytest.mark.asyncio
    async def test_zero_inventory(self, config_store: ScoringConfigStore) -> None:
        orch = _orchestrator(config_store, inventory=FakeInventory(total=0, cloud=0))
        with _frozen_clock():
            result = (await orch.compute()).result
        assert result.enrolled_pct == 0.0
        assert result.next_milestone.percentage == 25

    def test_default_readiness_provider(self, config_store: ScoringConfigStore) -> None:
        orch = _orchestrator(config_store)
        assert isinstance(orch._readiness, EstimatedReadinessProvider)


# ── Config handling ──────────────────────────────────────────────────────────


class TestConfigHandling:
    @pytest.mark.asyncio
    async def test_invalid_weights_return_error(self, config_store: ScoringConfigStore) -> None:
        config_store.save(ScoringConfig(conditional_access_weight=9))
        inventory = FakeInventory()
        with _frozen_clock():
            outcome = await _orchestrator(config_store, inventory=inventory).compute()

        assert outcome.status == OutcomeStatus.ERROR
        assert outcome.error == "Weights must sum to 100, but current total is 99"
        assert outcome.result is None
        assert inventory.calls == 0

    @pytest.mark.asyncio
    async def test_weight_over_100_in_file_returns_error(
        self, config_store: ScoringConfigStore,
    ) -> None:
        config_store.path.write_text(json.dumps({"velocityWeight": 110}), encoding="utf-8")
        with _frozen_clock():
            outcome = await _orchestrator(config_store).compute()

        assert outcome.status == OutcomeStatus.ERROR
        assert outcome.error == "Weights must sum to 100, but current total is 180"

    @pytest.mark.asyncio
    async def test_config_read_off_event_loop_thread(
        self, config_store: ScoringConfigStore,
    ) -> None:
        loop_thread = threading.get_ident()
        seen: list[int] = []
        original = config_store.current

        def recording_current() -> ScoringConfig:
            seen.append(threading.get_ident())
            return original()

        config_store.current = recording_current  # type: ignore[method-assign]
        with _frozen_clock():
            outcome = await _orchestrator(config_store).compute()

        assert outcome.is_ok
        assert seen and seen[0] != loop_thread

    @pytest.mark.asyncio
    async def test_naive_check_in_from_provider_is_treated_as_utc(
        self, config_store: ScoringConfigStore,
    ) -> None:
        class NaiveCandidates(CandidateProvider):
            async def fetch_candidates(self) -> list[DeviceCandidate]:
                naive = (_NOW - timedelta(days=1)).replace(tzinfo=None)
                return [
                    DeviceCandidate(
                        device_name="DESKTOP-NAIVE",
                        readiness_score=90.0,
                        is_compliant=True,
                        last_check_in=naive,
                    ),
                ]

        orch = _orchestrator(config_store, candidates=NaiveCandidates())
        with _frozen_clock():
            outcome = await orch.compute()

        assert outcome.is_ok
        assert [d.device_name for d in outcome.result.low_risk_batch.devices] == ["DESKTOP-NAIVE"]

    @pytest.mark.asyncio
    async def test_config_change_picked_up_between_runs(
        self, config_store: ScoringConfigStore,
    ) -> None:
        orch = _orchestrator(
            config_store,
            inventory=FakeInventory(cloud=300),
            history=FakeHistory(_steady_history(rate=6)),
        )
        with _frozen_clock():
            first = (await orch.compute()).result

        config_store.save(ScoringConfig(
            velocity_weight=100,
            success_rate_weight=0,
            complexity_weight=0,
            infrastructure_weight=0,
            conditional_access_weight=0,
        ))
        mtime = config_store.path.stat().st_mtime_ns + 1_000_000_000
        os.utime(config_store.path, ns=(mtime, mtime))

        with _frozen_clock():
            second = (await orch.compute()).result

        assert first.confidence.score == 83
        assert second.confidence.score == 75
        assert second.confidence.breakdown.velocity_weight == 100


# ── Failures ─────────────────────────────────────────────────────────────────


class TestFailures:
    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, config_store: ScoringConfigStore) -> None:
        orch = _orchestrator(config_store, inventory=FakeInventory(error=ConnectionError("down")))
        with _frozen_clock(), pytest.raises(ConnectionError, match="down"):
            await orch.compute()


# ── Cancellation ─────────────────────────────────────────────────────────────


class TestCancellation:
    @pytest.mark.asyncio
    async def test_pre_set_token_cancels_after_gather(
        self, config_store: ScoringConfigStore,
    ) -> None:
        cancel = asyncio.Event()
        cancel.set()
        history = FakeHistory(_stalled_history())
        with _frozen_clock():
            outcome = await _orchestrator(config_store, history=history).compute(cancel)

        assert outcome.status == OutcomeStatus.CANCELLED
        assert outcome.cancelled_stage == "gather"
        assert outcome.result is None
        assert history.calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("trip_at", "stage"),
        [
            (1, "gather"),
            (2, "trend"),
            (3, "confidence"),
            (4, "stall_risk"),
            (5, "milestones"),
            (6, "playbooks"),
            (7, "low_risk_batch"),
        ],
    )
    async def test_cancelled_between_stages(
        self, config_store: ScoringConfigStore, trip_at: int, stage: str,
    ) -> None:
        sink = RecordingTelemetrySink()
        orch = _orchestrator(config_store, candidates=FakeCandidates(), telemetry=sink)
        with _frozen_clock():
            outcome = await orch.compute(CountdownCancel(trip_at))

        assert outcome.status == OutcomeStatus.CANCELLED
        assert outcome.cancelled_stage == stage
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_unset_token_completes(self, config_store: ScoringConfigStore) -> None:
        with _frozen_clock():
            outcome = await _orchestrator(config_store).compute(asyncio.Event())
        assert outcome.is_ok


# ── Telemetry ────────────────────────────────────────────────────────────────


class TestTelemetry:
    @pytest.mark.asyncio
    async def test_event_emitted_once(self, config_store: ScoringConfigStore) -> None:
        sink = RecordingTelemetrySink()
        with _frozen_clock():
            await _orchestrator(config_store, telemetry=sink).compute()

        assert len(sink.events) == 1
        name, props, metrics = sink.events[0]
        assert name == ANALYTICS_COMPUTED_EVENT
        assert props["TrendState"] == "stalled"
        assert props["StallRiskLevel"] == "high"
        assert props["IsTrustTroughRisk"] == "True"
        assert props["NextMilestone"] == "Trust Trough Exit"
        assert props["PlaybookCount"] == "2"
        assert metrics["EnrolledPct"] == pytest.approx(52.0)
        assert metrics["Velocity7Day"] == 0.0

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_fail_run(self, config_store: ScoringConfigStore) -> None:
        with _frozen_clock():
            outcome = await _orchestrator(config_store, telemetry=ExplodingSink()).compute()
        assert outcome.is_ok
