"""Tests for the domain models: validation, derived properties, immutability."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from enrollment_analytics.core.milestones import MILESTONE_TEMPLATES
from enrollment_analytics.core.playbooks import (
    rebuild_momentum,
    reduce_dependencies,
    zero_touch_hygiene,
)
from enrollment_analytics.domain.confidence import ScoreDriver
from enrollment_analytics.domain.enums import (
    ActionType,
    OutcomeStatus,
    PlaybookType,
    ScoreCategory,
    TrendState,
)
from enrollment_analytics.domain.playbook import EnrollmentBatch, PlaybookStep
from enrollment_analytics.domain.result import AnalyticsOutcome
from enrollment_analytics.domain.snapshot import (
    EnrollmentSnapshot,
    InventoryCounts,
    enrolled_percentage,
)
from enrollment_analytics.domain.trend import TrendAnalysis
from enrollment_analytics.foundation.clock import utc_now, utc_today
from enrollment_analytics.telemetry.sink import LoggingTelemetrySink


class TestSnapshot:
    def test_derived_values(self) -> None:
        snap = EnrollmentSnapshot(
            date=date(2026, 1, 1),
            total_legacy_devices=1000,
            total_cloud_devices=550,
            new_enrollments_count=4,
        )
        assert snap.enrolled_pct == pytest.approx(55.0)
        assert snap.gap == 450

    def test_iso_date_string_accepted(self) -> None:
        snap = EnrollmentSnapshot(date="2026-01-01", total_legacy_devices=1, total_cloud_devices=0)
        assert snap.date == date(2026, 1, 1)
        assert snap.new_enrollments_count == 0

    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EnrollmentSnapshot(date=date(2026, 1, 1), total_legacy_devices=-1, total_cloud_devices=0)

    def test_frozen(self) -> None:
        snap = EnrollmentSnapshot(date=date(2026, 1, 1), total_legacy_devices=1, total_cloud_devices=0)
        with pytest.raises(ValidationError):
            snap.total_cloud_devices = 1  # type: ignore[misc]

    def test_enrolled_percentage_empty_fleet(self) -> None:
        assert enrolled_percentage(0, 0) == 0.0
        assert InventoryCounts(total_legacy_devices=0, total_cloud_devices=0).data_source == ""


class TestTrendAnalysis:
    def test_defaults_unknown(self) -> None:
        trend = TrendAnalysis()
        assert trend.trend_state == TrendState.UNKNOWN
        assert trend.description == "Unknown"
        assert trend.week_over_week_change_pct is None

    def test_negative_velocity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TrendAnalysis(velocity_7=-1.0)


class TestScoreDriver:
    def test_impact_display(self) -> None:
        up = ScoreDriver(name="Up", impact=10, category=ScoreCategory.INFRASTRUCTURE)
        down = ScoreDriver(name="Down", impact=-5, category=ScoreCategory.COMPLEXITY)
        assert up.impact_display == "+10"
        assert down.impact_display == "-5"


class TestPlaybookModels:
    def test_step_order_starts_at_one(self) -> None:
        with pytest.raises(ValidationError):
            PlaybookStep(order=0, title="t", description="d", action_type=ActionType.REVIEW)

    def test_empty_batch(self) -> None:
        batch = EnrollmentBatch(name="Empty")
        assert batch.device_count == 0
        assert batch.batch_id


class TestPlaybookType:
    def test_every_type_is_produced(self) -> None:
        produced = {p.type for p in (rebuild_momentum(20), reduce_dependencies(), zero_touch_hygiene())}
        produced |= {t.playbook for t in MILESTONE_TEMPLATES if t.playbook is not None}
        assert produced == set(PlaybookType)


class TestAnalyticsOutcome:
    def test_cancelled(self) -> None:
        outcome = AnalyticsOutcome.cancelled("trend")
        assert outcome.status == OutcomeStatus.CANCELLED
        assert outcome.cancelled_stage == "trend"
        assert not outcome.is_ok

    def test_failed(self) -> None:
        outcome = AnalyticsOutcome.failed("bad weights")
        assert outcome.status == OutcomeStatus.ERROR
        assert outcome.error == "bad weights"
        assert outcome.result is None


class TestClock:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is not None
        assert utc_now().utcoffset().total_seconds() == 0

    def test_utc_today_follows_utc_now(self) -> None:
        frozen = datetime(2026, 3, 1, 23, 30, tzinfo=timezone.utc)
        with patch("enrollment_analytics.foundation.clock.utc_now", return_value=frozen):
            assert utc_today() == date(2026, 3, 1)


class TestLoggingTelemetrySink:
    def test_logs_event(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="enrollment_analytics.telemetry.sink"):
            LoggingTelemetrySink().track_event("Evt", {"a": "b"}, {"m": 1.0})
        assert "Evt" in caplog.text
