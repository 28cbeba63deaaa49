"""Shared fixtures for the enrollment-analytics test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from enrollment_analytics.domain.scoring_config import ScoringConfig
from enrollment_analytics.store.scoring_config_store import ScoringConfigStore


@pytest.fixture
def config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "enrollment-scoring-config.json"


@pytest.fixture
def config_store(config_path: Path) -> ScoringConfigStore:
    return ScoringConfigStore(config_path)
