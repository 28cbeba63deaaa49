"""Selects the history provider named by the process settings."""

from __future__ import annotations

import logging

from enrollment_analytics.config import Settings
from enrollment_analytics.domain.enums import HistorySource
from enrollment_analytics.providers.base import HistoryProvider
from enrollment_analytics.providers.file_history import JsonFileHistoryProvider
from enrollment_analytics.providers.synthetic import SyntheticHistoryProvider

logger = logging.getLogger(__name__)


def build_history_provider(settings: Settings) -> HistoryProvider:
    if settings.history_source == HistorySource.FILE:
        provider: HistoryProvider = JsonFileHistoryProvider(settings.history_file_path)
    else:
        provider = SyntheticHistoryProvider(
            days=settings.synthetic_history_days,
            seed=settings.synthetic_seed,
        )
    logger.info("History provider: %s", provider.source_name)
    return provider
