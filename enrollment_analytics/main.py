"""enrollment-analytics: migration momentum, confidence and playbooks.

This is the application entry point.  It wires the ScoringConfigStore,
the providers, the AnalyticsOrchestrator and the HTTP routes together.

Run with:  uvicorn enrollment_analytics.main:app
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from enrollment_analytics.api.analytics import create_analytics_router
from enrollment_analytics.config import settings
from enrollment_analytics.core.orchestrator import AnalyticsOrchestrator
from enrollment_analytics.providers.factory import build_history_provider
from enrollment_analytics.providers.synthetic import (
    EstimatedReadinessProvider,
    StaticInventoryProvider,
    SyntheticCandidateProvider,
)
from enrollment_analytics.store.scoring_config_store import ScoringConfigStore
from enrollment_analytics.telemetry.sink import LoggingTelemetrySink

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Config ───────────────────────────────────────────────────────────────────

config_store = ScoringConfigStore(settings.scoring_config_path)

# ── Orchestrator ─────────────────────────────────────────────────────────────

orchestrator = AnalyticsOrchestrator(
    config_store=config_store,
    inventory=StaticInventoryProvider(
        total_legacy_devices=settings.inventory_total_devices,
        total_cloud_devices=settings.inventory_cloud_devices,
    ),
    history=build_history_provider(settings),
    readiness=EstimatedReadinessProvider(),
    candidates=SyntheticCandidateProvider(
        count=settings.sample_candidate_count,
        seed=settings.synthetic_seed,
    ),
    telemetry=LoggingTelemetrySink(),
)

# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Enrollment momentum, confidence, stall risk and playbooks",
    version="0.1.0",
)

app.include_router(create_analytics_router(orchestrator, config_store))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    config = config_store.current()
    valid, message = config.validate_weights()
    return {
        "status": "ok" if valid else "degraded",
        "scoring_config": str(config_store.path),
        "weights_valid": valid,
        "validation_message": message,
        "history_source": settings.history_source.value,
    }
