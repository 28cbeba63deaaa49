"""REST endpoints exposing analytics results and the scoring config.

Paths:
    GET  /api/analytics                 run the pipeline, return AnalyticsResult
    GET  /api/scoring-config            active config + weight validation
    POST /api/scoring-config/reload     drop the cached config snapshot

The router is read-only with respect to the engine: consumers receive
results, they cannot push anything back into a run.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from enrollment_analytics.core.orchestrator import AnalyticsOrchestrator
from enrollment_analytics.domain.enums import OutcomeStatus
from enrollment_analytics.store.scoring_config_store import ScoringConfigStore

logger = logging.getLogger(__name__)


def create_analytics_router(
    orchestrator: AnalyticsOrchestrator,
    config_store: ScoringConfigStore,
) -> APIRouter:
    """Factory that wires the analytics endpoints to an orchestrator."""

    router = APIRouter(prefix="/api", tags=["analytics"])

    @router.get("/analytics")
    async def get_analytics() -> dict[str, Any]:
        outcome = await orchestrator.compute()

        if outcome.status == OutcomeStatus.ERROR:
            raise HTTPException(status_code=422, detail=outcome.error)
        if outcome.status == OutcomeStatus.CANCELLED:
            raise HTTPException(
                status_code=503,
                detail=f"Analytics cancelled after stage '{outcome.cancelled_stage}'",
            )

        result = outcome.result
        next_ms = result.next_milestone
        recommended = result.recommended_playbook
        return {
            "summary": {
                "enrolled_pct": round(result.enrolled_pct, 2),
                "gap": result.gap,
                "trend": result.trend.description,
                "devices_per_week": round(result.trend.devices_per_week, 2),
                "confidence": result.confidence.score_display,
                "stall_risk": result.stall_risk.risk_level.value,
                "next_milestone": next_ms.name if next_ms else None,
                "recommended_playbook": recommended.name if recommended else None,
            },
            "result": result.model_dump(mode="json", exclude={"snapshots"}),
            "snapshot_count": len(result.snapshots),
        }

    @router.get("/scoring-config")
    async def get_scoring_config() -> dict[str, Any]:
        config = config_store.current()
        valid, message = config.validate_weights()
        return {
            "path": str(config_store.path),
            "config": config.to_json_dict(),
            "weights_valid": valid,
            "validation_message": message,
        }

    @router.post("/scoring-config/reload")
    async def reload_scoring_config() -> dict[str, Any]:
        config_store.force_reload()
        config = config_store.current()
        logger.info("Scoring config reloaded via API")
        return {"reloaded": True, "config": config.to_json_dict()}

    return router
