"""Application configuration loaded from environment variables.

These are process-level settings.  Scoring weights and thresholds live in
the hot-reloadable JSON file named by ``scoring_config_path``.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings

from enrollment_analytics.domain.enums import HistorySource


class Settings(BaseSettings):
    app_name: str = "enrollment-analytics"
    debug: bool = False
    log_level: str = "INFO"

    # Scoring config file (hot reload on mtime change)
    scoring_config_path: str = "enrollment-scoring-config.json"

    # History source
    history_source: HistorySource = HistorySource.SYNTHETIC
    history_file_path: str = "enrollment-history.json"
    synthetic_history_days: int = 90
    synthetic_seed: int = 42

    # Static inventory used by the demo app
    inventory_total_devices: int = 1000
    inventory_cloud_devices: int = 550

    # Sample low-risk candidates
    sample_candidate_count: int = 20

    model_config = {"env_prefix": "ENROLLMENT_"}


settings = Settings()
