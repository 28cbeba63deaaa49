"""File-backed ScoringConfig store with modification-time hot reload.

Design notes:
    - A threading.Lock guards the check-then-load sequence so concurrent
      callers never trigger duplicate reloads or observe a half-swapped
      snapshot.
    - The cached value is an immutable ScoringConfig.  Reloading replaces
      the reference; nobody mutates a snapshot in place.
    - A reload happens when the file's mtime advances past the mtime seen
      at the last load.
    - Read and parse failures never reach callers.  They are logged and the
      defaults are used.  Defaults are written out only if no file exists.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from enrollment_analytics.domain.scoring_config import ScoringConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "enrollment-scoring-config.json"


class ScoringConfigStore:
    """Owns the backing file and the active ScoringConfig snapshot.

    Args:
        path: Location of the JSON config file.  Created with defaults on
              first load if it does not exist.
    """

    def __init__(self, path: str | Path = DEFAULT_CONFIG_FILENAME) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._current: ScoringConfig | None = None
        self._loaded_mtime_ns: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    # ── Public API ───────────────────────────────────────────────────────

    def current(self) -> ScoringConfig:
        """Return the active config, reloading first if the file changed."""
        with self._lock:
            if self._current is None or self._should_reload():
                self._current = self._load()
            return self._current

    def save(self, config: ScoringConfig, path: str | Path | None = None) -> bool:
        """Serialize *config* to disk.  Returns False if the write failed."""
        target = Path(path) if path is not None else self._path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(config.to_json_dict(), indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to save scoring config to %s: %s", target, exc)
            return False

        logger.info("Saved scoring config to %s", target)
        return True

    def force_reload(self) -> None:
        """Drop the cached snapshot so the next current() reads the file."""
        with self._lock:
            self._current = None
            self._loaded_mtime_ns = None

    # ── Internals (caller holds the lock) ────────────────────────────────

    def _file_mtime_ns(self) -> int | None:
        try:
            return self._path.stat().st_mtime_ns
        except OSError:
            return None

    def _should_reload(self) -> bool:
        mtime = self._file_mtime_ns()
        if mtime is None:
            return False
        return self._loaded_mtime_ns is None or mtime > self._loaded_mtime_ns

    def _load(self) -> ScoringConfig:
        if self._path.exists():
            config = self._read_file()
            self._loaded_mtime_ns = self._file_mtime_ns()
            return config

        config = ScoringConfig()
        logger.info("No scoring config at %s, using defaults", self._path)
        self.save(config)
        self._loaded_mtime_ns = self._file_mtime_ns()
        return config

    def _read_file(self) -> ScoringConfig:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("top-level JSON value must be an object")
            config = ScoringConfig.model_validate(raw)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning(
                "Failed to load scoring config from %s, using defaults: %s",
                self._path, exc,
            )
            return ScoringConfig()

        logger.info("Loaded scoring config from %s", self._path)
        _log_config(config)
        return config


def _log_config(config: ScoringConfig) -> None:
    logger.debug(
        "Weights: velocity=%d%% success_rate=%d%% complexity=%d%% infrastructure=%d%% ca=%d%%",
        config.velocity_weight,
        config.success_rate_weight,
        config.complexity_weight,
        config.infrastructure_weight,
        config.conditional_access_weight,
    )
    logger.debug(
        "Velocity thresholds: good=%.1f/day excellent=%.1f/day flat_delta=%.2f",
        config.good_velocity_threshold,
        config.excellent_velocity_threshold,
        config.flat_velocity_delta_threshold,
    )
    logger.debug(
        "Trust trough: %.0f%%-%.0f%%",
        config.trust_trough_lower_pct,
        config.trust_trough_upper_pct,
    )
