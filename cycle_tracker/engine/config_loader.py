"""Load and validate the cycle prediction engine configuration.

The config lives in ``prediction_config.yaml`` alongside this module.  It is
loaded once on first use and cached for the life of the process.  Every
engine class also accepts an explicit ``PredictionConfig`` so tests and
callers can override individual values.

Usage::

    from cycle_tracker.engine.config_loader import get_prediction_config

    config = get_prediction_config()
    config.cycle_length.max_gap_days      # 40
    config.prediction.period_days         # 5
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("cycle_tracker.engine.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "prediction_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class CycleLengthConfig:
    """Settings for averaging historical cycle lengths."""

    history_limit: int = 12
    min_starts: int = 2
    max_gap_days: int = 40


@dataclass
class ProjectionConfig:
    """Offsets used when projecting a cycle start forward."""

    period_days: int = 5
    pms_start_offset_days: int = 8   # first PMS day, days before the start
    pms_end_offset_days: int = 6     # last PMS day, days before the start
    ovulation_offset_days: int = 14
    forecast_cycles: int = 3


@dataclass
class HistoryConfig:
    """Settings for reconstructing markers in historical months."""

    forward_projections: int = 2
    horizon_months: int = 2


@dataclass
class BackfillRuleConfig:
    """Cycle-day increment rule used by the daily backfill."""

    max_cycle_day: int = 35
    period_start_day: int = 2
    period_end_day: int = 5


@dataclass
class CalendarEventConfig:
    """Lengths of the all-day calendar events created after logging."""

    pms_event_days: int = 3
    period_event_days: int = 5


@dataclass
class PredictionConfig:
    """Complete, validated engine configuration.

    Attributes:
        version:      Config schema version string.
        cycle_length: Averaging settings.
        prediction:   Projection offsets.
        history:      Historical reconstruction settings.
        backfill:     Backfill increment rule.
        calendar:     Calendar event lengths.
        log_button_min_cycle_day: Earliest cycle day at which logging a new
                      period is offered.
    """

    version: str
    cycle_length: CycleLengthConfig
    prediction: ProjectionConfig
    history: HistoryConfig
    backfill: BackfillRuleConfig
    calendar: CalendarEventConfig
    log_button_min_cycle_day: int = 20

    @classmethod
    def defaults(cls) -> "PredictionConfig":
        """Return a config built purely from dataclass defaults."""
        return cls(
            version="1.0",
            cycle_length=CycleLengthConfig(),
            prediction=ProjectionConfig(),
            history=HistoryConfig(),
            backfill=BackfillRuleConfig(),
            calendar=CalendarEventConfig(),
        )


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when prediction_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Prediction config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> PredictionConfig:
    """Validate the raw YAML dict and construct a PredictionConfig.

    Missing keys fall back to the dataclass defaults.  Every invalid value
    is collected so the resulting error lists all problems at once.

    Raises:
        ConfigValidationError: If any value is not a positive integer or the
            PMS offsets are inverted.
    """
    errors: list[str] = []

    def _section(name: str) -> dict:
        section = raw.get(name) or {}
        if not isinstance(section, dict):
            errors.append(f"'{name}' must be a mapping")
            return {}
        return section

    def _positive_int(section: dict, key: str, section_name: str, default: int) -> int:
        value: Any = section.get(key, default)
        try:
            number = int(value)
        except (TypeError, ValueError):
            errors.append(f"{section_name}.{key} must be an integer, got {value!r}")
            return default
        if number <= 0:
            errors.append(f"{section_name}.{key} must be positive, got {number}")
        return number

    version = str(raw.get("version", "1.0"))

    # ── Cycle length ──
    cl_raw = _section("cycle_length")
    cl_defaults = CycleLengthConfig()
    cycle_length = CycleLengthConfig(
        history_limit=_positive_int(cl_raw, "history_limit", "cycle_length", cl_defaults.history_limit),
        min_starts=_positive_int(cl_raw, "min_starts", "cycle_length", cl_defaults.min_starts),
        max_gap_days=_positive_int(cl_raw, "max_gap_days", "cycle_length", cl_defaults.max_gap_days),
    )
    if cycle_length.min_starts < 2:
        errors.append("cycle_length.min_starts must be at least 2 to produce a gap")

    # ── Prediction ──
    pr_raw = _section("prediction")
    pr_defaults = ProjectionConfig()
    prediction = ProjectionConfig(
        period_days=_positive_int(pr_raw, "period_days", "prediction", pr_defaults.period_days),
        pms_start_offset_days=_positive_int(
            pr_raw, "pms_start_offset_days", "prediction", pr_defaults.pms_start_offset_days
        ),
        pms_end_offset_days=_positive_int(
            pr_raw, "pms_end_offset_days", "prediction", pr_defaults.pms_end_offset_days
        ),
        ovulation_offset_days=_positive_int(
            pr_raw, "ovulation_offset_days", "prediction", pr_defaults.ovulation_offset_days
        ),
        forecast_cycles=_positive_int(pr_raw, "forecast_cycles", "prediction", pr_defaults.forecast_cycles),
    )
    if prediction.pms_start_offset_days < prediction.pms_end_offset_days:
        errors.append(
            "prediction.pms_start_offset_days must be >= pms_end_offset_days "
            f"({prediction.pms_start_offset_days} < {prediction.pms_end_offset_days})"
        )

    # ── History ──
    hi_raw = _section("history")
    hi_defaults = HistoryConfig()
    history = HistoryConfig(
        forward_projections=_positive_int(
            hi_raw, "forward_projections", "history", hi_defaults.forward_projections
        ),
        horizon_months=_positive_int(hi_raw, "horizon_months", "history", hi_defaults.horizon_months),
    )

    # ── Backfill ──
    bf_raw = _section("backfill")
    bf_defaults = BackfillRuleConfig()
    backfill = BackfillRuleConfig(
        max_cycle_day=_positive_int(bf_raw, "max_cycle_day", "backfill", bf_defaults.max_cycle_day),
        period_start_day=_positive_int(bf_raw, "period_start_day", "backfill", bf_defaults.period_start_day),
        period_end_day=_positive_int(bf_raw, "period_end_day", "backfill", bf_defaults.period_end_day),
    )
    if backfill.period_start_day > backfill.period_end_day:
        errors.append("backfill.period_start_day must be <= period_end_day")

    # ── Calendar ──
    ca_raw = _section("calendar")
    ca_defaults = CalendarEventConfig()
    calendar = CalendarEventConfig(
        pms_event_days=_positive_int(ca_raw, "pms_event_days", "calendar", ca_defaults.pms_event_days),
        period_event_days=_positive_int(
            ca_raw, "period_event_days", "calendar", ca_defaults.period_event_days
        ),
    )

    lg_raw = _section("logging")
    log_button_min_cycle_day = _positive_int(lg_raw, "log_button_min_cycle_day", "logging", 20)

    if errors:
        raise ConfigValidationError(
            f"prediction_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return PredictionConfig(
        version=version,
        cycle_length=cycle_length,
        prediction=prediction,
        history=history,
        backfill=backfill,
        calendar=calendar,
        log_button_min_cycle_day=log_button_min_cycle_day,
    )


def load_prediction_config(path: Path | None = None) -> PredictionConfig:
    """Load and validate the prediction config from disk.

    Args:
        path: Override path to YAML. Uses the bundled prediction_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded prediction config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Process-wide cached config
# ---------------------------------------------------------------------------

_config: PredictionConfig | None = None
_config_lock = threading.Lock()


def get_prediction_config() -> PredictionConfig:
    """Return the cached PredictionConfig, loading it on first call.  Thread-safe."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_prediction_config()
    return _config
