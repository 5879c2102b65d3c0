"""
Validated configuration for ScrollGuard.

Each YAML file in args/ maps onto one pydantic model. Missing files, empty
files and files that fail validation all degrade to the model defaults, so
the engine always starts with a usable configuration.

Usage:
    from scrollguard.config_models import load_and_validate

    detection = load_and_validate("detection")
    if detection.apps.enabled.get("com.instagram.android", True):
        ...
"""

from __future__ import annotations

import logging

import yaml
from pydantic import BaseModel, ConfigDict, Field

from scrollguard import ARGS_DIR

logger = logging.getLogger(__name__)


# =============================================================================
# DetectionConfig (args/detection.yaml)
# =============================================================================

class ScorerConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    default_confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    rapid_scroll_count: int = Field(default=10, ge=1)


class SessionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    inactivity_timeout_ms: int = Field(default=30000, ge=1)
    doom_min_duration_ms: int = Field(default=60000, ge=0)
    productive_max_scrolls: int = Field(default=20, ge=1)


class InterventionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    min_scroll_interval_ms: int = Field(default=100, ge=0)
    block_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    nudge_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    cooldown_ms: dict[str, int] = Field(
        default_factory=lambda: {
            "minimal": 500,
            "gentle": 500,
            "moderate": 1000,
            "aggressive": 5000,
        }
    )
    overlay_ms: dict[str, int] = Field(
        default_factory=lambda: {"gentle": 2000, "moderate": 3000}
    )


class AppsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    # Per-package toggle; packages not listed are enabled
    enabled: dict[str, bool] = Field(default_factory=dict)


class DetectionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    scorer: ScorerConfig = Field(default_factory=ScorerConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    intervention: InterventionConfig = Field(default_factory=InterventionConfig)
    apps: AppsConfig = Field(default_factory=AppsConfig)


# =============================================================================
# LearningConfig (args/learning.yaml)
# =============================================================================

class LearnerConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    min_sessions: int = Field(default=10, ge=1)
    lookback_days: int = Field(default=7, ge=1)
    duration_factor: float = Field(default=0.7, gt=0.0, le=1.0)


class RiskConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    recent_doom_window_ms: int = Field(default=3600000, ge=0)
    recent_doom_bonus: float = Field(default=0.3, ge=0.0, le=1.0)


class StatsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    seconds_saved_per_block: int = Field(default=3, ge=0)


class LearningConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    learner: LearnerConfig = Field(default_factory=LearnerConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)


# =============================================================================
# Loader
# =============================================================================

_CONFIG_MAP: dict[str, type[BaseModel]] = {
    "detection": DetectionConfig,
    "learning": LearningConfig,
}


def _read_args_file(config_name: str) -> dict:
    yaml_path = ARGS_DIR / f"{config_name}.yaml"
    if not yaml_path.exists():
        return {}
    with open(yaml_path) as f:
        return yaml.safe_load(f) or {}


def load_and_validate(config_name: str, model_class: type[BaseModel] | None = None) -> BaseModel:
    """
    Load args/<config_name>.yaml into its settings model.

    A missing file yields the model defaults. An unreadable file, malformed
    YAML or values the model rejects (pydantic's ValidationError is a
    ValueError) are logged and also fall back to defaults, so the detection
    path never fails on configuration. Anything else propagates.

    Raises:
        ValueError: config_name has no registered model and none was given
    """
    if model_class is None:
        model_class = _CONFIG_MAP.get(config_name)
        if model_class is None:
            raise ValueError(f"Unknown config: {config_name}. Available: {list(_CONFIG_MAP.keys())}")

    try:
        return model_class.model_validate(_read_args_file(config_name))
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.warning(f"Ignoring args/{config_name}.yaml ({type(e).__name__}: {e}); using defaults")
        return model_class()


def load_detection_config() -> DetectionConfig:
    return load_and_validate("detection")  # type: ignore[return-value]


def load_learning_config() -> LearningConfig:
    return load_and_validate("learning")  # type: ignore[return-value]
