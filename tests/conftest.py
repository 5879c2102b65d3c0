"""Shared test fixtures for ScrollGuard tests.

This module provides common fixtures used across all test modules:
- Fixed clocks and device contexts
- SessionRecord factories and a ready-made learning history
- Default configuration objects that never touch args/

Usage:
    def test_something(make_record):
        record = make_record(session_type=SessionType.DOOM_SCROLL)
        ...
"""

from pathlib import Path

import pytest

from scrollguard.config_models import DetectionConfig, LearningConfig
from scrollguard.detection.models import (
    DeviceContext,
    ExitMethod,
    SessionRecord,
    SessionType,
)


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_DIR = PROJECT_ROOT / "scrollguard"

YOUTUBE = "com.google.android.youtube"
INSTAGRAM = "com.instagram.android"
NOW_MS = 1_700_000_000_000


# ─────────────────────────────────────────────────────────────────────────────
# Clock / Context Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def morning_hour():
    """Hour provider pinned to 10:00 (lowest context sub-score)."""
    return lambda: 10


@pytest.fixture
def late_night_hour():
    """Hour provider pinned to 23:00 (highest context sub-score)."""
    return lambda: 23


@pytest.fixture
def weekday_context() -> DeviceContext:
    return DeviceContext(hour=10, day_of_week="tuesday", battery_level=80)


@pytest.fixture
def risky_context() -> DeviceContext:
    return DeviceContext(hour=23, day_of_week="saturday", battery_level=15)


# ─────────────────────────────────────────────────────────────────────────────
# Session Record Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_record():
    """Factory for SessionRecords with sensible defaults.

    Returns:
        Callable accepting any SessionRecord field as a keyword override
    """

    def _make(**overrides) -> SessionRecord:
        fields = {
            "app_id": YOUTUBE,
            "start_time": NOW_MS - 600_000,
            "end_time": NOW_MS - 300_000,
            "total_scrolls": 40,
            "blocked_scrolls": 0,
            "average_velocity": 4.0,
            "max_consecutive_rapid_scrolls": 3,
            "session_type": SessionType.MIXED,
            "time_of_day": "evening",
            "day_of_week": "tuesday",
            "battery_level": 80,
            "exit_method": ExitMethod.APP_SWITCH,
        }
        fields.update(overrides)
        return SessionRecord(**fields)

    return _make


@pytest.fixture
def learning_history(make_record) -> list[SessionRecord]:
    """Twelve sessions: 4 doom, 4 productive, 4 mixed.

    Doom sessions: 300s long, 120 scrolls, velocity 9.0
    Productive sessions: 30s long, 10 scrolls, velocity 2.0
    """
    history = []
    for i in range(4):
        start = NOW_MS - (i + 1) * 3_600_000
        history.append(
            make_record(
                start_time=start,
                end_time=start + 300_000,
                total_scrolls=120,
                blocked_scrolls=5,
                average_velocity=9.0,
                session_type=SessionType.DOOM_SCROLL,
            )
        )
        history.append(
            make_record(
                app_id=INSTAGRAM,
                start_time=start + 400_000,
                end_time=start + 430_000,
                total_scrolls=10,
                average_velocity=2.0,
                session_type=SessionType.PRODUCTIVE,
            )
        )
        history.append(
            make_record(
                start_time=start + 500_000,
                end_time=start + 560_000,
                total_scrolls=30,
                average_velocity=4.0,
                session_type=SessionType.MIXED,
            )
        )
    return history


# ─────────────────────────────────────────────────────────────────────────────
# Configuration Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def detection_config() -> DetectionConfig:
    return DetectionConfig()


@pytest.fixture
def learning_config() -> LearningConfig:
    return LearningConfig()
