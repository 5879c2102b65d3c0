"""Tests for scrollguard/learning/risk_predictor.py

The risk predictor scores context and maps risk to a blocking strategy.
Key functionality:
- Additive time, day, battery and recent-doom risk, clamped to 1.0
- Strict lower bounds between strategies
- Strategy is monotone in risk
"""

import json
import sys
from unittest.mock import patch

import pytest

from scrollguard.config_models import RiskConfig
from scrollguard.detection.models import BlockingStrategy, DeviceContext, SessionType
from scrollguard.learning.risk_predictor import (
    assess,
    battery_risk,
    day_risk,
    has_recent_doom,
    main,
    predict_risk,
    select_strategy,
    time_risk,
)

NOW_MS = 1_700_000_000_000
MINUTE_MS = 60_000


# ─────────────────────────────────────────────────────────────────────────────
# Risk Tables
# ─────────────────────────────────────────────────────────────────────────────


class TestRiskTables:
    """Tests for the individual risk components."""

    @pytest.mark.parametrize("hour", [22, 23, 0, 1, 2])
    def test_late_night(self, hour):
        assert time_risk(hour) == 0.3

    @pytest.mark.parametrize(
        "hour,expected",
        [(12, 0.2), (13, 0.2), (17, 0.25), (20, 0.25), (3, 0.1), (9, 0.1), (21, 0.1)],
    )
    def test_other_hours(self, hour, expected):
        assert time_risk(hour) == expected

    def test_weekend_days(self):
        assert day_risk("friday") == 0.2
        assert day_risk("Saturday") == 0.2
        assert day_risk("sunday") == 0.2
        assert day_risk("wednesday") == 0.1
        assert day_risk("") == 0.1

    def test_battery(self):
        assert battery_risk(19) == 0.2
        assert battery_risk(20) == 0.1
        assert battery_risk(49) == 0.1
        assert battery_risk(50) == 0.05


class TestRecentDoom:
    """Tests for the recent doom session bonus."""

    def test_doom_within_hour(self, make_record):
        sessions = [make_record(end_time=NOW_MS - 10 * MINUTE_MS, session_type=SessionType.DOOM_SCROLL)]

        assert has_recent_doom(sessions, NOW_MS) is True

    def test_doom_older_than_hour(self, make_record):
        sessions = [make_record(end_time=NOW_MS - 61 * MINUTE_MS, session_type=SessionType.DOOM_SCROLL)]

        assert has_recent_doom(sessions, NOW_MS) is False

    def test_recent_productive_ignored(self, make_record):
        sessions = [make_record(end_time=NOW_MS - MINUTE_MS, session_type=SessionType.PRODUCTIVE)]

        assert has_recent_doom(sessions, NOW_MS) is False


# ─────────────────────────────────────────────────────────────────────────────
# Predicted Risk
# ─────────────────────────────────────────────────────────────────────────────


class TestPredictRisk:
    """Tests for predict_risk()."""

    def test_worst_case_clamps_to_one(self, make_record):
        """Late saturday night, low battery, doom ten minutes ago."""
        sessions = [make_record(end_time=NOW_MS - 10 * MINUTE_MS, session_type=SessionType.DOOM_SCROLL)]

        risk = predict_risk(23, "saturday", 15, sessions, now_ms=NOW_MS)

        assert risk == 1.0
        assert select_strategy(risk) == BlockingStrategy.AGGRESSIVE

    def test_quiet_weekday_morning(self):
        risk = predict_risk(10, "tuesday", 80, now_ms=NOW_MS)

        assert risk == 0.25
        assert select_strategy(risk) == BlockingStrategy.MINIMAL

    def test_out_of_range_inputs_clamped(self):
        assert predict_risk(30, "monday", -5, now_ms=NOW_MS) == predict_risk(23, "monday", 0, now_ms=NOW_MS)

    def test_risk_always_bounded(self):
        for hour in range(24):
            for battery in (0, 19, 49, 100):
                risk = predict_risk(hour, "friday", battery, now_ms=NOW_MS)
                assert 0.0 <= risk <= 1.0

    def test_assess_uses_context(self, risky_context):
        risk, strategy = assess(risky_context, now_ms=NOW_MS)

        assert risk == 0.7
        assert strategy == BlockingStrategy.MODERATE

    def test_assess_with_given_risk_config_skips_loading(self, risky_context, make_record):
        recent = [
            make_record(
                end_time=NOW_MS - 10 * MINUTE_MS,
                session_type=SessionType.DOOM_SCROLL,
            )
        ]

        with patch("scrollguard.learning.risk_predictor.load_learning_config") as load:
            risk, strategy = assess(
                risky_context, recent, NOW_MS, RiskConfig(recent_doom_bonus=0.0)
            )

        load.assert_not_called()
        assert risk == pytest.approx(0.7)
        assert strategy == BlockingStrategy.MODERATE


# ─────────────────────────────────────────────────────────────────────────────
# Strategy Selection
# ─────────────────────────────────────────────────────────────────────────────


class TestSelectStrategy:
    """Tests for the risk to strategy step function."""

    @pytest.mark.parametrize(
        "risk,expected",
        [
            (0.8, BlockingStrategy.MODERATE),
            (0.8001, BlockingStrategy.AGGRESSIVE),
            (0.6, BlockingStrategy.GENTLE),
            (0.6001, BlockingStrategy.MODERATE),
            (0.4, BlockingStrategy.MINIMAL),
            (0.4001, BlockingStrategy.GENTLE),
            (0.0, BlockingStrategy.MINIMAL),
            (1.0, BlockingStrategy.AGGRESSIVE),
        ],
    )
    def test_exclusive_bounds(self, risk, expected):
        assert select_strategy(risk) == expected

    def test_monotone(self):
        """Higher risk never selects a weaker strategy."""
        risks = [i / 1000 for i in range(1001)]
        strategies = [select_strategy(r) for r in risks]

        assert all(a <= b for a, b in zip(strategies, strategies[1:]))

    def test_strategy_order(self):
        assert BlockingStrategy.MINIMAL < BlockingStrategy.GENTLE
        assert BlockingStrategy.GENTLE < BlockingStrategy.MODERATE
        assert BlockingStrategy.MODERATE < BlockingStrategy.AGGRESSIVE
        assert max(BlockingStrategy) == BlockingStrategy.AGGRESSIVE


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────


class TestCli:
    """Tests for the command line entry point."""

    def test_predict(self, capsys):
        argv = [
            "risk_predictor",
            "--action", "predict",
            "--hour", "23",
            "--day", "saturday",
            "--battery", "15",
            "--now", str(NOW_MS),
        ]
        with patch.object(sys, "argv", argv):
            main()

        output = json.loads(capsys.readouterr().out)
        assert output == {"success": True, "risk": 0.7, "strategy": "moderate"}

    def test_predict_requires_hour(self, capsys):
        with patch.object(sys, "argv", ["risk_predictor", "--action", "predict"]), pytest.raises(SystemExit):
            main()

        assert json.loads(capsys.readouterr().out)["success"] is False

    def test_strategy(self, capsys):
        with patch.object(sys, "argv", ["risk_predictor", "--action", "strategy", "--risk", "0.65"]):
            main()

        assert json.loads(capsys.readouterr().out)["strategy"] == "moderate"
