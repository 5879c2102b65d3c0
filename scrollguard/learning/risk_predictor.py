"""
Tool: Risk Predictor
Purpose: Estimate near-term doom scrolling risk and pick a blocking strategy

Risk is independent of live scroll events. It is an additive score from
four fixed tables, clamped to 1.0:

    time of day   22-02h 0.3 | 12-13h 0.2 | 17-20h 0.25 | otherwise 0.1
    day of week   friday-sunday 0.2 | otherwise 0.1
    battery       <20% 0.2 | <50% 0.1 | otherwise 0.05
    recent doom   +0.3 if a doom session ended within the last hour

Strategy is a step function over risk with exclusive lower bounds, so a
risk of exactly 0.8 selects MODERATE, not AGGRESSIVE.

Usage:
    # Risk for the current context
    python -m scrollguard.learning.risk_predictor --action predict \\
        --hour 23 --day saturday --battery 15

    # Include recent sessions (ended within the last hour of --now)
    python -m scrollguard.learning.risk_predictor --action predict \\
        --hour 23 --day saturday --battery 15 --history sessions.json --now 1700000000000

    # Strategy for a given risk
    python -m scrollguard.learning.risk_predictor --action strategy --risk 0.65

Output:
    JSON result with success status and data
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Any, Iterable

from scrollguard.config_models import RiskConfig, load_learning_config
from scrollguard.detection.models import (
    BlockingStrategy,
    DeviceContext,
    SessionRecord,
    SessionType,
    clamp,
)
from scrollguard.learning.pattern_learner import load_history
from scrollguard.logging_config import setup_logging

logger = logging.getLogger(__name__)

RECENT_DOOM_WINDOW_MS = 3600000
RECENT_DOOM_BONUS = 0.3

WEEKEND_DAYS = frozenset({"friday", "saturday", "sunday"})

# (exclusive lower bound, strategy), checked from the top
STRATEGY_STEPS: list[tuple[float, BlockingStrategy]] = [
    (0.8, BlockingStrategy.AGGRESSIVE),
    (0.6, BlockingStrategy.MODERATE),
    (0.4, BlockingStrategy.GENTLE),
]


def time_risk(hour: int) -> float:
    if hour in (22, 23, 0, 1, 2):
        return 0.3  # late night
    if hour in (12, 13):
        return 0.2  # lunch break
    if 17 <= hour <= 20:
        return 0.25  # evening
    return 0.1


def day_risk(day_of_week: str) -> float:
    return 0.2 if (day_of_week or "").strip().lower() in WEEKEND_DAYS else 0.1


def battery_risk(battery_level: int) -> float:
    # Low battery tends to go with stress
    if battery_level < 20:
        return 0.2
    if battery_level < 50:
        return 0.1
    return 0.05


def has_recent_doom(
    recent_sessions: Iterable[SessionRecord],
    now_ms: int,
    window_ms: int = RECENT_DOOM_WINDOW_MS,
) -> bool:
    return any(
        s.session_type == SessionType.DOOM_SCROLL and now_ms - s.end_time < window_ms
        for s in recent_sessions
    )


def predict_risk(
    hour: int,
    day_of_week: str,
    battery_level: int,
    recent_sessions: Iterable[SessionRecord] = (),
    now_ms: int | None = None,
    recent_window_ms: int = RECENT_DOOM_WINDOW_MS,
    recent_bonus: float = RECENT_DOOM_BONUS,
) -> float:
    """
    Contextual doom scrolling risk in [0, 1].

    Args:
        hour: Local hour, clamped to 0-23
        day_of_week: Day name, case-insensitive
        battery_level: Battery percentage, clamped to 0-100
        recent_sessions: Finished sessions to look for recent doom scrolling
        now_ms: Reference time in the same clock as the session end times;
            defaults to wall-clock milliseconds

    Returns:
        Risk score rounded to 4 places
    """
    hour = int(clamp(hour, 0, 23))
    battery_level = int(clamp(battery_level, 0, 100))
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    risk = time_risk(hour) + day_risk(day_of_week) + battery_risk(battery_level)
    if has_recent_doom(recent_sessions, now_ms, recent_window_ms):
        risk += recent_bonus

    risk = round(clamp(risk), 4)
    logger.debug(
        f"Risk {risk} (hour={hour}, day={day_of_week}, battery={battery_level})"
    )
    return risk


def select_strategy(risk: float) -> BlockingStrategy:
    """Monotone step function: strictly above a bound selects its strategy."""
    for bound, strategy in STRATEGY_STEPS:
        if risk > bound:
            return strategy
    return BlockingStrategy.MINIMAL


def assess(
    context: DeviceContext,
    recent_sessions: Iterable[SessionRecord] = (),
    now_ms: int | None = None,
    risk_config: RiskConfig | None = None,
) -> tuple[float, BlockingStrategy]:
    """Risk and strategy for a device context.

    risk_config is read from args/learning.yaml only when the caller has
    not already loaded it.
    """
    config = risk_config if risk_config is not None else load_learning_config().risk
    risk = predict_risk(
        context.hour,
        context.day_of_week,
        context.battery_level,
        recent_sessions,
        now_ms,
        config.recent_doom_window_ms,
        config.recent_doom_bonus,
    )
    return risk, select_strategy(risk)


# =============================================================================
# CLI
# =============================================================================


def run_predict(args: argparse.Namespace) -> dict[str, Any]:
    sessions = load_history(args.history) if args.history else []
    context = DeviceContext(hour=args.hour, day_of_week=args.day, battery_level=args.battery)
    risk, strategy = assess(context, sessions, args.now)
    return {"success": True, "risk": risk, "strategy": strategy.value}


def main():
    parser = argparse.ArgumentParser(
        description="Risk Predictor - Contextual doom scrolling risk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--action", required=True, choices=["predict", "strategy"], help="Action to perform")
    parser.add_argument("--hour", type=int, help="Local hour (0-23)")
    parser.add_argument("--day", help="Day of week (e.g. saturday)")
    parser.add_argument("--battery", type=int, default=100, help="Battery level (0-100)")
    parser.add_argument("--history", help="JSON file with recent session records")
    parser.add_argument("--now", type=int, help="Reference time in ms")
    parser.add_argument("--risk", type=float, help="Risk score for --action strategy")
    parser.add_argument("--log-level", default=None, help="Log level (default from env)")

    args = parser.parse_args()
    setup_logging(args.log_level)
    result = None

    if args.action == "predict":
        if args.hour is None or not args.day:
            print(json.dumps({"success": False, "error": "--hour and --day required"}))
            sys.exit(1)
        try:
            result = run_predict(args)
        except (OSError, ValueError) as e:
            result = {"success": False, "error": str(e)}

    elif args.action == "strategy":
        if args.risk is None:
            print(json.dumps({"success": False, "error": "--risk required"}))
            sys.exit(1)
        result = {"success": True, "risk": args.risk, "strategy": select_strategy(args.risk).value}

    if result:
        print(json.dumps(result, indent=2, default=str))
        if not result.get("success"):
            sys.exit(1)


if __name__ == "__main__":
    main()
