"""
Tool: Pattern Learner
Purpose: Learn personalised detection thresholds from finished sessions

A single statistical pass over a bounded recent history. No model state is
carried between passes: the same history always yields the same thresholds,
and every pass replaces the previous result wholesale.

Learning rules:
- Fewer than 10 sessions: fixed defaults, adaptive learning off
- Velocity threshold: midpoint of the doom and productive mean velocities
- Duration threshold: 70% of the average doom session length
- Confidence threshold: tiered on how heavy the doom sessions are

Usage:
    # Learn thresholds from exported session records
    python -m scrollguard.learning.pattern_learner --action learn --history sessions.json

    # Only the last 7 days relative to a given time
    python -m scrollguard.learning.pattern_learner --action learn --history sessions.json \\
        --now 1700000000000 --lookback-days 7

    # Summary statistics for the same history
    python -m scrollguard.learning.pattern_learner --action summary --history sessions.json

Dependencies:
    - pydantic, PyYAML (configuration)
    - structlog (CLI logging)

Output:
    JSON result with success status and data
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from statistics import mean
from typing import Any

from scrollguard.config_models import load_learning_config
from scrollguard.detection.models import PersonalizedThresholds, SessionRecord, SessionType
from scrollguard.learning.session_stats import recent_sessions, summarize_sessions
from scrollguard.logging_config import setup_logging

logger = logging.getLogger(__name__)

MIN_SESSIONS_FOR_LEARNING = 10
LEARNING_WINDOW_DAYS = 7
DURATION_FACTOR = 0.7

# (min avg scrolls per doom session, min avg doom velocity, threshold),
# first match wins
CONFIDENCE_TIERS: list[tuple[float, float, float]] = [
    (100, 8.0, 0.6),  # very active user, trigger earlier
    (50, 5.0, 0.7),  # moderate user
]
CONSERVATIVE_CONFIDENCE = 0.8


def personalized_confidence(doom_sessions: list[SessionRecord]) -> float:
    """Confidence threshold from the shape of the user's doom sessions."""
    if not doom_sessions:
        return CONSERVATIVE_CONFIDENCE

    avg_scrolls = mean(s.total_scrolls for s in doom_sessions)
    avg_velocity = mean(s.average_velocity for s in doom_sessions)

    for min_scrolls, min_velocity, threshold in CONFIDENCE_TIERS:
        if avg_scrolls > min_scrolls and avg_velocity > min_velocity:
            return threshold
    return CONSERVATIVE_CONFIDENCE


def learn(
    history: list[SessionRecord],
    min_sessions: int = MIN_SESSIONS_FOR_LEARNING,
    duration_factor: float = DURATION_FACTOR,
) -> PersonalizedThresholds:
    """
    Compute personalised thresholds from finished sessions.

    Args:
        history: Finished sessions, already filtered and ordered by the caller
        min_sessions: Below this many sessions the defaults are returned
        duration_factor: Share of the average doom session that triggers

    Returns:
        A new PersonalizedThresholds value
    """
    defaults = PersonalizedThresholds.defaults()

    if len(history) < min_sessions:
        logger.info(
            f"Insufficient history for learning ({len(history)}/{min_sessions} sessions), "
            "using defaults"
        )
        return defaults

    doom = [s for s in history if s.session_type == SessionType.DOOM_SCROLL]
    productive = [s for s in history if s.session_type == SessionType.PRODUCTIVE]

    subset_velocities = [
        mean(s.average_velocity for s in subset) for subset in (doom, productive) if subset
    ]
    velocity_threshold = mean(subset_velocities) if subset_velocities else defaults.velocity_threshold

    if doom:
        avg_doom_duration = int(mean(s.duration for s in doom))
        duration_threshold = int(round(avg_doom_duration * duration_factor))
    else:
        duration_threshold = defaults.duration_threshold

    thresholds = PersonalizedThresholds(
        velocity_threshold=velocity_threshold,
        duration_threshold=duration_threshold,
        confidence_threshold=personalized_confidence(doom),
        adaptive_enabled=True,
    )

    logger.info(
        f"Personalized thresholds from {len(history)} sessions "
        f"({len(doom)} doom, {len(productive)} productive) - "
        f"Velocity: {thresholds.velocity_threshold:.2f}, "
        f"Duration: {thresholds.duration_threshold}, "
        f"Confidence: {thresholds.confidence_threshold}"
    )
    return thresholds


# =============================================================================
# CLI
# =============================================================================


def load_history(path: str | Path) -> list[SessionRecord]:
    """
    Read session records exported as a JSON list.

    Raises:
        ValueError: if the file is not a JSON list of valid records
    """
    with open(path, encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"History is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise ValueError("History must be a JSON list of session records")
    return [SessionRecord.from_dict(item) for item in raw]


def run_learn(history_path: str, now_ms: int | None = None, lookback_days: int | None = None) -> dict[str, Any]:
    config = load_learning_config()
    history = load_history(history_path)
    if now_ms is not None:
        history = recent_sessions(history, now_ms, lookback_days or config.learner.lookback_days)

    thresholds = learn(history, config.learner.min_sessions, config.learner.duration_factor)
    return {
        "success": True,
        "sessions_used": len(history),
        "thresholds": thresholds.to_dict(),
    }


def run_summary(history_path: str) -> dict[str, Any]:
    config = load_learning_config()
    summary = summarize_sessions(load_history(history_path), config.stats.seconds_saved_per_block)
    return {"success": True, "summary": summary.to_dict()}


def main():
    parser = argparse.ArgumentParser(
        description="Pattern Learner - Personalised doom scrolling thresholds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m scrollguard.learning.pattern_learner --action learn --history sessions.json
    python -m scrollguard.learning.pattern_learner --action summary --history sessions.json
        """,
    )
    parser.add_argument("--action", required=True, choices=["learn", "summary"], help="Action to perform")
    parser.add_argument("--history", required=True, help="JSON file with session records")
    parser.add_argument("--now", type=int, help="Reference time in ms for the lookback window")
    parser.add_argument("--lookback-days", type=int, help="Days of history to learn from")
    parser.add_argument("--log-level", default=None, help="Log level (default from env)")

    args = parser.parse_args()
    setup_logging(args.log_level)

    try:
        if args.action == "learn":
            result = run_learn(args.history, args.now, args.lookback_days)
        else:
            result = run_summary(args.history)
    except (OSError, ValueError) as e:
        result = {"success": False, "error": str(e)}

    print(json.dumps(result, indent=2, default=str))
    if not result.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
