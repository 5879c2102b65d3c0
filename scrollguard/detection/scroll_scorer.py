"""
Scroll Scorer - Real-time doom scrolling confidence for one session

Consumes timestamped scroll events for the foreground app and keeps a small
rolling window of behaviour. Each event yields a ConfidenceScore built from
five weighted sub-scores:

    velocity     0.30  recent scrolls per second against 5/s
    consistency  0.25  how even the recent velocities are
    duration     0.20  session length against two minutes
    pause        0.15  recent gaps between scrolls against 500ms
    context      0.10  time-of-day bucket

States:
    idle   - no session window
    active - window present, accumulating events
    reset() returns to idle from anywhere.

The scorer is single-writer: callers serialise events before they arrive
(see detection/pipeline.py). Timestamps are monotonic milliseconds, so the
hour used for the context score comes from an injected provider.

Usage:
    from scrollguard.detection.scroll_scorer import ScrollScorer

    scorer = ScrollScorer(thresholds=store.current)
    score = scorer.record_event(timestamp_ms)
    if scorer.is_doom_scrolling():
        ...
    scorer.reset()
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from statistics import mean, pstdev
from typing import Callable

from scrollguard.detection.models import (
    ConfidenceScore,
    PersonalizedThresholds,
    SessionAnalysis,
    clamp,
)

logger = logging.getLogger(__name__)

HIGH_VELOCITY_THRESHOLD = 5.0  # scrolls per second
RAPID_SCROLL_COUNT = 10  # consecutive rapid scrolls
SHORT_PAUSE_THRESHOLD_MS = 500
DOOM_SESSION_DURATION_MS = 120000
DEFAULT_CONFIDENCE_THRESHOLD = 0.7

VELOCITY_WINDOW_MS = 1000
RETENTION_WINDOW_MS = 30000
MAX_VELOCITY_SAMPLES = 50
TRIMMED_VELOCITY_SAMPLES = 30
RECENT_SAMPLES = 10
MIN_CONSISTENCY_SAMPLES = 3

# Hour-of-day buckets for the context sub-score
CONTEXT_SCORES: list[tuple[frozenset[int], float]] = [
    (frozenset({22, 23, 0, 1}), 0.8),  # late night
    (frozenset({12, 13}), 0.6),  # lunch break
    (frozenset({17, 18, 19}), 0.7),  # evening
]
DEFAULT_CONTEXT_SCORE = 0.3


def context_score(hour: int) -> float:
    for hours, score in CONTEXT_SCORES:
        if hour in hours:
            return score
    return DEFAULT_CONTEXT_SCORE


def _local_hour() -> int:
    return datetime.now().hour


@dataclass
class SessionWindow:
    """Rolling state of the live session. Owned by exactly one scorer."""

    start_time: int
    last_event_time: int
    # Age-bounded: nothing older than last_event_time - 30s
    scroll_timestamps: deque[int] = field(default_factory=deque)
    # Count-bounded: at most 50, cut back to the newest 30 on overflow
    velocity_samples: deque[float] = field(default_factory=deque)
    consecutive_rapid_count: int = 0
    max_consecutive_rapid: int = 0
    total_scroll_count: int = 0

    def add_timestamp(self, timestamp: int) -> None:
        self.scroll_timestamps.append(timestamp)
        cutoff = timestamp - RETENTION_WINDOW_MS
        while self.scroll_timestamps and self.scroll_timestamps[0] < cutoff:
            self.scroll_timestamps.popleft()

    def add_velocity(self, velocity: float) -> None:
        self.velocity_samples.append(velocity)
        if len(self.velocity_samples) > MAX_VELOCITY_SAMPLES:
            while len(self.velocity_samples) > TRIMMED_VELOCITY_SAMPLES:
                self.velocity_samples.popleft()

    def velocity_at(self, timestamp: int) -> float:
        """Scrolls within the trailing second, inclusive."""
        count = 0
        for t in reversed(self.scroll_timestamps):
            if timestamp - t > VELOCITY_WINDOW_MS:
                break
            count += 1
        return float(count)

    def recent_velocities(self) -> list[float]:
        return list(self.velocity_samples)[-RECENT_SAMPLES:]

    def recent_gaps(self) -> list[int]:
        recent = list(self.scroll_timestamps)[-RECENT_SAMPLES:]
        return [b - a for a, b in zip(recent, recent[1:])]


class ScrollScorer:
    """Per-session doom scrolling scorer.

    Args:
        thresholds: Callable returning the currently published
            PersonalizedThresholds (e.g. ``ThresholdStore.current``). When the
            published value has adaptive learning enabled its confidence
            threshold replaces the default.
        hour_provider: Returns the local hour for the context sub-score.
        default_confidence_threshold: Threshold used without adaptive learning.
        rapid_scroll_count: Consecutive rapid scrolls that alone mean doom.
    """

    def __init__(
        self,
        thresholds: Callable[[], PersonalizedThresholds] | None = None,
        hour_provider: Callable[[], int] | None = None,
        default_confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        rapid_scroll_count: int = RAPID_SCROLL_COUNT,
    ):
        self._thresholds = thresholds
        self._hour_provider = hour_provider or _local_hour
        self.default_confidence_threshold = default_confidence_threshold
        self.rapid_scroll_count = rapid_scroll_count
        self._window: SessionWindow | None = None
        self._last_score = ConfidenceScore.zero()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._window is not None

    @property
    def window(self) -> SessionWindow | None:
        """The live window, for inspection only."""
        return self._window

    @property
    def last_score(self) -> ConfidenceScore:
        return self._last_score

    @property
    def confidence_threshold(self) -> float:
        if self._thresholds is not None:
            published = self._thresholds()
            if published.adaptive_enabled:
                return published.confidence_threshold
        return self.default_confidence_threshold

    def reset(self) -> None:
        """Drop the whole session window. Safe to call at any time, any number of times."""
        self._window = None
        self._last_score = ConfidenceScore.zero()

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _sanitize(self, timestamp: int) -> int:
        if timestamp != timestamp or timestamp < 0:
            logger.warning(f"Clamped invalid scroll timestamp {timestamp} to 0")
            timestamp = 0
        timestamp = int(timestamp)
        if self._window is not None and timestamp < self._window.last_event_time:
            logger.warning(
                f"Out-of-order scroll timestamp {timestamp} clamped to "
                f"{self._window.last_event_time}"
            )
            timestamp = self._window.last_event_time
        return timestamp

    def record_event(self, timestamp: int) -> ConfidenceScore:
        """
        Fold one scroll event into the session and score it.

        Args:
            timestamp: Monotonic milliseconds of the scroll

        Returns:
            ConfidenceScore for the session as of this event
        """
        timestamp = self._sanitize(timestamp)

        if self._window is None:
            self._window = SessionWindow(start_time=timestamp, last_event_time=timestamp)
            time_since_last = 0
        else:
            time_since_last = timestamp - self._window.last_event_time

        window = self._window
        window.last_event_time = timestamp
        window.total_scroll_count += 1
        window.add_timestamp(timestamp)

        velocity = window.velocity_at(timestamp)
        window.add_velocity(velocity)

        if velocity > HIGH_VELOCITY_THRESHOLD and time_since_last < SHORT_PAUSE_THRESHOLD_MS:
            window.consecutive_rapid_count += 1
            window.max_consecutive_rapid = max(
                window.max_consecutive_rapid, window.consecutive_rapid_count
            )
        else:
            window.consecutive_rapid_count = 0

        self._last_score = self._score(window, timestamp)
        score = self._last_score
        logger.debug(
            f"Confidence {score.total:.3f} (V:{score.velocity:.2f}, C:{score.consistency:.2f}, "
            f"D:{score.duration:.2f}, P:{score.pause:.2f}, Ctx:{score.context:.2f}) "
            f"rapid={window.consecutive_rapid_count}"
        )
        return score

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def _score(self, window: SessionWindow, now: int) -> ConfidenceScore:
        return ConfidenceScore(
            velocity=self._velocity_score(window),
            consistency=self._consistency_score(window),
            duration=clamp((now - window.start_time) / DOOM_SESSION_DURATION_MS),
            pause=self._pause_score(window),
            context=clamp(context_score(self._hour_provider())),
        )

    @staticmethod
    def _velocity_score(window: SessionWindow) -> float:
        recent = window.recent_velocities()
        if not recent:
            return 0.0
        return clamp(mean(recent) / HIGH_VELOCITY_THRESHOLD)

    @staticmethod
    def _consistency_score(window: SessionWindow) -> float:
        """Even velocities look mechanical; scattered ones look deliberate."""
        if len(window.velocity_samples) < MIN_CONSISTENCY_SAMPLES:
            return 0.0
        recent = window.recent_velocities()
        avg = mean(recent)
        if avg <= 0:
            return 0.0
        return clamp(1.0 - pstdev(recent) / avg)

    @staticmethod
    def _pause_score(window: SessionWindow) -> float:
        gaps = window.recent_gaps()
        if not gaps:
            return 0.0
        return clamp(1.0 - mean(gaps) / SHORT_PAUSE_THRESHOLD_MS)

    # -------------------------------------------------------------------------
    # Verdicts
    # -------------------------------------------------------------------------

    def is_doom_scrolling(self) -> bool:
        if self._window is None:
            return False
        return (
            self._last_score.total >= self.confidence_threshold
            or self._window.consecutive_rapid_count >= self.rapid_scroll_count
        )

    def session_analysis(self) -> SessionAnalysis:
        window = self._window
        if window is None:
            return SessionAnalysis(
                duration=0,
                total_scrolls=0,
                avg_velocity=0.0,
                consecutive_rapid=0,
                confidence=0.0,
                is_doom_scrolling=False,
            )

        return SessionAnalysis(
            duration=window.last_event_time - window.start_time,
            total_scrolls=window.total_scroll_count,
            avg_velocity=mean(window.velocity_samples) if window.velocity_samples else 0.0,
            consecutive_rapid=window.consecutive_rapid_count,
            confidence=self._last_score.total,
            is_doom_scrolling=self.is_doom_scrolling(),
            max_consecutive_rapid=window.max_consecutive_rapid,
        )
