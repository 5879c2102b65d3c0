"""
Published personalised thresholds.

The learner produces a new immutable PersonalizedThresholds value on every
pass; ThresholdStore swaps the reference under a lock. Readers call
current() and always get one complete value, old or new, never a mix.

Usage:
    from scrollguard.learning.thresholds import ThresholdStore

    store = ThresholdStore()
    scorer = ScrollScorer(thresholds=store.current)
    store.relearn(history)   # background task
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from scrollguard.detection.models import PersonalizedThresholds, SessionRecord
from scrollguard.learning.pattern_learner import MIN_SESSIONS_FOR_LEARNING, learn

logger = logging.getLogger(__name__)


class ThresholdStore:
    """Holds the currently published thresholds."""

    def __init__(self, initial: PersonalizedThresholds | None = None):
        self._current = initial or PersonalizedThresholds.defaults()
        self._lock = threading.Lock()
        self._version = 0

    def current(self) -> PersonalizedThresholds:
        return self._current

    @property
    def version(self) -> int:
        """Number of values published since construction."""
        return self._version

    def publish(self, thresholds: PersonalizedThresholds) -> PersonalizedThresholds:
        """Replace the published value. Returns the previous one."""
        with self._lock:
            previous = self._current
            self._current = thresholds
            self._version += 1
        logger.info(
            f"Published thresholds v{self._version}: velocity={thresholds.velocity_threshold:.2f}, "
            f"duration={thresholds.duration_threshold}ms, "
            f"confidence={thresholds.confidence_threshold:.2f}, "
            f"adaptive={thresholds.adaptive_enabled}"
        )
        return previous

    def relearn(
        self, history: Iterable[SessionRecord], min_sessions: int = MIN_SESSIONS_FOR_LEARNING
    ) -> PersonalizedThresholds:
        """Run a learning pass over history and publish the result."""
        thresholds = learn(list(history), min_sessions)
        self.publish(thresholds)
        return thresholds
