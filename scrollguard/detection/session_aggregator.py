"""
Session Aggregator - Session boundaries and SessionRecords

Owns the one live session and decides when it ends:
- the foreground app changes (a scroll or window event from another app)
- more than 30s passed since the last activity (scored scroll or
  touch()), checked when the next one arrives and before it is scored

On a boundary the outgoing session is folded into an immutable
SessionRecord, handed to the storage sink exactly once, and the scorer is
reset. Sessions without a single scroll produce no record.

The inactivity check is lazy. If no further event arrives, a stale session
is only finalized when the host calls finalize_session() (app closed,
service stopping). There is no background timer.

Usage:
    from scrollguard.detection.session_aggregator import SessionAggregator

    aggregator = SessionAggregator(scorer, sink=storage.insert_session)
    aggregator.on_app_switch("com.instagram.android", now_ms, context)
    score = aggregator.on_scroll(ScrollEvent(now_ms, "com.instagram.android"))
    ...
    aggregator.finalize_session(now_ms, ExitMethod.SHUTDOWN)
"""

from __future__ import annotations

import logging
from typing import Callable

from scrollguard.detection.apps import is_supported
from scrollguard.detection.models import (
    ConfidenceScore,
    DeviceContext,
    ExitMethod,
    ScrollEvent,
    SessionRecord,
    SessionType,
)
from scrollguard.detection.scroll_scorer import ScrollScorer

logger = logging.getLogger(__name__)

SESSION_TIMEOUT_MS = 30000
DOOM_MIN_DURATION_MS = 60000
PRODUCTIVE_MAX_SCROLLS = 20


def classify_session(
    is_doom_scrolling: bool,
    duration_ms: int,
    total_scrolls: int,
    doom_min_duration_ms: int = DOOM_MIN_DURATION_MS,
    productive_max_scrolls: int = PRODUCTIVE_MAX_SCROLLS,
) -> SessionType:
    if is_doom_scrolling and duration_ms > doom_min_duration_ms:
        return SessionType.DOOM_SCROLL
    if not is_doom_scrolling and total_scrolls < productive_max_scrolls:
        return SessionType.PRODUCTIVE
    return SessionType.MIXED


class SessionAggregator:
    """Turns the live scorer state into SessionRecords.

    Args:
        scorer: The scorer that owns the session window.
        sink: Receives every finalized SessionRecord (storage collaborator).
        context_provider: Supplies device context when a session opens and
            the caller did not pass one. Defaults to the local wall clock.
        is_tracked: Which app ids get sessions at all.
    """

    def __init__(
        self,
        scorer: ScrollScorer,
        sink: Callable[[SessionRecord], None] | None = None,
        context_provider: Callable[[], DeviceContext] | None = None,
        is_tracked: Callable[[str], bool] = is_supported,
        inactivity_timeout_ms: int = SESSION_TIMEOUT_MS,
        doom_min_duration_ms: int = DOOM_MIN_DURATION_MS,
        productive_max_scrolls: int = PRODUCTIVE_MAX_SCROLLS,
    ):
        self.scorer = scorer
        self._sink = sink
        self._context_provider = context_provider or DeviceContext.now
        self._is_tracked = is_tracked
        self.inactivity_timeout_ms = inactivity_timeout_ms
        self.doom_min_duration_ms = doom_min_duration_ms
        self.productive_max_scrolls = productive_max_scrolls

        self._app_id: str | None = None
        self._start_time = 0
        self._last_event_time: int | None = None
        self._blocked_scrolls = 0
        self._context: DeviceContext | None = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def current_app(self) -> str | None:
        return self._app_id

    @property
    def has_session(self) -> bool:
        return self._app_id is not None

    @property
    def session_start(self) -> int:
        return self._start_time

    @property
    def blocked_scrolls(self) -> int:
        return self._blocked_scrolls

    def _open(self, app_id: str, timestamp: int, context: DeviceContext | None) -> None:
        self.scorer.reset()
        self._app_id = app_id
        self._start_time = max(0, timestamp)
        self._last_event_time = None
        self._blocked_scrolls = 0
        self._context = context or self._context_provider()
        logger.info(f"Started new session for {app_id}")

    def _clear(self) -> None:
        self.scorer.reset()
        self._app_id = None
        self._start_time = 0
        self._last_event_time = None
        self._blocked_scrolls = 0
        self._context = None

    # -------------------------------------------------------------------------
    # Host events
    # -------------------------------------------------------------------------

    def on_app_switch(
        self, app_id: str, timestamp: int, context: DeviceContext | None = None
    ) -> SessionRecord | None:
        """
        Foreground app changed.

        Returns:
            The record of the session this switch ended, if any
        """
        if app_id == self._app_id:
            return None

        record = None
        if self._app_id is not None:
            record = self.finalize_session(timestamp, ExitMethod.APP_SWITCH)

        if self._is_tracked(app_id):
            self._open(app_id, timestamp, context)
        return record

    def _check_boundary(self, app_id: str, timestamp: int) -> None:
        """Close the live session if activity from app_id at timestamp crosses a boundary."""
        if self._app_id is None:
            return
        if app_id != self._app_id:
            self.finalize_session(timestamp, ExitMethod.APP_SWITCH)
            return
        reference = self._last_event_time if self._last_event_time is not None else self._start_time
        if timestamp - reference > self.inactivity_timeout_ms:
            logger.info(f"Session for {self._app_id} idle for {timestamp - reference}ms")
            self.finalize_session(reference, ExitMethod.TIMEOUT)

    def on_scroll(
        self, event: ScrollEvent, context: DeviceContext | None = None
    ) -> ConfidenceScore | None:
        """
        Route one scroll event, closing the current session first if the
        event crosses a boundary.

        Returns:
            The scorer's ConfidenceScore, or None for untracked apps
        """
        self._check_boundary(event.app_id, event.timestamp)

        if not self._is_tracked(event.app_id):
            return None

        if self._app_id is None:
            self._open(event.app_id, event.timestamp, context)

        score = self.scorer.record_event(event.timestamp)
        window = self.scorer.window
        self._mark_activity(window.last_event_time if window else event.timestamp)
        return score

    def touch(self, app_id: str, timestamp: int, context: DeviceContext | None = None) -> None:
        """
        Unscored activity (e.g. scrolling search results) in the foreground app.

        Applies the same boundary checks as a scroll and keeps the session
        alive, but nothing reaches the scorer.
        """
        self._check_boundary(app_id, timestamp)

        if not self._is_tracked(app_id):
            return

        if self._app_id is None:
            self._open(app_id, timestamp, context)
        self._mark_activity(timestamp)

    def _mark_activity(self, timestamp: int) -> None:
        if self._last_event_time is None or timestamp > self._last_event_time:
            self._last_event_time = timestamp

    def record_blocked(self) -> None:
        if self._app_id is not None:
            self._blocked_scrolls += 1

    # -------------------------------------------------------------------------
    # Finalization
    # -------------------------------------------------------------------------

    def finalize_session(
        self, end_time: int | None = None, exit_method: ExitMethod = ExitMethod.NATURAL
    ) -> SessionRecord | None:
        """
        Close the live session.

        Args:
            end_time: When the session ended; defaults to the last scroll
            exit_method: Why it ended

        Returns:
            The emitted SessionRecord, or None when there was no session or
            it never saw a scroll
        """
        if self._app_id is None:
            return None

        analysis = self.scorer.session_analysis()
        record = None

        if analysis.total_scrolls > 0:
            last = self._last_event_time if self._last_event_time is not None else self._start_time
            end = max(last, end_time if end_time is not None else last)
            duration = end - self._start_time
            context = self._context or DeviceContext.now()

            record = SessionRecord(
                app_id=self._app_id,
                start_time=self._start_time,
                end_time=end,
                total_scrolls=analysis.total_scrolls,
                blocked_scrolls=self._blocked_scrolls,
                average_velocity=analysis.avg_velocity,
                max_consecutive_rapid_scrolls=analysis.max_consecutive_rapid,
                session_type=classify_session(
                    analysis.is_doom_scrolling,
                    duration,
                    analysis.total_scrolls,
                    self.doom_min_duration_ms,
                    self.productive_max_scrolls,
                ),
                time_of_day=context.time_of_day,
                day_of_week=context.day_of_week,
                battery_level=context.battery_level,
                exit_method=exit_method,
            )

            if self._sink is not None:
                self._sink(record)

            logger.info(
                f"Ended session for {record.app_id} - Scrolls: {record.total_scrolls}, "
                f"Blocked: {record.blocked_scrolls}, Type: {record.session_type.value}, "
                f"Exit: {exit_method.value}"
            )
        else:
            logger.debug(f"Discarded empty session for {self._app_id}")

        self._clear()
        return record
