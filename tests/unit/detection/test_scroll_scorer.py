"""Tests for scrollguard/detection/scroll_scorer.py

The scorer folds scroll events into a rolling window and scores each one.
Key functionality:
- Slow, regular scrolling is not doom scrolling
- Long runs of rapid scrolls are doom scrolling on their own
- Window bounds: timestamps by age, velocity samples by count
- Invalid timestamps are clamped, never rejected
- Published adaptive thresholds replace the default confidence threshold
"""

from scrollguard.detection.models import PersonalizedThresholds
from scrollguard.detection.scroll_scorer import (
    MAX_VELOCITY_SAMPLES,
    RETENTION_WINDOW_MS,
    ScrollScorer,
    SessionWindow,
    context_score,
)


def feed(scorer: ScrollScorer, count: int, interval: int, start: int = 0):
    """Record `count` events `interval` ms apart; returns the scores."""
    return [scorer.record_event(start + i * interval) for i in range(count)]


# ─────────────────────────────────────────────────────────────────────────────
# Doom Scrolling Verdicts
# ─────────────────────────────────────────────────────────────────────────────


class TestVerdicts:
    """Tests for is_doom_scrolling()."""

    def test_slow_regular_scrolling_is_not_doom(self, morning_hour):
        """12 events 1.5s apart stay well below the threshold."""
        scorer = ScrollScorer(hour_provider=morning_hour)
        feed(scorer, 12, 1500)

        assert scorer.is_doom_scrolling() is False
        assert scorer.last_score.total < 0.7
        assert scorer.window.consecutive_rapid_count == 0

    def test_rapid_burst_is_doom(self, morning_hour):
        """80ms scrolls qualify as rapid once velocity exceeds 5/s.

        Velocity counts events in the trailing second, so the 6th event is
        the first rapid one; 15 events give 10 consecutive rapid scrolls.
        """
        scorer = ScrollScorer(hour_provider=morning_hour)
        feed(scorer, 15, 80)

        assert scorer.window.consecutive_rapid_count >= 10
        assert scorer.is_doom_scrolling() is True

    def test_twelve_rapid_events_give_seven_rapid_scrolls(self, morning_hour):
        """The first five 80ms events have too few trailing-second samples to be rapid."""
        scorer = ScrollScorer(hour_provider=morning_hour, default_confidence_threshold=1.0)
        feed(scorer, 12, 80)

        assert scorer.window.consecutive_rapid_count == 7
        assert scorer.is_doom_scrolling() is False

    def test_rapid_count_not_reached_after_nine(self, morning_hour):
        """Nine rapid scrolls alone do not trip the rapid-count rule."""
        scorer = ScrollScorer(hour_provider=morning_hour, default_confidence_threshold=1.0)
        feed(scorer, 14, 80)

        assert scorer.window.consecutive_rapid_count == 9
        assert scorer.is_doom_scrolling() is False

    def test_idle_scorer_is_not_doom(self):
        assert ScrollScorer().is_doom_scrolling() is False

    def test_pause_resets_rapid_count(self, morning_hour):
        """A gap of 500ms or more breaks the rapid run."""
        scorer = ScrollScorer(hour_provider=morning_hour)
        scores = feed(scorer, 8, 80)
        assert scorer.window.consecutive_rapid_count > 0

        scorer.record_event(8 * 80 + 600)

        assert scorer.window.consecutive_rapid_count == 0
        assert scorer.window.max_consecutive_rapid == 3
        assert len(scores) == 8


# ─────────────────────────────────────────────────────────────────────────────
# Score Bounds
# ─────────────────────────────────────────────────────────────────────────────


class TestScoreBounds:
    """Tests that every sub-score and the total stay in [0, 1]."""

    def test_all_scores_bounded(self, late_night_hour):
        scorer = ScrollScorer(hour_provider=late_night_hour)
        intervals = [0, 10, 10, 3000, 50, 50, 50, 20000, 5, 5, 5, 5, 5, 700]
        t = 0
        for gap in intervals * 5:
            t += gap
            score = scorer.record_event(t)
            for value in score.to_dict().values():
                assert 0.0 <= value <= 1.0

    def test_first_event_scores_zero_behaviour(self, morning_hour):
        """A single event has no pauses, consistency or duration yet."""
        score = ScrollScorer(hour_provider=morning_hour).record_event(1000)

        assert score.consistency == 0.0
        assert score.pause == 0.0
        assert score.duration == 0.0
        assert score.velocity == 0.2

    def test_context_buckets(self):
        assert context_score(23) == 0.8
        assert context_score(12) == 0.6
        assert context_score(18) == 0.7
        assert context_score(10) == 0.3


# ─────────────────────────────────────────────────────────────────────────────
# Window Invariants
# ─────────────────────────────────────────────────────────────────────────────


class TestWindow:
    """Tests for the rolling window bounds."""

    def test_timestamps_bounded_by_age(self, morning_hour):
        scorer = ScrollScorer(hour_provider=morning_hour)
        feed(scorer, 200, 400)

        window = scorer.window
        newest = window.scroll_timestamps[-1]
        assert all(newest - t <= RETENTION_WINDOW_MS for t in window.scroll_timestamps)

    def test_velocity_samples_bounded_by_count(self, morning_hour):
        scorer = ScrollScorer(hour_provider=morning_hour)
        for i in range(500):
            scorer.record_event(i * 200)
            assert len(scorer.window.velocity_samples) <= MAX_VELOCITY_SAMPLES

    def test_velocity_overflow_trims_to_newest(self):
        window = SessionWindow(start_time=0, last_event_time=0)
        for i in range(51):
            window.add_velocity(float(i))

        assert len(window.velocity_samples) == 30
        assert window.velocity_samples[-1] == 50.0
        assert window.velocity_samples[0] == 21.0

    def test_velocity_window_inclusive(self):
        """An event exactly 1000ms old still counts towards velocity."""
        window = SessionWindow(start_time=0, last_event_time=0)
        window.add_timestamp(0)
        window.add_timestamp(1000)

        assert window.velocity_at(1000) == 2.0
        assert window.velocity_at(1001) == 1.0

    def test_total_scroll_count(self, morning_hour):
        scorer = ScrollScorer(hour_provider=morning_hour)
        feed(scorer, 37, 250)

        assert scorer.session_analysis().total_scrolls == 37


# ─────────────────────────────────────────────────────────────────────────────
# Reset and Invalid Input
# ─────────────────────────────────────────────────────────────────────────────


class TestResetAndInput:
    """Tests for reset() and timestamp sanitising."""

    def test_reset_is_idempotent(self, morning_hour):
        scorer = ScrollScorer(hour_provider=morning_hour)
        feed(scorer, 5, 100)

        scorer.reset()
        scorer.reset()

        assert scorer.is_active is False
        assert scorer.session_analysis().total_scrolls == 0
        assert scorer.last_score.total == 0.0

    def test_reset_on_idle_scorer(self):
        scorer = ScrollScorer()
        scorer.reset()

        assert scorer.is_active is False

    def test_negative_timestamp_clamped(self, morning_hour):
        scorer = ScrollScorer(hour_provider=morning_hour)
        scorer.record_event(-50)

        assert scorer.window.start_time == 0

    def test_out_of_order_timestamp_clamped(self, morning_hour):
        scorer = ScrollScorer(hour_provider=morning_hour)
        scorer.record_event(5000)
        scorer.record_event(4000)

        assert scorer.window.last_event_time == 5000
        assert list(scorer.window.scroll_timestamps) == [5000, 5000]

    def test_analysis_reports_session_shape(self, morning_hour):
        scorer = ScrollScorer(hour_provider=morning_hour)
        feed(scorer, 4, 1500, start=2000)

        analysis = scorer.session_analysis()

        assert analysis.duration == 4500
        assert analysis.total_scrolls == 4
        assert analysis.avg_velocity == 1.0


# ─────────────────────────────────────────────────────────────────────────────
# Adaptive Thresholds
# ─────────────────────────────────────────────────────────────────────────────


class TestAdaptiveThreshold:
    """Tests for published personalised thresholds."""

    def test_default_threshold_without_adaptive(self):
        scorer = ScrollScorer(thresholds=PersonalizedThresholds.defaults)

        assert scorer.confidence_threshold == 0.7

    def test_adaptive_threshold_used_when_enabled(self, morning_hour):
        published = PersonalizedThresholds(6.0, 90000, 0.3, True)
        scorer = ScrollScorer(thresholds=lambda: published, hour_provider=morning_hour)

        feed(scorer, 12, 1500)

        assert scorer.confidence_threshold == 0.3
        assert scorer.is_doom_scrolling() is True

    def test_non_adaptive_value_ignored(self):
        published = PersonalizedThresholds(6.0, 90000, 0.3, False)
        scorer = ScrollScorer(thresholds=lambda: published, default_confidence_threshold=0.65)

        assert scorer.confidence_threshold == 0.65
