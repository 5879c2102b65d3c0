"""
Scroll Pipeline - Host-facing entry point for the detection engine

Wires the classifier, scorer and aggregator together behind the three
callbacks a platform event source delivers:

    handle_window_change  foreground app changed
    handle_content_change visible screen changed (new signal bundle)
    handle_scroll         user scrolled

All callbacks are serialised through one lock, so the session window has a
single writer even when the host delivers events from several threads.
Classification itself runs outside the lock.

Per scroll:
1. Drop events closer than 100ms to the previously accepted one
2. Skip scoring when the visible content is not blockable
3. Score, then decide: block when doom scrolling with confidence above 0.7
   (one block per cooldown), nudge when confidence is above 0.5

Usage:
    from scrollguard.detection.pipeline import ScrollPipeline

    pipeline = ScrollPipeline(sink=storage.insert_session)
    pipeline.handle_window_change("com.instagram.android", now_ms, context)
    pipeline.handle_content_change("com.instagram.android", signals)
    intervention = pipeline.handle_scroll("com.instagram.android", now_ms)
    if intervention.kind == InterventionKind.BLOCK:
        overlay.show(intervention.message, intervention.overlay_ms)
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable

from scrollguard.config_models import (
    DetectionConfig,
    LearningConfig,
    load_detection_config,
    load_learning_config,
)
from scrollguard.detection.apps import display_name, is_enabled
from scrollguard.detection.content_classifier import classify
from scrollguard.detection.models import (
    BlockingStrategy,
    ConfidenceScore,
    ContentClassification,
    ContentSignalBundle,
    DeviceContext,
    ExitMethod,
    Intervention,
    InterventionKind,
    PersonalizedThresholds,
    ScrollEvent,
    SessionRecord,
)
from scrollguard.detection.scroll_scorer import ScrollScorer
from scrollguard.detection.session_aggregator import SessionAggregator
from scrollguard.learning.risk_predictor import assess
from scrollguard.learning.thresholds import ThresholdStore
from scrollguard.logging_config import bind_session_context, clear_session_context, get_logger

logger = get_logger(__name__)

BLOCK_MESSAGES: dict[BlockingStrategy, str] = {
    BlockingStrategy.GENTLE: "Mindful scrolling reminder",
    BlockingStrategy.MODERATE: "Take a break from {app}",
    BlockingStrategy.AGGRESSIVE: "Doom scrolling blocked - Take a break!",
}


class ScrollPipeline:
    """Single-writer event pipeline for one device.

    Args:
        config: Detection settings; loaded from args/detection.yaml if omitted.
        thresholds: Published personalised thresholds shared with the learner.
        sink: Storage callback for finalized SessionRecords.
        context_provider: Device context at session start.
        hour_provider: Local hour for the scorer's context sub-score.
        strategy: Blocking strategy until refresh_strategy() picks one.
        learning_config: Risk and learner settings; loaded from
            args/learning.yaml once if omitted.

    Scrolls are only scored on content classified as blockable. Hosts must
    report what is on screen, through handle_content_change() or the
    signals argument of handle_scroll(); until they do, every scroll in an
    app is UNKNOWN content and never reaches the scorer.
    """

    def __init__(
        self,
        config: DetectionConfig | None = None,
        thresholds: ThresholdStore | None = None,
        sink: Callable[[SessionRecord], None] | None = None,
        context_provider: Callable[[], DeviceContext] | None = None,
        hour_provider: Callable[[], int] | None = None,
        strategy: BlockingStrategy = BlockingStrategy.MODERATE,
        learning_config: LearningConfig | None = None,
    ):
        self.config = config or load_detection_config()
        self.learning_config = learning_config or load_learning_config()
        self.thresholds = thresholds or ThresholdStore()
        self.strategy = strategy

        self.scorer = ScrollScorer(
            thresholds=self.thresholds.current,
            hour_provider=hour_provider,
            default_confidence_threshold=self.config.scorer.default_confidence_threshold,
            rapid_scroll_count=self.config.scorer.rapid_scroll_count,
        )
        self.aggregator = SessionAggregator(
            self.scorer,
            sink=sink,
            context_provider=context_provider,
            is_tracked=self.is_tracked,
            inactivity_timeout_ms=self.config.session.inactivity_timeout_ms,
            doom_min_duration_ms=self.config.session.doom_min_duration_ms,
            productive_max_scrolls=self.config.session.productive_max_scrolls,
        )

        self._lock = threading.Lock()
        self._classifications: dict[str, ContentClassification] = {}
        self._last_accepted: tuple[str, int] | None = None
        self._blocked_until = 0
        self._bound_session: tuple[str, int] | None = None

    def is_tracked(self, app_id: str) -> bool:
        return is_enabled(app_id, self.config.apps.enabled)

    # -------------------------------------------------------------------------
    # Host callbacks
    # -------------------------------------------------------------------------

    def handle_window_change(
        self, app_id: str, timestamp: int, context: DeviceContext | None = None
    ) -> SessionRecord | None:
        with self._lock:
            if app_id != self.aggregator.current_app:
                self._classifications.pop(app_id, None)
                self._last_accepted = None
            record = self.aggregator.on_app_switch(app_id, timestamp, context)
            self._sync_log_context()
            return record

    def handle_content_change(
        self, app_id: str, signals: ContentSignalBundle | None
    ) -> ContentClassification:
        result = classify(signals, app_id)
        with self._lock:
            self._classifications[app_id] = result
        logger.debug(
            "content_changed",
            category=result.category.value,
            confidence=result.confidence,
            should_block=result.should_block,
        )
        return result

    def handle_scroll(
        self,
        app_id: str,
        timestamp: int,
        signals: ContentSignalBundle | None = None,
        context: DeviceContext | None = None,
    ) -> Intervention:
        """
        Process one scroll and decide on an intervention.

        Args:
            app_id: Package of the app that scrolled
            timestamp: Monotonic milliseconds
            signals: Fresh signals for the screen, if the host has them;
                otherwise the last content-change classification is used

        Returns:
            Intervention (kind NONE when nothing should happen)
        """
        classification = classify(signals, app_id) if signals is not None else None

        with self._lock:
            if classification is not None:
                self._classifications[app_id] = classification
            else:
                classification = self._classifications.get(app_id, ContentClassification.unknown())

            if self._is_debounced(app_id, timestamp):
                return Intervention.none(self.strategy)

            if not self.is_tracked(app_id):
                # Still a foreground change as far as the live session is concerned
                self.aggregator.on_scroll(ScrollEvent(timestamp, app_id), context)
                self._sync_log_context()
                return Intervention.none(self.strategy)

            if not classification.should_block:
                # Keeps the session alive without counting the scroll
                self.aggregator.touch(app_id, timestamp, context)
                self._sync_log_context()
                logger.debug("scroll_skipped", category=classification.category.value)
                return Intervention.none(self.strategy)

            score = self.aggregator.on_scroll(ScrollEvent(timestamp, app_id), context)
            self._sync_log_context()
            self._last_accepted = (app_id, timestamp)
            if score is None:
                return Intervention.none(self.strategy)

            return self._decide(app_id, timestamp, score, classification)

    def shutdown(self, timestamp: int | None = None) -> SessionRecord | None:
        """Finalize whatever session is open (service stopping)."""
        with self._lock:
            record = self.aggregator.finalize_session(timestamp, ExitMethod.SHUTDOWN)
            self._sync_log_context()
            return record

    # -------------------------------------------------------------------------
    # Personalisation
    # -------------------------------------------------------------------------

    def refresh_strategy(
        self,
        context: DeviceContext,
        recent_sessions: Iterable[SessionRecord] = (),
        now_ms: int | None = None,
    ) -> tuple[float, BlockingStrategy]:
        risk, strategy = assess(context, recent_sessions, now_ms, self.learning_config.risk)
        with self._lock:
            previous = self.strategy
            self.strategy = strategy
        if strategy != previous:
            logger.info("strategy_changed", risk=risk, previous=previous.value, strategy=strategy.value)
        return risk, strategy

    def relearn(self, history: Iterable[SessionRecord]) -> PersonalizedThresholds:
        """Learn from finished sessions and publish the result to the scorer."""
        return self.thresholds.relearn(history, self.learning_config.learner.min_sessions)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _is_debounced(self, app_id: str, timestamp: int) -> bool:
        if self._last_accepted is None:
            return False
        last_app, last_time = self._last_accepted
        return (
            last_app == app_id
            and 0 <= timestamp - last_time < self.config.intervention.min_scroll_interval_ms
        )

    def _sync_log_context(self) -> None:
        """Keep the structlog session context in step with the aggregator."""
        current = self.aggregator.current_app
        if current is None:
            if self._bound_session is not None:
                clear_session_context()
                self._bound_session = None
            return
        key = (current, self.aggregator.session_start)
        if key != self._bound_session:
            bind_session_context(*key)
            self._bound_session = key
            logger.debug("session_context_bound")

    def _decide(
        self,
        app_id: str,
        timestamp: int,
        score: ConfidenceScore,
        classification: ContentClassification,
    ) -> Intervention:
        settings = self.config.intervention
        confidence = score.total
        strategy = self.strategy

        if self.scorer.is_doom_scrolling() and confidence > settings.block_confidence:
            if timestamp < self._blocked_until:
                return Intervention(
                    kind=InterventionKind.NONE,
                    strategy=strategy,
                    confidence=confidence,
                    category=classification.category,
                    details={"cooldown_remaining_ms": self._blocked_until - timestamp},
                )

            cooldown = settings.cooldown_ms.get(strategy.value, 0)
            self._blocked_until = timestamp + cooldown
            self.aggregator.record_blocked()

            if strategy == BlockingStrategy.MINIMAL:
                intervention = self._nudge(strategy, confidence, classification, cooldown)
            else:
                intervention = Intervention(
                    kind=InterventionKind.BLOCK,
                    strategy=strategy,
                    confidence=confidence,
                    category=classification.category,
                    cooldown_ms=cooldown,
                    overlay_ms=settings.overlay_ms.get(strategy.value, 0),
                    message=BLOCK_MESSAGES[strategy].format(app=display_name(app_id)),
                )
            logger.info(
                "doom_scrolling_blocked",
                confidence=round(confidence, 3),
                strategy=strategy.value,
                kind=intervention.kind.value,
                category=classification.category.value,
            )
            return intervention

        if confidence > settings.nudge_confidence:
            return self._nudge(strategy, confidence, classification)

        return Intervention(
            kind=InterventionKind.NONE,
            strategy=strategy,
            confidence=confidence,
            category=classification.category,
        )

    def _nudge(
        self,
        strategy: BlockingStrategy,
        confidence: float,
        classification: ContentClassification,
        cooldown: int = 0,
    ) -> Intervention:
        analysis = self.scorer.session_analysis()
        minutes = analysis.duration // 60000
        return Intervention(
            kind=InterventionKind.NUDGE,
            strategy=strategy,
            confidence=confidence,
            category=classification.category,
            cooldown_ms=cooldown,
            message=f"{analysis.total_scrolls} scrolls in {minutes} min",
            details={"scrolls": analysis.total_scrolls, "duration_ms": analysis.duration},
        )
