"""Detection - Real-time doom scrolling detection for the live session

Philosophy:
    Judge behaviour, not content alone.
    A feed is only a problem when it is scrolled compulsively.
    Never raise on bad input from the platform: clamp and carry on.

Components:
    content_classifier.py: Classify the visible screen
        - Short-form feeds (Shorts, Reels, Spotlight)
        - Infinite feeds and timelines
        - Search, messaging and full video are never blocked

    scroll_scorer.py: Score the live session on every scroll
        - Velocity, consistency, duration, pause and context sub-scores
        - Rolling window bounded by age (timestamps) and count (velocities)
        - Consecutive rapid scroll tracking

    session_aggregator.py: Session boundaries
        - App switches and 30s inactivity end a session
        - Every finished session becomes one immutable SessionRecord

    pipeline.py: Host-facing, single-writer event pipeline
        - Debounce, content gating, block/nudge decisions, cooldowns

    apps.py: Supported app registry and per-app toggles
    models.py: Value types shared across detection and learning
"""

from scrollguard.detection.models import (
    BlockingStrategy,
    ConfidenceScore,
    ContentCategory,
    ContentClassification,
    ContentSignalBundle,
    DeviceContext,
    ExitMethod,
    Intervention,
    InterventionKind,
    PersonalizedThresholds,
    ScrollEvent,
    SessionAnalysis,
    SessionRecord,
    SessionType,
    ShortFormVariant,
)

__all__ = [
    "BlockingStrategy",
    "ConfidenceScore",
    "ContentCategory",
    "ContentClassification",
    "ContentSignalBundle",
    "DeviceContext",
    "ExitMethod",
    "Intervention",
    "InterventionKind",
    "PersonalizedThresholds",
    "ScrollEvent",
    "SessionAnalysis",
    "SessionRecord",
    "SessionType",
    "ShortFormVariant",
]
