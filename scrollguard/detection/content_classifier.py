"""
Content Classifier - Is the visible screen something worth blocking?

Runs on every content-change event against the flattened signal bundle the
extractor produced for the current screen. Pure and deterministic, so it can
run alongside the scorer without any locking.

Indicator groups are checked in a fixed priority order; the first group
with a hit decides the category:

    short-form > feed > search > messaging > video player > unknown

So a Shorts shelf inside a home feed classifies as short-form, and a feed
that shows a search box classifies as a feed.

Usage:
    from scrollguard.detection.content_classifier import classify
    from scrollguard.detection.models import ContentSignalBundle

    signals = ContentSignalBundle.from_strings(element_ids=["reel_player_shorts"])
    result = classify(signals, "com.google.android.youtube")
    if result.should_block:
        ...
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable

from scrollguard.detection.apps import AppFamily, app_family
from scrollguard.detection.models import (
    ContentCategory,
    ContentClassification,
    ContentSignalBundle,
    ShortFormVariant,
    clamp,
)

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5

# Unknown screens with more children than this on a scrollable node look
# like an infinite list
INFINITE_SCROLL_CHILD_COUNT = 10


# =============================================================================
# Indicator Groups
# =============================================================================


class IndicatorGroup(Enum):
    """Keyword groups and whether view ids are searched as well as text."""

    SHORT_FORM = ("short_form", ("shorts", "short", "reel", "story"), True)
    FEED = ("feed", ("feed", "timeline", "home"), False)
    SEARCH = ("search", ("search", "result", "query"), False)
    MESSAGING = ("messaging", ("message", "chat", "dm", "direct"), False)
    VIDEO_PLAYER = ("video_player", ("video", "player", "play", "pause", "seek"), True)

    def __init__(self, label: str, keywords: tuple[str, ...], match_element_ids: bool):
        self.label = label
        self.keywords = keywords
        self.match_element_ids = match_element_ids

    def matches(self, signals: ContentSignalBundle) -> bool:
        if _contains_any(signals.tokens, self.keywords):
            return True
        return self.match_element_ids and _contains_any(signals.element_ids, self.keywords)


CLASSIFICATION_ORDER: list[tuple[IndicatorGroup, ContentCategory]] = [
    (IndicatorGroup.SHORT_FORM, ContentCategory.SHORT_FORM_FEED),
    (IndicatorGroup.FEED, ContentCategory.INFINITE_FEED),
    (IndicatorGroup.SEARCH, ContentCategory.SEARCH_RESULTS),
    (IndicatorGroup.MESSAGING, ContentCategory.MESSAGING),
    (IndicatorGroup.VIDEO_PLAYER, ContentCategory.FULL_VIDEO),
]

BLOCKABLE_CATEGORIES: dict[ContentCategory, bool] = {
    ContentCategory.SHORT_FORM_FEED: True,
    ContentCategory.INFINITE_FEED: True,
    ContentCategory.SEARCH_RESULTS: False,
    ContentCategory.MESSAGING: False,
    ContentCategory.FULL_VIDEO: False,
}

_VARIANT_BY_FAMILY: dict[AppFamily, ShortFormVariant] = {
    AppFamily.YOUTUBE: ShortFormVariant.YOUTUBE_SHORTS,
    AppFamily.INSTAGRAM: ShortFormVariant.INSTAGRAM_REELS,
    AppFamily.SNAPCHAT: ShortFormVariant.SNAPCHAT_SPOTLIGHT,
}


def _contains_any(values: Iterable[str], keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match of any keyword in any value."""
    keywords = tuple(keywords)
    return any(k in v.lower() for v in values for k in keywords)


def _seen(signals: ContentSignalBundle, keyword: str) -> bool:
    return _contains_any(signals.tokens, (keyword,)) or _contains_any(
        signals.element_ids, (keyword,)
    )


# =============================================================================
# Classification
# =============================================================================


def detect_category(signals: ContentSignalBundle) -> ContentCategory:
    """First indicator group in priority order that matches, else UNKNOWN."""
    for group, category in CLASSIFICATION_ORDER:
        if group.matches(signals):
            return category
    return ContentCategory.UNKNOWN


def short_form_variant(app_id: str | None) -> ShortFormVariant:
    family = app_family(app_id)
    if family is None:
        return ShortFormVariant.GENERIC
    return _VARIANT_BY_FAMILY.get(family, ShortFormVariant.GENERIC)


def looks_like_infinite_scroll(signals: ContentSignalBundle) -> bool:
    """Fallback for unrecognised screens: a long list that carries video."""
    return signals.scrollable_child_count > INFINITE_SCROLL_CHILD_COUNT and signals.has_video_content


def should_block(category: ContentCategory, signals: ContentSignalBundle) -> bool:
    if category == ContentCategory.UNKNOWN:
        return looks_like_infinite_scroll(signals)
    return BLOCKABLE_CATEGORIES[category]


def detection_confidence(
    signals: ContentSignalBundle,
    category: ContentCategory,
    variant: ShortFormVariant | None = None,
) -> float:
    """
    How sure we are about the category.

    Starts at 0.5 and earns fixed bonuses for category-specific evidence.
    Categories without specific evidence keep the base value.
    """
    confidence = BASE_CONFIDENCE

    if variant == ShortFormVariant.YOUTUBE_SHORTS:
        if _seen(signals, "shorts"):
            confidence += 0.3
        if _seen(signals, "reel"):
            confidence += 0.2
    elif variant == ShortFormVariant.INSTAGRAM_REELS:
        if _seen(signals, "reel"):
            confidence += 0.3
        if _seen(signals, "explore"):
            confidence += 0.2
    elif category == ContentCategory.INFINITE_FEED:
        if signals.scrollable_node_count > 1:
            confidence += 0.2
        if signals.has_video_content:
            confidence += 0.1

    return round(clamp(confidence), 3)


def classify(signals: ContentSignalBundle | None, app_id: str | None) -> ContentClassification:
    """
    Classify the visible screen.

    Never raises: a missing or empty bundle yields UNKNOWN with zero
    confidence and no blocking.

    Args:
        signals: Flattened screen signals from the extractor
        app_id: Package name of the foreground app

    Returns:
        ContentClassification with category, should_block and confidence
    """
    if signals is None or signals.is_empty():
        return ContentClassification.unknown()

    category = detect_category(signals)
    variant = short_form_variant(app_id) if category == ContentCategory.SHORT_FORM_FEED else None

    result = ContentClassification(
        category=category,
        should_block=should_block(category, signals),
        confidence=detection_confidence(signals, category, variant),
        variant=variant,
    )

    logger.debug(
        f"Classified {app_id} as {result.category.value}"
        f"{f' ({variant.value})' if variant else ''} "
        f"block={result.should_block} confidence={result.confidence:.2f}"
    )
    return result
