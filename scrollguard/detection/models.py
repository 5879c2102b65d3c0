"""Detection data models.

Values flowing through the live pipeline:
    ScrollEvent → ConfidenceScore → SessionAnalysis → SessionRecord
    ContentSignalBundle → ContentClassification

and the personalisation values fed back into it:
    PersonalizedThresholds, BlockingStrategy, Intervention
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

logger = logging.getLogger(__name__)

# Fixed sub-score weights, sum to 1.0
VELOCITY_WEIGHT = 0.30
CONSISTENCY_WEIGHT = 0.25
DURATION_WEIGHT = 0.20
PAUSE_WEIGHT = 0.15
CONTEXT_WEIGHT = 0.10

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp to [low, high]; NaN collapses to low."""
    if value != value:
        return low
    return max(low, min(high, value))


# =============================================================================
# Enums
# =============================================================================


class ContentCategory(str, Enum):
    """What kind of screen is currently visible."""

    SHORT_FORM_FEED = "short_form_feed"
    INFINITE_FEED = "infinite_feed"
    SEARCH_RESULTS = "search_results"
    MESSAGING = "messaging"
    FULL_VIDEO = "full_video"
    UNKNOWN = "unknown"


class ShortFormVariant(str, Enum):
    """App-specific flavour of a short-form feed."""

    YOUTUBE_SHORTS = "youtube_shorts"
    INSTAGRAM_REELS = "instagram_reels"
    SNAPCHAT_SPOTLIGHT = "snapchat_spotlight"
    GENERIC = "generic"


class SessionType(str, Enum):
    PRODUCTIVE = "productive"
    DOOM_SCROLL = "doom_scroll"
    MIXED = "mixed"


class ExitMethod(str, Enum):
    """Why a session ended."""

    NATURAL = "natural"
    APP_SWITCH = "app_switch"
    TIMEOUT = "timeout"
    SHUTDOWN = "shutdown"


class BlockingStrategy(str, Enum):
    """Intervention intensity, ordered from weakest to strongest."""

    MINIMAL = "minimal"  # Gentle nudges only
    GENTLE = "gentle"  # Short reminder overlay
    MODERATE = "moderate"  # Overlay with easy bypass
    AGGRESSIVE = "aggressive"  # Navigate away with a cooldown

    @property
    def rank(self) -> int:
        return _STRATEGY_ORDER.index(self)

    # str ordering is alphabetical, so every comparison is rank based
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BlockingStrategy):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, BlockingStrategy):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, BlockingStrategy):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, BlockingStrategy):
            return NotImplemented
        return self.rank >= other.rank


_STRATEGY_ORDER = [
    BlockingStrategy.MINIMAL,
    BlockingStrategy.GENTLE,
    BlockingStrategy.MODERATE,
    BlockingStrategy.AGGRESSIVE,
]


class InterventionKind(str, Enum):
    NONE = "none"
    NUDGE = "nudge"
    BLOCK = "block"


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class ScrollEvent:
    """A single scroll notification from the platform."""

    timestamp: int  # monotonic milliseconds
    app_id: str


@dataclass(frozen=True)
class ContentSignalBundle:
    """Flattened summary of the visible screen, produced by the signal extractor.

    tokens and element_ids are lower-cased. scrollable_child_count is the
    largest child count seen on any scrollable node.
    """

    tokens: frozenset[str] = frozenset()
    element_ids: frozenset[str] = frozenset()
    scrollable_node_count: int = 0
    scrollable_child_count: int = 0
    has_video_content: bool = False

    @classmethod
    def from_strings(
        cls,
        tokens: Iterable[str] = (),
        element_ids: Iterable[str] = (),
        scrollable_node_count: int = 0,
        scrollable_child_count: int = 0,
        has_video_content: bool = False,
    ) -> ContentSignalBundle:
        return cls(
            tokens=frozenset(t.lower() for t in tokens if t),
            element_ids=frozenset(e.lower() for e in element_ids if e),
            scrollable_node_count=max(0, scrollable_node_count),
            scrollable_child_count=max(0, scrollable_child_count),
            has_video_content=has_video_content,
        )

    def is_empty(self) -> bool:
        return (
            not self.tokens
            and not self.element_ids
            and self.scrollable_node_count == 0
            and self.scrollable_child_count == 0
            and not self.has_video_content
        )


@dataclass(frozen=True)
class DeviceContext:
    """Ambient device state supplied by the context collaborator.

    Out-of-range values are clamped rather than rejected.
    """

    hour: int = 12
    day_of_week: str = "monday"
    battery_level: int = 100

    def __post_init__(self) -> None:
        hour = int(clamp(self.hour, 0, 23))
        battery = int(clamp(self.battery_level, 0, 100))
        day = (self.day_of_week or "").strip().lower()
        if hour != self.hour or battery != self.battery_level:
            logger.warning(
                f"Clamped device context hour={self.hour}->{hour}, "
                f"battery={self.battery_level}->{battery}"
            )
        object.__setattr__(self, "hour", hour)
        object.__setattr__(self, "battery_level", battery)
        object.__setattr__(self, "day_of_week", day)

    @classmethod
    def from_datetime(cls, moment: datetime, battery_level: int = 100) -> DeviceContext:
        return cls(
            hour=moment.hour,
            day_of_week=DAY_NAMES[moment.weekday()],
            battery_level=battery_level,
        )

    @classmethod
    def now(cls, battery_level: int = 100) -> DeviceContext:
        """Context from the local wall clock; battery is a placeholder unless given."""
        return cls.from_datetime(datetime.now(), battery_level)

    @property
    def time_of_day(self) -> str:
        return time_of_day(self.hour)


def time_of_day(hour: int) -> str:
    """Bucket an hour into morning / afternoon / evening / night."""
    if 6 <= hour <= 11:
        return "morning"
    if 12 <= hour <= 17:
        return "afternoon"
    if 18 <= hour <= 21:
        return "evening"
    return "night"


# =============================================================================
# Outputs
# =============================================================================


@dataclass(frozen=True)
class ConfidenceScore:
    """Weighted doom-scrolling likelihood with its sub-scores."""

    velocity: float = 0.0
    consistency: float = 0.0
    duration: float = 0.0
    pause: float = 0.0
    context: float = 0.0

    @property
    def total(self) -> float:
        return clamp(
            self.velocity * VELOCITY_WEIGHT
            + self.consistency * CONSISTENCY_WEIGHT
            + self.duration * DURATION_WEIGHT
            + self.pause * PAUSE_WEIGHT
            + self.context * CONTEXT_WEIGHT
        )

    @classmethod
    def zero(cls) -> ConfidenceScore:
        return cls()

    def to_dict(self) -> dict[str, float]:
        return {**asdict(self), "total": self.total}


@dataclass(frozen=True)
class ContentClassification:
    category: ContentCategory
    should_block: bool
    confidence: float
    variant: ShortFormVariant | None = None

    @classmethod
    def unknown(cls) -> ContentClassification:
        return cls(ContentCategory.UNKNOWN, False, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "should_block": self.should_block,
            "confidence": self.confidence,
            "variant": self.variant.value if self.variant else None,
        }


@dataclass(frozen=True)
class SessionAnalysis:
    """Read-only snapshot of the live session."""

    duration: int
    total_scrolls: int
    avg_velocity: float
    consecutive_rapid: int
    confidence: float
    is_doom_scrolling: bool
    max_consecutive_rapid: int = 0


@dataclass(frozen=True)
class SessionRecord:
    """A finished session. Immutable once emitted."""

    app_id: str
    start_time: int
    end_time: int
    total_scrolls: int
    blocked_scrolls: int
    average_velocity: float
    max_consecutive_rapid_scrolls: int
    session_type: SessionType
    time_of_day: str = ""
    day_of_week: str = ""
    battery_level: int = 100
    exit_method: ExitMethod = ExitMethod.NATURAL

    @property
    def duration(self) -> int:
        return max(0, self.end_time - self.start_time)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["session_type"] = self.session_type.value
        d["exit_method"] = self.exit_method.value
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionRecord:
        """Rebuild a record from its storage form.

        Raises:
            ValueError: if a required field is missing or has the wrong type
        """
        try:
            return cls(
                app_id=str(data["app_id"]),
                start_time=int(data["start_time"]),
                end_time=int(data["end_time"]),
                total_scrolls=int(data.get("total_scrolls", 0)),
                blocked_scrolls=int(data.get("blocked_scrolls", 0)),
                average_velocity=float(data.get("average_velocity", 0.0)),
                max_consecutive_rapid_scrolls=int(data.get("max_consecutive_rapid_scrolls", 0)),
                session_type=SessionType(data.get("session_type", SessionType.MIXED.value)),
                time_of_day=str(data.get("time_of_day", "")),
                day_of_week=str(data.get("day_of_week", "")),
                battery_level=int(data.get("battery_level", 100)),
                exit_method=ExitMethod(data.get("exit_method", ExitMethod.NATURAL.value)),
            )
        except KeyError as e:
            raise ValueError(f"Session record missing field: {e.args[0]}") from e
        except TypeError as e:
            raise ValueError(f"Malformed session record: {e}") from e


@dataclass(frozen=True)
class PersonalizedThresholds:
    """Per-user sensitivity. Replaced wholesale on every learning pass."""

    velocity_threshold: float
    duration_threshold: int
    confidence_threshold: float
    adaptive_enabled: bool

    @classmethod
    def defaults(cls) -> PersonalizedThresholds:
        return cls(
            velocity_threshold=5.0,
            duration_threshold=120000,
            confidence_threshold=0.7,
            adaptive_enabled=False,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Intervention:
    """What the host should do after a scroll event."""

    kind: InterventionKind
    strategy: BlockingStrategy
    confidence: float = 0.0
    category: ContentCategory = ContentCategory.UNKNOWN
    cooldown_ms: int = 0
    overlay_ms: int = 0
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def none(cls, strategy: BlockingStrategy) -> Intervention:
        return cls(kind=InterventionKind.NONE, strategy=strategy)
