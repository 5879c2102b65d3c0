"""
Session statistics over finished SessionRecords.

Aggregates the numbers a dashboard shows (sessions, blocked scrolls, time
saved) and the lookback filter the learner uses. Works on plain lists of
records; storage queries stay with the caller.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from statistics import mean
from typing import Any, Iterable

from scrollguard.detection.models import SessionRecord, SessionType

DAY_MS = 24 * 60 * 60 * 1000
SECONDS_SAVED_PER_BLOCK = 3


@dataclass(frozen=True)
class SessionSummary:
    total_sessions: int = 0
    total_blocked_scrolls: int = 0
    time_saved_seconds: int = 0
    average_session_duration_ms: int = 0
    doom_session_ratio: float = 0.0
    sessions_by_type: dict[str, int] = field(default_factory=dict)
    average_velocity_by_app: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def recent_sessions(
    records: Iterable[SessionRecord], now_ms: int, days: int = 7
) -> list[SessionRecord]:
    """Sessions that ended within the last `days` days of now_ms."""
    cutoff = now_ms - days * DAY_MS
    return [r for r in records if cutoff <= r.end_time <= now_ms]


def summarize_sessions(
    records: Iterable[SessionRecord], seconds_saved_per_block: int = SECONDS_SAVED_PER_BLOCK
) -> SessionSummary:
    records = list(records)
    if not records:
        return SessionSummary()

    by_type: dict[str, int] = {t.value: 0 for t in SessionType}
    velocities: dict[str, list[float]] = defaultdict(list)
    for r in records:
        by_type[r.session_type.value] += 1
        velocities[r.app_id].append(r.average_velocity)

    blocked = sum(r.blocked_scrolls for r in records)

    return SessionSummary(
        total_sessions=len(records),
        total_blocked_scrolls=blocked,
        # Rough estimate: each blocked scroll is a few seconds not spent scrolling
        time_saved_seconds=blocked * seconds_saved_per_block,
        average_session_duration_ms=int(mean(r.duration for r in records)),
        doom_session_ratio=round(by_type[SessionType.DOOM_SCROLL.value] / len(records), 4),
        sessions_by_type=by_type,
        average_velocity_by_app={app: round(mean(v), 3) for app, v in sorted(velocities.items())},
    )
