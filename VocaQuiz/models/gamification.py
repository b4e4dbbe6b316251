"""
XP, level, streak and badge rules.

Pure functions over plain values; the store calls them while finalising a
session and the screens call them for dashboards.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from VocaQuiz import config
from VocaQuiz.models.state import HistoryEntry


def score_percentage(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    # half-up like Math.round, not banker's rounding
    return int(100 * correct / total + 0.5)


def xp_for_session(correct: int, percentage: int) -> int:
    if percentage == 100:
        bonus = config.XP_PERFECT_BONUS
    elif percentage >= config.HIGH_SCORE_THRESHOLD:
        bonus = config.XP_HIGH_SCORE_BONUS
    else:
        bonus = 0
    return correct * config.XP_PER_CORRECT + bonus


def level_for_xp(xp: int) -> int:
    return int(max(xp, 0) // config.XP_PER_LEVEL) + 1


def level_progress(xp: int, level: int) -> tuple[int, float]:
    """XP earned inside the current level and its share of a level in percent."""
    current = xp - (level - 1) * config.XP_PER_LEVEL
    pct = min(current / config.XP_PER_LEVEL * 100, 100.0)
    return current, max(pct, 0.0)


def to_local_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def next_streak(streak: int, last_study_date, today: date) -> int:
    """
    Streak after completing a session on ``today``.

    Same day keeps the streak, the day after the last session extends it,
    anything else (first session, a gap of two or more days) restarts at 1.
    """
    last = to_local_date(last_study_date)
    if last == today:
        return streak
    if last == today - timedelta(days=1):
        return streak + 1
    return 1


@dataclass(frozen=True, slots=True)
class LevelTitle:
    min_level: int
    title: str
    icon: str


LEVEL_TITLES: tuple[LevelTitle, ...] = (
    LevelTitle(1, "Baby Egg", "🥚"),
    LevelTitle(2, "Wobbly Chick", "🐣"),
    LevelTitle(5, "Smart Owl", "🦉"),
    LevelTitle(10, "Fast Eagle", "🦅"),
    LevelTitle(20, "Wise Wizard", "🧙"),
    LevelTitle(30, "Voca King", "👑"),
    LevelTitle(50, "Legendary Dragon", "🐉"),
)


def level_title(level: int) -> LevelTitle:
    for t in reversed(LEVEL_TITLES):
        if level >= t.min_level:
            return t
    return LEVEL_TITLES[0]


@dataclass(frozen=True, slots=True)
class Badge:
    id: str
    icon: str
    name: str
    description: str
    # (store, latest history entry) -> earned?
    predicate: Callable[[object, HistoryEntry], bool]


BADGES: tuple[Badge, ...] = (
    Badge(
        "first_step", "🥚", "First Step", "Completed your first quiz!",
        lambda store, entry: len(store.history) == 1,
    ),
    Badge(
        "perfect_score", "💯", "Perfect Score", "Scored 100% on a quiz!",
        lambda store, entry: entry.percentage == 100,
    ),
    Badge(
        "speed_racer", "⚡", "Speed Racer", "Finished a quiz within 30 seconds!",
        lambda store, entry: entry.duration_seconds <= 30 and entry.correct_answers >= 5,
    ),
    Badge(
        "streak_3", "🔥", "Three in a Row", "Studied three days in a row!",
        lambda store, entry: store.streak >= 3,
    ),
    Badge(
        "level_5", "🎓", "Honor Student", "Reached level 5!",
        lambda store, entry: store.level >= 5,
    ),
)

BADGES_BY_ID = {b.id: b for b in BADGES}
