"""Badge catalog and evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping, Optional

from config import LeaderboardConfig

BADGE_ORDER = ("streak-master", "hard-mode", "speed-demon", "rising-star", "consistent")

# Days in the current week before "consistent" can be earned.
CONSISTENT_MIN_DAYS = 3


@dataclass(frozen=True)
class PotentialBadge:
    id: str
    name: str
    icon: str
    description: str
    earned: bool
    bonus_points: int
    progress: Optional[float] = None  # 0-100; None when there is nothing to measure


def week_start(today: Optional[date] = None) -> date:
    """Return the most recent Sunday on or before *today*."""
    today = today or date.today()
    return today - timedelta(days=(today.weekday() + 1) % 7)


def _progress(value: float, target: float) -> Optional[float]:
    if target <= 0:
        return None
    return max(0.0, min(100.0, value / target * 100))


def _threshold_badge(badge_id, name, icon, description, value, target, config) -> PotentialBadge:
    return PotentialBadge(
        id=badge_id,
        name=name,
        icon=icon,
        description=description,
        earned=value >= target,
        bonus_points=config.bonus_for(badge_id),
        progress=_progress(value, target),
    )


def evaluate_badges(
    *,
    current_streak: int,
    exercises_by_difficulty: Mapping[int, int],
    weekly_score: int,
    activity_by_date: Mapping[str, int],
    config: LeaderboardConfig,
    today: Optional[date] = None,
) -> tuple:
    """Evaluate every badge in the catalog for one student.

    The result always has one :class:`PotentialBadge` per catalog entry, in
    ``BADGE_ORDER``. Badges are judged independently of one another.
    """
    today = today or date.today()
    bonus = config.bonus_for

    streak_days = config.streak_master_days
    hard_count = config.hard_mode_count
    speed = config.speed_demon_threshold
    rising = config.rising_star_points

    hard_exercises = exercises_by_difficulty.get(5, 0)
    max_daily = max(activity_by_date.values(), default=0)

    start = week_start(today)
    days_since_week_start = (today - start).days + 1
    start_iso, today_iso = start.isoformat(), today.isoformat()
    days_with_submissions = sum(
        1 for day in activity_by_date if start_iso <= day <= today_iso
    )

    return (
        _threshold_badge(
            "streak-master",
            "Streak Master",
            "\U0001F525",
            f"Submit exercises {streak_days} days in a row to earn "
            f"+{bonus('streak-master')} bonus points!",
            current_streak,
            streak_days,
            config,
        ),
        _threshold_badge(
            "hard-mode",
            "Hard Mode",
            "\U0001F480",
            f"Complete {hard_count} exercises at difficulty level 5 to earn "
            f"+{bonus('hard-mode')} bonus points!",
            hard_exercises,
            hard_count,
            config,
        ),
        _threshold_badge(
            "speed-demon",
            "Speed Demon",
            "⚡",
            f"Complete {speed} exercises in a single day to earn "
            f"+{bonus('speed-demon')} bonus points!",
            max_daily,
            speed,
            config,
        ),
        _threshold_badge(
            "rising-star",
            "Rising Star",
            "\U0001F4C8",
            f"Earn {rising}+ points in a single week to earn "
            f"+{bonus('rising-star')} bonus points!",
            weekly_score,
            rising,
            config,
        ),
        PotentialBadge(
            id="consistent",
            name="Consistent",
            icon="\U0001F3AF",
            description="Submit at least one exercise every day this week to earn "
            f"+{bonus('consistent')} bonus points!",
            earned=(
                days_with_submissions >= days_since_week_start
                and days_since_week_start >= CONSISTENT_MIN_DAYS
            ),
            bonus_points=bonus("consistent"),
            progress=min(100.0, days_with_submissions / max(days_since_week_start, 1) * 100),
        ),
    )


def earned_bonus(badges) -> int:
    return sum(badge.bonus_points for badge in badges if badge.earned)
