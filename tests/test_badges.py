from dataclasses import replace
from datetime import date

import pytest

from badges import BADGE_ORDER, earned_bonus, evaluate_badges, week_start
from config import LeaderboardConfig

CONFIG = LeaderboardConfig()


def _badges(today, config=CONFIG, **overrides):
    kwargs = dict(
        current_streak=0,
        exercises_by_difficulty={},
        weekly_score=0,
        activity_by_date={},
        config=config,
        today=today,
    )
    kwargs.update(overrides)
    return {badge.id: badge for badge in evaluate_badges(**kwargs)}


def test_week_start_is_previous_sunday():
    assert week_start(date(2024, 3, 17)) == date(2024, 3, 17)
    assert week_start(date(2024, 3, 20)) == date(2024, 3, 17)
    assert week_start(date(2024, 3, 23)) == date(2024, 3, 17)
    assert week_start(date(2024, 3, 24)) == date(2024, 3, 24)


def test_catalog_order_is_fixed(today):
    badges = evaluate_badges(
        current_streak=0,
        exercises_by_difficulty={},
        weekly_score=0,
        activity_by_date={},
        config=CONFIG,
        today=today,
    )
    assert tuple(b.id for b in badges) == BADGE_ORDER
    assert not any(b.earned for b in badges)
    assert earned_bonus(badges) == 0


def test_streak_progress_is_monotonic_and_saturates(today):
    progress = [
        _badges(today, current_streak=streak)["streak-master"].progress
        for streak in range(0, CONFIG.streak_master_days + 4)
    ]
    assert progress == sorted(progress)
    assert progress[CONFIG.streak_master_days] == 100
    assert max(progress) == 100

    at_threshold = _badges(today, current_streak=CONFIG.streak_master_days)["streak-master"]
    assert at_threshold.earned
    assert at_threshold.bonus_points == 50
    assert not _badges(today, current_streak=6)["streak-master"].earned


def test_hard_mode_needs_three_level_five_exercises(today):
    two = _badges(today, exercises_by_difficulty={5: 2, 4: 10})["hard-mode"]
    assert not two.earned
    assert two.progress == pytest.approx(200 / 3)

    three = _badges(today, exercises_by_difficulty={5: 3})["hard-mode"]
    assert three.earned
    assert three.progress == 100


def test_speed_demon_uses_busiest_day(today):
    assert _badges(today)["speed-demon"].progress == 0

    badge = _badges(today, activity_by_date={"2024-01-01": 5, "2024-01-02": 1})["speed-demon"]
    assert badge.earned
    assert badge.progress == 100

    partial = _badges(today, activity_by_date={"2024-01-01": 2})["speed-demon"]
    assert not partial.earned
    assert partial.progress == 40


def test_rising_star_threshold(today):
    assert _badges(today, weekly_score=200)["rising-star"].earned
    low = _badges(today, weekly_score=50)["rising-star"]
    assert not low.earned
    assert low.progress == 25


def test_consistent_every_day_this_week(today):
    activity = {"2024-03-17": 1, "2024-03-18": 2, "2024-03-19": 1, "2024-03-20": 1}
    badge = _badges(today, activity_by_date=activity)["consistent"]
    assert badge.earned
    assert badge.progress == 100
    assert badge.bonus_points == 70


def test_consistent_with_a_missed_day(today):
    activity = {"2024-03-16": 1, "2024-03-17": 1, "2024-03-19": 1, "2024-03-20": 1}
    badge = _badges(today, activity_by_date=activity)["consistent"]
    assert not badge.earned
    assert badge.progress == 75


def test_consistent_not_awarded_in_first_two_days():
    monday = date(2024, 3, 18)
    badge = _badges(monday, activity_by_date={"2024-03-17": 1, "2024-03-18": 1})["consistent"]
    assert badge.progress == 100
    assert not badge.earned


def test_thresholds_and_bonuses_come_from_config(today):
    config = replace(
        CONFIG,
        streak_master_days=2,
        speed_demon_threshold=0,
        bonus_points={"streak-master": 5, "speed-demon": 7},
    )
    badges = _badges(today, config=config, current_streak=2)

    assert badges["streak-master"].earned
    assert badges["streak-master"].bonus_points == 5
    assert "2 days in a row" in badges["streak-master"].description
    # Nothing to measure against a zero threshold.
    assert badges["speed-demon"].progress is None
    assert badges["speed-demon"].earned
    assert badges["hard-mode"].bonus_points == 0
    assert earned_bonus(badges.values()) == 12
