from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from badges import earned_bonus, evaluate_badges, week_start
from config import LeaderboardConfig
from entry_parsing import ExerciseEntry

RECENT_EXERCISES = 10
ACTIVITY_WINDOW_DAYS = 14


@dataclass(frozen=True)
class StudentStats:
    name: str
    total_score: int
    base_score: int
    badge_bonus_points: int
    exercise_count: int
    current_streak: int
    longest_streak: int
    last_submission_date: str
    exercises_by_difficulty: Dict[int, int]
    scores_by_difficulty: Dict[int, int]
    recent_exercises: Tuple[ExerciseEntry, ...]
    weekly_score: int
    weekly_exercise_count: int
    exercises_today: int
    activity_by_date: Dict[str, int]
    potential_badges: tuple

    @property
    def earned_badges(self) -> list:
        return [badge for badge in self.potential_badges if badge.earned]


def calculate_score(difficulty: int, config: LeaderboardConfig) -> int:
    return config.points_for(difficulty)


def calculate_streak(dates: Iterable[str], today: Optional[date] = None) -> Tuple[int, int]:
    """Return ``(current, longest)`` consecutive-day streaks.

    *dates* are ISO strings and may repeat. The current streak only counts
    when the latest submission was today or yesterday.
    """
    unique_days = sorted({date.fromisoformat(d) for d in dates}, reverse=True)
    if not unique_days:
        return 0, 0

    today = today or date.today()
    one_day = timedelta(days=1)

    longest = run = 1
    for newer, older in zip(unique_days, unique_days[1:]):
        if newer - older == one_day:
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    current = 0
    if unique_days[0] in (today, today - one_day):
        current = 1
        for newer, older in zip(unique_days, unique_days[1:]):
            if newer - older != one_day:
                break
            current += 1

    return current, longest


def _group_by_student(entries: Iterable[ExerciseEntry]) -> Dict[str, List[ExerciseEntry]]:
    groups: Dict[str, List[ExerciseEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.student.strip(), []).append(entry)
    return groups


def _stats_for_student(
    name: str,
    entries: List[ExerciseEntry],
    config: LeaderboardConfig,
    today: date,
    week_start_iso: str,
) -> StudentStats:
    today_iso = today.isoformat()
    newest_first = sorted(entries, key=lambda e: e.date, reverse=True)

    base_score = 0
    weekly_score = 0
    weekly_count = 0
    exercises_today = 0
    by_difficulty: Dict[int, int] = {}
    scores_by_difficulty: Dict[int, int] = {}
    activity: Dict[str, int] = {}

    for entry in entries:
        points = calculate_score(entry.difficulty, config)
        base_score += points
        by_difficulty[entry.difficulty] = by_difficulty.get(entry.difficulty, 0) + 1
        scores_by_difficulty[entry.difficulty] = (
            scores_by_difficulty.get(entry.difficulty, 0) + points
        )
        activity[entry.date] = activity.get(entry.date, 0) + 1

        # Zero-padded ISO dates compare correctly as strings.
        if entry.date >= week_start_iso:
            weekly_score += points
            weekly_count += 1
        if entry.date == today_iso:
            exercises_today += 1

    current_streak, longest_streak = calculate_streak(activity, today=today)

    badges = evaluate_badges(
        current_streak=current_streak,
        exercises_by_difficulty=by_difficulty,
        weekly_score=weekly_score,
        activity_by_date=activity,
        config=config,
        today=today,
    )
    bonus = earned_bonus(badges)

    return StudentStats(
        name=name,
        total_score=base_score + bonus,
        base_score=base_score,
        badge_bonus_points=bonus,
        exercise_count=len(entries),
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_submission_date=newest_first[0].date,
        exercises_by_difficulty=by_difficulty,
        scores_by_difficulty=scores_by_difficulty,
        recent_exercises=tuple(newest_first[:RECENT_EXERCISES]),
        weekly_score=weekly_score,
        weekly_exercise_count=weekly_count,
        exercises_today=exercises_today,
        activity_by_date=activity,
        potential_badges=badges,
    )


def calculate_student_stats(
    entries: Iterable[ExerciseEntry],
    config: LeaderboardConfig,
    today: Optional[date] = None,
) -> List[StudentStats]:
    """Fold validated entries into one :class:`StudentStats` per student.

    Students appear in order of their first entry. Each student's numbers
    depend only on their own entries.
    """
    today = today or date.today()
    week_start_iso = week_start(today).isoformat()
    return [
        _stats_for_student(name, student_entries, config, today, week_start_iso)
        for name, student_entries in _group_by_student(entries).items()
    ]


def recent_activity(
    stats: StudentStats, days: int = ACTIVITY_WINDOW_DAYS, today: Optional[date] = None
) -> List[Tuple[str, int]]:
    """Submission counts for the last *days* days, oldest first, zero-filled."""
    today = today or date.today()
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    return [(day.isoformat(), stats.activity_by_date.get(day.isoformat(), 0)) for day in window]


def difficulty_breakdown(stats: StudentStats, config: LeaderboardConfig) -> List[dict]:
    """Per-difficulty counts and points with display labels, easiest first."""
    return [
        {
            "difficulty": level,
            "label": config.label_for(level),
            "exercises": stats.exercises_by_difficulty[level],
            "points": stats.scores_by_difficulty.get(level, 0),
        }
        for level in sorted(stats.exercises_by_difficulty)
    ]
