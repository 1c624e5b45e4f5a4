"""Helper functions for ranking students and tracking rank changes."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, fields, replace
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from config import LeaderboardConfig
from student_stats import StudentStats

ALL_TIME = "all-time"
WEEKLY = "weekly"
VIEWS = (ALL_TIME, WEEKLY)


@dataclass(frozen=True)
class LeaderboardEntry(StudentStats):
    rank: int = 0
    rank_change: Optional[int] = None  # positive = moved toward rank 1


def _check_view(view: str) -> str:
    if view not in VIEWS:
        raise ValueError(f"Unknown leaderboard view {view!r}; expected one of {VIEWS}")
    return view


def view_score(stats: StudentStats, view: str) -> int:
    return stats.weekly_score if _check_view(view) == WEEKLY else stats.total_score


def _name_key(name: str):
    """Case- and accent-insensitive order first, then case, then the raw name."""
    folded = name.casefold()
    base = "".join(
        ch for ch in unicodedata.normalize("NFKD", folded) if not unicodedata.combining(ch)
    )
    return (base, folded, name)


def _sort_key(stats: StudentStats, view: str):
    if view == WEEKLY:
        return (-stats.weekly_score, _name_key(stats.name))
    return (-stats.total_score, -stats.exercise_count, _name_key(stats.name))


def build_leaderboard(stats: Sequence[StudentStats], view: str = ALL_TIME) -> List[LeaderboardEntry]:
    """Rank *stats* for *view*; ranks are always 1..N with no ties.

    All-time: total score desc, exercise count desc, name asc.
    Weekly: weekly score desc, name asc.
    """
    _check_view(view)
    ordered = sorted(stats, key=lambda s: _sort_key(s, view))
    return [
        LeaderboardEntry(
            **{f.name: getattr(student, f.name) for f in fields(StudentStats)},
            rank=position,
        )
        for position, student in enumerate(ordered, start=1)
    ]


def points_to_next_rank(board: Sequence[LeaderboardEntry], index: int, view: str = ALL_TIME) -> Optional[int]:
    """Points the entry at *index* needs to overtake the one above it."""
    if index <= 0 or index >= len(board):
        return None
    return view_score(board[index - 1], view) - view_score(board[index], view) + 1


def rank_snapshot(board: Sequence[LeaderboardEntry]) -> Dict[str, int]:
    return {entry.name: entry.rank for entry in board}


def apply_rank_changes(
    board: Sequence[LeaderboardEntry], previous: Optional[Mapping[str, int]]
) -> List[LeaderboardEntry]:
    """Annotate each entry with ``previous rank - new rank``.

    Students missing from *previous* (or every student, when there is no
    snapshot yet) get ``rank_change=None``.
    """
    previous = previous or {}
    annotated = []
    for entry in board:
        before = previous.get(entry.name)
        change = int(before) - entry.rank if before is not None else None
        annotated.append(replace(entry, rank_change=change))
    return annotated


def leaderboard_to_frame(
    board: Sequence[LeaderboardEntry],
    view: str = ALL_TIME,
    config: Optional[LeaderboardConfig] = None,
) -> pd.DataFrame:
    """Flatten a leaderboard into a display/download table."""
    _check_view(view)
    config = config or LeaderboardConfig()
    column_order = [
        "Rank",
        "Change",
        "Student",
        "Avatar",
        "Score",
        "Exercises",
        "CurrentStreak",
        "LongestStreak",
        "Badges",
        "PointsToNextRank",
        "LastActivity",
    ]

    if not board:
        return pd.DataFrame(columns=column_order)

    rows = []
    for index, entry in enumerate(board):
        rows.append(
            {
                "Rank": entry.rank,
                "Change": entry.rank_change,
                "Student": entry.name,
                "Avatar": config.avatar_for(entry.name),
                "Score": view_score(entry, view),
                "Exercises": entry.weekly_exercise_count if view == WEEKLY else entry.exercise_count,
                "CurrentStreak": entry.current_streak,
                "LongestStreak": entry.longest_streak,
                "Badges": " ".join(badge.icon for badge in entry.earned_badges),
                "PointsToNextRank": points_to_next_rank(board, index, view),
                "LastActivity": entry.last_submission_date,
            }
        )

    df = pd.DataFrame(rows, columns=column_order)
    df["Change"] = df["Change"].astype("Int64")
    df["PointsToNextRank"] = df["PointsToNextRank"].astype("Int64")
    return df
