"""Leaderboard settings.

Every engine function takes a :class:`LeaderboardConfig` explicitly, so the
scoring table and badge thresholds can be swapped out in tests without
touching module state. :func:`load_config` builds the value used by the
Streamlit pages from ``st.secrets`` or, failing that, environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

import streamlit as st

logger = logging.getLogger(__name__)

DEFAULT_SCORING = {
    0: 5,    # Tried
    1: 10,   # Easy
    2: 25,   # Medium-Easy
    3: 50,   # Medium
    4: 80,   # Medium-Hard
    5: 120,  # Hard
}

DEFAULT_DIFFICULTY_LABELS = {
    0: "Tried",
    1: "Easy",
    2: "Medium-Easy",
    3: "Medium",
    4: "Medium-Hard",
    5: "Hard",
}

DEFAULT_BONUS_POINTS = {
    "streak-master": 50,
    "hard-mode": 100,
    "speed-demon": 30,
    "rising-star": 60,
    "consistent": 70,
}


@dataclass(frozen=True)
class LeaderboardConfig:
    sheet_url: str = ""
    title: str = "Master Coder Leaderboard"
    subtitle: str = ""
    auto_refresh_seconds: int = 0
    fetch_timeout: float = 12.0

    scoring: Mapping[int, int] = field(default_factory=lambda: dict(DEFAULT_SCORING))
    difficulty_labels: Mapping[int, str] = field(
        default_factory=lambda: dict(DEFAULT_DIFFICULTY_LABELS)
    )

    streak_master_days: int = 7
    speed_demon_threshold: int = 5
    # Read from settings but not consulted by the "consistent" badge, which
    # counts the days elapsed since the start of the current week instead.
    consistent_days: int = 7
    hard_mode_count: int = 3
    rising_star_points: int = 200
    bonus_points: Mapping[str, int] = field(
        default_factory=lambda: dict(DEFAULT_BONUS_POINTS)
    )

    avatars: Mapping[str, str] = field(default_factory=dict)
    default_avatar: str = "/avatars/default.svg"

    firestore_collection: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.sheet_url.strip())

    def points_for(self, difficulty: int) -> int:
        """Points for one exercise at *difficulty*; unknown levels score 0."""
        return int(self.scoring.get(difficulty, 0) or 0)

    def bonus_for(self, badge_id: str) -> int:
        return int(self.bonus_points.get(badge_id, 0) or 0)

    def avatar_for(self, name: str) -> str:
        return self.avatars.get(name) or self.default_avatar

    def label_for(self, difficulty: int) -> str:
        return self.difficulty_labels.get(difficulty, str(difficulty))


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid integer setting %r; using %s", value, default)
        return default


def _as_float(value, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid numeric setting %r; using %s", value, default)
        return default


def _int_keyed(mapping, defaults: Mapping[int, object], cast) -> dict:
    """Merge a secrets table keyed by difficulty over *defaults*.

    TOML tables always have string keys, so ``"5"`` is folded to ``5``.
    """
    merged = dict(defaults)
    for key, value in dict(mapping or {}).items():
        try:
            merged[int(key)] = cast(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid difficulty setting %r=%r", key, value)
    return merged


def config_from_mapping(settings: Mapping) -> LeaderboardConfig:
    """Build a :class:`LeaderboardConfig` from a flat settings mapping.

    Keys mirror the dataclass fields; ``badges`` may hold the badge
    thresholds and a ``bonus_points`` table, as in ``secrets.toml``.
    """
    base = LeaderboardConfig()
    badges = dict(settings.get("badges", {}) or {})

    bonus = dict(DEFAULT_BONUS_POINTS)
    for badge_id, points in dict(badges.get("bonus_points", {}) or {}).items():
        bonus[str(badge_id)] = _as_int(points, bonus.get(str(badge_id), 0))

    return LeaderboardConfig(
        sheet_url=str(settings.get("sheet_url", base.sheet_url) or "").strip(),
        title=str(settings.get("title", base.title) or base.title),
        subtitle=str(settings.get("subtitle", base.subtitle) or ""),
        auto_refresh_seconds=_as_int(
            settings.get("auto_refresh_seconds", base.auto_refresh_seconds),
            base.auto_refresh_seconds,
        ),
        fetch_timeout=_as_float(
            settings.get("fetch_timeout", base.fetch_timeout), base.fetch_timeout
        ),
        scoring=_int_keyed(settings.get("scoring"), DEFAULT_SCORING, int),
        difficulty_labels=_int_keyed(
            settings.get("difficulty_labels"), DEFAULT_DIFFICULTY_LABELS, str
        ),
        streak_master_days=_as_int(
            badges.get("streak_master_days", base.streak_master_days),
            base.streak_master_days,
        ),
        speed_demon_threshold=_as_int(
            badges.get("speed_demon_threshold", base.speed_demon_threshold),
            base.speed_demon_threshold,
        ),
        consistent_days=_as_int(
            badges.get("consistent_days", base.consistent_days), base.consistent_days
        ),
        hard_mode_count=_as_int(
            badges.get("hard_mode_count", base.hard_mode_count), base.hard_mode_count
        ),
        rising_star_points=_as_int(
            badges.get("rising_star_points", base.rising_star_points),
            base.rising_star_points,
        ),
        bonus_points=bonus,
        avatars={str(k): str(v) for k, v in dict(settings.get("avatars", {}) or {}).items()},
        default_avatar=str(settings.get("default_avatar", base.default_avatar)),
        firestore_collection=str(settings.get("firestore_collection", "") or ""),
    )


def load_config() -> LeaderboardConfig:
    """Load settings from Streamlit secrets or environment variables."""
    try:
        settings = dict(st.secrets["leaderboard"])
    except Exception:
        settings = {
            "sheet_url": os.environ.get("LEADERBOARD_SHEET_URL", ""),
            "title": os.environ.get("LEADERBOARD_TITLE", LeaderboardConfig.title),
            "subtitle": os.environ.get("LEADERBOARD_SUBTITLE", ""),
            "auto_refresh_seconds": os.environ.get("LEADERBOARD_REFRESH_SECONDS", 0),
            "fetch_timeout": os.environ.get("LEADERBOARD_FETCH_TIMEOUT", 12),
            "firestore_collection": os.environ.get("LEADERBOARD_FIRESTORE_COLLECTION", ""),
        }
    return config_from_mapping(settings)
