"""One refresh cycle: fetch, normalize, aggregate, rank, diff ranks."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

import pandas as pd
import streamlit as st

from config import LeaderboardConfig
from entry_parsing import parse_rows
from leaderboard_logic import ALL_TIME, LeaderboardEntry, build_leaderboard
from rank_store import RankSnapshotSync, make_rank_store
from scores_loading import SourceUnavailable, load_exercise_rows
from student_stats import StudentStats, calculate_student_stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshState:
    leaderboard: Tuple[LeaderboardEntry, ...] = ()
    stats: Tuple[StudentStats, ...] = ()
    is_loading: bool = False
    error: Optional[str] = None
    last_updated: Optional[datetime] = None
    is_demo: bool = False
    rejected_rows: int = 0

    @property
    def is_empty(self) -> bool:
        """No data (as opposed to a failed fetch)."""
        return not self.leaderboard and self.error is None


@dataclass(frozen=True)
class _Computed:
    leaderboard: List[LeaderboardEntry]
    stats: List[StudentStats]
    is_demo: bool
    rejected_rows: int = 0


class LeaderboardRefresher:
    """Owns the latest leaderboard for one session.

    :meth:`refresh` may be called again while a previous call is still
    running (an auto-refresh firing during a manual one). Only the most
    recently started call publishes its result and clears ``is_loading``.
    A failed fetch keeps the last good leaderboard and records the error.
    """

    def __init__(
        self,
        config: LeaderboardConfig,
        rank_sync: RankSnapshotSync,
        row_source: Callable[[LeaderboardConfig], Tuple[pd.DataFrame, bool]] = load_exercise_rows,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.rank_sync = rank_sync
        self.row_source = row_source
        self.clock = clock
        self._lock = threading.Lock()
        self._generation = 0
        self._state = RefreshState()

    @property
    def state(self) -> RefreshState:
        with self._lock:
            return self._state

    def _compute(self, today: date) -> _Computed:
        rows, is_demo = self.row_source(self.config)
        parsed = parse_rows(rows)
        stats = calculate_student_stats(parsed.entries, self.config, today=today)
        board = build_leaderboard(stats, ALL_TIME)
        return _Computed(board, stats, is_demo, parsed.rejected)

    def refresh(self) -> RefreshState:
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._state = replace(self._state, is_loading=True, error=None)

        now = self.clock()
        try:
            computed = self._compute(now.date())
        except SourceUnavailable as exc:
            logger.error("Leaderboard refresh failed: %s", exc)
            with self._lock:
                if generation == self._generation:
                    self._state = replace(self._state, is_loading=False, error=str(exc))
                return self._state

        with self._lock:
            if generation != self._generation:
                return self._state
            board = self.rank_sync.sync(computed.leaderboard)
            self._state = RefreshState(
                leaderboard=tuple(board),
                stats=tuple(computed.stats),
                is_loading=False,
                error=None,
                last_updated=now,
                is_demo=computed.is_demo,
                rejected_rows=computed.rejected_rows,
            )
            return self._state


def session_refresher(config: LeaderboardConfig) -> LeaderboardRefresher:
    """Return this browser session's refresher, creating it on first use.

    Keeping it in ``st.session_state`` makes the rank-snapshot bootstrap
    apply once per session rather than once per rerun.
    """
    if "refresher" not in st.session_state:
        store = make_rank_store(config.firestore_collection)
        st.session_state["refresher"] = LeaderboardRefresher(config, RankSnapshotSync(store))
    refresher = st.session_state["refresher"]
    if refresher.state.last_updated is None and refresher.state.error is None:
        refresher.refresh()
    return refresher


def refresh_if_stale(refresher: LeaderboardRefresher, max_age_seconds: float) -> bool:
    """Refresh only when the last successful load is older than *max_age_seconds*.

    The auto-refresh fragment also runs as part of every full rerun, right
    after the first load or a Refresh click; those runs must not fetch again.
    """
    last_updated = refresher.state.last_updated
    if last_updated is not None:
        age = (refresher.clock() - last_updated).total_seconds()
        if age < max_age_seconds:
            return False
    refresher.refresh()
    return True
