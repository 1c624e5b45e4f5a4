from datetime import datetime, timedelta

import pandas as pd

from config import LeaderboardConfig
from rank_store import InMemoryRankStore, RankSnapshotSync
from refresh import LeaderboardRefresher
from scores_loading import SourceUnavailable

NOW = datetime(2024, 3, 20, 9, 30)


def _rows(*records):
    return pd.DataFrame(list(records), columns=["date", "student", "difficulty", "notes"])


class ScriptedSource:
    """Row source that replays a list of results (frames or exceptions)."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self, config):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result, False


def _refresher(source, store=None):
    return LeaderboardRefresher(
        LeaderboardConfig(sheet_url="https://example.com"),
        RankSnapshotSync(store or InMemoryRankStore()),
        row_source=source,
        clock=lambda: NOW,
    )


def test_refresh_builds_ranked_board():
    source = ScriptedSource(
        _rows(
            ("2024-03-20", "Ava", "1", ""),
            ("2024-03-19", "Ben", "5", ""),
            ("not a date", "Ben", "5", ""),
        )
    )
    refresher = _refresher(source)

    state = refresher.refresh()

    assert [(e.rank, e.name) for e in state.leaderboard] == [(1, "Ben"), (2, "Ava")]
    assert state.rejected_rows == 1
    assert state.last_updated == NOW
    assert not state.is_loading
    assert state.error is None
    assert {s.name for s in state.stats} == {"Ava", "Ben"}


def test_failed_fetch_keeps_previous_board():
    source = ScriptedSource(
        _rows(("2024-03-20", "Ava", "1", "")),
        SourceUnavailable("Failed to fetch data: 503 Error"),
    )
    refresher = _refresher(source)
    good = refresher.refresh()

    failed = refresher.refresh()

    assert failed.error == "Failed to fetch data: 503 Error"
    assert failed.leaderboard == good.leaderboard
    assert failed.last_updated == good.last_updated
    assert not failed.is_loading
    assert not failed.is_empty


def test_empty_log_is_not_an_error():
    refresher = _refresher(ScriptedSource(_rows()))

    state = refresher.refresh()

    assert state.leaderboard == ()
    assert state.error is None
    assert state.is_empty


def test_rank_changes_between_refreshes():
    store = InMemoryRankStore()
    source = ScriptedSource(
        _rows(("2024-03-20", "Ava", "3", ""), ("2024-03-20", "Ben", "1", "")),
        _rows(("2024-03-20", "Ava", "3", ""), ("2024-03-20", "Ben", "5", "")),
    )
    refresher = _refresher(source, store)

    first = refresher.refresh()
    assert all(e.rank_change is None for e in first.leaderboard)
    assert store.load() == {"Ava": 1, "Ben": 2}

    second = refresher.refresh()
    assert {e.name: e.rank_change for e in second.leaderboard} == {"Ben": 1, "Ava": -1}
    assert store.load() == {"Ben": 1, "Ava": 2}


def test_latest_started_refresh_wins():
    refresher = None
    newer = _rows(("2024-03-20", "Cara", "2", ""))

    def source(config):
        if source.calls == 0:
            source.calls += 1
            # A second refresh starts and finishes while this one is in flight.
            refresher.refresh()
            return _rows(("2024-03-20", "Ava", "1", "")), False
        source.calls += 1
        return newer, False

    source.calls = 0
    refresher = _refresher(source)

    state = refresher.refresh()

    assert [e.name for e in state.leaderboard] == ["Cara"]
    assert not state.is_loading


def test_session_refresher_is_created_once(monkeypatch):
    import refresh

    monkeypatch.setattr(refresh.st, "session_state", {})
    cfg = LeaderboardConfig()

    first = refresh.session_refresher(cfg)
    second = refresh.session_refresher(cfg)

    assert first is second
    assert first.state.is_demo
    assert first.state.leaderboard
    assert isinstance(first.rank_sync.store, InMemoryRankStore)


def test_refresh_if_stale_skips_a_recent_load():
    from refresh import refresh_if_stale

    clock = {"now": NOW}
    source = ScriptedSource(
        _rows(("2024-03-20", "Ava", "1", "")),
        _rows(("2024-03-20", "Ava", "1", "")),
    )
    refresher = LeaderboardRefresher(
        LeaderboardConfig(sheet_url="https://example.com"),
        RankSnapshotSync(InMemoryRankStore()),
        row_source=source,
        clock=lambda: clock["now"],
    )

    assert refresh_if_stale(refresher, 300)
    assert not refresh_if_stale(refresher, 300)
    assert source.calls == 1

    clock["now"] = NOW + timedelta(seconds=301)
    assert refresh_if_stale(refresher, 300)
    assert source.calls == 2
