from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

import refresh

APP_PATH = str(Path(__file__).resolve().parents[1] / "leaderboard_app.py")


@pytest.fixture
def refresh_calls(monkeypatch):
    calls = []
    original = refresh.LeaderboardRefresher.refresh

    def counting_refresh(self):
        calls.append(self)
        return original(self)

    monkeypatch.setattr(refresh.LeaderboardRefresher, "refresh", counting_refresh)
    monkeypatch.delenv("LEADERBOARD_SHEET_URL", raising=False)
    monkeypatch.delenv("LEADERBOARD_FIRESTORE_COLLECTION", raising=False)
    monkeypatch.delenv("LEADERBOARD_REFRESH_SECONDS", raising=False)
    return calls


def test_first_page_load_refreshes_once(refresh_calls):
    at = AppTest.from_file(APP_PATH, default_timeout=30).run()

    assert not at.exception
    assert len(refresh_calls) == 1
    assert len(at.dataframe) == 2


def test_auto_refresh_does_not_refresh_again_on_page_load(monkeypatch, refresh_calls):
    monkeypatch.setenv("LEADERBOARD_REFRESH_SECONDS", "600")

    at = AppTest.from_file(APP_PATH, default_timeout=30).run()

    assert not at.exception
    assert len(refresh_calls) == 1


def test_refresh_click_refreshes_once_with_auto_refresh(monkeypatch, refresh_calls):
    monkeypatch.setenv("LEADERBOARD_REFRESH_SECONDS", "600")
    at = AppTest.from_file(APP_PATH, default_timeout=30).run()

    at.button[0].click().run()

    assert not at.exception
    assert len(refresh_calls) == 2
