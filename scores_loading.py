# scores_loading.py
from __future__ import annotations

import io
import logging
from typing import Tuple

import pandas as pd
import requests

from config import LeaderboardConfig
from demo_data import generate_demo_rows
from entry_parsing import normalize_columns

logger = logging.getLogger(__name__)

_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "User-Agent": "Mozilla/5.0 (compatible; exercise-leaderboard/1.0; +streamlit)",
}


class SourceUnavailable(RuntimeError):
    """The exercise log could not be fetched or read."""


def fetch_exercise_csv(url: str, timeout: float = 12) -> pd.DataFrame:
    """Download the published sheet and parse it as text columns."""
    if not url:
        raise SourceUnavailable("No Google Sheet URL is configured.")

    try:
        resp = requests.get(url, timeout=timeout, headers=_HEADERS)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.exception("Failed to fetch exercise log from %s", url)
        raise SourceUnavailable(f"Failed to fetch data: {exc}") from exc

    txt = resp.text
    if "<html" in txt[:512].lower():
        raise SourceUnavailable(
            "Expected CSV but received HTML. Publish the sheet to the web "
            "as comma-separated values and use that link."
        )
    if not txt.strip():
        return pd.DataFrame()

    try:
        return pd.read_csv(io.StringIO(txt), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        logger.exception("Exercise log at %s is not valid CSV", url)
        raise SourceUnavailable(f"Could not read the exercise log: {exc}") from exc


def load_exercise_rows(config: LeaderboardConfig) -> Tuple[pd.DataFrame, bool]:
    """Return ``(rows, is_demo)`` with canonical column names.

    Without a configured sheet the demo log is returned instead.
    """
    if not config.is_configured:
        logger.info("No sheet URL configured; using demo data")
        return normalize_columns(generate_demo_rows()), True

    df = fetch_exercise_csv(config.sheet_url, timeout=config.fetch_timeout)
    return normalize_columns(df), False
