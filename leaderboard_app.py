# leaderboard_app.py
from __future__ import annotations

import logging
from datetime import timedelta

import streamlit as st

from config import load_config
from leaderboard_logic import ALL_TIME, WEEKLY, build_leaderboard, leaderboard_to_frame
from refresh import refresh_if_stale, session_refresher

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

CONFIG = load_config()

st.set_page_config(page_title=CONFIG.title, page_icon="🏆", layout="wide")


def refresh_all():
    refresher.refresh()


refresher = session_refresher(CONFIG)

st.title(f"🏆 {CONFIG.title}")
if CONFIG.subtitle:
    st.caption(CONFIG.subtitle)


def render_board():
    state = refresher.state

    col1, col2 = st.columns([4, 1])
    with col1:
        if state.last_updated:
            st.write(f"Last updated: {state.last_updated:%d/%m/%Y %H:%M}")
        if state.is_demo:
            st.info("Showing demo data. Set `leaderboard.sheet_url` in secrets to use your sheet.")
    with col2:
        st.button("🔄 Refresh", width="stretch", on_click=refresh_all)

    if state.error:
        st.error(state.error)
    if state.rejected_rows:
        st.caption(f"{state.rejected_rows} malformed row(s) were skipped.")

    if state.is_empty:
        st.warning("No data yet. Add some exercise entries to the sheet to see the leaderboard.")
        return
    if not state.leaderboard:
        return

    tabs = st.tabs(["All Time", "This Week"])
    column_config = {"Avatar": st.column_config.ImageColumn("Avatar")}

    with tabs[0]:
        lb = leaderboard_to_frame(state.leaderboard, ALL_TIME, CONFIG)
        st.dataframe(lb, width="stretch", hide_index=True, column_config=column_config)
        st.download_button(
            "⬇️ Download CSV (All Time)",
            data=lb.to_csv(index=False).encode("utf-8"),
            file_name="leaderboard_all_time.csv",
            mime="text/csv",
        )

    with tabs[1]:
        weekly = build_leaderboard(state.stats, WEEKLY)
        lb = leaderboard_to_frame(weekly, WEEKLY, CONFIG)
        st.dataframe(lb, width="stretch", hide_index=True, column_config=column_config)
        st.download_button(
            "⬇️ Download CSV (This Week)",
            data=lb.to_csv(index=False).encode("utf-8"),
            file_name="leaderboard_weekly.csv",
            mime="text/csv",
        )


if CONFIG.auto_refresh_seconds > 0:

    @st.fragment(run_every=timedelta(seconds=CONFIG.auto_refresh_seconds))
    def auto_refreshing_board():
        # Timer ticks arrive about one interval after the last load; anything
        # sooner is the fragment running inside a full rerun.
        refresh_if_stale(refresher, CONFIG.auto_refresh_seconds / 2)
        render_board()

    auto_refreshing_board()
else:
    render_board()
