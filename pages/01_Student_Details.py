# pages/01_Student_Details.py
from __future__ import annotations

import os, sys
import pandas as pd
import streamlit as st

# --- Make imports work when this file lives in /pages ---
APP_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from config import load_config
from refresh import session_refresher
from student_stats import difficulty_breakdown, recent_activity

CONFIG = load_config()

st.set_page_config(page_title="Student Details", page_icon="🎯", layout="wide")
st.title("🎯 Student Details")

refresher = session_refresher(CONFIG)

state = refresher.state
if state.error:
    st.error(state.error)
if not state.leaderboard:
    st.warning("No data yet.")
    st.stop()

names = [entry.name for entry in state.leaderboard]
choice = st.selectbox("Student", names, format_func=lambda n: f"#{names.index(n) + 1} {n}")
entry = state.leaderboard[names.index(choice)]

col1, col2, col3, col4 = st.columns(4)
col1.metric("Total score", entry.total_score, delta=entry.rank_change, help="Delta shows rank change")
col2.metric("This week", entry.weekly_score)
col3.metric("Current streak", f"{entry.current_streak} days")
col4.metric("Longest streak", f"{entry.longest_streak} days")
st.caption(
    f"{entry.exercise_count} exercises · {entry.base_score} base points · "
    f"{entry.badge_bonus_points} badge bonus · {entry.exercises_today} today"
)

# Badges
st.subheader("Badges")
for badge in entry.potential_badges:
    status = "✅" if badge.earned else "⬜"
    st.write(f"{status} {badge.icon} **{badge.name}** (+{badge.bonus_points}): {badge.description}")
    if badge.progress is not None:
        st.progress(int(badge.progress))

# Activity (Last 14 Days)
st.subheader("Activity (Last 14 Days)")
activity = pd.DataFrame(recent_activity(entry), columns=["Date", "Exercises"]).set_index("Date")
st.bar_chart(activity)

# Breakdown by difficulty
st.subheader("By difficulty")
breakdown = pd.DataFrame(difficulty_breakdown(entry, CONFIG))
if not breakdown.empty:
    st.table(breakdown.rename(columns={
        "difficulty": "Level",
        "label": "Label",
        "exercises": "Exercises",
        "points": "Points",
    }))

# Recent exercises
st.subheader("Recent exercises")
recent = pd.DataFrame(
    [
        {
            "Date": e.date,
            "Difficulty": CONFIG.label_for(e.difficulty),
            "Points": CONFIG.points_for(e.difficulty),
            "Notes": e.notes or "",
        }
        for e in entry.recent_exercises[:5]
    ]
)
st.table(recent)
