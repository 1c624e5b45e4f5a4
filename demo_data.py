"""Random sample log used when no Google Sheet is configured."""

from __future__ import annotations

import random
from datetime import date, timedelta
from typing import Optional

import pandas as pd

DEMO_STUDENTS = ["יוסי", "דנה", "מיכל", "אבי", "שרה", "דוד", "רחל", "יעקב"]


def generate_demo_rows(today: Optional[date] = None, rng: Optional[random.Random] = None) -> pd.DataFrame:
    """Build a raw exercise log covering the last 14 days.

    Each demo student gets 5-19 submissions at random difficulties. Cells are
    text, exactly like a sheet export, so the rows go through the same
    normalizer as real data.
    """
    today = today or date.today()
    rng = rng or random.Random()

    rows = []
    for student in DEMO_STUDENTS:
        for _ in range(rng.randint(5, 19)):
            day = today - timedelta(days=rng.randrange(14))
            rows.append(
                {
                    "date": day.isoformat(),
                    "student": student,
                    "difficulty": str(rng.randint(0, 5)),
                    "notes": "practice exercise" if rng.random() > 0.7 else "",
                }
            )
    return pd.DataFrame(rows, columns=["date", "student", "difficulty", "notes"])
