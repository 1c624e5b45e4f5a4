"""Turn raw exercise-log rows into validated :class:`ExerciseEntry` records."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "student", "difficulty")
OPTIONAL_COLUMNS = ("notes",)

MIN_DIFFICULTY = 0
MAX_DIFFICULTY = 5

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
# Day-first formats, tried in order after ISO. A two-digit year is always 20YY.
_DAY_FIRST_DATES = (
    re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"),
    re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})$"),
    re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$"),
)
_INTEGER = re.compile(r"^[+-]?\d+(?:\.0*)?$")


@dataclass(frozen=True)
class ExerciseEntry:
    date: str  # YYYY-MM-DD
    student: str
    difficulty: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class ParseResult:
    entries: tuple
    rejected: int = 0


def _text(value) -> str:
    """Coerce a CSV cell to stripped text; blanks and NaN become ``""``."""
    if isinstance(value, str):
        return value.strip()
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def _is_calendar_date(year: int, month: int, day: int) -> bool:
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def normalize_date(value) -> Optional[str]:
    """Normalize a submission date to ``YYYY-MM-DD`` or return ``None``.

    Accepted, first match wins:
      - ``YYYY-MM-DD`` (returned unchanged)
      - ``DD/MM/YYYY``
      - ``DD/MM/YY`` (always read as ``20YY``)
      - ``DD.MM.YYYY``

    Day and month may be one or two digits. Strings that match a pattern but
    name an impossible day (``31/02/2024``) are rejected as well.
    """
    cleaned = _text(value)
    if not cleaned:
        return None

    iso = _ISO_DATE.match(cleaned)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
        return cleaned if _is_calendar_date(year, month, day) else None

    for pattern in _DAY_FIRST_DATES:
        match = pattern.match(cleaned)
        if not match:
            continue
        day_s, month_s, year_s = match.groups()
        if len(year_s) == 2:
            year_s = f"20{year_s}"
        if not _is_calendar_date(int(year_s), int(month_s), int(day_s)):
            return None
        return f"{year_s}-{month_s.zfill(2)}-{day_s.zfill(2)}"

    return None


def parse_difficulty(value) -> Optional[int]:
    """Return the difficulty as an int in 0-5, or ``None`` if invalid.

    Whole numbers written as ``"3"`` or ``"3.0"`` are accepted; ``"3.5"``,
    ``"abc"`` and out-of-range values are not.
    """
    cleaned = _text(value)
    # Stricter than a leading-digits parse: "3abc" and "3.5" are not read as 3.
    if not _INTEGER.match(cleaned):
        return None
    level = int(float(cleaned))
    if level < MIN_DIFFICULTY or level > MAX_DIFFICULTY:
        return None
    return level


def normalize_row(row: Mapping) -> Optional[ExerciseEntry]:
    """Validate one raw row; ``None`` means the row is dropped."""
    entry_date = normalize_date(row.get("date"))
    student = _text(row.get("student"))
    difficulty = parse_difficulty(row.get("difficulty"))

    if entry_date is None or not student or difficulty is None:
        return None

    notes = _text(row.get("notes")) or None
    return ExerciseEntry(date=entry_date, student=student, difficulty=difficulty, notes=notes)


def col_lookup(df: pd.DataFrame, name: str, default=None) -> str:
    """Find the actual column name for a logical key, case/space/underscore-insensitive."""
    key = name.lower().replace(" ", "").replace("_", "")
    for c in df.columns:
        if str(c).lower().replace(" ", "").replace("_", "") == key:
            return c
    return default


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename the log's headers to ``date``/``student``/``difficulty``/``notes``.

    Missing columns are added empty so every row simply fails validation
    instead of raising a ``KeyError``.
    """
    df = df.copy()
    renames = {}
    for name in REQUIRED_COLUMNS + OPTIONAL_COLUMNS:
        actual = col_lookup(df, name)
        if actual is not None:
            renames[actual] = name
    df = df.rename(columns=renames)

    for name in REQUIRED_COLUMNS + OPTIONAL_COLUMNS:
        if name not in df.columns:
            df[name] = ""
    return df


def _iter_records(rows) -> Iterable[Mapping]:
    if isinstance(rows, pd.DataFrame):
        return normalize_columns(rows).to_dict(orient="records")
    return rows


def parse_rows(rows) -> ParseResult:
    """Normalize a whole batch, counting the rows that were dropped.

    *rows* is either a DataFrame straight from the row source or any
    iterable of mappings with ``date``/``student``/``difficulty`` keys.
    """
    entries = []
    rejected = 0
    for row in _iter_records(rows):
        entry = normalize_row(row)
        if entry is None:
            rejected += 1
        else:
            entries.append(entry)

    if rejected:
        logger.warning("Skipped %d malformed exercise row(s)", rejected)
    return ParseResult(entries=tuple(entries), rejected=rejected)
