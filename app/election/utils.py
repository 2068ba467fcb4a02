"""
Utilities for the election app.
"""

import json
import pytz

from datetime import datetime
from app.config import TIMEZONE, POST_WINDOW_SECONDS


# -- JSON manipulation --


def from_json(value):
    if value == "" or value is None:
        return None

    if isinstance(value, str):
        try:
            return json.loads(value)
        except Exception as e:
            raise ValueError(
                "election.utils error: in from_json, value is not JSON parseable"
            ) from e

    return value


# -- Datetime --


def tz_now():
    tz = pytz.timezone(TIMEZONE)
    return datetime.now(tz)


def as_aware(value: datetime):
    """
    Naive datetimes coming back from the database were
    written in TIMEZONE, so they are localized to it.
    """
    if value.tzinfo is None:
        return pytz.timezone(TIMEZONE).localize(value)
    return value


def remaining_time(post_start_at: datetime | None, window: int = POST_WINDOW_SECONDS, now: datetime = None) -> int:
    """
    Whole seconds left in a post window, recomputed from the
    wall clock instead of being decremented tick by tick.
    """
    if post_start_at is None:
        return 0
    now = now or tz_now()
    elapsed = (as_aware(now) - as_aware(post_start_at)).total_seconds()
    return max(0, window - int(max(elapsed, 0)))


# -- CSV --


def read_student_rows(rows: list[dict]):
    """
    Normalizes the rows of a student CSV export.

    Returns the valid students and a list of row errors,
    row numbers count the header line.
    """
    students = []
    errors = []
    for index, row in enumerate(rows):
        # Extra cells land under a None key
        row = {key.strip(): (value or "").strip() for key, value in row.items() if key is not None}
        student = {
            "register_no": row.get("registerNo"),
            "name": row.get("name"),
            "password": row.get("Password") or row.get("password"),
            "year": row.get("year"),
            "department": row.get("department"),
        }
        if not all(student.values()):
            errors.append(f"Row {index + 2}: Missing required fields")
            continue
        students.append(student)
    return students, errors


# -- Posts --


def post_label(post) -> str:
    """Plain string name of a post, for enum members and raw strings alike."""
    return getattr(post, "value", post)
