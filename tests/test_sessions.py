from datetime import date, datetime, timedelta, timezone

import pytest

from quizrank.quiz.errors import ValidationFailure
from quizrank.quiz.sessions import get_session, is_live, upsert_session

QUIZ_DATE = date(2024, 5, 1)
START = datetime(2024, 5, 1, 9, 0)
END = datetime(2024, 5, 1, 10, 0)


def test_live_window_is_start_inclusive_end_exclusive():
    assert not is_live(START, END, START - timedelta(milliseconds=1))
    assert is_live(START, END, START)
    assert is_live(START, END, END - timedelta(milliseconds=1))
    assert not is_live(START, END, END)
    assert not is_live(START, END, END + timedelta(minutes=1))


def test_aware_times_compare_in_utc():
    ist = timezone(timedelta(hours=5, minutes=30))
    now = datetime(2024, 5, 1, 15, 0, tzinfo=ist)  # 09:30 UTC
    assert is_live(START, END, now)


async def test_unconfigured_date(db):
    state = await get_session(db, QUIZ_DATE, now=START)

    assert not state.configured
    assert not state.is_live
    body = state.to_json()
    assert body["date"] == "2024-05-01"
    assert "startAt" not in body


async def test_upsert_then_query(db):
    await upsert_session(db, QUIZ_DATE, START, END)

    state = await get_session(db, QUIZ_DATE, now=datetime(2024, 5, 1, 9, 30))
    assert state.is_live
    assert state.to_json()["startAt"] == "2024-05-01T09:00:00.000Z"


async def test_upsert_replaces_window(db):
    await upsert_session(db, QUIZ_DATE, START, END)
    await upsert_session(db, QUIZ_DATE, START + timedelta(hours=2), END + timedelta(hours=2))

    assert await db.daily_quiz_sessions.count_documents({}) == 1
    state = await get_session(db, QUIZ_DATE, now=datetime(2024, 5, 1, 9, 30))
    assert not state.is_live


async def test_start_must_precede_end(db):
    with pytest.raises(ValidationFailure):
        await upsert_session(db, QUIZ_DATE, END, START)
    with pytest.raises(ValidationFailure):
        await upsert_session(db, QUIZ_DATE, START, START)
