import asyncio
import logging
from datetime import date, datetime

from helpers import add_daily_attempt
from quizrank.config import RANK_RECOMPUTE_MAX_PASSES
from quizrank.quiz import database
from quizrank.quiz.ranking import DateLocks, bonus_for_rank, rank_attempts, rank_locks, recompute_ranks

QUIZ_DATE = date(2024, 5, 1)
DATE_KEY = "2024-05-01"


def _attempt(student_id, score, time_taken, minute=0):
    return {
        "student_id": student_id,
        "score": score,
        "time_taken": time_taken,
        "attempted_at": datetime(2024, 5, 1, 9, minute),
    }


def test_bonus_table():
    assert [bonus_for_rank(r) for r in range(1, 6)] == [5, 3, 1, 0, 0]


def test_lower_time_breaks_score_tie():
    ranked = rank_attempts([
        _attempt("a", 8, 50),
        _attempt("b", 8, 40),
        _attempt("c", 5, 30),
    ])
    assert [r.attempt["student_id"] for r in ranked] == ["b", "a", "c"]
    assert [r.rank for r in ranked] == [1, 2, 3]
    assert [r.points for r in ranked] == [13, 11, 6]


def test_earlier_attempt_breaks_full_tie():
    ranked = rank_attempts([
        _attempt("late", 7, 30, minute=5),
        _attempt("early", 7, 30, minute=1),
    ])
    assert [r.attempt["student_id"] for r in ranked] == ["early", "late"]


def test_outside_top_three_gets_score_only():
    ranked = rank_attempts([_attempt(str(i), 10 - i, 10) for i in range(5)])
    assert [r.bonus for r in ranked] == [5, 3, 1, 0, 0]
    assert ranked[4].points == 6


async def test_recompute_persists_points(db):
    await add_daily_attempt(db, "a", DATE_KEY, 8, 50)
    await add_daily_attempt(db, "b", DATE_KEY, 8, 40)
    await add_daily_attempt(db, "c", DATE_KEY, 5, 30)

    await recompute_ranks(db, QUIZ_DATE)

    points = {a["student_id"]: a["points"] for a in await database.list_daily_attempts(db, DATE_KEY)}
    assert points == {"a": 11, "b": 13, "c": 6}


async def test_new_entrant_reranks_everyone(db):
    await add_daily_attempt(db, "a", DATE_KEY, 8, 50)
    await add_daily_attempt(db, "b", DATE_KEY, 8, 40)
    await add_daily_attempt(db, "c", DATE_KEY, 5, 30)
    await recompute_ranks(db, QUIZ_DATE)

    await add_daily_attempt(db, "d", DATE_KEY, 9, 60)
    ranked = await recompute_ranks(db, QUIZ_DATE)

    assert [r.attempt["student_id"] for r in ranked] == ["d", "b", "a", "c"]
    points = {a["student_id"]: a["points"] for a in await database.list_daily_attempts(db, DATE_KEY)}
    assert points == {"d": 14, "b": 11, "a": 9, "c": 5}


async def test_recompute_only_touches_its_date(db):
    await add_daily_attempt(db, "a", DATE_KEY, 8, 50)
    await add_daily_attempt(db, "a", "2024-05-02", 3, 20, points=99)

    await recompute_ranks(db, QUIZ_DATE)

    other = await database.get_daily_attempt(db, "a", "2024-05-02")
    assert other["points"] == 99


async def test_attempt_arriving_mid_recompute_is_ranked(db, monkeypatch):
    await add_daily_attempt(db, "a", DATE_KEY, 8, 50)
    await add_daily_attempt(db, "b", DATE_KEY, 8, 40)
    real_count = database.count_daily_attempts
    counts = []

    async def count_after_late_arrival(db_, date_key):
        if not counts:
            # another worker commits after this pass listed the date
            await add_daily_attempt(db_, "late", date_key, 9, 10)
        counts.append(await real_count(db_, date_key))
        return counts[-1]

    monkeypatch.setattr(database, "count_daily_attempts", count_after_late_arrival)

    ranked = await recompute_ranks(db, QUIZ_DATE)

    assert counts == [3, 3]
    assert [r.attempt["student_id"] for r in ranked] == ["late", "b", "a"]
    points = {a["student_id"]: a["points"] for a in await database.list_daily_attempts(db, DATE_KEY)}
    assert points == {"late": 14, "b": 11, "a": 9}


async def test_recompute_stops_after_max_passes(db, monkeypatch, caplog):
    await add_daily_attempt(db, "a", DATE_KEY, 8, 50)
    passes = []

    async def never_settles(db_, date_key):
        passes.append(date_key)
        return 1000

    monkeypatch.setattr(database, "count_daily_attempts", never_settles)

    with caplog.at_level(logging.WARNING, logger="quizrank.quiz.ranking"):
        ranked = await recompute_ranks(db, QUIZ_DATE)

    assert len(passes) == RANK_RECOMPUTE_MAX_PASSES
    assert ranked[0].points == 13
    assert "still changing" in caplog.text


async def test_date_lock_dropped_after_recompute(db):
    await add_daily_attempt(db, "a", DATE_KEY, 8, 50)

    await asyncio.gather(recompute_ranks(db, QUIZ_DATE), recompute_ranks(db, QUIZ_DATE))

    assert len(rank_locks) == 0


async def test_date_locks_serialize_writers_per_date():
    locks = DateLocks()
    order = []

    async def writer(name):
        async with locks.hold(DATE_KEY):
            order.append(f"{name} in")
            await asyncio.sleep(0)
            order.append(f"{name} out")

    await asyncio.gather(writer("x"), writer("y"))

    assert order == ["x in", "x out", "y in", "y out"]
    assert len(locks) == 0
