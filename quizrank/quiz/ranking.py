"""
Daily quiz ranking.

Every new daily attempt triggers a full re-rank of that date: earlier
attempts can move down and their bonus points must follow.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase

from quizrank.config import RANK_BONUSES, RANK_RECOMPUTE_MAX_PASSES
from quizrank.quiz import database
from quizrank.quiz.models import format_quiz_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedAttempt:
    rank: int
    bonus: int
    points: int
    attempt: dict


def rank_key(attempt: dict) -> tuple:
    """Higher score first, then lower time, then earlier attempt"""
    return (
        -attempt.get("score", 0),
        attempt.get("time_taken", 0),
        attempt.get("attempted_at"),
        attempt.get("student_id", ""),
    )


def bonus_for_rank(rank: int) -> int:
    if 1 <= rank <= len(RANK_BONUSES):
        return RANK_BONUSES[rank - 1]
    return 0


def rank_attempts(attempts: Sequence[dict]) -> List[RankedAttempt]:
    ranked = []
    for position, attempt in enumerate(sorted(attempts, key=rank_key), start=1):
        bonus = bonus_for_rank(position)
        ranked.append(RankedAttempt(
            rank=position,
            bonus=bonus,
            points=bonus + attempt.get("score", 0),
            attempt=attempt,
        ))
    return ranked


class DateLocks:
    """
    One asyncio.Lock per quiz date, so a date has a single rank writer.
    A date's lock is dropped once nobody holds or waits on it.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, date_key: str):
        lock = self._locks.get(date_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[date_key] = lock
        self._holders[date_key] = self._holders.get(date_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[date_key] -= 1
            if not self._holders[date_key]:
                del self._holders[date_key]
                del self._locks[date_key]


rank_locks = DateLocks()


async def recompute_ranks(db: AsyncIOMotorDatabase, quiz_date: date) -> List[RankedAttempt]:
    """
    Re-rank every daily attempt for the date and persist the new points.

    After writing, the attempt count is read again; if attempts arrived
    meanwhile (another worker process) the pass is repeated so the final
    write covers them.
    """
    date_key = format_quiz_date(quiz_date)

    async with rank_locks.hold(date_key):
        ranked: List[RankedAttempt] = []
        for _ in range(RANK_RECOMPUTE_MAX_PASSES):
            attempts = await database.list_daily_attempts(db, date_key)
            ranked = rank_attempts(attempts)

            for entry in ranked:
                await database.set_attempt_points(db, entry.attempt["attempt_id"], entry.points)
                entry.attempt["points"] = entry.points

            if await database.count_daily_attempts(db, date_key) == len(attempts):
                break
        else:
            logger.warning("Ranking for %s still changing after %d passes", date_key, RANK_RECOMPUTE_MAX_PASSES)

    logger.info("Recomputed ranks for %s (%d attempts)", date_key, len(ranked))
    return ranked
