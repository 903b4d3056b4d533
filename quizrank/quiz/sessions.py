"""Daily quiz live windows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from quizrank.quiz import database
from quizrank.quiz.errors import ValidationFailure
from quizrank.quiz.models import format_quiz_date, isoformat_utc, to_naive_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    quiz_date: date
    start_at: Optional[datetime]
    end_at: Optional[datetime]
    now: datetime
    is_live: bool

    @property
    def configured(self) -> bool:
        return self.start_at is not None and self.end_at is not None

    def to_json(self) -> dict:
        body = {
            "date": format_quiz_date(self.quiz_date),
            "now": isoformat_utc(self.now),
            "isLive": self.is_live,
        }
        if self.configured:
            body["startAt"] = isoformat_utc(self.start_at)
            body["endAt"] = isoformat_utc(self.end_at)
        return body


def is_live(start_at: datetime, end_at: datetime, now: datetime) -> bool:
    """Start inclusive, end exclusive"""
    return to_naive_utc(start_at) <= to_naive_utc(now) < to_naive_utc(end_at)


async def get_session(db: AsyncIOMotorDatabase, quiz_date: date, now: Optional[datetime] = None) -> SessionState:
    now = to_naive_utc(now) if now else utc_now()
    doc = await database.get_session_doc(db, format_quiz_date(quiz_date))
    if not doc:
        return SessionState(quiz_date, None, None, now, False)

    return SessionState(
        quiz_date=quiz_date,
        start_at=doc["start_at"],
        end_at=doc["end_at"],
        now=now,
        is_live=is_live(doc["start_at"], doc["end_at"], now),
    )


async def upsert_session(db: AsyncIOMotorDatabase, quiz_date: date, start_at: datetime, end_at: datetime) -> dict:
    """Create or replace the live window for a date"""
    start_at = to_naive_utc(start_at)
    end_at = to_naive_utc(end_at)
    if start_at >= end_at:
        raise ValidationFailure("startAt must be before endAt")

    doc = await database.upsert_session_doc(db, format_quiz_date(quiz_date), start_at, end_at)
    logger.info("Daily quiz session %s set to [%s, %s)", doc["date"], start_at, end_at)
    return doc
