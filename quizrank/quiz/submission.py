"""
Batch submission of quiz answers.

A batch is either a topic attempt (any number per student) or the student's
single daily attempt for a date. Daily attempts re-rank the whole date.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase

from quizrank.config import ENFORCE_LIVE_WINDOW
from quizrank.quiz import database
from quizrank.quiz.errors import SubmissionWindowClosed, ValidationFailure
from quizrank.quiz.models import (
    AnswerIn, DailyQuiz, QuizKind, QuizKindTag, SubmissionStatus, TopicQuiz,
    quiz_today, resolve_quiz_kind,
)
from quizrank.quiz.ranking import recompute_ranks
from quizrank.quiz.scoring import score_saved_answers
from quizrank.quiz.sessions import get_session

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    status: SubmissionStatus
    kind: QuizKind
    attempt: dict
    saved_answers: List[dict] = field(default_factory=list)

    @property
    def conflict(self) -> bool:
        return self.status == SubmissionStatus.CONFLICT


def coerce_time_taken(value: Any) -> float:
    """Seconds spent; anything that is not a finite non-negative number becomes 0"""
    if value is None or isinstance(value, bool):
        return 0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(seconds) or seconds < 0:
        return 0
    return int(seconds) if seconds.is_integer() else seconds


def latest_per_question(answers: Sequence[AnswerIn]) -> List[AnswerIn]:
    """One answer per question id, the last one in the batch wins"""
    latest = {}
    for answer in answers:
        latest.pop(answer.question_id, None)
        latest[answer.question_id] = answer
    return list(latest.values())


async def _save_all(
    db: AsyncIOMotorDatabase,
    student_id: str,
    topic_key: str,
    answers: Sequence[AnswerIn]
) -> List[dict]:
    # keys are disjoint after collapsing repeats, each save is idempotent on its own
    results = await asyncio.gather(*(
        database.save_answer(db, student_id, topic_key, answer)
        for answer in latest_per_question(answers)
    ))
    return [doc for doc, _created in results]


def _conflict(kind: DailyQuiz, student_id: str, existing: dict) -> SubmissionResult:
    logger.info("Duplicate daily submission by %s for %s", student_id, kind.storage_key)
    return SubmissionResult(SubmissionStatus.CONFLICT, kind, existing)


async def submit_batch(
    db: AsyncIOMotorDatabase,
    student_id: str,
    answers: Optional[Sequence[AnswerIn]],
    topic: Optional[str] = None,
    time_taken: Any = None,
    quiz_date: Optional[date] = None,
    now: Optional[datetime] = None
) -> SubmissionResult:
    """
    Score and store a batch of answers.

    Raises:
        ValidationFailure: no answers
        SubmissionWindowClosed: live window enforced and closed
    """
    if not answers:
        raise ValidationFailure("Answers are required")

    kind = resolve_quiz_kind(topic, quiz_date, quiz_today(now))

    if kind.tag == QuizKindTag.DAILY:
        return await _submit_daily(db, student_id, kind, answers, time_taken, now)
    return await _submit_topic(db, student_id, kind, answers, time_taken)


async def _submit_topic(
    db: AsyncIOMotorDatabase,
    student_id: str,
    kind: TopicQuiz,
    answers: Sequence[AnswerIn],
    time_taken: Any
) -> SubmissionResult:
    saved = await _save_all(db, student_id, kind.storage_key, answers)
    scored = score_saved_answers(saved)

    attempt = await database.create_topic_attempt(
        db, student_id, kind.topic, scored.score, scored.total, coerce_time_taken(time_taken)
    )
    logger.info("Topic attempt %s by %s on %s: %d/%d",
                attempt["attempt_id"], student_id, kind.topic, scored.score, scored.total)
    return SubmissionResult(SubmissionStatus.CREATED, kind, attempt, saved)


async def _submit_daily(
    db: AsyncIOMotorDatabase,
    student_id: str,
    kind: DailyQuiz,
    answers: Sequence[AnswerIn],
    time_taken: Any,
    now: Optional[datetime]
) -> SubmissionResult:
    date_key = kind.storage_key

    # checked before any answer is written
    existing = await database.get_daily_attempt(db, student_id, date_key)
    if existing:
        return _conflict(kind, student_id, existing)

    if ENFORCE_LIVE_WINDOW:
        session = await get_session(db, kind.quiz_date, now)
        if session.configured and not session.is_live:
            raise SubmissionWindowClosed(f"Daily quiz for {date_key} is not live")

    saved = await _save_all(db, student_id, date_key, answers)
    scored = score_saved_answers(saved)

    attempt = await database.insert_daily_attempt(
        db, student_id, date_key, scored.score, scored.total, coerce_time_taken(time_taken)
    )
    if attempt is None:
        # lost a race with a concurrent submission for the same date
        existing = await database.get_daily_attempt(db, student_id, date_key)
        return _conflict(kind, student_id, existing)

    await recompute_ranks(db, kind.quiz_date)
    attempt = await database.get_daily_attempt(db, student_id, date_key)

    logger.info("Daily attempt %s by %s for %s: %d/%d, %d points",
                attempt["attempt_id"], student_id, date_key, scored.score, scored.total, attempt["points"])
    return SubmissionResult(SubmissionStatus.CREATED, kind, attempt, saved)
