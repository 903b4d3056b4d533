from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import date
from typing import Optional

from quizrank.auth.dependencies import get_db, get_current_user, require_admin, UserContext
from quizrank.config import DEFAULT_LEADERBOARD_SIZE, MAX_LEADERBOARD_SIZE
from quizrank.quiz import database
from quizrank.quiz.errors import NotFound
from quizrank.quiz.leaderboard import get_aggregate_leaderboard, get_daily_top, get_my_daily_attempt
from quizrank.quiz.models import (
    BatchSubmission, QuizKindTag, SessionUpsert, TopicAttemptCreate,
    answer_to_json, daily_attempt_to_json, format_quiz_date, quiz_today,
    session_to_json, topic_attempt_to_json,
)
from quizrank.quiz.sessions import get_session, upsert_session
from quizrank.quiz.submission import submit_batch

router = APIRouter(prefix="/quiz-attempts", tags=["Quiz Attempts"])


def _attempt_json(kind, attempt: dict) -> dict:
    if kind.tag == QuizKindTag.DAILY:
        return daily_attempt_to_json(attempt)
    return topic_attempt_to_json(attempt)

# ==================== SUBMISSION ====================

@router.post("/submit", status_code=201)
async def submit_quiz(
    payload: BatchSubmission,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """
    Submit a batch of answers for a topic or the daily quiz

    - No topic (or "daily") means the daily quiz for `date` or today
    - 409 with the existing attempt if today's daily quiz was already submitted
    """
    result = await submit_batch(
        db,
        user.user_id,
        payload.answers,
        topic=payload.topic,
        time_taken=payload.time_taken,
        quiz_date=payload.quiz_date
    )

    if result.conflict:
        return JSONResponse(status_code=409, content={
            "message": "Daily quiz already submitted for this date",
            "attempt": _attempt_json(result.kind, result.attempt)
        })

    return {
        "attempt": _attempt_json(result.kind, result.attempt),
        "savedAnswers": [answer_to_json(a) for a in result.saved_answers]
    }


@router.post("", status_code=201)
async def create_attempt(
    payload: TopicAttemptCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """Record a pre-scored topic attempt"""
    attempt = await database.create_topic_attempt(
        db, user.user_id, payload.topic, payload.score, payload.total, payload.time_taken
    )
    return topic_attempt_to_json(attempt)


@router.get("")
async def my_attempts(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """Current user's topic attempts, newest first"""
    attempts = await database.list_topic_attempts(db, user.user_id)
    return [topic_attempt_to_json(a) for a in attempts]

# ==================== LEADERBOARDS ====================

@router.get("/leaderboard/daily")
async def daily_leaderboard(
    quiz_date: Optional[date] = Query(None, alias="date"),
    limit: int = Query(DEFAULT_LEADERBOARD_SIZE, ge=1, le=MAX_LEADERBOARD_SIZE),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Top daily attempts for a date (public)"""
    quiz_date = quiz_date or quiz_today()
    return {
        "date": format_quiz_date(quiz_date),
        "top": await get_daily_top(db, quiz_date, limit)
    }


@router.get("/leaderboard/daily/aggregate")
async def aggregate_leaderboard(db: AsyncIOMotorDatabase = Depends(get_db)):
    """All-time daily quiz points per student (public)"""
    return await get_aggregate_leaderboard(db)


@router.get("/daily")
async def my_daily_attempt(
    quiz_date: Optional[date] = Query(None, alias="date"),
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """Caller's daily attempt for a date"""
    quiz_date = quiz_date or quiz_today()
    attempt = await get_my_daily_attempt(db, user.user_id, quiz_date)
    if not attempt:
        raise NotFound(f"No daily quiz attempt for {format_quiz_date(quiz_date)}")
    return daily_attempt_to_json(attempt)

# ==================== SESSIONS ====================

@router.get("/session")
async def daily_session(
    quiz_date: Optional[date] = Query(None, alias="date"),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Live window for a date and whether it is open right now (public)"""
    state = await get_session(db, quiz_date or quiz_today())
    return state.to_json()


@router.post("/session")
async def set_daily_session(
    payload: SessionUpsert,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    """Create or replace the live window for a date (admin)"""
    doc = await upsert_session(db, payload.quiz_date, payload.start_at, payload.end_at)
    return session_to_json(doc)
