import asyncio
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import date
from typing import List, Optional

from quizrank.quiz import database
from quizrank.quiz.identity import display_fields, resolve_identities, resolve_identity
from quizrank.quiz.models import format_quiz_date, isoformat_utc

# ==================== LEADERBOARD QUERIES ====================

async def get_daily_top(db: AsyncIOMotorDatabase, quiz_date: date, limit: int) -> List[dict]:
    """
    Highest ranked daily attempts for a date, same order as rank recomputation
    Output matches the daily leaderboard row shape
    """
    attempts = await database.top_daily_attempts(db, format_quiz_date(quiz_date), limit)
    # limit is capped, one lookup per row
    identities = await asyncio.gather(*(resolve_identity(db, a["student_id"]) for a in attempts))

    rows = []
    for idx, (attempt, identity) in enumerate(zip(attempts, identities)):
        rows.append({
            "rank": idx + 1,
            "studentId": attempt["student_id"],
            **display_fields(identity),
            "score": attempt["score"],
            "total": attempt["total"],
            "timeTaken": attempt["time_taken"],
            "points": attempt.get("points", 0),
            "attemptedAt": isoformat_utc(attempt.get("attempted_at")),
        })
    return rows


async def get_aggregate_leaderboard(db: AsyncIOMotorDatabase) -> List[dict]:
    """
    All-time totals per student across every daily quiz
    Unpaginated; sized for a classroom
    """
    totals = await database.aggregate_daily_points(db)
    identities = await resolve_identities(db, (t["_id"] for t in totals))

    rows = []
    for idx, entry in enumerate(totals):
        rows.append({
            "rank": idx + 1,
            "studentId": entry["_id"],
            **display_fields(identities.get(entry["_id"])),
            "totalPoints": entry["total_points"],
            "totalAttempts": entry["total_attempts"],
        })
    return rows


async def get_my_daily_attempt(db: AsyncIOMotorDatabase, student_id: str, quiz_date: date) -> Optional[dict]:
    """Caller's own attempt for the date, None if not submitted yet"""
    return await database.get_daily_attempt(db, student_id, format_quiz_date(quiz_date))
