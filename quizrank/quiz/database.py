from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError
from datetime import datetime
from typing import List, Optional, Tuple
import logging
import uuid

from quizrank.quiz.errors import translate_storage_errors
from quizrank.quiz.models import AnswerIn, utc_now
from quizrank.quiz.scoring import is_correct

logger = logging.getLogger(__name__)

# ==================== INDEXES ====================

async def create_quiz_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes; the unique ones carry the core invariants"""

    # Answers: one per student + topic + question
    await db.student_answers.create_index(
        [("student_id", ASCENDING), ("topic", ASCENDING), ("question_id", ASCENDING)],
        unique=True
    )
    await db.student_answers.create_index([("student_id", ASCENDING), ("created_at", DESCENDING)])

    # Topic attempts: history, newest first
    await db.quiz_attempts.create_index("attempt_id", unique=True)
    await db.quiz_attempts.create_index(
        [("student_id", ASCENDING), ("topic", ASCENDING), ("attempted_at", DESCENDING)]
    )

    # Daily attempts: one per student per date
    await db.daily_quiz_attempts.create_index("attempt_id", unique=True)
    await db.daily_quiz_attempts.create_index(
        [("student_id", ASCENDING), ("date", ASCENDING)],
        unique=True
    )
    await db.daily_quiz_attempts.create_index(
        [("date", ASCENDING), ("score", DESCENDING), ("time_taken", ASCENDING), ("attempted_at", ASCENDING)]
    )

    # Sessions: one live window per date
    await db.daily_quiz_sessions.create_index("date", unique=True)

    logger.info("Quiz indexes created")

# ==================== ANSWERS ====================

def _answer_fields(answer: AnswerIn, now: datetime) -> dict:
    correct_answer = answer.correct_answer or None
    return {
        "question_text": answer.question_text or "",
        "selected_option": answer.selected_option,
        "correct_answer": correct_answer,
        "is_correct": is_correct(answer.selected_option, correct_answer),
        "submitted_at": now,
        "updated_at": now,
    }


async def _update_answer(db: AsyncIOMotorDatabase, key: dict, fields: dict) -> Optional[dict]:
    return await db.student_answers.find_one_and_update(
        key,
        {"$set": fields},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER
    )


@translate_storage_errors
async def save_answer(
    db: AsyncIOMotorDatabase,
    student_id: str,
    topic: str,
    answer: AnswerIn
) -> Tuple[dict, bool]:
    """
    Store the answer for (student, topic, question), replacing any previous one.

    Update path first, then a conditional insert guarded by the unique index.
    A duplicate key on insert means a concurrent writer created the record
    between the two steps, so the update path is taken again.

    Returns (answer document, created)
    """
    key = {"student_id": student_id, "topic": topic, "question_id": answer.question_id}
    fields = _answer_fields(answer, utc_now())

    updated = await _update_answer(db, key, fields)
    if updated:
        return updated, False

    doc = {
        "answer_id": f"ANS_{uuid.uuid4().hex[:12].upper()}",
        **key,
        **fields,
        "created_at": fields["submitted_at"],
    }
    try:
        await db.student_answers.insert_one(doc)
    except DuplicateKeyError:
        return await _update_answer(db, key, fields), False

    doc.pop("_id", None)
    return doc, True


@translate_storage_errors
async def list_answers(db: AsyncIOMotorDatabase, student_id: str, topic: Optional[str] = None) -> List[dict]:
    """Student's answers, newest first"""
    query = {"student_id": student_id}
    if topic:
        query["topic"] = topic
    cursor = db.student_answers.find(query, {"_id": 0}).sort("created_at", DESCENDING)
    return await cursor.to_list(length=None)

# ==================== TOPIC ATTEMPTS ====================

@translate_storage_errors
async def create_topic_attempt(
    db: AsyncIOMotorDatabase,
    student_id: str,
    topic: str,
    score: int,
    total: int,
    time_taken: float
) -> dict:
    """Every call records a new historical attempt"""
    attempt = {
        "attempt_id": f"QA_{uuid.uuid4().hex[:12].upper()}",
        "student_id": student_id,
        "topic": topic,
        "score": score,
        "total": total,
        "time_taken": time_taken,
        "attempted_at": utc_now(),
    }
    await db.quiz_attempts.insert_one(attempt)
    attempt.pop("_id", None)
    return attempt


@translate_storage_errors
async def list_topic_attempts(db: AsyncIOMotorDatabase, student_id: str) -> List[dict]:
    cursor = db.quiz_attempts.find({"student_id": student_id}, {"_id": 0}).sort("attempted_at", DESCENDING)
    return await cursor.to_list(length=None)

# ==================== DAILY ATTEMPTS ====================

@translate_storage_errors
async def get_daily_attempt(db: AsyncIOMotorDatabase, student_id: str, date_key: str) -> Optional[dict]:
    return await db.daily_quiz_attempts.find_one(
        {"student_id": student_id, "date": date_key},
        {"_id": 0}
    )


@translate_storage_errors
async def insert_daily_attempt(
    db: AsyncIOMotorDatabase,
    student_id: str,
    date_key: str,
    score: int,
    total: int,
    time_taken: float
) -> Optional[dict]:
    """
    Insert the student's attempt for the date.
    Points start at 0 and are set by rank recomputation.

    Returns None when the unique (student_id, date) index rejects the insert
    """
    attempt = {
        "attempt_id": f"DQA_{uuid.uuid4().hex[:12].upper()}",
        "student_id": student_id,
        "date": date_key,
        "score": score,
        "total": total,
        "time_taken": time_taken,
        "points": 0,
        "attempted_at": utc_now(),
    }
    try:
        await db.daily_quiz_attempts.insert_one(attempt)
    except DuplicateKeyError:
        return None
    attempt.pop("_id", None)
    return attempt


@translate_storage_errors
async def list_daily_attempts(db: AsyncIOMotorDatabase, date_key: str) -> List[dict]:
    cursor = db.daily_quiz_attempts.find({"date": date_key}, {"_id": 0})
    return await cursor.to_list(length=None)


@translate_storage_errors
async def top_daily_attempts(db: AsyncIOMotorDatabase, date_key: str, limit: int) -> List[dict]:
    """Ranking order: score desc, time asc, earliest attempt, then student id"""
    cursor = db.daily_quiz_attempts.find({"date": date_key}, {"_id": 0}).sort([
        ("score", DESCENDING),
        ("time_taken", ASCENDING),
        ("attempted_at", ASCENDING),
        ("student_id", ASCENDING),
    ]).limit(limit)
    return await cursor.to_list(length=limit)


@translate_storage_errors
async def count_daily_attempts(db: AsyncIOMotorDatabase, date_key: str) -> int:
    return await db.daily_quiz_attempts.count_documents({"date": date_key})


@translate_storage_errors
async def set_attempt_points(db: AsyncIOMotorDatabase, attempt_id: str, points: int) -> bool:
    result = await db.daily_quiz_attempts.update_one(
        {"attempt_id": attempt_id},
        {"$set": {"points": points, "updated_at": utc_now()}}
    )
    return result.matched_count > 0


@translate_storage_errors
async def aggregate_daily_points(db: AsyncIOMotorDatabase) -> List[dict]:
    """Total points and attempt count per student across every date"""
    pipeline = [
        {"$group": {
            "_id": "$student_id",
            "total_points": {"$sum": "$points"},
            "total_attempts": {"$sum": 1}
        }},
        {"$sort": {"total_points": -1, "_id": 1}}
    ]
    return await db.daily_quiz_attempts.aggregate(pipeline).to_list(length=None)

# ==================== SESSIONS ====================

@translate_storage_errors
async def get_session_doc(db: AsyncIOMotorDatabase, date_key: str) -> Optional[dict]:
    return await db.daily_quiz_sessions.find_one({"date": date_key}, {"_id": 0})


@translate_storage_errors
async def upsert_session_doc(
    db: AsyncIOMotorDatabase,
    date_key: str,
    start_at: datetime,
    end_at: datetime
) -> dict:
    now = utc_now()
    return await db.daily_quiz_sessions.find_one_and_update(
        {"date": date_key},
        {
            "$set": {"start_at": start_at, "end_at": end_at, "updated_at": now},
            "$setOnInsert": {"created_at": now}
        },
        projection={"_id": 0},
        upsert=True,
        return_document=ReturnDocument.AFTER
    )
