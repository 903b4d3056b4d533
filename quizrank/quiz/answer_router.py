from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
import logging

from quizrank.auth.dependencies import get_db, get_current_user, UserContext
from quizrank.quiz import database
from quizrank.quiz.models import SingleAnswerCreate, answer_to_json

router = APIRouter(prefix="/quiz-answers", tags=["Quiz Answers"])
logger = logging.getLogger(__name__)


@router.post("")
async def submit_answer(
    payload: SingleAnswerCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """
    Save one answer, replacing the previous answer to the same question
    201 when created, 200 when replaced
    """
    doc, created = await database.save_answer(db, user.user_id, payload.topic, payload)
    if created:
        logger.info("Answer %s created by %s", doc["answer_id"], user.user_id)
    return JSONResponse(status_code=201 if created else 200, content=answer_to_json(doc))


@router.get("")
async def my_answers(
    topic: Optional[str] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """Current user's answers, newest first, optionally for one topic"""
    answers = await database.list_answers(db, user.user_id, topic)
    return [answer_to_json(a) for a in answers]
