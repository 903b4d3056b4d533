"""
Quiz Ranking Service - Quiz Feature Wiring
Registers the quiz routers and prepares the collections they rely on
"""

from fastapi import FastAPI
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from quizrank.quiz.answer_router import router as answer_router
from quizrank.quiz.attempt_router import router as attempt_router
from quizrank.quiz.database import create_quiz_indexes

logger = logging.getLogger(__name__)

# ==================== ROUTER SETUP ====================

def setup_quiz_routes(app: FastAPI, prefix: str = "/api"):
    """Register all quiz-related routers"""
    app.include_router(attempt_router, prefix=prefix)
    app.include_router(answer_router, prefix=prefix)
    logger.info("Quiz routes registered under %s", prefix)

# ==================== STARTUP ====================

async def startup_quiz_system(db: AsyncIOMotorDatabase):
    """Initialize quiz system on app startup"""
    await create_quiz_indexes(db)
    logger.info("Quiz system initialized")
