from pydantic import BaseModel, Field, validator
from typing import List, Optional, Any, Union
from datetime import date, datetime, timezone
from dataclasses import dataclass
from enum import Enum
from zoneinfo import ZoneInfo

from quizrank.config import DAILY_TOPIC, QUIZ_TIMEZONE

# ==================== ENUMS ====================

class SubmissionStatus(str, Enum):
    CREATED = "created"
    CONFLICT = "conflict"

class QuizKindTag(str, Enum):
    TOPIC = "topic"
    DAILY = "daily"

# ==================== QUIZ KIND ====================

@dataclass(frozen=True)
class TopicQuiz:
    """Ad-hoc quiz grouped under a free-form topic label"""
    topic: str
    tag = QuizKindTag.TOPIC

    @property
    def storage_key(self) -> str:
        return self.topic


@dataclass(frozen=True)
class DailyQuiz:
    """Quiz shared by all students on one calendar date"""
    quiz_date: date
    tag = QuizKindTag.DAILY

    @property
    def storage_key(self) -> str:
        return format_quiz_date(self.quiz_date)


QuizKind = Union[TopicQuiz, DailyQuiz]


def format_quiz_date(value: date) -> str:
    return value.isoformat()


def is_daily_topic(topic: Optional[str]) -> bool:
    # blank counts as absent
    return not topic or not topic.strip() or topic == DAILY_TOPIC


def resolve_quiz_kind(topic: Optional[str], quiz_date: Optional[date], today: date) -> QuizKind:
    """
    Daily when no topic (or the reserved daily topic) is given.
    The daily date falls back to today in the server's quiz timezone.
    """
    if is_daily_topic(topic):
        return DailyQuiz(quiz_date or today)
    return TopicQuiz(topic)

# ==================== TIME HELPERS ====================

def utc_now() -> datetime:
    """Naive UTC, the form MongoDB hands datetimes back in"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def quiz_today(now: Optional[datetime] = None) -> date:
    """Current calendar date in the quiz timezone"""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(QUIZ_TIMEZONE)).date()


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return to_naive_utc(value).isoformat(timespec="milliseconds") + "Z"

# ==================== REQUEST MODELS ====================

class AnswerIn(BaseModel):
    question_id: str = Field(..., alias="questionId", min_length=1)
    question_text: Optional[str] = Field("", alias="questionText")
    selected_option: str = Field(..., alias="selectedOption", min_length=1)
    correct_answer: Optional[str] = Field(None, alias="correctAnswer")

    @validator("question_id", pre=True)
    def stringify_question_id(cls, v):
        # clients send numeric ids for built-in question banks
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class SingleAnswerCreate(AnswerIn):
    topic: str = Field(..., min_length=1)


class BatchSubmission(BaseModel):
    topic: Optional[str] = None
    answers: Optional[List[AnswerIn]] = None
    time_taken: Optional[Any] = Field(None, alias="timeTaken")
    quiz_date: Optional[date] = Field(None, alias="date")


class TopicAttemptCreate(BaseModel):
    topic: str = Field(..., min_length=1)
    score: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    time_taken: float = Field(..., alias="timeTaken", ge=0)

    @validator("topic")
    def reject_daily_topic(cls, v):
        if v == DAILY_TOPIC:
            raise ValueError(f"'{DAILY_TOPIC}' is reserved for daily quizzes")
        return v


class SessionUpsert(BaseModel):
    quiz_date: date = Field(..., alias="date")
    start_at: datetime = Field(..., alias="startAt")
    end_at: datetime = Field(..., alias="endAt")

# ==================== WIRE SERIALIZERS ====================
# Stored documents are snake_case; the JSON API speaks camelCase.

def answer_to_json(doc: dict) -> dict:
    return {
        "answerId": doc.get("answer_id"),
        "studentId": doc.get("student_id"),
        "topic": doc.get("topic"),
        "questionId": doc.get("question_id"),
        "questionText": doc.get("question_text", ""),
        "selectedOption": doc.get("selected_option"),
        "correctAnswer": doc.get("correct_answer"),
        "isCorrect": doc.get("is_correct", False),
        "submittedAt": isoformat_utc(doc.get("submitted_at")),
    }


def topic_attempt_to_json(doc: dict) -> dict:
    return {
        "attemptId": doc.get("attempt_id"),
        "studentId": doc.get("student_id"),
        "topic": doc.get("topic"),
        "score": doc.get("score"),
        "total": doc.get("total"),
        "timeTaken": doc.get("time_taken"),
        "attemptedAt": isoformat_utc(doc.get("attempted_at")),
    }


def daily_attempt_to_json(doc: dict) -> dict:
    return {
        "attemptId": doc.get("attempt_id"),
        "studentId": doc.get("student_id"),
        "date": doc.get("date"),
        "score": doc.get("score"),
        "total": doc.get("total"),
        "timeTaken": doc.get("time_taken"),
        "points": doc.get("points", 0),
        "attemptedAt": isoformat_utc(doc.get("attempted_at")),
    }


def session_to_json(doc: dict) -> dict:
    return {
        "date": doc.get("date"),
        "startAt": isoformat_utc(doc.get("start_at")),
        "endAt": isoformat_utc(doc.get("end_at")),
    }
