from datetime import datetime

from quizrank.quiz.models import AnswerIn


def answer(question_id, selected, correct=None, text=""):
    data = {"questionId": question_id, "selectedOption": selected, "questionText": text}
    if correct is not None:
        data["correctAnswer"] = correct
    return AnswerIn(**data)


async def add_daily_attempt(db, student_id, date_key, score, time_taken, attempted_at=None, points=0):
    doc = {
        "attempt_id": f"DQA_{student_id}_{date_key}",
        "student_id": student_id,
        "date": date_key,
        "score": score,
        "total": 10,
        "time_taken": time_taken,
        "points": points,
        "attempted_at": attempted_at or datetime(2024, 5, 1, 9, 0, 0),
    }
    await db.daily_quiz_attempts.insert_one(dict(doc))
    return doc
