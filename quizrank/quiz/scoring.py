"""Pure scoring of a submitted answer batch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence


@dataclass(frozen=True)
class ScoreResult:
    per_answer_correct: list[bool]
    score: int
    total: int


def is_correct(selected_option: str, correct_answer: Optional[str]) -> bool:
    """Exact match only. An unknown correct answer never scores."""
    if correct_answer is None:
        return False
    return selected_option == correct_answer


def score_answers(answers: Iterable[tuple[str, Optional[str]]]) -> ScoreResult:
    """Score (selected_option, correct_answer) pairs."""
    flags = [is_correct(selected, correct) for selected, correct in answers]
    return ScoreResult(per_answer_correct=flags, score=sum(flags), total=len(flags))


def score_saved_answers(saved: Sequence[dict]) -> ScoreResult:
    """Score stored answer documents, so the aggregate matches persisted state."""
    return score_answers(
        (doc.get("selected_option"), doc.get("correct_answer")) for doc in saved
    )
