"""Results report schemas."""

import uuid

from pydantic import BaseModel

from kambaz_quizzes.schemas.question import QuestionType


class QuestionResult(BaseModel):
    """One row of the per-question breakdown."""

    question_id: str
    title: str
    prompt: str
    question_type: QuestionType
    submitted_value: str | None = None
    correct_values: list[str]
    is_correct: bool
    points_earned: float
    points_possible: float


class Report(BaseModel):
    """Score summary for a graded attempt (or a faculty preview)."""

    attempt_id: uuid.UUID | None = None
    quiz_id: uuid.UUID
    score: float
    total_points: float
    percentage: float
    letter_grade: str
    question_breakdown: list[QuestionResult] | None = None
