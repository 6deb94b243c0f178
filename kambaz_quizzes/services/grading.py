"""Grading engine.

Each question variant knows its own scoring rule (see ``schemas.question``);
this module walks the quiz in order, applies those rules and totals the
points. A missing answer is simply wrong. A malformed question (e.g. a
multiple-choice question with no correct choice) can never be answered
correctly, but never raises.

The same ``grade`` is used for student submissions and faculty previews, so
both always agree on the score.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from kambaz_quizzes.schemas.attempt import GradedAnswer
from kambaz_quizzes.schemas.question import Question

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GradeResult:
    score: float
    per_question: list[GradedAnswer] = field(default_factory=list)


def grade_question(question: Question, value: str | None) -> GradedAnswer:
    """Score one question against one submitted value (``None`` = unanswered)."""
    is_correct = question.is_correct(value)
    return GradedAnswer(
        question_id=question.id,
        is_correct=is_correct,
        points_earned=question.points if is_correct else 0.0,
    )


def grade(questions: Sequence[Question], answers: Mapping[str, str]) -> GradeResult:
    """Grade *answers* (``{question_id: value}``) against *questions* in quiz order."""
    per_question = []
    for question in questions:
        outcome = grade_question(question, answers.get(question.id))
        logger.debug(
            "Graded %s question %s: correct=%s points=%s",
            question.type, question.id, outcome.is_correct, outcome.points_earned,
        )
        per_question.append(outcome)

    score = float(sum(g.points_earned for g in per_question))
    return GradeResult(score=score, per_question=per_question)
