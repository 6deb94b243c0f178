"""Results projection — shape a graded attempt into a display-ready report."""

from datetime import datetime

from kambaz_quizzes.config import settings
from kambaz_quizzes.schemas.attempt import Attempt, GradedAnswer
from kambaz_quizzes.schemas.question import QuestionType
from kambaz_quizzes.schemas.quiz import Quiz, ShowCorrectAnswers
from kambaz_quizzes.schemas.report import QuestionResult, Report
from kambaz_quizzes.services.errors import InvalidStateError

# (inclusive lower bound, grade), highest first
_GRADE_BOUNDS: list[tuple[float, str]] = [
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
]


def percentage(score: float, total_points: float) -> float:
    """Unrounded 100 * score / total; 0 when the quiz is worth nothing."""
    if total_points <= 0:
        return 0.0
    return 100.0 * score / total_points


def letter_grade(pct: float) -> str:
    for bound, grade in _GRADE_BOUNDS:
        if pct >= bound:
            return grade
    return "F"


def answers_visible(quiz: Quiz, now: datetime | None = None) -> bool:
    """Does the quiz's show-correct-answers policy allow a breakdown at *now*?"""
    policy = quiz.show_correct_answers
    if policy == ShowCorrectAnswers.NEVER:
        return False
    if policy == ShowCorrectAnswers.AFTER_DUE_DATE:
        cutoff = quiz.due_date or quiz.until_date
        if cutoff is not None and (now is None or now <= cutoff):
            return False
    return True


def build_report(
    quiz: Quiz,
    score: float,
    graded: list[GradedAnswer],
    answers: dict[str, str],
    include_breakdown: bool,
    attempt_id=None,
) -> Report:
    total = quiz.total_points
    pct = percentage(score, total)

    breakdown = None
    if include_breakdown:
        by_id = {g.question_id: g for g in graded}
        breakdown = []
        for question in quiz.questions:
            outcome = by_id.get(question.id)
            submitted = answers.get(question.id)
            breakdown.append(
                QuestionResult(
                    question_id=question.id,
                    title=question.title,
                    prompt=question.text,
                    question_type=QuestionType.parse(question.type),
                    submitted_value=question.display_value(submitted),
                    correct_values=question.correct_values(),
                    is_correct=outcome.is_correct if outcome else False,
                    points_earned=outcome.points_earned if outcome else 0.0,
                    points_possible=question.points,
                )
            )

    return Report(
        attempt_id=attempt_id,
        quiz_id=quiz.id,
        score=score,
        total_points=total,
        percentage=round(pct, settings.PERCENTAGE_DECIMALS),
        letter_grade=letter_grade(pct),
        question_breakdown=breakdown,
    )


def project(quiz: Quiz, attempt: Attempt, now: datetime | None = None) -> Report:
    """Report for a submitted attempt, honouring the answer-visibility policy."""
    if not attempt.is_submitted or attempt.score is None:
        raise InvalidStateError("Attempt has not been submitted yet", attempt_id=str(attempt.id))

    return build_report(
        quiz,
        score=attempt.score,
        graded=attempt.graded_answers or [],
        answers=attempt.answers,
        include_breakdown=answers_visible(quiz, now),
        attempt_id=attempt.id,
    )
