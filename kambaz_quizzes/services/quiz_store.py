"""Persistence collaborator — maps ORM rows to the quiz domain models.

The core never sees a SQLAlchemy object: everything goes in and out of
``QuizStore`` as the pydantic models from ``schemas``. Any database failure
rolls the session back and surfaces as ``PersistenceError`` so the caller can
retry without losing state.
"""

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kambaz_quizzes.db.models import (
    Attempt as AttemptRow,
    AttemptAnswer,
    AttemptStatusEnum,
    QuestionTypeEnum,
    Quiz as QuizRow,
    QuizQuestion,
    QuizTypeEnum,
    ShowCorrectAnswersEnum,
)
from kambaz_quizzes.schemas.attempt import Attempt, AttemptStatus, GradedAnswer
from kambaz_quizzes.schemas.question import Question, parse_question
from kambaz_quizzes.schemas.quiz import Quiz, QuizCreate, QuizSettings, QuizUpdate
from kambaz_quizzes.services.errors import (
    AlreadySubmittedError,
    AttemptCreationError,
    AttemptNotFoundError,
    InvalidStateError,
    PersistenceError,
    QuizNotFoundError,
    QuizValidationError,
)

logger = logging.getLogger(__name__)

_COMMON_QUESTION_FIELDS = {"id", "type", "title", "text", "points"}


# ── Row ↔ domain mapping ──────────────────────────────────────────────────────


def _question_to_row(question: Question, position: int) -> QuizQuestion:
    return QuizQuestion(
        question_id=question.id,
        position=position,
        question_type=QuestionTypeEnum(question.type),
        title=question.title,
        text=question.text,
        points=question.points,
        payload=question.model_dump(mode="json", exclude=_COMMON_QUESTION_FIELDS),
    )


def _question_to_domain(row: QuizQuestion) -> Question:
    return parse_question(
        {
            **(row.payload or {}),
            "id": row.question_id,
            "type": row.question_type.value,
            "title": row.title,
            "text": row.text,
            "points": row.points,
        }
    )


def _quiz_to_domain(row: QuizRow) -> Quiz:
    settings_fields = {name: getattr(row, name) for name in QuizSettings.model_fields}
    settings_fields["quiz_type"] = row.quiz_type.value
    settings_fields["show_correct_answers"] = row.show_correct_answers.value
    return Quiz(
        id=row.id,
        course_id=row.course_id,
        questions=[_question_to_domain(q) for q in row.questions],
        created_at=row.created_at,
        **settings_fields,
    )


def _apply_settings(row: QuizRow, quiz: QuizSettings) -> None:
    for name in QuizSettings.model_fields:
        setattr(row, name, getattr(quiz, name))
    row.quiz_type = QuizTypeEnum(quiz.quiz_type.value)
    row.show_correct_answers = ShowCorrectAnswersEnum(quiz.show_correct_answers.value)


def _attempt_to_domain(row: AttemptRow) -> Attempt:
    status = AttemptStatus(row.status.value)
    graded = None
    if status == AttemptStatus.SUBMITTED:
        graded = [
            GradedAnswer(
                question_id=a.question_id,
                is_correct=a.is_correct,
                points_earned=a.points_earned,
            )
            for a in row.graded_answers
        ]
    return Attempt(
        id=row.id,
        quiz_id=row.quiz_id,
        student_id=row.student_id,
        attempt_number=row.attempt_number,
        status=status,
        started_at=row.started_at,
        time_limit_expires_at=row.time_limit_expires_at,
        answers=dict(row.answers or {}),
        submitted_at=row.submitted_at,
        score=row.score,
        graded_answers=graded,
    )


# ── Store ─────────────────────────────────────────────────────────────────────


class QuizStore:
    """Quiz and attempt persistence on top of one SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Quiz store commit failed: %s", exc)
            raise PersistenceError("Could not save changes; please retry") from exc

    # ── Quizzes ──────────────────────────────────────────────────────────

    def _quiz_row(self, quiz_id: uuid.UUID) -> QuizRow:
        row = self.db.get(QuizRow, quiz_id)
        if row is None:
            raise QuizNotFoundError(quiz_id)
        return row

    def fetch_quiz(self, quiz_id: uuid.UUID) -> Quiz:
        return _quiz_to_domain(self._quiz_row(quiz_id))

    def list_quizzes(
        self,
        course_id: str | None = None,
        search: str | None = None,
        published_only: bool = False,
    ) -> list[Quiz]:
        query = self.db.query(QuizRow)
        if course_id:
            query = query.filter(QuizRow.course_id == course_id)
        if search:
            query = query.filter(func.lower(QuizRow.title).contains(search.lower()))
        if published_only:
            query = query.filter(QuizRow.published.is_(True))
        rows = query.order_by(QuizRow.created_at).all()
        return [_quiz_to_domain(r) for r in rows]

    def create_quiz(self, data: QuizCreate, created_by: uuid.UUID | None = None) -> Quiz:
        row = QuizRow(course_id=data.course_id, created_by=created_by)
        _apply_settings(row, data)
        row.questions = [_question_to_row(q, i) for i, q in enumerate(data.questions)]
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        logger.info("Created quiz %s in course %s", row.id, row.course_id)
        return _quiz_to_domain(row)

    def update_quiz(self, quiz_id: uuid.UUID, data: QuizUpdate) -> Quiz:
        row = self._quiz_row(quiz_id)
        current = _quiz_to_domain(row)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude={"questions"})
        try:
            merged = QuizSettings.model_validate(
                {**current.model_dump(include=set(QuizSettings.model_fields)), **changes}
            )
        except ValidationError as exc:
            raise QuizValidationError("Invalid quiz settings", errors=exc.errors(include_url=False)) from exc

        _apply_settings(row, merged)
        if data.questions is not None:
            # flush the deletes first so re-sent question ids don't collide
            row.questions.clear()
            self.db.flush()
            row.questions = [_question_to_row(q, i) for i, q in enumerate(data.questions)]
        self._commit()
        self.db.refresh(row)
        return _quiz_to_domain(row)

    def set_published(self, quiz_id: uuid.UUID, published: bool) -> Quiz:
        row = self._quiz_row(quiz_id)
        row.published = published
        self._commit()
        self.db.refresh(row)
        return _quiz_to_domain(row)

    def delete_quiz(self, quiz_id: uuid.UUID) -> None:
        row = self._quiz_row(quiz_id)
        self.db.delete(row)
        self._commit()
        logger.info("Deleted quiz %s", quiz_id)

    # ── Attempts ─────────────────────────────────────────────────────────

    def _attempt_row(self, attempt_id: uuid.UUID) -> AttemptRow:
        row = self.db.get(AttemptRow, attempt_id)
        if row is None:
            raise AttemptNotFoundError(attempt_id)
        return row

    def fetch_attempt(self, attempt_id: uuid.UUID) -> Attempt:
        return _attempt_to_domain(self._attempt_row(attempt_id))

    def _student_attempts(self, quiz_id: uuid.UUID, student_id: uuid.UUID):
        return self.db.query(AttemptRow).filter(
            AttemptRow.quiz_id == quiz_id,
            AttemptRow.student_id == student_id,
        )

    def fetch_latest_attempt(self, quiz_id: uuid.UUID, student_id: uuid.UUID) -> Attempt | None:
        row = (
            self._student_attempts(quiz_id, student_id)
            .order_by(AttemptRow.attempt_number.desc(), AttemptRow.started_at.desc())
            .first()
        )
        return _attempt_to_domain(row) if row else None

    def fetch_in_progress_attempt(self, quiz_id: uuid.UUID, student_id: uuid.UUID) -> Attempt | None:
        row = (
            self._student_attempts(quiz_id, student_id)
            .filter(AttemptRow.status == AttemptStatusEnum.IN_PROGRESS)
            .first()
        )
        return _attempt_to_domain(row) if row else None

    def count_attempts(self, quiz_id: uuid.UUID, student_id: uuid.UUID) -> int:
        """Submitted attempts only — these are what the attempt limit counts."""
        return (
            self._student_attempts(quiz_id, student_id)
            .filter(AttemptRow.status == AttemptStatusEnum.SUBMITTED)
            .count()
        )

    def list_attempts(self, quiz_id: uuid.UUID, student_id: uuid.UUID) -> list[Attempt]:
        rows = self._student_attempts(quiz_id, student_id).order_by(AttemptRow.attempt_number).all()
        return [_attempt_to_domain(r) for r in rows]

    def create_attempt(self, attempt: Attempt) -> Attempt:
        """Insert a freshly started attempt.

        The partial unique index ``uq_attempt_in_progress`` rejects a second
        in-progress attempt for the same student even when two sessions race.
        """
        row = AttemptRow(
            id=attempt.id,
            quiz_id=attempt.quiz_id,
            student_id=attempt.student_id,
            attempt_number=attempt.attempt_number,
            status=AttemptStatusEnum.IN_PROGRESS,
            started_at=attempt.started_at,
            time_limit_expires_at=attempt.time_limit_expires_at,
            answers=dict(attempt.answers),
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AttemptCreationError("An attempt for this quiz is already in progress") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Could not create attempt: %s", exc)
            raise PersistenceError("Could not start the attempt; please retry") from exc
        self.db.refresh(row)
        return _attempt_to_domain(row)

    def save_attempt_answers(self, attempt_id: uuid.UUID, answers: Mapping[str, str]) -> Attempt:
        row = self._attempt_row(attempt_id)
        if row.status != AttemptStatusEnum.IN_PROGRESS:
            raise InvalidStateError("Attempt is not in progress", attempt_id=str(attempt_id))
        row.answers = dict(answers)
        self._commit()
        self.db.refresh(row)
        return _attempt_to_domain(row)

    def submit_attempt(self, attempt: Attempt) -> Attempt:
        """Store a graded attempt.

        The status flip is a compare-and-set on ``in-progress`` so a timer
        tick and a manual submit cannot both win.
        """
        if not attempt.is_submitted:
            raise InvalidStateError("Attempt has not been graded", attempt_id=str(attempt.id))

        flipped = (
            self.db.query(AttemptRow)
            .filter(
                AttemptRow.id == attempt.id,
                AttemptRow.status == AttemptStatusEnum.IN_PROGRESS,
            )
            .update(
                {
                    AttemptRow.status: AttemptStatusEnum.SUBMITTED,
                    AttemptRow.submitted_at: attempt.submitted_at,
                    AttemptRow.score: attempt.score,
                    AttemptRow.answers: dict(attempt.answers),
                },
                synchronize_session="fetch",
            )
        )
        if flipped == 0:
            self.db.rollback()
            self._attempt_row(attempt.id)  # raises AttemptNotFoundError when missing
            raise AlreadySubmittedError(attempt.id)

        for position, graded in enumerate(attempt.graded_answers or []):
            self.db.add(
                AttemptAnswer(
                    attempt_id=attempt.id,
                    question_id=graded.question_id,
                    position=position,
                    answer=attempt.answers.get(graded.question_id),
                    is_correct=graded.is_correct,
                    points_earned=graded.points_earned,
                )
            )
        self._commit()
        return self.fetch_attempt(attempt.id)
