"""SQLAlchemy ORM models for the quiz service.

Tables
------
- users           – faculty / student profiles
- quizzes         – quiz settings (owned by faculty)
- quiz_questions  – ordered questions of a quiz; variant data in ``payload``
- attempts        – one student's run through a quiz
- attempt_answers – per‑question grading outcome of a submitted attempt
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kambaz_quizzes.db.session import Base


# ── helpers ───────────────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [m.value for m in enum_cls]


# ── Enums (stored as their values via SQLAlchemy Enum) ────────────────────────


class RoleEnum(str, enum.Enum):
    FACULTY = "faculty"
    STUDENT = "student"


class QuizTypeEnum(str, enum.Enum):
    GRADED_QUIZ = "graded-quiz"
    PRACTICE_QUIZ = "practice-quiz"
    GRADED_SURVEY = "graded-survey"
    UNGRADED_SURVEY = "ungraded-survey"


class ShowCorrectAnswersEnum(str, enum.Enum):
    IMMEDIATELY = "immediately"
    AFTER_DUE_DATE = "after-due-date"
    NEVER = "never"


class QuestionTypeEnum(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    FILL_IN_BLANK = "fill-in-blank"


class AttemptStatusEnum(str, enum.Enum):
    IN_PROGRESS = "in-progress"
    SUBMITTED = "submitted"


# ── Users ─────────────────────────────────────────────────────────────────────


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    full_name: Mapped[str] = mapped_column(String(255))
    role: Mapped[RoleEnum] = mapped_column(
        Enum(RoleEnum, name="role_enum", values_callable=_values),
        default=RoleEnum.STUDENT,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    attempts: Mapped[list["Attempt"]] = relationship(back_populates="student")


# ── Quizzes ───────────────────────────────────────────────────────────────────


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    course_id: Mapped[str] = mapped_column(String(100), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    quiz_type: Mapped[QuizTypeEnum] = mapped_column(
        Enum(QuizTypeEnum, name="quiz_type_enum", values_callable=_values),
        default=QuizTypeEnum.GRADED_QUIZ,
    )
    assignment_group: Mapped[str] = mapped_column(String(100), default="Quizzes")
    shuffle_answers: Mapped[bool] = mapped_column(Boolean, default=True)
    time_limit_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    multiple_attempts: Mapped[bool] = mapped_column(Boolean, default=False)
    max_attempts: Mapped[int] = mapped_column(Integer, default=1)
    show_correct_answers: Mapped[ShowCorrectAnswersEnum] = mapped_column(
        Enum(ShowCorrectAnswersEnum, name="show_correct_answers_enum", values_callable=_values),
        default=ShowCorrectAnswersEnum.IMMEDIATELY,
    )
    access_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    one_question_at_a_time: Mapped[bool] = mapped_column(Boolean, default=True)
    webcam_required: Mapped[bool] = mapped_column(Boolean, default=False)
    lock_questions_after_answering: Mapped[bool] = mapped_column(Boolean, default=False)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    available_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    until_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    creator: Mapped["User | None"] = relationship("User")
    questions: Mapped[list["QuizQuestion"]] = relationship(
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.position",
    )
    attempts: Mapped[list["Attempt"]] = relationship(
        back_populates="quiz", cascade="all, delete-orphan"
    )


class QuizQuestion(Base):
    """One question of a quiz, kept in quiz order by ``position``."""

    __tablename__ = "quiz_questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE")
    )
    question_id: Mapped[str] = mapped_column(String(64))
    position: Mapped[int] = mapped_column(Integer, default=0)
    question_type: Mapped[QuestionTypeEnum] = mapped_column(
        Enum(QuestionTypeEnum, name="question_type_enum", values_callable=_values)
    )
    title: Mapped[str] = mapped_column(String(255), default="")
    text: Mapped[str] = mapped_column(Text, default="")
    points: Mapped[float] = mapped_column(Float)
    # choices / correct_choice_ids, correct_answer or accepted_answers
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    quiz: Mapped["Quiz"] = relationship(back_populates="questions")

    __table_args__ = (
        UniqueConstraint("quiz_id", "question_id", name="uq_quiz_question"),
    )


# ── Attempts ──────────────────────────────────────────────────────────────────


class Attempt(Base):
    __tablename__ = "attempts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), index=True
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    attempt_number: Mapped[int] = mapped_column(Integer, default=1)
    status: Mapped[AttemptStatusEnum] = mapped_column(
        Enum(AttemptStatusEnum, name="attempt_status_enum", values_callable=_values),
        default=AttemptStatusEnum.IN_PROGRESS,
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    time_limit_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    answers: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)

    student: Mapped["User"] = relationship(back_populates="attempts")
    quiz: Mapped["Quiz"] = relationship(back_populates="attempts")
    graded_answers: Mapped[list["AttemptAnswer"]] = relationship(
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptAnswer.position",
    )

    __table_args__ = (
        # at most one in-progress attempt per (quiz, student)
        Index(
            "uq_attempt_in_progress",
            "quiz_id",
            "student_id",
            unique=True,
            sqlite_where=text("status = 'in-progress'"),
            postgresql_where=text("status = 'in-progress'"),
        ),
    )


class AttemptAnswer(Base):
    """Grading outcome of one question within a submitted attempt."""

    __tablename__ = "attempt_answers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    attempt_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("attempts.id", ondelete="CASCADE")
    )
    question_id: Mapped[str] = mapped_column(String(64))
    position: Mapped[int] = mapped_column(Integer, default=0)
    answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    points_earned: Mapped[float] = mapped_column(Float, default=0.0)

    attempt: Mapped["Attempt"] = relationship(back_populates="graded_answers")
