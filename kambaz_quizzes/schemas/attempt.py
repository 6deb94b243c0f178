"""Attempt schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from kambaz_quizzes.schemas.common import LabelEnum, as_utc


class AttemptStatus(LabelEnum):
    IN_PROGRESS = "in-progress"
    SUBMITTED = "submitted"


class GradedAnswer(BaseModel):
    """Per‑question outcome produced by the grading engine."""

    question_id: str
    is_correct: bool
    points_earned: float


class Attempt(BaseModel):
    """One student's run through one quiz.

    ``status`` is SUBMITTED exactly when both ``submitted_at`` and ``score``
    are set; submission is terminal.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    quiz_id: uuid.UUID
    student_id: uuid.UUID
    attempt_number: int = 1
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    started_at: datetime
    time_limit_expires_at: datetime | None = None
    answers: dict[str, str] = {}
    submitted_at: datetime | None = None
    score: float | None = None
    graded_answers: list[GradedAnswer] | None = None

    @field_validator("started_at", "time_limit_expires_at", "submitted_at")
    @classmethod
    def _dates_in_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @model_validator(mode="after")
    def _status_matches_submission(self) -> "Attempt":
        graded = self.submitted_at is not None and self.score is not None
        if (self.status == AttemptStatus.SUBMITTED) != graded:
            raise ValueError("status is 'submitted' exactly when submitted_at and score are set")
        return self

    @property
    def is_submitted(self) -> bool:
        return self.status == AttemptStatus.SUBMITTED


# ── Request bodies ────────────────────────────────────────────────────────────


class AttemptStart(BaseModel):
    """POST /api/quizzes/{id}/attempts"""

    access_code: str | None = None


class AnswerRecord(BaseModel):
    """POST /api/attempts/{id}/answers — one answer."""

    question_id: str
    value: str


class AnswersSave(BaseModel):
    """PUT /api/attempts/{id}/answers — draft save of all answers."""

    answers: dict[str, str]  # {question_id: value}


# ── Responses ─────────────────────────────────────────────────────────────────


class AttemptRead(BaseModel):
    """Attempt as returned to its owner."""

    id: uuid.UUID
    quiz_id: uuid.UUID
    student_id: uuid.UUID
    attempt_number: int
    status: AttemptStatus
    started_at: datetime
    time_limit_expires_at: datetime | None = None
    seconds_remaining: int | None = None
    answers: dict[str, str] = {}
    submitted_at: datetime | None = None
    score: float | None = None

    @classmethod
    def from_attempt(cls, attempt: Attempt, seconds_remaining: int | None = None) -> "AttemptRead":
        return cls(
            **attempt.model_dump(exclude={"graded_answers"}),
            seconds_remaining=seconds_remaining,
        )


class TickResult(BaseModel):
    """POST /api/attempts/{id}/tick — outcome of one time-limit poll."""

    auto_submitted: bool
    attempt: AttemptRead


class AvailabilityRead(BaseModel):
    """GET /api/quizzes/{id}/availability — may the caller start right now?"""

    allowed: bool
    reason: str | None = None
    message: str | None = None
    date: datetime | None = None
    attempts_used: int
    attempts_allowed: int
