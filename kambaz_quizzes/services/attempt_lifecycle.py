"""Attempt state machine: not started → in-progress → submitted.

Submission is terminal. An in-progress attempt whose timer has run out is
not expired into a dead state; the caller polls ``submit_if_expired`` and the
attempt is submitted with whatever answers it has. Persisting the result is
the caller's job — nothing here touches the database.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta

from kambaz_quizzes.schemas.attempt import Attempt, AttemptStatus
from kambaz_quizzes.schemas.quiz import Quiz
from kambaz_quizzes.schemas.user import Actor
from kambaz_quizzes.services.availability import Denied, can_attempt
from kambaz_quizzes.services.errors import (
    AlreadySubmittedError,
    AttemptAccessError,
    AttemptCreationError,
    InvalidStateError,
    QuestionLockedError,
    UnknownQuestionError,
)
from kambaz_quizzes.services.grading import grade

logger = logging.getLogger(__name__)


# ── Guards ────────────────────────────────────────────────────────────────────


def ensure_owner(attempt: Attempt, actor: Actor) -> None:
    if actor.user_id != attempt.student_id:
        raise AttemptAccessError("Attempt belongs to another student")


def _ensure_in_progress(attempt: Attempt) -> None:
    if attempt.status != AttemptStatus.IN_PROGRESS:
        raise InvalidStateError(
            "Attempt is not in progress", attempt_id=str(attempt.id), status=attempt.status.value
        )


def _ensure_known(quiz: Quiz, question_id: str) -> None:
    if question_id not in quiz.question_ids:
        raise UnknownQuestionError(question_id)


# ── Transitions ───────────────────────────────────────────────────────────────


def start(
    quiz: Quiz,
    actor: Actor,
    now: datetime,
    prior_attempts: int,
    in_progress: Attempt | None = None,
    access_code: str | None = None,
) -> Attempt:
    """Create a new in-progress attempt for *actor*, or raise ``AttemptCreationError``."""
    if not actor.is_student:
        raise AttemptAccessError("Only students can take quizzes; use preview instead")
    if in_progress is not None:
        raise AttemptCreationError("An attempt for this quiz is already in progress")

    decision = can_attempt(quiz, now, prior_attempts, access_code)
    if isinstance(decision, Denied):
        logger.warning(
            "Start denied for student %s on quiz %s: %s",
            actor.user_id, quiz.id, decision.reason.value,
        )
        raise AttemptCreationError(decision.message, denial=decision)

    expires_at = None
    if quiz.time_limit_minutes:
        expires_at = now + timedelta(minutes=quiz.time_limit_minutes)

    return Attempt(
        quiz_id=quiz.id,
        student_id=actor.user_id,
        attempt_number=prior_attempts + 1,
        started_at=now,
        time_limit_expires_at=expires_at,
    )


def record_answer(attempt: Attempt, quiz: Quiz, actor: Actor, question_id: str, value: str) -> Attempt:
    """Set ``answers[question_id] = value`` on an in-progress attempt."""
    ensure_owner(attempt, actor)
    _ensure_in_progress(attempt)
    _ensure_known(quiz, question_id)
    if quiz.lock_questions_after_answering and question_id in attempt.answers:
        raise QuestionLockedError(question_id)

    attempt.answers = {**attempt.answers, question_id: value}
    return attempt


def save_draft(attempt: Attempt, quiz: Quiz, actor: Actor, answers: Mapping[str, str]) -> Attempt:
    """Replace all answers at once (draft save); status is unchanged."""
    ensure_owner(attempt, actor)
    _ensure_in_progress(attempt)
    for question_id in answers:
        _ensure_known(quiz, question_id)
    if quiz.lock_questions_after_answering:
        # a locked answer can be neither changed nor dropped
        for question_id, value in attempt.answers.items():
            if question_id not in answers or answers[question_id] != value:
                raise QuestionLockedError(question_id)

    attempt.answers = dict(answers)
    return attempt


def submit(attempt: Attempt, quiz: Quiz, actor: Actor | None, now: datetime) -> Attempt:
    """Grade and close the attempt.

    *actor* is ``None`` when the system submits on the student's behalf
    (time limit). A second submit raises ``AlreadySubmittedError`` and leaves
    the first result untouched.
    """
    if attempt.status == AttemptStatus.SUBMITTED:
        raise AlreadySubmittedError(attempt.id)
    if actor is not None:
        ensure_owner(attempt, actor)
    _ensure_in_progress(attempt)

    result = grade(quiz.questions, attempt.answers)
    attempt.graded_answers = result.per_question
    attempt.score = result.score
    attempt.submitted_at = now
    attempt.status = AttemptStatus.SUBMITTED
    return attempt


# ── Time limit ────────────────────────────────────────────────────────────────


def seconds_remaining(attempt: Attempt, now: datetime) -> int | None:
    """Whole seconds left on the timer; ``None`` when untimed or already submitted."""
    if attempt.time_limit_expires_at is None or attempt.is_submitted:
        return None
    return max(0, int((attempt.time_limit_expires_at - now).total_seconds()))


def is_expired(attempt: Attempt, now: datetime) -> bool:
    return (
        attempt.status == AttemptStatus.IN_PROGRESS
        and attempt.time_limit_expires_at is not None
        and now > attempt.time_limit_expires_at
    )


def submit_if_expired(attempt: Attempt, quiz: Quiz, now: datetime) -> bool:
    """One timer tick: submit the attempt if its time is up.

    Returns whether this tick submitted it. Ticks after submission are no-ops.
    """
    if not is_expired(attempt, now):
        return False
    logger.info("Time limit reached for attempt %s; auto-submitting", attempt.id)
    submit(attempt, quiz, None, now)
    return True
