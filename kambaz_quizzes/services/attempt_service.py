"""Attempt service — orchestrates the store and the pure quiz core.

Every function takes the session, the acting user and the current time
explicitly; nothing here reads a clock. The core modules decide, the store
persists, and this module sits between them.
"""

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime

from sqlalchemy.orm import Session

from kambaz_quizzes.schemas.attempt import Attempt
from kambaz_quizzes.schemas.quiz import Quiz
from kambaz_quizzes.schemas.report import Report
from kambaz_quizzes.schemas.user import Actor
from kambaz_quizzes.services import attempt_lifecycle as lifecycle
from kambaz_quizzes.services.availability import Allowed, Denied, can_attempt
from kambaz_quizzes.services.errors import AlreadySubmittedError, AttemptAccessError
from kambaz_quizzes.services.grading import grade
from kambaz_quizzes.services.quiz_store import QuizStore
from kambaz_quizzes.services.results import build_report, project

logger = logging.getLogger(__name__)


# ── Helpers ───────────────────────────────────────────────────────────────────


def _ensure_faculty(actor: Actor) -> None:
    if not actor.is_faculty:
        raise AttemptAccessError("Only faculty can do this")


def _ensure_can_view(attempt: Attempt, actor: Actor) -> None:
    """Students see their own attempts; faculty see every attempt."""
    if actor.is_student:
        lifecycle.ensure_owner(attempt, actor)


def _store_submission(store: QuizStore, attempt: Attempt, quiz: Quiz, actor: Actor | None, now: datetime) -> Attempt:
    # grade a copy so a failed write leaves the caller's attempt in progress
    graded = lifecycle.submit(attempt.model_copy(deep=True), quiz, actor, now)
    stored = store.submit_attempt(graded)
    logger.info(
        "Attempt %s on quiz %s submitted: score %.2f / %.2f",
        stored.id, quiz.id, stored.score, quiz.total_points,
    )
    return stored


def _expire_if_due(store: QuizStore, attempt: Attempt, quiz: Quiz, now: datetime) -> Attempt:
    """Submit *attempt* when its time limit has passed; return the current state."""
    if not lifecycle.is_expired(attempt, now):
        return attempt
    logger.info("Time limit reached for attempt %s; auto-submitting", attempt.id)
    try:
        return _store_submission(store, attempt, quiz, None, now)
    except AlreadySubmittedError:
        # another request got there first
        return store.fetch_attempt(attempt.id)


def _load(store: QuizStore, actor: Actor, attempt_id: uuid.UUID) -> tuple[Attempt, Quiz]:
    attempt = store.fetch_attempt(attempt_id)
    _ensure_can_view(attempt, actor)
    return attempt, store.fetch_quiz(attempt.quiz_id)


# ── Starting ──────────────────────────────────────────────────────────────────


def check_availability(
    db: Session,
    actor: Actor,
    quiz_id: uuid.UUID,
    now: datetime,
    access_code: str | None = None,
) -> tuple[Allowed | Denied, int, int]:
    """Gate decision for *actor* on *quiz_id*, plus attempts used and attempts allowed."""
    store = QuizStore(db)
    quiz = store.fetch_quiz(quiz_id)
    used = store.count_attempts(quiz.id, actor.user_id)
    allowed_total = quiz.max_attempts if quiz.multiple_attempts else 1
    return can_attempt(quiz, now, used, access_code), used, allowed_total


def start_attempt(
    db: Session,
    actor: Actor,
    quiz_id: uuid.UUID,
    now: datetime,
    access_code: str | None = None,
) -> Attempt:
    store = QuizStore(db)
    quiz = store.fetch_quiz(quiz_id)

    in_progress = None
    if actor.is_student:
        in_progress = store.fetch_in_progress_attempt(quiz.id, actor.user_id)
        if in_progress is not None:
            in_progress = _expire_if_due(store, in_progress, quiz, now)
            if in_progress.is_submitted:
                in_progress = None

    prior = store.count_attempts(quiz.id, actor.user_id)
    attempt = lifecycle.start(quiz, actor, now, prior, in_progress, access_code)
    attempt = store.create_attempt(attempt)
    logger.info(
        "Student %s started attempt %s (#%d) on quiz %s",
        actor.user_id, attempt.id, attempt.attempt_number, quiz.id,
    )
    return attempt


# ── Reading ───────────────────────────────────────────────────────────────────


def get_attempt(db: Session, actor: Actor, attempt_id: uuid.UUID) -> Attempt:
    attempt, _ = _load(QuizStore(db), actor, attempt_id)
    return attempt


def latest_attempt(db: Session, actor: Actor, quiz_id: uuid.UUID) -> Attempt | None:
    store = QuizStore(db)
    store.fetch_quiz(quiz_id)
    return store.fetch_latest_attempt(quiz_id, actor.user_id)


def list_attempts(db: Session, actor: Actor, quiz_id: uuid.UUID) -> list[Attempt]:
    store = QuizStore(db)
    store.fetch_quiz(quiz_id)
    return store.list_attempts(quiz_id, actor.user_id)


# ── Answering ─────────────────────────────────────────────────────────────────


def record_answer(
    db: Session,
    actor: Actor,
    attempt_id: uuid.UUID,
    question_id: str,
    value: str,
    now: datetime,
) -> Attempt:
    store = QuizStore(db)
    attempt, quiz = _load(store, actor, attempt_id)
    attempt = _expire_if_due(store, attempt, quiz, now)
    lifecycle.record_answer(attempt, quiz, actor, question_id, value)
    return store.save_attempt_answers(attempt.id, attempt.answers)


def save_draft(
    db: Session,
    actor: Actor,
    attempt_id: uuid.UUID,
    answers: Mapping[str, str],
    now: datetime,
) -> Attempt:
    store = QuizStore(db)
    attempt, quiz = _load(store, actor, attempt_id)
    attempt = _expire_if_due(store, attempt, quiz, now)
    lifecycle.save_draft(attempt, quiz, actor, answers)
    return store.save_attempt_answers(attempt.id, attempt.answers)


# ── Submitting ────────────────────────────────────────────────────────────────


def submit_attempt(db: Session, actor: Actor, attempt_id: uuid.UUID, now: datetime) -> Attempt:
    """Grade and store the attempt. A second submit raises ``AlreadySubmittedError``."""
    store = QuizStore(db)
    attempt, quiz = _load(store, actor, attempt_id)
    return _store_submission(store, attempt, quiz, actor, now)


def poll_time_limit(db: Session, actor: Actor, attempt_id: uuid.UUID, now: datetime) -> tuple[bool, Attempt]:
    """One timer tick. Returns ``(auto_submitted, attempt)``."""
    store = QuizStore(db)
    attempt, quiz = _load(store, actor, attempt_id)
    if not lifecycle.is_expired(attempt, now):
        return False, attempt
    current = _expire_if_due(store, attempt, quiz, now)
    return True, current


# ── Results ───────────────────────────────────────────────────────────────────


def attempt_report(db: Session, actor: Actor, attempt_id: uuid.UUID, now: datetime) -> Report:
    """Results for a submitted attempt.

    Students get the breakdown only when the quiz's show-correct-answers
    policy allows it at *now*; faculty always get it.
    """
    store = QuizStore(db)
    attempt, quiz = _load(store, actor, attempt_id)
    report = project(quiz, attempt, now)
    if actor.is_faculty and report.question_breakdown is None:
        report = build_report(
            quiz,
            score=report.score,
            graded=attempt.graded_answers or [],
            answers=attempt.answers,
            include_breakdown=True,
            attempt_id=attempt.id,
        )
    return report


def preview_quiz(db: Session, actor: Actor, quiz_id: uuid.UUID, answers: Mapping[str, str]) -> Report:
    """Faculty grading pass over *answers*; nothing is stored."""
    _ensure_faculty(actor)
    quiz = QuizStore(db).fetch_quiz(quiz_id)
    result = grade(quiz.questions, answers)
    logger.debug("Preview of quiz %s by %s scored %.2f", quiz.id, actor.user_id, result.score)
    return build_report(
        quiz,
        score=result.score,
        graded=result.per_question,
        answers=dict(answers),
        include_breakdown=True,
    )
