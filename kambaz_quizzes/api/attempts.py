"""Routes for a running or finished attempt."""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kambaz_quizzes.api.deps import get_actor, get_now
from kambaz_quizzes.db.session import get_db
from kambaz_quizzes.schemas.attempt import AnswerRecord, AnswersSave, AttemptRead, TickResult
from kambaz_quizzes.schemas.report import Report
from kambaz_quizzes.schemas.user import Actor
from kambaz_quizzes.services import attempt_service
from kambaz_quizzes.services.attempt_lifecycle import seconds_remaining

router = APIRouter()


@router.get("/{attempt_id}", response_model=AttemptRead)
def get_attempt(
    attempt_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Answers so far plus the time left on the clock."""
    attempt = attempt_service.get_attempt(db, actor, attempt_id)
    return AttemptRead.from_attempt(attempt, seconds_remaining(attempt, now))


@router.post("/{attempt_id}/answers", response_model=AttemptRead)
def record_answer(
    attempt_id: uuid.UUID,
    body: AnswerRecord,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    attempt = attempt_service.record_answer(db, actor, attempt_id, body.question_id, body.value, now)
    return AttemptRead.from_attempt(attempt, seconds_remaining(attempt, now))


@router.put("/{attempt_id}/answers", response_model=AttemptRead)
def save_draft(
    attempt_id: uuid.UUID,
    body: AnswersSave,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Replace every answer at once; the attempt stays in progress."""
    attempt = attempt_service.save_draft(db, actor, attempt_id, body.answers, now)
    return AttemptRead.from_attempt(attempt, seconds_remaining(attempt, now))


@router.post("/{attempt_id}/submit", response_model=AttemptRead)
def submit_attempt(
    attempt_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    attempt = attempt_service.submit_attempt(db, actor, attempt_id, now)
    return AttemptRead.from_attempt(attempt)


@router.post("/{attempt_id}/tick", response_model=TickResult)
def tick(
    attempt_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Timer poll from the client; submits the attempt once time is up."""
    submitted, attempt = attempt_service.poll_time_limit(db, actor, attempt_id, now)
    return TickResult(
        auto_submitted=submitted,
        attempt=AttemptRead.from_attempt(attempt, seconds_remaining(attempt, now)),
    )


@router.get("/{attempt_id}/report", response_model=Report)
def get_report(
    attempt_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    return attempt_service.attempt_report(db, actor, attempt_id, now)
