"""Quiz authoring, listing, availability and attempt-start routes."""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from kambaz_quizzes.api.deps import get_actor, get_now, require_faculty, require_student
from kambaz_quizzes.db.session import get_db
from kambaz_quizzes.schemas.attempt import AnswersSave, AttemptRead, AttemptStart, AvailabilityRead
from kambaz_quizzes.schemas.quiz import PublishUpdate, Quiz, QuizCreate, QuizSummary, QuizUpdate, StudentQuizView
from kambaz_quizzes.schemas.report import Report
from kambaz_quizzes.schemas.user import Actor
from kambaz_quizzes.services import attempt_service
from kambaz_quizzes.services.attempt_lifecycle import seconds_remaining
from kambaz_quizzes.services.availability import Denied, availability_label
from kambaz_quizzes.services.errors import QuizNotFoundError
from kambaz_quizzes.services.quiz_store import QuizStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _summary(quiz: Quiz, now: datetime) -> QuizSummary:
    return QuizSummary(
        id=quiz.id,
        course_id=quiz.course_id,
        title=quiz.title,
        published=quiz.published,
        total_points=quiz.total_points,
        question_count=len(quiz.questions),
        due_date=quiz.due_date,
        available_date=quiz.available_date,
        until_date=quiz.until_date,
        availability=availability_label(quiz, now),
    )


# ── Listing & reading ─────────────────────────────────────────────────────────


@router.get("/", response_model=list[QuizSummary])
def list_quizzes(
    course_id: str | None = Query(None),
    search: str | None = Query(None, description="Case-insensitive title search"),
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Quizzes of a course. Students only see published ones."""
    quizzes = QuizStore(db).list_quizzes(course_id, search, published_only=actor.is_student)
    return [_summary(q, now) for q in quizzes]


@router.get("/{quiz_id}")
def get_quiz(
    quiz_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Full quiz for faculty; an answer-free view for students."""
    store = QuizStore(db)
    quiz = store.fetch_quiz(quiz_id)
    if actor.is_faculty:
        return quiz
    if not quiz.published:
        raise QuizNotFoundError(quiz_id)

    # choice order is stable for the life of an attempt
    latest = store.fetch_latest_attempt(quiz.id, actor.user_id)
    return StudentQuizView.from_quiz(quiz, shuffle_seed=str(latest.id) if latest else None)


# ── Authoring ─────────────────────────────────────────────────────────────────


@router.post("/", response_model=Quiz, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizCreate,
    actor: Actor = Depends(require_faculty),
    db: Session = Depends(get_db),
):
    return QuizStore(db).create_quiz(body, created_by=actor.user_id)


@router.put("/{quiz_id}", response_model=Quiz)
def update_quiz(
    quiz_id: uuid.UUID,
    body: QuizUpdate,
    actor: Actor = Depends(require_faculty),
    db: Session = Depends(get_db),
):
    """Change the fields sent; ``questions``, when present, replaces the whole set."""
    return QuizStore(db).update_quiz(quiz_id, body)


@router.patch("/{quiz_id}/publish", response_model=Quiz)
def publish_quiz(
    quiz_id: uuid.UUID,
    body: PublishUpdate,
    actor: Actor = Depends(require_faculty),
    db: Session = Depends(get_db),
):
    quiz = QuizStore(db).set_published(quiz_id, body.published)
    logger.info("Quiz %s %s by %s", quiz_id, "published" if body.published else "unpublished", actor.user_id)
    return quiz


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz(
    quiz_id: uuid.UUID,
    actor: Actor = Depends(require_faculty),
    db: Session = Depends(get_db),
):
    QuizStore(db).delete_quiz(quiz_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{quiz_id}/preview", response_model=Report)
def preview_quiz(
    quiz_id: uuid.UUID,
    body: AnswersSave,
    actor: Actor = Depends(require_faculty),
    db: Session = Depends(get_db),
):
    """Grade answers the way a submission would, without storing anything."""
    return attempt_service.preview_quiz(db, actor, quiz_id, body.answers)


# ── Availability & attempts ───────────────────────────────────────────────────


@router.get("/{quiz_id}/availability", response_model=AvailabilityRead)
def check_availability(
    quiz_id: uuid.UUID,
    access_code: str | None = Query(None),
    actor: Actor = Depends(require_student),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    decision, used, allowed_total = attempt_service.check_availability(db, actor, quiz_id, now, access_code)
    if isinstance(decision, Denied):
        return AvailabilityRead(
            allowed=False,
            reason=decision.reason.value,
            message=decision.message,
            date=decision.date,
            attempts_used=used,
            attempts_allowed=allowed_total,
        )
    return AvailabilityRead(allowed=True, attempts_used=used, attempts_allowed=allowed_total)


@router.post("/{quiz_id}/attempts", response_model=AttemptRead, status_code=status.HTTP_201_CREATED)
def start_attempt(
    quiz_id: uuid.UUID,
    body: AttemptStart | None = None,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    attempt = attempt_service.start_attempt(
        db, actor, quiz_id, now, access_code=body.access_code if body else None
    )
    return AttemptRead.from_attempt(attempt, seconds_remaining(attempt, now))


@router.get("/{quiz_id}/attempts", response_model=list[AttemptRead])
def list_attempts(
    quiz_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """The caller's attempts on this quiz, oldest first."""
    attempts = attempt_service.list_attempts(db, actor, quiz_id)
    return [AttemptRead.from_attempt(a, seconds_remaining(a, now)) for a in attempts]


@router.get("/{quiz_id}/attempts/latest", response_model=AttemptRead | None)
def latest_attempt(
    quiz_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    attempt = attempt_service.latest_attempt(db, actor, quiz_id)
    if attempt is None:
        return None
    return AttemptRead.from_attempt(attempt, seconds_remaining(attempt, now))
