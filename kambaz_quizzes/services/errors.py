"""Domain errors raised by the quiz services.

Routes never catch these; ``main.py`` maps each family onto an HTTP status
and the standard ``ErrorResponse`` envelope.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kambaz_quizzes.services.availability import Denied


class QuizError(Exception):
    """Base class for every quiz-domain error."""

    error_code = "quiz_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or None


# ── Not found ─────────────────────────────────────────────────────────────────


class QuizNotFoundError(QuizError):
    error_code = "quiz_not_found"

    def __init__(self, quiz_id: uuid.UUID) -> None:
        super().__init__("Quiz not found", quiz_id=str(quiz_id))


class AttemptNotFoundError(QuizError):
    error_code = "attempt_not_found"

    def __init__(self, attempt_id: uuid.UUID) -> None:
        super().__init__("Attempt not found", attempt_id=str(attempt_id))


# ── Authoring ─────────────────────────────────────────────────────────────────


class QuizValidationError(QuizError):
    """Quiz or question data is malformed; caught before anything is stored."""

    error_code = "invalid_quiz"


# ── Attempt creation ──────────────────────────────────────────────────────────


class AttemptCreationError(QuizError):
    """The attempt could not be started.

    ``denial`` is set when the availability gate refused; otherwise the
    failure is a conflict with an attempt that is already in progress.
    """

    error_code = "attempt_in_progress"

    def __init__(self, message: str, denial: "Denied | None" = None) -> None:
        details: dict[str, Any] = {}
        if denial is not None and denial.date is not None:
            details["date"] = denial.date.isoformat()
        super().__init__(message, **details)
        self.denial = denial
        if denial is not None:
            self.error_code = denial.reason.value


# ── State errors ──────────────────────────────────────────────────────────────


class AttemptStateError(QuizError):
    """Operation not permitted by the attempt's current state."""

    error_code = "invalid_state"


class InvalidStateError(AttemptStateError):
    error_code = "invalid_state"


class AlreadySubmittedError(AttemptStateError):
    error_code = "already_submitted"

    def __init__(self, attempt_id: uuid.UUID) -> None:
        super().__init__("Attempt has already been submitted", attempt_id=str(attempt_id))


class UnknownQuestionError(AttemptStateError):
    error_code = "unknown_question"

    def __init__(self, question_id: str) -> None:
        super().__init__("Question does not belong to this quiz", question_id=question_id)


class QuestionLockedError(AttemptStateError):
    error_code = "question_locked"

    def __init__(self, question_id: str) -> None:
        super().__init__("Question is locked after answering", question_id=question_id)


# ── Access / transport ────────────────────────────────────────────────────────


class AttemptAccessError(QuizError):
    """Actor is not allowed to act on this attempt or quiz."""

    error_code = "forbidden"


class PersistenceError(QuizError):
    """The store failed to read or write; the caller may retry."""

    error_code = "persistence_error"
