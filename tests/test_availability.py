"""Unit tests for the availability gate."""

import uuid
from datetime import datetime, timedelta, timezone

from kambaz_quizzes.schemas.quiz import Quiz
from kambaz_quizzes.services.availability import (
    Allowed,
    Denied,
    DenialReason,
    availability_label,
    can_attempt,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
DAY = timedelta(days=1)


def _quiz(**overrides) -> Quiz:
    data = {"id": uuid.uuid4(), "course_id": "CS5610", "published": True}
    data.update(overrides)
    return Quiz.model_validate(data)


def _reason(decision) -> DenialReason:
    assert isinstance(decision, Denied)
    return decision.reason


class TestCanAttempt:
    def test_open_published_quiz_is_allowed(self):
        decision = can_attempt(_quiz(), NOW, 0)
        assert isinstance(decision, Allowed)
        assert decision.allowed

    def test_unpublished(self):
        assert _reason(can_attempt(_quiz(published=False), NOW, 0)) == DenialReason.NOT_PUBLISHED

    def test_publish_check_comes_before_dates(self):
        quiz = _quiz(published=False, available_date=NOW - 3 * DAY, until_date=NOW - DAY)
        assert _reason(can_attempt(quiz, NOW, 0)) == DenialReason.NOT_PUBLISHED

    def test_not_yet_available_carries_date(self):
        quiz = _quiz(available_date=NOW + DAY)
        decision = can_attempt(quiz, NOW, 0)
        assert _reason(decision) == DenialReason.NOT_YET_AVAILABLE
        assert decision.date == NOW + DAY
        assert "will be available" in decision.message

    def test_closed_carries_date(self):
        quiz = _quiz(until_date=NOW - DAY)
        decision = can_attempt(quiz, NOW, 0)
        assert _reason(decision) == DenialReason.CLOSED
        assert decision.date == NOW - DAY

    def test_window_boundaries_are_inclusive(self):
        assert can_attempt(_quiz(available_date=NOW), NOW, 0).allowed
        assert can_attempt(_quiz(until_date=NOW), NOW, 0).allowed

    def test_access_code(self):
        quiz = _quiz(access_code="s3cret")
        assert _reason(can_attempt(quiz, NOW, 0)) == DenialReason.BAD_ACCESS_CODE
        assert _reason(can_attempt(quiz, NOW, 0, "wrong")) == DenialReason.BAD_ACCESS_CODE
        assert can_attempt(quiz, NOW, 0, "s3cret").allowed

    def test_single_attempt_quiz(self):
        quiz = _quiz(multiple_attempts=False, max_attempts=5)
        assert can_attempt(quiz, NOW, 0).allowed
        assert _reason(can_attempt(quiz, NOW, 1)) == DenialReason.ATTEMPT_LIMIT_REACHED

    def test_multiple_attempts_up_to_max(self):
        quiz = _quiz(multiple_attempts=True, max_attempts=3)
        assert can_attempt(quiz, NOW, 2).allowed
        assert _reason(can_attempt(quiz, NOW, 3)) == DenialReason.ATTEMPT_LIMIT_REACHED

    def test_dates_checked_before_access_code(self):
        quiz = _quiz(access_code="s3cret", until_date=NOW - DAY)
        assert _reason(can_attempt(quiz, NOW, 0, "wrong")) == DenialReason.CLOSED


class TestAvailabilityLabel:
    def test_labels(self):
        assert availability_label(_quiz(), NOW) == "Available"
        assert availability_label(_quiz(until_date=NOW - DAY), NOW) == "Closed"
        assert (
            availability_label(_quiz(available_date=datetime(2026, 4, 1, tzinfo=timezone.utc)), NOW)
            == "Not available until 2026-04-01"
        )
