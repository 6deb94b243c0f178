"""Availability gate — may this quiz be started right now?

Checks run in a fixed order and the first failure wins:

  1. published
  2. available_date reached
  3. until_date not passed
  4. access code matches (when the quiz has one)
  5. attempt limit not reached

Everything here is a pure function of its inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from kambaz_quizzes.schemas.quiz import Quiz


class DenialReason(str, Enum):
    NOT_PUBLISHED = "not_published"
    NOT_YET_AVAILABLE = "not_yet_available"
    CLOSED = "closed"
    BAD_ACCESS_CODE = "bad_access_code"
    ATTEMPT_LIMIT_REACHED = "attempt_limit_reached"


@dataclass(frozen=True, slots=True)
class Allowed:
    allowed: bool = True


@dataclass(frozen=True, slots=True)
class Denied:
    reason: DenialReason
    date: datetime | None = None
    allowed: bool = False

    @property
    def message(self) -> str:
        if self.reason == DenialReason.NOT_PUBLISHED:
            return "This quiz is not yet available. Please check back later."
        if self.reason == DenialReason.NOT_YET_AVAILABLE:
            return f"This quiz will be available on {_fmt(self.date)}"
        if self.reason == DenialReason.CLOSED:
            return f"This quiz closed on {_fmt(self.date)}"
        if self.reason == DenialReason.BAD_ACCESS_CODE:
            return "Incorrect access code"
        return "You have used all allowed attempts for this quiz"


ALLOWED = Allowed()


def _fmt(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC") if value else "an unknown date"


def can_attempt(
    quiz: Quiz,
    now: datetime,
    prior_attempts: int,
    supplied_access_code: str | None = None,
) -> Allowed | Denied:
    """Decide whether a student with *prior_attempts* may start *quiz* at *now*."""
    if not quiz.published:
        return Denied(DenialReason.NOT_PUBLISHED)
    if quiz.available_date is not None and now < quiz.available_date:
        return Denied(DenialReason.NOT_YET_AVAILABLE, quiz.available_date)
    if quiz.until_date is not None and now > quiz.until_date:
        return Denied(DenialReason.CLOSED, quiz.until_date)
    if quiz.access_code is not None and supplied_access_code != quiz.access_code:
        return Denied(DenialReason.BAD_ACCESS_CODE)
    if quiz.multiple_attempts:
        if prior_attempts >= quiz.max_attempts:
            return Denied(DenialReason.ATTEMPT_LIMIT_REACHED)
    elif prior_attempts != 0:
        return Denied(DenialReason.ATTEMPT_LIMIT_REACHED)
    return ALLOWED


def availability_label(quiz: Quiz, now: datetime) -> str:
    """Short status shown next to each quiz in the course list."""
    if quiz.until_date is not None and now > quiz.until_date:
        return "Closed"
    if quiz.available_date is not None and now < quiz.available_date:
        return f"Not available until {quiz.available_date.strftime('%Y-%m-%d')}"
    return "Available"
