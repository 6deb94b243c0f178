"""Quiz schemas — settings, authoring payloads and the student-facing view."""

import random
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from kambaz_quizzes.config import settings
from kambaz_quizzes.schemas.common import LabelEnum, as_utc
from kambaz_quizzes.schemas.question import Question, QuestionPublic


class QuizType(LabelEnum):
    GRADED_QUIZ = "graded-quiz"
    PRACTICE_QUIZ = "practice-quiz"
    GRADED_SURVEY = "graded-survey"
    UNGRADED_SURVEY = "ungraded-survey"


class ShowCorrectAnswers(LabelEnum):
    IMMEDIATELY = "immediately"
    AFTER_DUE_DATE = "after-due-date"
    NEVER = "never"


def _unique_question_ids(questions: list[Question] | None) -> list[Question] | None:
    if questions:
        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise ValueError("question ids must be unique within a quiz")
    return questions


QuestionList = Annotated[list[Question], AfterValidator(_unique_question_ids)]


class QuizSettings(BaseModel):
    """Everything a faculty member configures on the quiz details tab."""

    title: str = "Unnamed Quiz"
    description: str = ""
    quiz_type: QuizType = QuizType.GRADED_QUIZ
    assignment_group: str = "Quizzes"
    shuffle_answers: bool = True
    time_limit_minutes: int | None = Field(default=20, gt=0)
    multiple_attempts: bool = False
    max_attempts: int = Field(default_factory=lambda: settings.DEFAULT_MAX_ATTEMPTS, ge=1)
    show_correct_answers: ShowCorrectAnswers = ShowCorrectAnswers.IMMEDIATELY
    access_code: str | None = None
    one_question_at_a_time: bool = True
    webcam_required: bool = False
    lock_questions_after_answering: bool = False
    due_date: datetime | None = None
    available_date: datetime | None = None
    until_date: datetime | None = None
    published: bool = False

    @field_validator("due_date", "available_date", "until_date")
    @classmethod
    def _dates_in_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @field_validator("access_code")
    @classmethod
    def _blank_code_is_none(cls, v: str | None) -> str | None:
        return v or None

    @model_validator(mode="after")
    def _window_is_ordered(self):
        if self.available_date and self.until_date and self.until_date < self.available_date:
            raise ValueError("until_date must not be before available_date")
        return self


class QuizCreate(QuizSettings):
    """POST /api/quizzes"""

    course_id: str
    questions: QuestionList = []


class QuizUpdate(BaseModel):
    """PUT /api/quizzes/{id} — only the fields sent are changed.

    When ``questions`` is sent it replaces the whole question set.
    """

    title: str | None = None
    description: str | None = None
    quiz_type: QuizType | None = None
    assignment_group: str | None = None
    shuffle_answers: bool | None = None
    time_limit_minutes: int | None = Field(default=None, gt=0)
    multiple_attempts: bool | None = None
    max_attempts: int | None = Field(default=None, ge=1)
    show_correct_answers: ShowCorrectAnswers | None = None
    access_code: str | None = None
    one_question_at_a_time: bool | None = None
    webcam_required: bool | None = None
    lock_questions_after_answering: bool | None = None
    due_date: datetime | None = None
    available_date: datetime | None = None
    until_date: datetime | None = None
    published: bool | None = None
    questions: QuestionList | None = None

    @field_validator("due_date", "available_date", "until_date")
    @classmethod
    def _dates_in_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class PublishUpdate(BaseModel):
    """PATCH /api/quizzes/{id}/publish"""

    published: bool


class Quiz(QuizSettings):
    """A stored quiz with its ordered questions."""

    id: uuid.UUID
    course_id: str
    questions: QuestionList = []
    created_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_points(self) -> float:
        return float(sum(q.points for q in self.questions))

    @property
    def question_ids(self) -> set[str]:
        return {q.id for q in self.questions}

    def question(self, question_id: str) -> Question | None:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


class QuizSummary(BaseModel):
    """One row of the course quiz list."""

    id: uuid.UUID
    course_id: str
    title: str
    published: bool
    total_points: float
    question_count: int
    due_date: datetime | None = None
    available_date: datetime | None = None
    until_date: datetime | None = None
    availability: str


class StudentQuizView(BaseModel):
    """Quiz as served to a student — settings they need, no correct answers."""

    id: uuid.UUID
    course_id: str
    title: str
    description: str
    quiz_type: QuizType
    time_limit_minutes: int | None
    multiple_attempts: bool
    max_attempts: int
    one_question_at_a_time: bool
    lock_questions_after_answering: bool
    requires_access_code: bool
    due_date: datetime | None
    available_date: datetime | None
    until_date: datetime | None
    total_points: float
    questions: list[QuestionPublic]

    @classmethod
    def from_quiz(cls, quiz: Quiz, shuffle_seed: str | None = None) -> "StudentQuizView":
        """Strip answers; shuffle choices per attempt when the quiz asks for it.

        The same seed always yields the same order, so a student reloading an
        attempt sees a stable layout.
        """
        rng = random.Random(shuffle_seed) if quiz.shuffle_answers and shuffle_seed else None
        questions = []
        for q in quiz.questions:
            choices = getattr(q, "choices", None)
            if choices is not None and rng is not None:
                choices = list(choices)
                rng.shuffle(choices)
            questions.append(q.public_view(choices) if choices is not None else q.public_view())
        return cls(
            id=quiz.id,
            course_id=quiz.course_id,
            title=quiz.title,
            description=quiz.description,
            quiz_type=quiz.quiz_type,
            time_limit_minutes=quiz.time_limit_minutes,
            multiple_attempts=quiz.multiple_attempts,
            max_attempts=quiz.max_attempts,
            one_question_at_a_time=quiz.one_question_at_a_time,
            lock_questions_after_answering=quiz.lock_questions_after_answering,
            requires_access_code=quiz.access_code is not None,
            due_date=quiz.due_date,
            available_date=quiz.available_date,
            until_date=quiz.until_date,
            total_points=quiz.total_points,
            questions=questions,
        )
