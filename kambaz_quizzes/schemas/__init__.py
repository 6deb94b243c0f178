"""Pydantic schemas — re‑exported for convenience."""

from kambaz_quizzes.schemas.common import ErrorResponse, LabelEnum  # noqa: F401
from kambaz_quizzes.schemas.user import (  # noqa: F401
    Actor,
    AuthResponse,
    Role,
    UserCreate,
    UserLogin,
    UserRead,
)
from kambaz_quizzes.schemas.question import (  # noqa: F401
    Choice,
    FillInBlankQuestion,
    MultipleChoiceQuestion,
    Question,
    QuestionPublic,
    QuestionType,
    TrueFalseQuestion,
    parse_question,
)
from kambaz_quizzes.schemas.quiz import (  # noqa: F401
    PublishUpdate,
    Quiz,
    QuizCreate,
    QuizSummary,
    QuizType,
    QuizUpdate,
    ShowCorrectAnswers,
    StudentQuizView,
)
from kambaz_quizzes.schemas.attempt import (  # noqa: F401
    AnswerRecord,
    AnswersSave,
    Attempt,
    AttemptRead,
    AttemptStart,
    AttemptStatus,
    AvailabilityRead,
    GradedAnswer,
    TickResult,
)
from kambaz_quizzes.schemas.report import QuestionResult, Report  # noqa: F401
