"""API route package — imports all routers for main.py."""

from kambaz_quizzes.api.health import router as health_router  # noqa: F401
from kambaz_quizzes.api.users import router as users_router  # noqa: F401
from kambaz_quizzes.api.quizzes import router as quizzes_router  # noqa: F401
from kambaz_quizzes.api.attempts import router as attempts_router  # noqa: F401
