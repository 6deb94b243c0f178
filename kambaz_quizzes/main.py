"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from kambaz_quizzes.api import attempts_router, health_router, quizzes_router, users_router
from kambaz_quizzes.config import settings
from kambaz_quizzes.schemas.common import ErrorResponse
from kambaz_quizzes.services.errors import (
    AttemptAccessError,
    AttemptCreationError,
    AttemptNotFoundError,
    AttemptStateError,
    PersistenceError,
    QuizError,
    QuizNotFoundError,
    QuizValidationError,
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Kambaz quizzes service starting (env=%s)", settings.ENV)
    yield
    logger.info("Kambaz quizzes service shut down")


app = FastAPI(
    title="Kambaz Quizzes API",
    description="Quiz authoring, attempts, grading and results for Kambaz courses",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Domain errors ─────────────────────────────────────────────────────────────


def _status_for(exc: QuizError) -> int:
    if isinstance(exc, (QuizNotFoundError, AttemptNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, AttemptCreationError):
        return status.HTTP_403_FORBIDDEN if exc.denial is not None else status.HTTP_409_CONFLICT
    if isinstance(exc, AttemptStateError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, AttemptAccessError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, QuizValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, PersistenceError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_400_BAD_REQUEST


async def quiz_error_handler(request: Request, exc: QuizError) -> JSONResponse:
    code = _status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=code, content=body.model_dump(mode="json"))


app.add_exception_handler(QuizError, quiz_error_handler)

# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(health_router, tags=["Health"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(quizzes_router, prefix="/api/quizzes", tags=["Quizzes"])
app.include_router(attempts_router, prefix="/api/attempts", tags=["Attempts"])


@app.get("/")
async def root():
    return {
        "name": "Kambaz Quizzes API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
