"""FastAPI application for the lesson assistant.

Exposes lesson question answering and transcript ingestion over HTTP.
"""

import os
from datetime import UTC, datetime
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.lesson_rag.errors import PipelineStageError, ValidationError
from src.lesson_rag.services import LessonRAGServices, build_services
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Check if we're in production
is_production = os.getenv("ENVIRONMENT") == "production"

if not is_production:
    # Development: prioritize .env file
    project_root = Path(__file__).resolve().parent.parent.parent
    dotenv_path = project_root / ".env"
    load_dotenv(dotenv_path, override=True)
else:
    # Production: use cloud platform env vars only
    load_dotenv()

# Global services initialized in lifespan
services: LessonRAGServices | None = None


# ==============================================================================
# Lifespan Management
# ==============================================================================


async def lifespan(app: FastAPI):  # type: ignore[misc]
    """Lifecycle manager for the FastAPI application."""
    global services

    logger.info("application_startup_started")

    try:
        services = build_services()
        logger.info(
            "application_startup_completed",
            chunk_store=type(services.chunk_store).__name__,
        )
    except Exception:
        logger.exception("application_startup_failed")
        raise

    yield  # Application runs here

    logger.info("application_shutdown_started")
    services = None
    logger.info("application_shutdown_completed")


# ==============================================================================
# FastAPI Application Setup
# ==============================================================================

app = FastAPI(
    title="Lesson Assistant API",
    description="Answers learner questions grounded in lesson transcripts",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==============================================================================
# Request/Response Models
# ==============================================================================


class LessonQuestionRequest(BaseModel):
    """Request model for the question endpoint.

    Fields default to None so a missing value is reported as a 400 by the
    pipeline's validation instead of FastAPI's 422.
    """

    lessonId: str | int | None = None
    question: str | None = None


class GenerateEmbeddingsRequest(BaseModel):
    """Request model for the ingestion endpoint."""

    lesson_id: str | int | None = None


def error_response(error: Exception) -> JSONResponse:
    """Map a pipeline error to a JSON error response."""
    if isinstance(error, ValidationError):
        status_code = 400
    elif isinstance(error, PipelineStageError):
        status_code = 502
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content={"error": str(error)})


def get_services() -> LessonRAGServices:
    if services is None:
        raise RuntimeError("Services not initialized")
    return services


def as_text(value: str | int | None) -> str | None:
    return str(value) if isinstance(value, int) else value


# ==============================================================================
# Endpoints
# ==============================================================================


@app.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        Health status and timestamp.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "services": {
            "supabase": services is not None and services.supabase is not None,
            "ingestion": services is not None,
            "query": services is not None,
        },
    }


@app.post("/api/ask-lesson-question")
async def ask_lesson_question(request: LessonQuestionRequest):
    """Answer a learner question about one lesson.

    Returns:
        ``{"answer", "grounded"}`` on success, ``{"error"}`` otherwise.
    """
    lesson_id = as_text(request.lessonId)
    logger.info("ask_request_started", lesson_id=lesson_id)

    try:
        result = await get_services().query.ask(lesson_id, request.question)
    except Exception as e:
        logger.warning("ask_request_failed", lesson_id=lesson_id, error_type=type(e).__name__)
        return error_response(e)

    return {"answer": result.answer.text, "grounded": result.answer.grounded}


@app.post("/api/generate-embeddings")
async def generate_embeddings(request: GenerateEmbeddingsRequest):
    """Rebuild the chunk set of a lesson from its stored transcript.

    Returns:
        ``{"message", "chunks_created", "state"}`` on success, ``{"error"}``
        otherwise.
    """
    lesson_id = as_text(request.lesson_id)
    logger.info("generate_embeddings_started", lesson_id=lesson_id)

    try:
        result = await get_services().ingestion.ingest(lesson_id)
    except Exception as e:
        logger.warning(
            "generate_embeddings_failed", lesson_id=lesson_id, error_type=type(e).__name__
        )
        return error_response(e)

    return {
        "message": result.message,
        "chunks_created": result.chunks_created,
        "state": result.state.value,
    }
