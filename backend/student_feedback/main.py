"""
Student Feedback Platform - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Creates the generative-text client at startup (fails fast without an API key)
5. Registers error handlers and all API route handlers
6. Provides health check endpoint

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: Business logic (aggregation, prompts, model client, feedback pipeline)
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from student_feedback import config
from student_feedback.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from student_feedback.error_handlers import add_error_handlers
from student_feedback.routes import students, feedback
from student_feedback.database import DATABASE_URL, create_tables
from student_feedback.services.llm_client import GeminiFeedbackClient

# Import all models so they are registered with Base.metadata
from student_feedback import models  # noqa: F401

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")

# Auto-create tables for SQLite local development
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the feedback client once per process.

    A missing GEMINI_API_KEY raises ConfigurationError here, so the
    server refuses to start rather than failing every feedback request.
    """
    client = GeminiFeedbackClient()
    app.state.feedback_client = client
    log_with_context(logger, "INFO", "Feedback client ready",
                     extra_data={"model": client.model, "provider": client.provider_name})
    try:
        yield
    finally:
        await client.aclose()


# ──────────────────────────────────────────────────────────────
# Create FastAPI application
# ──────────────────────────────────────────────────────────────
app = FastAPI(
    title="Student Feedback Platform",
    description=(
        "Keeps student records (subjects, grades, attendance, behavioral notes) "
        "and generates narrative feedback from them with a generative-text model."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


# ──────────────────────────────────────────────────────────────
# Request ID Middleware
#
# Reuses the caller's X-Request-ID when one is sent, otherwise
# generates a UUID. The ID is bound to request_id_var for the
# lifetime of the request, kept on request.state for handlers that run
# after the middleware has returned, and echoed in the response header.
# ──────────────────────────────────────────────────────────────
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or generate_request_id()
    request.state.request_id = req_id
    token = request_id_var.set(req_id)
    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
            "query_params": dict(request.query_params)
        })

    try:
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000
        response.headers["X-Request-ID"] = req_id
        log_with_context(logger, "INFO",
            f"Request completed: {request.method} {request.url.path} → {response.status_code}",
            context={"request_id": req_id},
            extra_data={
                "duration_ms": round(duration_ms, 2),
                "status_code": response.status_code
            })
        return response
    finally:
        request_id_var.reset(token)


add_error_handlers(app)

# ──────────────────────────────────────────────────────────────
# Register API routes
# ──────────────────────────────────────────────────────────────
app.include_router(students.router, tags=["Students"])
app.include_router(feedback.router, tags=["Feedback"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for Docker health checks and monitoring."""
    return {"status": "healthy", "service": "student-feedback-backend", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Student Feedback Platform",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "students": "GET/POST /api/students",
            "student_detail": "GET/PATCH/DELETE /api/students/{id}",
            "subjects": "POST /api/students/{id}/subjects",
            "grades": "POST /api/subjects/{id}/grades",
            "attendance": "PUT /api/students/{id}/attendance",
            "notes": "POST /api/students/{id}/notes",
            "export": "GET /api/students/{id}/export",
            "generate_feedback": "POST /api/feedback",
            "feedback_history": "GET /api/students/{id}/feedback"
        }
    }
