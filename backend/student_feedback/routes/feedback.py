"""
Feedback API routes - generate narrative feedback and browse its history.

Provides endpoints for:
- Generating feedback for a student through the configured model
- Listing a student's feedback history, most recent first
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from student_feedback.database import get_db
from student_feedback.models.feedback import Feedback
from student_feedback.services.feedback import generate_feedback, list_feedback_history
from student_feedback.services.llm_client import FeedbackClient

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class GenerateFeedbackRequest(BaseModel):
    """Schema for a feedback generation request."""
    student_id: str = Field(..., min_length=1, description="Opaque student record id")
    feedback_type: str = Field(..., description="improvement | strengths | parentConference")


class FeedbackResponse(BaseModel):
    """Schema for a persisted feedback entry."""
    id: str
    student_id: str
    content: str
    generated_by: str
    feedback_type: Optional[str] = None
    created_at: Optional[str] = None


def serialize_feedback(feedback: Feedback) -> dict:
    """Serialize a Feedback ORM object to a dict for API response."""
    return {
        "id": str(feedback.id),
        "student_id": str(feedback.student_id),
        "content": feedback.content,
        "generated_by": feedback.generated_by,
        "feedback_type": feedback.feedback_type,
        "created_at": feedback.created_at.isoformat() if feedback.created_at else None
    }


def get_feedback_client(request: Request) -> FeedbackClient:
    """FastAPI dependency returning the client created at startup."""
    return request.app.state.feedback_client


@router.post("/api/feedback", response_model=FeedbackResponse, status_code=201)
async def create_feedback(
    request: GenerateFeedbackRequest,
    db: Session = Depends(get_db),
    client: FeedbackClient = Depends(get_feedback_client)
):
    """
    Generate feedback for a student and store it.

    The feedback type is checked before the student is loaded; an unknown
    student, a failed model call, or a failed write each fail the whole
    request with nothing half-saved.
    """
    feedback = await generate_feedback(db, request.student_id, request.feedback_type, client)
    return serialize_feedback(feedback)


@router.get("/api/students/{student_id}/feedback", response_model=List[FeedbackResponse])
def get_feedback_history(student_id: str, db: Session = Depends(get_db)):
    """Feedback history for a student, newest first."""
    return [serialize_feedback(f) for f in list_feedback_history(db, student_id)]
