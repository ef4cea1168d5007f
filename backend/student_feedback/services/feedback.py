"""
Feedback Service - the generate-feedback pipeline and feedback persistence.

Pipeline for one request:
1. Validate the feedback type (before any store or model call)
2. Fetch the student with subjects/grades, attendance and notes
3. Aggregate the record into a StudentSummary
4. Build the prompt for the requested feedback type
5. Call the feedback client once
6. Append a Feedback row linked to the student

Feedback is append-only. Two concurrent requests for the same student
both succeed and both append a row; nothing deduplicates them.
"""

import time
from typing import List

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from student_feedback.errors import NotFoundError, PersistenceError
from student_feedback.logging_config import get_logger, log_with_context
from student_feedback.models.feedback import Feedback
from student_feedback.models.student import Student
from student_feedback.models.subject import Subject
from student_feedback.services.aggregation import aggregate_student
from student_feedback.services.llm_client import FeedbackClient
from student_feedback.services.prompts import build_prompt, parse_feedback_type

logger = get_logger("feedback")
db_logger = get_logger("db")


def load_student_record(db: Session, student_id: str) -> Student:
    """
    Fetch a student with every relation the aggregator reads.

    Raises:
        NotFoundError: no student has this id
    """
    student = db.query(Student).options(
        selectinload(Student.subjects).selectinload(Subject.grades),
        selectinload(Student.attendance),
        selectinload(Student.behavioral_notes)
    ).filter(Student.id == student_id).first()

    if student is None:
        raise NotFoundError("Student not found")
    return student


def _student_exists(db: Session, student_id: str) -> bool:
    return db.query(Student.id).filter(Student.id == student_id).first() is not None


def persist_feedback(db: Session, student_id: str, content: str,
                     generated_by: str, feedback_type: str = None) -> Feedback:
    """
    Append a Feedback row for the student.

    The student's existence is re-checked against the database right
    before the insert, so a student deleted while the model was running
    yields NotFoundError instead of an orphan row.

    Raises:
        NotFoundError: the student no longer exists
        PersistenceError: the write failed for any other reason
    """
    if not _student_exists(db, student_id):
        raise NotFoundError("Student not found")

    feedback = Feedback(
        student_id=student_id,
        content=content,
        generated_by=generated_by,
        feedback_type=feedback_type,
    )
    db.add(feedback)

    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        if not _student_exists(db, student_id):
            raise NotFoundError("Student not found") from err
        log_with_context(db_logger, "ERROR", "Failed to store feedback",
                         context={"student_id": student_id},
                         extra_data={"error": type(err).__name__})
        raise PersistenceError("Feedback was generated but could not be saved. Please try again.") from err
    except SQLAlchemyError as err:
        db.rollback()
        log_with_context(db_logger, "ERROR", "Failed to store feedback",
                         context={"student_id": student_id},
                         extra_data={"error": type(err).__name__})
        raise PersistenceError("Feedback was generated but could not be saved. Please try again.") from err

    db.refresh(feedback)
    log_with_context(db_logger, "INFO", "Stored feedback {}".format(feedback.id),
                     context={"student_id": student_id, "feedback_id": feedback.id},
                     extra_data={"generated_by": generated_by, "chars": len(content)})
    return feedback


def _prepare_prompt(db: Session, student_id: str, kind):
    student = load_student_record(db, student_id)
    summary = aggregate_student(student)
    return summary, build_prompt(summary, kind)


async def generate_feedback(db: Session, student_id: str, feedback_type,
                            client: FeedbackClient) -> Feedback:
    """
    Run the full pipeline for one student.

    Store reads and writes run in the threadpool; only the model call is
    awaited on the event loop.

    Args:
        db: Database session
        student_id: Opaque student record id
        feedback_type: "improvement" | "strengths" | "parentConference"
        client: Feedback client used for the single model call

    Returns:
        The persisted Feedback row

    Raises:
        ValidationError, NotFoundError, UpstreamError, PersistenceError
    """
    start_time = time.time()
    kind = parse_feedback_type(feedback_type)

    summary, prompt = await run_in_threadpool(_prepare_prompt, db, student_id, kind)

    log_with_context(logger, "INFO",
        "Requesting {} feedback for student {}".format(kind.value, summary.student_id),
        context={"student_id": student_id},
        extra_data={"prompt_chars": len(prompt), "provider": client.provider_name})

    text = await client.complete(prompt)

    feedback = await run_in_threadpool(
        persist_feedback, db, student_id, text, client.provider_name, kind.value
    )

    log_with_context(logger, "INFO",
        "Generated {} feedback for student {}".format(kind.value, summary.student_id),
        context={"student_id": student_id, "feedback_id": feedback.id},
        extra_data={"duration_ms": round((time.time() - start_time) * 1000, 2)})
    return feedback


def list_feedback_history(db: Session, student_id: str) -> List[Feedback]:
    """Feedback rows for a student, most recent first."""
    if not _student_exists(db, student_id):
        raise NotFoundError("Student not found")
    return db.query(Feedback).filter(
        Feedback.student_id == student_id
    ).order_by(Feedback.created_at.desc(), Feedback.id.desc()).all()
