"""
Feedback model - generated narrative feedback for a student.

Rows are append-only history: the pipeline inserts, nothing updates or
deletes them (apart from the cascade when the student itself goes).
"""

import uuid
from sqlalchemy import Column, Text, DateTime, ForeignKey, String, Index
from sqlalchemy.orm import relationship
from student_feedback.database import Base, utcnow


class Feedback(Base):
    """SQLAlchemy model for the feedback table."""
    __tablename__ = "feedback"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique feedback identifier")
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False,
                        doc="Student the feedback was generated for")
    content = Column(Text, nullable=False,
                     doc="Generated text exactly as returned by the model")
    generated_by = Column(Text, nullable=False,
                          doc="Provenance: name of the generating service")
    feedback_type = Column(String(32), nullable=True,
                           doc="improvement | strengths | parentConference")
    created_at = Column(DateTime, default=utcnow,
                        doc="Generation timestamp")

    student = relationship("Student", back_populates="feedback_history")

    __table_args__ = (
        Index("ix_feedback_student_id", "student_id"),
        Index("ix_feedback_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Feedback(id={self.id}, student={self.student_id}, generated_by='{self.generated_by}')>"
