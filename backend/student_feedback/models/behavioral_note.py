"""
BehavioralNote model - append-only free-text observations about a student.
"""

import uuid
from sqlalchemy import Column, Text, DateTime, ForeignKey, String, Index
from sqlalchemy.orm import relationship
from student_feedback.database import Base, utcnow


class BehavioralNote(Base):
    """
    SQLAlchemy model for the behavioral_notes table.

    Notes are never edited; a correction is a new note.
    """
    __tablename__ = "behavioral_notes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique note identifier")
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False,
                        doc="Student the note is about")
    content = Column(Text, nullable=False,
                     doc="Note text as written by the teacher")
    created_at = Column(DateTime, default=utcnow,
                        doc="When the note was written")

    student = relationship("Student", back_populates="behavioral_notes")

    __table_args__ = (
        Index("ix_behavioral_notes_student_id", "student_id"),
    )

    def __repr__(self):
        return f"<BehavioralNote(id={self.id}, student={self.student_id}, content='{self.content[:50]}')>"
