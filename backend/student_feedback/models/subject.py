"""
Subject and Grade models - per-student courses and their numeric marks.

A subject belongs to exactly one student. Grades are plain numeric values
attached to a subject; a subject's average is derived, never stored.
"""

import uuid
from sqlalchemy import Column, Text, DateTime, Float, ForeignKey, String, Index, CheckConstraint
from sqlalchemy.orm import relationship
from student_feedback.database import Base, utcnow


class Subject(Base):
    """SQLAlchemy model for the subjects table."""
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique subject identifier")
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False,
                        doc="Owning student")
    name = Column(Text, nullable=False,
                  doc="Subject name, e.g. Mathematics")
    performance = Column(Text, nullable=True,
                         doc="Free-text performance label (Excellent, Good, ...); NULL when not set")
    created_at = Column(DateTime, default=utcnow,
                        doc="When the subject was attached to the student")

    student = relationship("Student", back_populates="subjects")
    grades = relationship(
        "Grade", back_populates="subject",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Grade.created_at"
    )

    __table_args__ = (
        Index("ix_subjects_student_id", "student_id"),
    )

    def __repr__(self):
        return f"<Subject(id={self.id}, student={self.student_id}, name='{self.name}')>"


class Grade(Base):
    """SQLAlchemy model for the grades table."""
    __tablename__ = "grades"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique grade identifier")
    subject_id = Column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False,
                        doc="Subject this mark belongs to")
    value = Column(Float, nullable=False,
                   doc="Numeric mark, non-negative")
    created_at = Column(DateTime, default=utcnow,
                        doc="When the mark was recorded")

    subject = relationship("Subject", back_populates="grades")

    __table_args__ = (
        Index("ix_grades_subject_id", "subject_id"),
        CheckConstraint("value >= 0", name="ck_grades_value_non_negative"),
    )

    def __repr__(self):
        return f"<Grade(id={self.id}, subject={self.subject_id}, value={self.value})>"
