"""
Student model - the root of every record graph in the platform.

Each student is identified by an internal UUID and by a human-readable
student_id (unique). Subjects, attendance, behavioral notes and generated
feedback all hang off a student and are removed with it.
"""

import uuid
from sqlalchemy import Column, Text, DateTime, String
from sqlalchemy.orm import relationship
from student_feedback.database import Base, utcnow

# Ordered best to worst; used for validation and for list ordering
GRADE_LEVELS = ("A+", "A", "B+", "B", "C+", "C", "D+", "D", "F")


class Student(Base):
    """
    SQLAlchemy model for the students table.

    The grade label is optional: NULL means "not set", never an empty string.
    """
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Opaque internal identifier")
    name = Column(Text, nullable=False,
                  doc="Student's full name")
    student_id = Column(String(64), nullable=False, unique=True, index=True,
                        doc="Human-readable student ID assigned by the school")
    grade = Column(String(2), nullable=True,
                   doc="Overall grade label, one of GRADE_LEVELS (nullable)")
    created_at = Column(DateTime, default=utcnow,
                        doc="Timestamp when student record was created")
    updated_at = Column(DateTime, default=utcnow,
                        onupdate=utcnow,
                        doc="Timestamp of the last change to the student row")

    subjects = relationship(
        "Subject", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Subject.created_at"
    )
    attendance = relationship(
        "Attendance", back_populates="student", uselist=False,
        cascade="all, delete-orphan", passive_deletes=True
    )
    behavioral_notes = relationship(
        "BehavioralNote", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="BehavioralNote.created_at"
    )
    feedback_history = relationship(
        "Feedback", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Feedback.created_at.desc()"
    )

    def __repr__(self):
        return f"<Student(id={self.id}, student_id='{self.student_id}', name='{self.name}')>"
