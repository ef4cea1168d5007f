"""
Attendance model - running present/absent/late counters for a student.

At most one row exists per student (unique student_id); writes go through
an upsert that creates the row on first use and overwrites counters after.
"""

import uuid
from sqlalchemy import Column, DateTime, Integer, ForeignKey, String, CheckConstraint
from sqlalchemy.orm import relationship
from student_feedback.database import Base, utcnow


class Attendance(Base):
    """SQLAlchemy model for the attendance table."""
    __tablename__ = "attendance"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique attendance row identifier")
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"),
                        nullable=False, unique=True,
                        doc="Owning student (one row per student)")
    present = Column(Integer, nullable=False, default=0, doc="Days present")
    absent = Column(Integer, nullable=False, default=0, doc="Days absent")
    late = Column(Integer, nullable=False, default=0, doc="Days late")
    updated_at = Column(DateTime, default=utcnow,
                        onupdate=utcnow,
                        doc="Last time any counter changed")

    student = relationship("Student", back_populates="attendance")

    __table_args__ = (
        CheckConstraint("present >= 0 AND absent >= 0 AND late >= 0",
                        name="ck_attendance_counters_non_negative"),
    )

    @property
    def total(self) -> int:
        return (self.present or 0) + (self.absent or 0) + (self.late or 0)

    def __repr__(self):
        return (f"<Attendance(student={self.student_id}, present={self.present}, "
                f"absent={self.absent}, late={self.late})>")
