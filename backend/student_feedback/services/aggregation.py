"""
Aggregation Service - turns a student's record graph into a prompt-ready summary.

Produces, for one student:
1. Identity fields (name, public student ID, grade label)
2. Per-subject summaries: performance label, grade values, arithmetic mean
3. An attendance summary: either recorded counters with a rate, or unrecorded
4. Behavioral note texts in the order they were written

Nothing here touches the database or raises on empty collections; every
collection-derived field degrades to a defined fallback.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from student_feedback.logging_config import get_logger, log_with_context

logger = get_logger("aggregation")

NOT_SPECIFIED = "Not specified"
NO_GRADES_RECORDED = "No grades recorded"
NO_ATTENDANCE_RECORDS = "No attendance records"


@dataclass(frozen=True)
class SubjectSummary:
    """One subject with its grades; average is None when there are no grades."""
    name: str
    performance: str
    grades: Tuple[float, ...]
    average: Optional[float]


@dataclass(frozen=True)
class RecordedAttendance:
    present: int
    absent: int
    late: int
    rate: float


@dataclass(frozen=True)
class UnrecordedAttendance:
    """No attendance row, or a row whose counters are all zero."""
    label: str = NO_ATTENDANCE_RECORDS


AttendanceSummary = Union[RecordedAttendance, UnrecordedAttendance]


@dataclass(frozen=True)
class StudentSummary:
    name: str
    student_id: str
    grade: Optional[str]
    subjects: Tuple[SubjectSummary, ...]
    attendance: AttendanceSummary
    behavioral_notes: Tuple[str, ...]


def average(values: List[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty list."""
    if not values:
        return None
    return sum(values) / len(values)


def summarize_subject(subject) -> SubjectSummary:
    grades = tuple(float(g.value) for g in (subject.grades or []))
    return SubjectSummary(
        name=subject.name,
        performance=subject.performance or NOT_SPECIFIED,
        grades=grades,
        average=average(list(grades)),
    )


def summarize_attendance(attendance) -> AttendanceSummary:
    """
    Build the attendance summary.

    rate = present / (present + absent + late). A missing row and a row
    with all three counters at zero both yield UnrecordedAttendance; the
    latter would otherwise divide by zero.
    """
    if attendance is None:
        return UnrecordedAttendance()

    present = attendance.present or 0
    absent = attendance.absent or 0
    late = attendance.late or 0
    total = present + absent + late
    if total == 0:
        return UnrecordedAttendance()

    return RecordedAttendance(
        present=present,
        absent=absent,
        late=late,
        rate=present / total,
    )


def aggregate_student(student) -> StudentSummary:
    """
    Aggregate a student loaded with subjects (and their grades), attendance
    and behavioral notes into a StudentSummary.

    Args:
        student: Student ORM object (or anything exposing the same attributes)

    Returns:
        StudentSummary with fallbacks applied for every empty collection
    """
    subjects = tuple(summarize_subject(s) for s in (student.subjects or []))
    attendance = summarize_attendance(student.attendance)
    notes = tuple(n.content for n in (student.behavioral_notes or []))

    log_with_context(logger, "DEBUG",
        "Aggregated record for student {}".format(student.student_id),
        context={"student_id": str(student.id)},
        extra_data={
            "subjects": len(subjects),
            "notes": len(notes),
            "attendance_recorded": isinstance(attendance, RecordedAttendance)
        })

    return StudentSummary(
        name=student.name,
        student_id=student.student_id,
        grade=student.grade or None,
        subjects=subjects,
        attendance=attendance,
        behavioral_notes=notes,
    )
