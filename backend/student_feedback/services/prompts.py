"""
Prompt Builder - renders an aggregated student summary into model input.

Three fixed templates exist, one per feedback type. They share the same
data block and differ only in the instruction paragraph. Placeholders use
the {{name}} syntax and are substituted in a single pass, so every
occurrence of every placeholder is replaced and text inserted for one
placeholder is never re-scanned for another.
"""

import math
import re
import textwrap
from enum import Enum

from student_feedback.errors import ValidationError
from student_feedback.services.aggregation import (
    StudentSummary, RecordedAttendance, UnrecordedAttendance,
    NOT_SPECIFIED, NO_GRADES_RECORDED
)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

NO_SUBJECTS_RECORDED = "No subjects recorded."
NO_BEHAVIORAL_NOTES = "No behavioral notes recorded."


class FeedbackType(str, Enum):
    IMPROVEMENT = "improvement"
    STRENGTHS = "strengths"
    PARENT_CONFERENCE = "parentConference"


def parse_feedback_type(value) -> FeedbackType:
    """Return the FeedbackType for value, or raise ValidationError."""
    if isinstance(value, FeedbackType):
        return value
    try:
        return FeedbackType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in FeedbackType)
        raise ValidationError(
            "Invalid feedback type '{}'. Expected one of: {}".format(value, allowed)
        )


_DATA_BLOCK = """\
The student is in grade {{grade}}.

Academic Information:
{{subjectsData}}

Attendance Information:
{{attendanceData}}

Behavioral Notes:
{{behavioralNotes}}
"""

TEMPLATES = {
    FeedbackType.IMPROVEMENT: (
        "Based on the student data provided, generate specific areas for improvement for {{name}}.\n"
        + _DATA_BLOCK + "\n"
        + textwrap.dedent("""\
            Please provide specific, actionable feedback that focuses on areas where the student
            can improve. Include specific strategies that would be helpful for the student to implement.
            Format the response in a professional but warm tone that would be appropriate for a teacher
            to share with a student or parent.
        """)
    ),
    FeedbackType.STRENGTHS: (
        "Based on the student data provided, highlight the strengths and positive attributes of {{name}}.\n"
        + _DATA_BLOCK + "\n"
        + textwrap.dedent("""\
            Please provide specific feedback that focuses on the student's strengths and achievements.
            Highlight areas where the student excels and provide encouragement.
            Format the response in a professional but warm tone that would be appropriate for a teacher
            to share with a student or parent.
        """)
    ),
    FeedbackType.PARENT_CONFERENCE: (
        "Based on the student data provided, prepare talking points for a parent-teacher conference for {{name}}.\n"
        + _DATA_BLOCK + "\n"
        + textwrap.dedent("""\
            Please provide comprehensive talking points that cover both strengths and areas for improvement.
            Include specific examples from the data. Suggest strategies that could be implemented at home
            to support the student.
            Format the response in a professional but warm tone that would be appropriate for a teacher
            to discuss with parents during a conference.
        """)
    ),
}


def format_number(value: float) -> str:
    """85.0 -> '85', 85.5 -> '85.5', 85.3333 -> '85.33'."""
    if float(value).is_integer():
        return str(int(value))
    return "{:.2f}".format(value).rstrip("0").rstrip(".")


def rate_to_percent(rate: float) -> int:
    """Round a 0..1 rate to the nearest whole percent, halves rounding up."""
    return int(math.floor(rate * 100 + 0.5))


def render_subjects(summary: StudentSummary) -> str:
    if not summary.subjects:
        return NO_SUBJECTS_RECORDED
    lines = []
    for subject in summary.subjects:
        grades = ", ".join(format_number(g) for g in subject.grades)
        avg = format_number(subject.average) if subject.average is not None else NO_GRADES_RECORDED
        lines.append("- {}: Performance {}, Grades: {}, Average: {}".format(
            subject.name, subject.performance, grades, avg))
    return "\n".join(lines)


def render_attendance(attendance) -> str:
    if isinstance(attendance, RecordedAttendance):
        return "Present: {} days, Absent: {} days, Late: {} days, Attendance Rate: {}%".format(
            attendance.present, attendance.absent, attendance.late,
            rate_to_percent(attendance.rate))
    if isinstance(attendance, UnrecordedAttendance):
        return attendance.label
    raise TypeError("Unknown attendance summary: {!r}".format(attendance))


def render_behavioral_notes(summary: StudentSummary) -> str:
    if not summary.behavioral_notes:
        return NO_BEHAVIORAL_NOTES
    return "\n".join("- {}".format(note) for note in summary.behavioral_notes)


def substitute(template: str, values: dict) -> str:
    """
    Replace every {{key}} in template with values[key] in one pass.

    Raises KeyError if the template names a placeholder with no value.
    """
    def _replace(match):
        return values[match.group(1)]
    return PLACEHOLDER_PATTERN.sub(_replace, template)


def build_prompt(summary: StudentSummary, feedback_type) -> str:
    """
    Build the full prompt for one student and one feedback type.

    Args:
        summary: Output of aggregate_student()
        feedback_type: FeedbackType or its string value

    Returns:
        Prompt text with no placeholder left unsubstituted
    """
    kind = parse_feedback_type(feedback_type)
    values = {
        "name": summary.name,
        "grade": summary.grade or NOT_SPECIFIED,
        "subjectsData": render_subjects(summary),
        "attendanceData": render_attendance(summary.attendance),
        "behavioralNotes": render_behavioral_notes(summary),
    }
    return substitute(TEMPLATES[kind], values)
