from student_feedback.models.student import Student, GRADE_LEVELS
from student_feedback.models.subject import Subject, Grade
from student_feedback.models.attendance import Attendance
from student_feedback.models.behavioral_note import BehavioralNote
from student_feedback.models.feedback import Feedback

__all__ = ["Student", "GRADE_LEVELS", "Subject", "Grade", "Attendance", "BehavioralNote", "Feedback"]
