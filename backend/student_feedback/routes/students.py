"""
Student API routes - CRUD on students and everything attached to them.

Provides endpoints for:
- Listing/searching students and viewing one student's full record
- Creating, updating and deleting students (delete cascades)
- Adding subjects, grades and behavioral notes
- Upserting the single attendance record per student
- Exporting a flat summary of a student's data
"""

import time
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from student_feedback.database import get_db
from student_feedback.errors import ConflictError, NotFoundError, PersistenceError
from student_feedback.models.attendance import Attendance
from student_feedback.models.behavioral_note import BehavioralNote
from student_feedback.models.student import Student, GRADE_LEVELS
from student_feedback.models.subject import Subject, Grade
from student_feedback.routes.feedback import serialize_feedback
from student_feedback.services.aggregation import average
from student_feedback.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")
db_logger = get_logger("db")


# ── Pydantic schemas ─────────────────────────────────────────

def _clean_grade(value):
    """Empty/blank grade means "not set"; anything else must be a known label."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if value not in GRADE_LEVELS:
        raise ValueError("grade must be one of: {}".format(", ".join(GRADE_LEVELS)))
    return value


def _require_text(value, field_name):
    if value is None or not value.strip():
        raise ValueError("{} is required".format(field_name))
    return value.strip()


class StudentCreate(BaseModel):
    """Schema for creating a student."""
    name: str = Field(..., description="Student's full name")
    student_id: str = Field(..., description="Unique human-readable student ID")
    grade: Optional[str] = Field(None, description="One of A+, A, B+, B, C+, C, D+, D, F")

    @field_validator("name")
    @classmethod
    def _name(cls, v):
        return _require_text(v, "Name")

    @field_validator("student_id")
    @classmethod
    def _student_id(cls, v):
        return _require_text(v, "Student ID")

    @field_validator("grade")
    @classmethod
    def _grade(cls, v):
        return _clean_grade(v)


class StudentUpdate(BaseModel):
    """Schema for a partial student update; omitted fields stay as they are."""
    name: Optional[str] = None
    student_id: Optional[str] = None
    grade: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v):
        return _require_text(v, "Name")

    @field_validator("student_id")
    @classmethod
    def _student_id(cls, v):
        return _require_text(v, "Student ID")

    @field_validator("grade")
    @classmethod
    def _grade(cls, v):
        return _clean_grade(v)


class SubjectCreate(BaseModel):
    name: str
    performance: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v):
        return _require_text(v, "Subject name")

    @field_validator("performance")
    @classmethod
    def _performance(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()


class GradeCreate(BaseModel):
    value: float = Field(..., ge=0, allow_inf_nan=False, description="Non-negative, finite numeric mark")


class AttendanceUpdate(BaseModel):
    """Counters to set; omitted counters keep their current value (0 on create)."""
    present: Optional[int] = Field(None, ge=0)
    absent: Optional[int] = Field(None, ge=0)
    late: Optional[int] = Field(None, ge=0)


class NoteCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def _content(cls, v):
        return _require_text(v, "Note content")


# ── Serializers ──────────────────────────────────────────────

def serialize_subject(subject: Subject) -> dict:
    return {
        "id": str(subject.id),
        "name": subject.name,
        "performance": subject.performance,
        "grades": [
            {"id": str(g.id), "value": g.value}
            for g in (subject.grades or [])
        ]
    }


def serialize_attendance(attendance: Optional[Attendance]) -> Optional[dict]:
    if attendance is None:
        return None
    return {
        "id": str(attendance.id),
        "present": attendance.present,
        "absent": attendance.absent,
        "late": attendance.late,
        "updated_at": attendance.updated_at.isoformat() if attendance.updated_at else None
    }


def serialize_student(student: Student, include_relations: bool = True) -> dict:
    """Serialize a Student ORM object (optionally with its record graph)."""
    result = {
        "id": str(student.id),
        "name": student.name,
        "student_id": student.student_id,
        "grade": student.grade,
        "created_at": student.created_at.isoformat() if student.created_at else None
    }
    if include_relations:
        result.update({
            "subjects": [serialize_subject(s) for s in (student.subjects or [])],
            "attendance": serialize_attendance(student.attendance),
            "behavioral_notes": [
                {
                    "id": str(n.id),
                    "content": n.content,
                    "created_at": n.created_at.isoformat() if n.created_at else None
                }
                for n in (student.behavioral_notes or [])
            ],
            "feedback_history": [serialize_feedback(f) for f in (student.feedback_history or [])]
        })
    return result


def _with_relations(query):
    return query.options(
        selectinload(Student.subjects).selectinload(Subject.grades),
        selectinload(Student.attendance),
        selectinload(Student.behavioral_notes),
        selectinload(Student.feedback_history)
    )


def _get_student_or_404(db: Session, student_id: str, with_relations: bool = False) -> Student:
    query = db.query(Student)
    if with_relations:
        query = _with_relations(query)
    student = query.filter(Student.id == student_id).first()
    if not student:
        raise NotFoundError("Student not found")
    return student


def _escape_like(text: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _grade_rank(student: Student) -> int:
    """A+ ranks 0, F ranks 8, ungraded students sort after every grade."""
    if student.grade in GRADE_LEVELS:
        return GRADE_LEVELS.index(student.grade)
    return len(GRADE_LEVELS)


def _ensure_student_id_free(db: Session, public_id: str, exclude_id: Optional[str] = None):
    query = db.query(Student.id).filter(Student.student_id == public_id)
    if exclude_id:
        query = query.filter(Student.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A student with ID '{}' already exists".format(public_id))


def _commit(db: Session, action: str, context: dict):
    """Commit the session; map unique-key clashes to 409 and other failures to 500."""
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        log_with_context(db_logger, "WARNING", "Integrity error while trying to {}".format(action),
                         context=context, extra_data={"error": type(err).__name__})
        raise ConflictError("Could not {}: the record conflicts with existing data".format(action)) from err
    except Exception as err:
        db.rollback()
        log_with_context(db_logger, "ERROR", "Failed to {}".format(action),
                         context=context, extra_data={"error": type(err).__name__})
        raise PersistenceError("Could not {}. Please try again.".format(action)) from err


# ── Students ─────────────────────────────────────────────────

@router.get("/api/students")
def list_students(
    search: Optional[str] = Query(None, description="Match name or student ID (case-insensitive)"),
    db: Session = Depends(get_db)
):
    """List students with their full records, best grade first, then by student ID."""
    start_time = time.time()

    query = _with_relations(db.query(Student))
    if search and search.strip():
        pattern = "%{}%".format(_escape_like(search.strip()))
        query = query.filter(or_(
            Student.name.ilike(pattern, escape="\\"),
            Student.student_id.ilike(pattern, escape="\\")
        ))

    students = sorted(query.all(), key=lambda s: (_grade_rank(s), s.student_id))

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Listed {} students".format(len(students)),
        extra_data={"duration_ms": round(duration_ms, 2), "search": search})

    return [serialize_student(s) for s in students]


@router.post("/api/students", status_code=201)
def create_student(request: StudentCreate, db: Session = Depends(get_db)):
    """Create a student together with a zeroed attendance record."""
    _ensure_student_id_free(db, request.student_id)

    student = Student(name=request.name, student_id=request.student_id, grade=request.grade)
    student.attendance = Attendance(present=0, absent=0, late=0)
    db.add(student)
    _commit(db, "create student", {"student_id": request.student_id})

    student = _get_student_or_404(db, student.id, with_relations=True)
    log_with_context(db_logger, "INFO", "Created student {}".format(student.student_id),
                     context={"student_id": str(student.id)})
    return serialize_student(student)


@router.get("/api/students/{student_id}")
def get_student(student_id: str, db: Session = Depends(get_db)):
    """Get a student's full record."""
    return serialize_student(_get_student_or_404(db, student_id, with_relations=True))


@router.patch("/api/students/{student_id}")
def update_student(student_id: str, request: StudentUpdate, db: Session = Depends(get_db)):
    """Update name, student ID and/or grade. Sending grade as null clears it."""
    student = _get_student_or_404(db, student_id)
    changes = request.model_dump(exclude_unset=True)

    if "student_id" in changes:
        _ensure_student_id_free(db, changes["student_id"], exclude_id=student.id)

    for field, value in changes.items():
        setattr(student, field, value)
    _commit(db, "update student", {"student_id": student_id})

    log_with_context(db_logger, "INFO", "Updated student {}".format(student.student_id),
                     context={"student_id": student_id},
                     extra_data={"fields": sorted(changes)})
    return serialize_student(_get_student_or_404(db, student_id, with_relations=True))


@router.delete("/api/students/{student_id}", status_code=204)
def delete_student(student_id: str, db: Session = Depends(get_db)):
    """Delete a student and, by cascade, everything the student owns."""
    student = _get_student_or_404(db, student_id)
    db.delete(student)
    _commit(db, "delete student", {"student_id": student_id})

    log_with_context(db_logger, "INFO", "Deleted student {}".format(student_id),
                     context={"student_id": student_id})
    return Response(status_code=204)


# ── Subjects and grades ──────────────────────────────────────

@router.post("/api/students/{student_id}/subjects", status_code=201)
def add_subject(student_id: str, request: SubjectCreate, db: Session = Depends(get_db)):
    """Attach a subject to a student."""
    _get_student_or_404(db, student_id)

    subject = Subject(student_id=student_id, name=request.name, performance=request.performance)
    db.add(subject)
    _commit(db, "add subject", {"student_id": student_id})
    db.refresh(subject)

    log_with_context(db_logger, "INFO", "Added subject {}".format(subject.name),
                     context={"student_id": student_id, "subject_id": str(subject.id)})
    return serialize_subject(subject)


@router.post("/api/subjects/{subject_id}/grades", status_code=201)
def add_grade(subject_id: str, request: GradeCreate, db: Session = Depends(get_db)):
    """Record a numeric grade for a subject."""
    subject = db.query(Subject).filter(Subject.id == subject_id).first()
    if not subject:
        raise NotFoundError("Subject not found")

    grade = Grade(subject_id=subject_id, value=request.value)
    db.add(grade)
    _commit(db, "add grade", {"subject_id": subject_id})
    db.refresh(grade)

    log_with_context(db_logger, "INFO", "Added grade {} to subject {}".format(grade.value, subject_id),
                     context={"student_id": str(subject.student_id), "subject_id": subject_id})
    return {"id": str(grade.id), "subject_id": subject_id, "value": grade.value}


# ── Attendance ───────────────────────────────────────────────

@router.put("/api/students/{student_id}/attendance")
def upsert_attendance(student_id: str, request: AttendanceUpdate, db: Session = Depends(get_db)):
    """
    Create the student's attendance record if absent, else overwrite the
    counters that were provided.
    """
    _get_student_or_404(db, student_id)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)

    attendance = db.query(Attendance).filter(Attendance.student_id == student_id).first()
    created = attendance is None
    if created:
        attendance = Attendance(student_id=student_id, present=0, absent=0, late=0)
        db.add(attendance)
    for field, value in changes.items():
        setattr(attendance, field, value)

    _commit(db, "update attendance", {"student_id": student_id})
    db.refresh(attendance)

    log_with_context(db_logger, "INFO",
        "{} attendance for student {}".format("Created" if created else "Updated", student_id),
        context={"student_id": student_id},
        extra_data={"present": attendance.present, "absent": attendance.absent, "late": attendance.late})
    return serialize_attendance(attendance)


# ── Behavioral notes ─────────────────────────────────────────

@router.post("/api/students/{student_id}/notes", status_code=201)
def add_behavioral_note(student_id: str, request: NoteCreate, db: Session = Depends(get_db)):
    """Append a behavioral note. Notes cannot be edited afterwards."""
    _get_student_or_404(db, student_id)

    note = BehavioralNote(student_id=student_id, content=request.content)
    db.add(note)
    _commit(db, "add behavioral note", {"student_id": student_id})
    db.refresh(note)

    log_with_context(db_logger, "INFO", "Added behavioral note",
                     context={"student_id": student_id, "note_id": str(note.id)})
    return {
        "id": str(note.id),
        "student_id": student_id,
        "content": note.content,
        "created_at": note.created_at.isoformat() if note.created_at else None
    }


# ── Export ───────────────────────────────────────────────────

@router.get("/api/students/{student_id}/export")
def export_student(student_id: str, db: Session = Depends(get_db)):
    """Flat export of a student's data for spreadsheets and reports."""
    student = _get_student_or_404(db, student_id, with_relations=True)
    attendance = student.attendance

    return {
        "name": student.name,
        "student_id": student.student_id,
        "grade": student.grade,
        "subjects": [
            {
                "name": s.name,
                "performance": s.performance,
                "average_grade": average([g.value for g in s.grades])
            }
            for s in student.subjects
        ],
        "attendance": {
            "present": attendance.present,
            "absent": attendance.absent,
            "late": attendance.late
        } if attendance else None,
        "behavioral_notes": [n.content for n in student.behavioral_notes]
    }
