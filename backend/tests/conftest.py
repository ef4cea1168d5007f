"""
Shared fixtures.

Each test gets its own SQLite file under tmp_path, wired into the app via
dependency overrides, and a fake feedback client in place of Gemini.
"""

import os

# Must be set before the application modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import anyio
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from student_feedback.database import build_engine, create_tables, get_db
from student_feedback.main import app
from student_feedback.models import Attendance, BehavioralNote, Grade, Student, Subject
from student_feedback.routes.feedback import get_feedback_client
from student_feedback.services.llm_client import FeedbackClient


class FakeFeedbackClient(FeedbackClient):
    """Records prompts and returns canned text (or raises `error`)."""

    provider_name = "Fake Model"

    def __init__(self, text="Keep up the steady work in Mathematics.", error=None, on_call=None):
        self.text = text
        self.error = error
        self.on_call = on_call
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        # yield so concurrent pipelines interleave around the model call
        await anyio.sleep(0)
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine(tmp_path):
    eng = build_engine("sqlite:///{}".format(tmp_path / "test.db"))
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_client():
    return FakeFeedbackClient()


@pytest.fixture
def client(session_factory, fake_client):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_feedback_client] = lambda: fake_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_student(db):
    """
    Build a student graph directly through the ORM.

    subjects: list of (name, performance, [grade values])
    attendance: (present, absent, late) or None for no attendance row
    """
    def _make(name="Ava Thompson", student_id="S-1001", grade="B+",
              subjects=(), attendance=None, notes=()):
        student = Student(name=name, student_id=student_id, grade=grade)
        for subject_name, performance, values in subjects:
            subject = Subject(name=subject_name, performance=performance)
            subject.grades = [Grade(value=v) for v in values]
            student.subjects.append(subject)
        if attendance is not None:
            present, absent, late = attendance
            student.attendance = Attendance(present=present, absent=absent, late=late)
        for content in notes:
            student.behavioral_notes.append(BehavioralNote(content=content))
        db.add(student)
        db.commit()
        db.refresh(student)
        return student
    return _make
