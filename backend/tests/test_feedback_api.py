from student_feedback.errors import UpstreamError
from student_feedback.models import Feedback


def _student(client):
    resp = client.post("/api/students", json={"name": "Ava Thompson", "student_id": "S-1001", "grade": "B+"})
    return resp.json()["id"]


def test_generate_feedback(client, fake_client):
    sid = _student(client)
    client.put(f"/api/students/{sid}/attendance", json={"present": 18, "absent": 2, "late": 0})

    resp = client.post("/api/feedback", json={"student_id": sid, "feedback_type": "parentConference"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["student_id"] == sid
    assert body["content"] == fake_client.text
    assert body["generated_by"] == "Fake Model"
    assert body["feedback_type"] == "parentConference"
    assert body["created_at"]
    assert "Attendance Rate: 90%" in fake_client.prompts[0]


def test_history_returns_generated_feedback(client):
    sid = _student(client)
    created = client.post("/api/feedback", json={"student_id": sid, "feedback_type": "strengths"}).json()

    history = client.get(f"/api/students/{sid}/feedback").json()

    assert [f["id"] for f in history] == [created["id"]]
    assert client.get(f"/api/students/{sid}").json()["feedback_history"][0]["id"] == created["id"]


def test_invalid_feedback_type(client, fake_client, db):
    sid = _student(client)

    resp = client.post("/api/feedback", json={"student_id": sid, "feedback_type": "bogus-type"})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    assert fake_client.prompts == []
    assert db.query(Feedback).count() == 0


def test_unknown_student(client, fake_client, db):
    resp = client.post("/api/feedback", json={"student_id": "nonexistent-id", "feedback_type": "improvement"})

    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "Student not found"
    assert fake_client.prompts == []
    assert db.query(Feedback).count() == 0


def test_upstream_failure(client, fake_client, db):
    sid = _student(client)
    fake_client.error = UpstreamError("Feedback generation failed")

    resp = client.post("/api/feedback", json={"student_id": sid, "feedback_type": "improvement"})

    assert resp.status_code == 502
    assert resp.json()["error"] == {"code": "UPSTREAM_FAILURE", "message": "Feedback generation failed"}
    assert db.query(Feedback).count() == 0


def test_history_for_unknown_student(client):
    assert client.get("/api/students/nope/feedback").status_code == 404


def test_repeated_requests_are_not_deduplicated(client, db):
    sid = _student(client)

    for _ in range(2):
        assert client.post("/api/feedback", json={"student_id": sid, "feedback_type": "strengths"}).status_code == 201

    assert db.query(Feedback).filter(Feedback.student_id == sid).count() == 2
