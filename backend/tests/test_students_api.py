from student_feedback.models import Attendance, BehavioralNote, Feedback, Grade, Student, Subject


def _create(client, name="Ava Thompson", student_id="S-1001", grade="A"):
    resp = client.post("/api/students", json={"name": name, "student_id": student_id, "grade": grade})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_student_with_zeroed_attendance(client):
    student = _create(client)

    assert student["name"] == "Ava Thompson"
    assert student["student_id"] == "S-1001"
    assert student["grade"] == "A"
    assert student["attendance"]["present"] == 0
    assert student["attendance"]["absent"] == 0
    assert student["attendance"]["late"] == 0
    assert student["subjects"] == []
    assert student["feedback_history"] == []


def test_create_student_requires_name_and_id(client):
    resp = client.post("/api/students", json={"name": "  ", "student_id": "S-1"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert "Name is required" in body["error"]["message"]

    resp = client.post("/api/students", json={"name": "Ava"})
    assert resp.status_code == 400


def test_grade_must_be_known_label_and_blank_means_unset(client):
    resp = client.post("/api/students", json={"name": "Ava", "student_id": "S-1", "grade": "E"})
    assert resp.status_code == 400
    assert "grade must be one of" in resp.json()["error"]["message"]

    student = _create(client, student_id="S-2", grade="")
    assert student["grade"] is None


def test_duplicate_student_id_conflicts(client):
    _create(client)

    resp = client.post("/api/students", json={"name": "Other", "student_id": "S-1001"})

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONFLICT"


def test_missing_student_returns_error_shape(client):
    resp = client.get("/api/students/does-not-exist")

    assert resp.status_code == 404
    body = resp.json()
    assert body["error"] == {"code": "NOT_FOUND", "message": "Student not found"}
    assert "generated_at" in body
    assert resp.headers["X-Request-ID"]


def test_update_student_partially(client):
    student = _create(client)

    resp = client.patch(f"/api/students/{student['id']}", json={"grade": "B+"})

    assert resp.status_code == 200
    assert resp.json()["grade"] == "B+"
    assert resp.json()["name"] == "Ava Thompson"

    resp = client.patch(f"/api/students/{student['id']}", json={"grade": None})
    assert resp.json()["grade"] is None


def test_update_student_id_clash(client):
    _create(client, student_id="S-1")
    other = _create(client, name="Noah", student_id="S-2")

    resp = client.patch(f"/api/students/{other['id']}", json={"student_id": "S-1"})

    assert resp.status_code == 409


def test_update_keeps_own_student_id(client):
    student = _create(client, student_id="S-1")

    resp = client.patch(f"/api/students/{student['id']}", json={"student_id": "S-1", "name": "Ava T."})

    assert resp.status_code == 200
    assert resp.json()["name"] == "Ava T."


def test_delete_student_cascades(client, db):
    student = _create(client)
    sid = student["id"]
    subject = client.post(f"/api/students/{sid}/subjects", json={"name": "Math"}).json()
    client.post(f"/api/subjects/{subject['id']}/grades", json={"value": 88})
    client.post(f"/api/students/{sid}/notes", json={"content": "Focused today."})
    client.post("/api/feedback", json={"student_id": sid, "feedback_type": "strengths"})

    resp = client.delete(f"/api/students/{sid}")

    assert resp.status_code == 204
    assert client.get(f"/api/students/{sid}").status_code == 404
    for model in (Student, Subject, Grade, Attendance, BehavioralNote, Feedback):
        assert db.query(model).count() == 0


def test_delete_missing_student(client):
    assert client.delete("/api/students/nope").status_code == 404


def test_subjects_and_grades(client):
    student = _create(client)
    sid = student["id"]

    resp = client.post(f"/api/students/{sid}/subjects", json={"name": "Math", "performance": "Good"})
    assert resp.status_code == 201
    subject = resp.json()
    assert subject["performance"] == "Good"

    client.post(f"/api/subjects/{subject['id']}/grades", json={"value": 80})
    client.post(f"/api/subjects/{subject['id']}/grades", json={"value": 90.5})

    detail = client.get(f"/api/students/{sid}").json()
    assert [g["value"] for g in detail["subjects"][0]["grades"]] == [80, 90.5]


def test_subject_performance_is_optional(client):
    student = _create(client)

    subject = client.post(f"/api/students/{student['id']}/subjects", json={"name": "Art", "performance": ""}).json()

    assert subject["performance"] is None
    assert subject["grades"] == []


def test_subject_for_missing_student(client):
    resp = client.post("/api/students/nope/subjects", json={"name": "Math"})
    assert resp.status_code == 404


def test_grade_validation(client):
    student = _create(client)
    subject = client.post(f"/api/students/{student['id']}/subjects", json={"name": "Math"}).json()

    assert client.post(f"/api/subjects/{subject['id']}/grades", json={"value": -1}).status_code == 400
    assert client.post("/api/subjects/nope/grades", json={"value": 50}).status_code == 404


def test_attendance_upsert_overwrites_only_given_counters(client, db):
    student = _create(client)
    sid = student["id"]

    resp = client.put(f"/api/students/{sid}/attendance", json={"present": 18, "absent": 2})
    assert resp.status_code == 200
    resp = client.put(f"/api/students/{sid}/attendance", json={"late": 1})

    assert (resp.json()["present"], resp.json()["absent"], resp.json()["late"]) == (18, 2, 1)
    assert db.query(Attendance).filter(Attendance.student_id == sid).count() == 1


def test_attendance_upsert_creates_missing_row(client, make_student, db):
    student = make_student(attendance=None)

    resp = client.put(f"/api/students/{student.id}/attendance", json={"present": 5})

    assert resp.status_code == 200
    assert (resp.json()["present"], resp.json()["absent"], resp.json()["late"]) == (5, 0, 0)
    assert db.query(Attendance).count() == 1


def test_attendance_rejects_negative_counters(client):
    student = _create(client)
    resp = client.put(f"/api/students/{student['id']}/attendance", json={"absent": -2})
    assert resp.status_code == 400


def test_behavioral_notes_append(client):
    student = _create(client)
    sid = student["id"]

    client.post(f"/api/students/{sid}/notes", json={"content": "First note"})
    client.post(f"/api/students/{sid}/notes", json={"content": "Second note"})
    assert client.post(f"/api/students/{sid}/notes", json={"content": " "}).status_code == 400

    notes = client.get(f"/api/students/{sid}").json()["behavioral_notes"]
    assert sorted(n["content"] for n in notes) == ["First note", "Second note"]


def test_list_orders_by_grade_then_student_id(client):
    _create(client, name="Cara", student_id="S-3", grade="B")
    _create(client, name="Ben", student_id="S-2", grade="A+")
    _create(client, name="Abe", student_id="S-1", grade="B")
    _create(client, name="Dee", student_id="S-0", grade=None)

    students = client.get("/api/students").json()

    assert [s["student_id"] for s in students] == ["S-2", "S-1", "S-3", "S-0"]


def test_search_matches_name_or_student_id(client):
    _create(client, name="Ava Thompson", student_id="S-1001")
    _create(client, name="Noah Patel", student_id="S-2002")

    by_name = client.get("/api/students", params={"search": "thomp"}).json()
    by_id = client.get("/api/students", params={"search": "2002"}).json()

    assert [s["name"] for s in by_name] == ["Ava Thompson"]
    assert [s["name"] for s in by_id] == ["Noah Patel"]


def test_export_student(client):
    student = _create(client)
    sid = student["id"]
    math = client.post(f"/api/students/{sid}/subjects", json={"name": "Math", "performance": "Good"}).json()
    client.post(f"/api/students/{sid}/subjects", json={"name": "Art"})
    client.post(f"/api/subjects/{math['id']}/grades", json={"value": 80})
    client.post(f"/api/subjects/{math['id']}/grades", json={"value": 90})
    client.post(f"/api/students/{sid}/notes", json={"content": "Kind to peers."})

    export = client.get(f"/api/students/{sid}/export").json()

    subjects = {s["name"]: s for s in export["subjects"]}
    assert subjects["Math"]["average_grade"] == 85
    assert subjects["Art"]["average_grade"] is None
    assert export["attendance"] == {"present": 0, "absent": 0, "late": 0}
    assert export["behavioral_notes"] == ["Kind to peers."]


def test_export_missing_student(client):
    assert client.get("/api/students/nope/export").status_code == 404


def test_non_finite_grades_are_rejected(client):
    student = _create(client)
    subject = client.post(f"/api/students/{student['id']}/subjects", json={"name": "Math"}).json()

    for raw in ("Infinity", "-Infinity", "NaN"):
        resp = client.post(
            f"/api/subjects/{subject['id']}/grades",
            content='{{"value": {}}}'.format(raw),
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    detail = client.get(f"/api/students/{student['id']}")
    assert detail.status_code == 200
    assert detail.json()["subjects"][0]["grades"] == []


def test_search_treats_wildcards_literally(client):
    _create(client, name="Ava Thompson", student_id="S-1001")
    _create(client, name="Ben_Li", student_id="S-1002")

    assert client.get("/api/students", params={"search": "%"}).json() == []
    underscore = client.get("/api/students", params={"search": "_"}).json()
    assert [s["name"] for s in underscore] == ["Ben_Li"]
