from student_feedback.database import utcnow


def test_utcnow_is_strictly_increasing():
    stamps = [utcnow() for _ in range(2000)]

    assert all(earlier < later for earlier, later in zip(stamps, stamps[1:]))
    assert stamps[0].tzinfo is not None


def test_children_keep_insertion_order(client, make_student):
    notes = ["Note {}".format(i) for i in range(25)]
    student = make_student(
        subjects=[("Subject {}".format(i), None, [i, i + 1, i + 2]) for i in range(10)],
        notes=notes,
    )

    detail = client.get("/api/students/{}".format(student.id)).json()

    assert [n["content"] for n in detail["behavioral_notes"]] == notes
    assert [s["name"] for s in detail["subjects"]] == ["Subject {}".format(i) for i in range(10)]
    assert [g["value"] for g in detail["subjects"][3]["grades"]] == [3, 4, 5]
