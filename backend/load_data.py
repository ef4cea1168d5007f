"""
Data Loader Script - Seeds sample students into the platform via API.

Reads a JSON file of students (or uses the built-in sample) and creates
each student with its subjects, grades, attendance and behavioral notes
through the HTTP API.

Usage:
    python load_data.py                                   # Built-in sample, default URL
    python load_data.py http://localhost:8000             # Custom API URL
    python load_data.py http://localhost:8000 data.json   # Custom data file
"""

import json
import os
import sys

import httpx

SAMPLE_STUDENTS = [
    {
        "name": "Ava Thompson",
        "student_id": "S-1001",
        "grade": "A",
        "subjects": [
            {"name": "Mathematics", "performance": "Excellent", "grades": [92, 88, 95]},
            {"name": "English", "performance": "Good", "grades": [84, 90]},
        ],
        "attendance": {"present": 42, "absent": 1, "late": 2},
        "notes": ["Helps classmates during group work.", "Asks thoughtful questions in class."],
    },
    {
        "name": "Noah Patel",
        "student_id": "S-1002",
        "grade": "C+",
        "subjects": [
            {"name": "Mathematics", "performance": "Needs Improvement", "grades": [61, 58]},
            {"name": "Science", "performance": "Average", "grades": [72]},
            {"name": "Art", "grades": []},
        ],
        "attendance": {"present": 35, "absent": 6, "late": 4},
        "notes": ["Often late to first period."],
    },
    {
        "name": "Mia Rossi",
        "student_id": "S-1003",
        "subjects": [],
        "notes": [],
    },
]


def load_students(client: httpx.Client, students: list) -> dict:
    """
    Create every student in `students` through the API.

    Args:
        client: httpx client whose base_url points at the API
        students: list of student dicts (see SAMPLE_STUDENTS)

    Returns:
        Summary dict with created/skipped/error counts and per-student details
    """
    summary = {"created": 0, "skipped": 0, "errors": 0, "details": []}

    for record in students:
        payload = {
            "name": record["name"],
            "student_id": record["student_id"],
            "grade": record.get("grade"),
        }
        resp = client.post("/api/students", json=payload)
        if resp.status_code == 409:
            summary["skipped"] += 1
            summary["details"].append({"student_id": record["student_id"], "status": "EXISTS"})
            continue
        if resp.status_code != 201:
            summary["errors"] += 1
            summary["details"].append({
                "student_id": record["student_id"],
                "status": "ERROR",
                "reason": resp.json().get("error", {}).get("message", resp.text),
            })
            continue

        student = resp.json()
        sid = student["id"]

        for subject in record.get("subjects", []):
            created = client.post(f"/api/students/{sid}/subjects", json={
                "name": subject["name"],
                "performance": subject.get("performance"),
            })
            created.raise_for_status()
            subject_id = created.json()["id"]
            for value in subject.get("grades", []):
                client.post(f"/api/subjects/{subject_id}/grades", json={"value": value}).raise_for_status()

        if record.get("attendance"):
            client.put(f"/api/students/{sid}/attendance", json=record["attendance"]).raise_for_status()

        for note in record.get("notes", []):
            client.post(f"/api/students/{sid}/notes", json={"content": note}).raise_for_status()

        summary["created"] += 1
        summary["details"].append({"student_id": record["student_id"], "status": "CREATED", "id": sid})

    return summary


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")
    data_file = sys.argv[2] if len(sys.argv) > 2 else None

    if data_file:
        if not os.path.exists(data_file):
            print(f"Error: Could not find {data_file}")
            sys.exit(1)
        print(f"Loading data from: {data_file}")
        with open(data_file, "r") as f:
            students = json.load(f)
    else:
        students = SAMPLE_STUDENTS

    print(f"Found {len(students)} students to load")
    print(f"Sending to: {api_url}")
    print()

    with httpx.Client(base_url=api_url, timeout=30.0) as client:
        result = load_students(client, students)

    print("=" * 60)
    print("LOAD SUMMARY")
    print("=" * 60)
    print(f"  Created:  {result['created']}")
    print(f"  Skipped:  {result['skipped']}")
    print(f"  Errors:   {result['errors']}")
    print("=" * 60)
    print()

    for d in result["details"]:
        status = d["status"]
        icon = '✅' if status == 'CREATED' else ('🔁' if status == 'EXISTS' else '❌')
        extra = f" ({d['reason']})" if status == 'ERROR' else ''
        print(f"  {icon} {d['student_id']}: {status}{extra}")

    print()
    print("✅ Data loading complete!")


if __name__ == "__main__":
    main()
