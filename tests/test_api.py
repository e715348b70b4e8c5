"""
End-to-end flows through the FastAPI app, with mongomock behind get_db.
"""

import pytest

import hireflow.main

from conftest import HR_ID, OTHER_STUDENT_ID, STUDENT_ID

RESUME_TEXT = (
    "Jane Doe\n"
    "jane@example.com\n"
    "+1 555 123 4567\n"
    "Senior engineer shipping React frontends and Node.js services.\n"
)


def resume_bytes(text=RESUME_TEXT, size=40 * 1024):
    raw = text.encode()
    return raw + b" " * (size - len(raw))


@pytest.fixture
def hr(auth_headers):
    return auth_headers(HR_ID, "HR")


@pytest.fixture
def student(auth_headers):
    return auth_headers(STUDENT_ID, "STUDENT")


@pytest.fixture
def job_id(client, hr):
    response = client.post("/api/hr/jobs", headers=hr, json={
        "title": "Frontend Engineer",
        "description": "React and Node.js engineer",
        "requiredSkills": "React, Node.js",
    })
    assert response.status_code == 201
    return response.json()["job_id"]


def upload(client, headers, content=None, job_id=None, filename="resume.txt"):
    data = {"job_id": job_id} if job_id else {}
    return client.post(
        "/api/students/resume/upload",
        headers=headers,
        files={"file": (filename, content if content is not None else resume_bytes(), "text/plain")},
        data=data,
    )


def test_me_reports_claimed_role(client, hr):
    response = client.get("/api/auth/me", headers=hr)
    assert response.status_code == 200
    assert response.json() == {"user_id": HR_ID, "email": None, "role": "HR"}


def test_missing_or_bad_token(client):
    assert client.get("/api/auth/me").status_code in (401, 403)
    bad = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401


def test_role_guards(client, student, hr):
    assert client.post("/api/hr/jobs", headers=student, json={"title": "Nope job"}).status_code == 403
    assert client.get("/api/students/applications", headers=hr).status_code == 403


def test_create_job_normalises_skills(client, hr, job_id):
    history = client.get("/api/hr/jobs/history", headers=hr).json()

    assert history[0]["job"]["required_skills"] == ["React", "Node.js"]
    assert history[0]["job"]["round_config"]["round1"]["passing_score"] == 70
    assert history[0]["total_applications"] == 0


def test_upload_extracts_signal_and_previews_score(client, student, job_id):
    response = upload(client, student, job_id=job_id)

    assert response.status_code == 200
    body = response.json()
    assert body["signal"]["email"] == "jane@example.com"
    assert body["signal"]["skills"] == ["React", "Node.js"]
    assert body["signal"]["experience_years"] == 5
    assert body["preview_score"]["fit_score"] == 100

    profile = client.get("/api/students/profile", headers=student).json()
    assert profile["resume_uploaded"] is True
    assert profile["skills"] == ["React", "Node.js"]


def test_upload_outside_size_band(client, student):
    response = upload(client, student, content=b"tiny")
    assert response.status_code == 400
    assert response.json()["error"] == "PreconditionFailed"


def test_apply_without_resume(client, student, job_id):
    response = client.post("/api/students/applications", headers=student, json={"job_id": job_id})
    assert response.status_code == 400


def test_full_flow(client, student, hr, job_id):
    assert upload(client, student).status_code == 200

    applied = client.post("/api/students/applications", headers=student, json={
        "jobId": job_id,
        "personalInfo": {"firstName": "Jane", "lastName": "Doe"},
    })
    assert applied.status_code == 201
    application = applied.json()
    application_id = application["application_id"]
    assert application["status"] == "Pending"
    assert application["timeline"][0]["action"] == "Application submitted by Jane"

    duplicate = client.post("/api/students/applications", headers=student, json={"job_id": job_id})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "DuplicateApplication"

    candidates = client.get("/api/hr/candidates", headers=hr, params={"job_id": job_id}).json()
    assert candidates[0]["name"] == "Jane Doe"
    assert candidates[0]["match_score"] == 100

    assigned = client.post(f"/api/hr/applications/{application_id}/assign-test", headers=hr)
    assert assigned.status_code == 200
    test_id = assigned.json()["test_id"]
    assert assigned.json()["test_config"]["mcq_count"] == 10

    again = client.post(f"/api/hr/applications/{application_id}/assign-test", headers=hr)
    assert again.status_code == 409
    assert again.json()["error"] == "AlreadyAssigned"

    event = client.post(f"/api/tests/{test_id}/events", headers=student, json={"eventType": "TabSwitch"})
    assert event.status_code == 200
    assert event.json()["anti_cheat"]["tab_switches"] == 1
    assert event.json()["anti_cheat"]["suspicious_activity"] == ["TabSwitch:Medium"]

    submitted = client.post(f"/api/tests/{test_id}/submit", headers=student, json={"answers": [{"q": 1, "a": "B"}]})
    assert submitted.status_code == 200
    assert submitted.json()["submitted_at"] is not None

    resubmit = client.post(f"/api/tests/{test_id}/submit", headers=student, json={"answers": []})
    assert resubmit.status_code == 409
    assert resubmit.json()["error"] == "InvalidTransition"

    mine = client.get("/api/students/applications", headers=student).json()
    assert mine[0]["status"] == "Round1"
    assert mine[0]["round1"]["status"] == "Completed"
    # most recent first for display
    assert mine[0]["timeline"][0]["action"] == "Test submitted"


def test_low_score_cannot_get_test(client, student, hr, job_id):
    upload(client, student, content=resume_bytes("Plain resume with no matching words\n"))
    application_id = client.post(
        "/api/students/applications", headers=student, json={"job_id": job_id}
    ).json()["application_id"]

    response = client.post(f"/api/hr/applications/{application_id}/assign-test", headers=hr)

    assert response.status_code == 400
    assert response.json()["error"] == "ScoreTooLow"
    assert "Minimum 60% required" in response.json()["detail"]


def test_status_move_withdraw_and_delete(client, student, hr, auth_headers, job_id):
    upload(client, student)
    application_id = client.post(
        "/api/students/applications", headers=student, json={"job_id": job_id}
    ).json()["application_id"]

    moved = client.post(f"/api/hr/applications/{application_id}/status", headers=hr,
                        json={"status": "Shortlisted"})
    assert moved.json()["status"] == "Shortlisted"

    bad_move = client.post(f"/api/hr/applications/{application_id}/status", headers=hr,
                           json={"status": "Withdrawn"})
    assert bad_move.status_code == 422

    stranger = auth_headers(OTHER_STUDENT_ID, "STUDENT")
    forbidden = client.post(f"/api/students/applications/{application_id}/withdraw", headers=stranger)
    assert forbidden.status_code == 403

    withdrawn = client.post(f"/api/students/applications/{application_id}/withdraw", headers=student)
    assert withdrawn.json()["status"] == "Withdrawn"

    deleted = client.delete(f"/api/hr/applications/{application_id}", headers=hr)
    assert deleted.status_code == 200
    missing = client.delete(f"/api/hr/applications/{application_id}", headers=hr)
    assert missing.status_code == 404
    assert missing.json()["error"] == "NotFound"


def test_closed_job_rejects_applications(client, student, hr, job_id):
    upload(client, student)
    assert client.post(f"/api/hr/jobs/{job_id}/close", headers=hr).json()["status"] == "Closed"

    response = client.post("/api/students/applications", headers=student, json={"job_id": job_id})
    assert response.status_code == 400


def test_health(client, monkeypatch):
    monkeypatch.setattr(hireflow.main, "test_mongo_connection", lambda: True)

    body = client.get("/health").json()

    assert body["mongodb"] == "connected"
    assert body["scoring_strategy"] == "keyword_blend"


def test_job_board_scores_active_jobs(client, student, hr, job_id):
    other = client.post("/api/hr/jobs", headers=hr, json={"title": "Data Engineer", "requiredSkills": "Spark"})
    closed_id = client.post("/api/hr/jobs", headers=hr, json={"title": "Old role", "requiredSkills": "React"}).json()["job_id"]
    client.post(f"/api/hr/jobs/{closed_id}/close", headers=hr)

    before = client.get("/api/students/jobs", headers=student).json()
    assert {j["job_id"] for j in before} == {other.json()["job_id"], job_id}
    assert all(j["match_score"] == 0 and j["score"] is None for j in before)

    upload(client, student)
    board = {j["job_id"]: j for j in client.get("/api/students/jobs", headers=student).json()}

    assert closed_id not in board
    assert board[job_id]["match_score"] == 100
    assert board[job_id]["score"]["explanation"]["matched_skills"] == ["react", "node.js"]
    assert board[other.json()["job_id"]]["match_score"] == 0


def test_job_board_is_student_only(client, hr):
    assert client.get("/api/students/jobs", headers=hr).status_code == 403


def test_hr_reviews_test_round(client, student, hr, auth_headers, job_id):
    upload(client, student)
    application_id = client.post(
        "/api/students/applications", headers=student, json={"job_id": job_id}
    ).json()["application_id"]
    test_id = client.post(f"/api/hr/applications/{application_id}/assign-test", headers=hr).json()["test_id"]
    client.post(f"/api/tests/{test_id}/events", headers=student, json={"eventType": "FullscreenExit", "severity": "High"})

    review = client.get(f"/api/hr/applications/{application_id}/test", headers=hr)

    assert review.status_code == 200
    body = review.json()
    assert body["test_id"] == test_id
    assert body["application_status"] == "Round1"
    assert body["anti_cheat"]["fullscreen_exits"] == 1
    assert body["events"][0]["event_type"] == "FullscreenExit"

    other_hr = auth_headers("hr-2", "HR")
    assert client.get(f"/api/hr/applications/{application_id}/test", headers=other_hr).status_code == 403
    assert client.get(f"/api/hr/applications/{application_id}/test", headers=student).status_code == 403
