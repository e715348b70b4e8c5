"""
Shared fixtures: an in-memory mongomock database per test plus small
factories for jobs, resume signals and applications.
"""

import mongomock
import pytest
from fastapi.testclient import TestClient

from hireflow.core.auth import create_access_token, get_db
from hireflow.core.config import get_settings
from hireflow.main import app
from hireflow.models.records import Application, CandidateSignal, FitScore, TimelineEntry
from hireflow.services.job_service import JobPostingService
from hireflow.services.mongo_service import ApplicationDocumentService, UserDocumentService

HR_ID = "hr-1"
OTHER_HR_ID = "hr-2"
STUDENT_ID = "student-1"
OTHER_STUDENT_ID = "student-2"


@pytest.fixture
def db():
    return mongomock.MongoClient()["hireflow_test"]


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def make_job(db):
    """make_job(skills=[...], description="...", hr_id=HR_ID) -> Job"""
    service = JobPostingService(db)

    def _make(skills=None, description="", hr_id=HR_ID, title="Frontend Engineer", round_config=None):
        return service.create_job(hr_id, title, description, skills=skills or [], round_config=round_config)

    return _make


@pytest.fixture
def store_resume(db):
    """store_resume(student_id, skills=[...], email=..., resume_text=...) -> CandidateSignal"""
    users = UserDocumentService(db)

    def _store(student_id=STUDENT_ID, skills=None, email="jane@example.com", resume_text=None, years=2):
        signal = CandidateSignal(
            email=email, skills=skills or [], experience_years=years, resume_text=resume_text
        )
        users.sync_user(student_id, email=email, claimed_role="STUDENT")
        users.save_user_resume_signal(student_id, signal, file_name="resume.txt", content_type="text/plain")
        return signal

    return _store


@pytest.fixture
def insert_application(db):
    """Insert an application with a fixed fit score, bypassing scoring."""
    applications = ApplicationDocumentService(db)

    def _insert(job, fit_score, student_id=STUDENT_ID, status="Pending"):
        application = Application(
            student_id=student_id,
            job_id=job.id,
            status=status,
            ai_score=FitScore(fit_score=fit_score, strategy="fixture"),
            timeline=[TimelineEntry(stage="Applied", action="Application submitted by Student")],
        )
        return applications.create_application(application)

    return _insert


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(subject_id, role):
        return {"Authorization": f"Bearer {create_access_token(subject_id, role)}"}

    return _headers
