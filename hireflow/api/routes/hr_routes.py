"""
HR Routes

POST /hr/jobs - Post a job
POST /hr/jobs/{job_id}/close - Close a job to new applications
GET /hr/jobs/history - My jobs with application counts per status
GET /hr/candidates?job_id= - Applicants to my jobs (optionally one job)
POST /hr/applications/{application_id}/assign-test - Assign Round1 test
GET /hr/applications/{application_id}/test - Test round counters and proctoring log
POST /hr/applications/{application_id}/status - Shortlist / Round2 / Reject / Talent pool
DELETE /hr/applications/{application_id} - Delete an application
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pymongo.database import Database

from hireflow.core.auth import get_current_hr, get_db
from hireflow.schemas.schemas import (
    ApplicationResponse,
    ApplicationStatusUpdate,
    AssignTestRequest,
    AssignTestResponse,
    CandidateResponse,
    JobCreate,
    JobHistoryItem,
    JobResponse,
    MessageResponse,
    TestRoundReviewResponse,
)
from hireflow.services.application_service import get_application_service
from hireflow.services.job_service import get_job_service
from hireflow.services.test_round_service import get_test_round_service

router = APIRouter(prefix="/hr", tags=["HR"])


# ============================================================
# JOBS
# ============================================================

@router.post("/jobs", response_model=JobResponse, status_code=201)
async def create_job(data: JobCreate, hr: dict = Depends(get_current_hr), db: Database = Depends(get_db)):
    """Post a new job. Accepts required_skills or requiredSkills (list or comma string)."""
    job = get_job_service(db).create_job(
        hr_id=hr["user_id"],
        title=data.title,
        description=data.description or "",
        skills=data.required_skills,
        experience_min=data.min_experience,
        experience_max=data.max_experience,
        round_config=data.round_config,
        location=data.location,
    )
    return JobResponse.from_job(job)


@router.post("/jobs/{job_id}/close", response_model=JobResponse)
async def close_job(job_id: str, hr: dict = Depends(get_current_hr), db: Database = Depends(get_db)):
    """Close a job. Existing applications are untouched."""
    job = get_job_service(db).close_job(job_id, hr["user_id"])
    return JobResponse.from_job(job)


@router.get("/jobs/history", response_model=List[JobHistoryItem])
async def job_history(hr: dict = Depends(get_current_hr), db: Database = Depends(get_db)):
    """My jobs, newest first, with application totals per status."""
    history = get_application_service(db).job_history(hr["user_id"])
    return [
        JobHistoryItem(
            job=JobResponse.from_job(item["job"]),
            total_applications=item["total_applications"],
            stats=item["stats"],
        )
        for item in history
    ]


# ============================================================
# CANDIDATES
# ============================================================

@router.get("/candidates", response_model=List[CandidateResponse])
async def get_candidates(
    job_id: Optional[str] = Query(None),
    hr: dict = Depends(get_current_hr),
    db: Database = Depends(get_db)
):
    """Applicants to my jobs, most recent first."""
    candidates = get_application_service(db).list_candidates(hr["user_id"], job_id)

    results = []
    for item in candidates:
        application, job = item["application"], item["job"]
        student = item["student"] or {}
        profile = student.get("profile") or {}
        personal = application.personal_info

        name = profile.get("full_name")
        if not name and personal and personal.first_name:
            name = " ".join(p for p in [personal.first_name, personal.last_name] if p)

        results.append(CandidateResponse(
            application_id=application.id,
            name=name or "Student",
            email=student.get("email") or "N/A",
            phone=profile.get("phone") or "N/A",
            skills=profile.get("skills", []),
            job_id=job.id,
            job_title=job.title,
            job_location=job.location or "Not specified",
            match_score=application.ai_score.fit_score,
            status=application.status,
            applied_at=application.applied_at,
        ))
    return results


# ============================================================
# APPLICATION MOVES
# ============================================================

@router.post("/applications/{application_id}/assign-test", response_model=AssignTestResponse)
async def assign_test(
    application_id: str,
    data: Optional[AssignTestRequest] = None,
    hr: dict = Depends(get_current_hr),
    db: Database = Depends(get_db)
):
    """Assign the Round1 test. Requires a match score of at least the configured threshold."""
    result = get_test_round_service(db).assign_test(
        application_id, hr["user_id"], round_config=data.round_config if data else None
    )
    application = result["application"]
    return AssignTestResponse(
        message="Test assigned successfully",
        application_id=application.id,
        status=application.status,
        match_score=application.ai_score.fit_score,
        test_id=result["test_round"].id,
        test_config=result["round_config"],
    )


@router.get("/applications/{application_id}/test", response_model=TestRoundReviewResponse)
async def review_test_round(
    application_id: str,
    hr: dict = Depends(get_current_hr),
    db: Database = Depends(get_db)
):
    """Anti-cheat counters and event log for the application's test. Advisory only."""
    result = get_test_round_service(db).review_for_hr(application_id, hr["user_id"])
    test_round = result["test_round"]
    return TestRoundReviewResponse(
        application_id=result["application"].id,
        application_status=result["application"].status,
        test_id=test_round.id,
        anti_cheat=test_round.anti_cheat.model_dump(),
        answers=test_round.answers,
        started_at=test_round.started_at,
        submitted_at=test_round.submitted_at,
        events=result["events"],
    )


@router.post("/applications/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    hr: dict = Depends(get_current_hr),
    db: Database = Depends(get_db)
):
    """Move an application (Shortlisted, Round2, Rejected, TalentPool)."""
    application = get_application_service(db).move(
        application_id,
        hr["user_id"],
        data.status.value,
        reason=data.reason,
        tags=data.tags,
        notes=data.notes,
        scheduled_at=data.scheduled_at,
    )
    return ApplicationResponse.from_application(application)


@router.delete("/applications/{application_id}", response_model=MessageResponse)
async def delete_application(application_id: str, hr: dict = Depends(get_current_hr), db: Database = Depends(get_db)):
    """Delete an application for one of my jobs."""
    get_application_service(db).delete(application_id, hr["user_id"])
    return MessageResponse(message="Application deleted successfully")
