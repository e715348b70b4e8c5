"""
Student Routes

POST /students/resume/upload - Upload resume (PDF/DOCX/TXT), optional job_id preview
GET /students/resume/formats - Get supported formats
GET /students/jobs - Active jobs with my match score
GET /students/profile - Get own profile
POST /students/applications - Apply to a job
GET /students/applications - Get my applications
POST /students/applications/{application_id}/withdraw - Withdraw an application
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pymongo.database import Database

from hireflow.core.auth import get_current_student, get_db
from hireflow.core.errors import NotFound
from hireflow.models.records import PersonalInfo
from hireflow.schemas.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    JobBoardItem,
    ResumeSignalResponse,
    ResumeUploadResponse,
    StudentProfileResponse,
)
from hireflow.services.application_service import get_application_service
from hireflow.services.job_service import get_job_service
from hireflow.services.mongo_service import JobDocumentService, UserDocumentService
from hireflow.services.resume_service import get_resume_extractor
from hireflow.services.scoring_service import get_fit_scorer
from hireflow.utils.file_upload import get_supported_formats, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


@router.post("/resume/upload", response_model=ResumeUploadResponse)
async def upload_resume(
    file: UploadFile = File(..., description="Resume file (PDF, DOCX, or TXT)"),
    job_id: Optional[str] = Form(None, description="Job to preview a fit score against"),
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db)
):
    """
    Upload a resume and extract its signal.

    Process:
    1. Check extension and size band
    2. Extract email, phone, skills, experience
    3. Store the signal on the profile (used by later applications)
    4. With job_id, score against that job (preview only, nothing saved)

    Existing applications keep the score they were created with.
    """
    content = await file.read()
    validate_upload(content, file.filename)

    signal = get_resume_extractor().extract(content, file.content_type, file.filename)
    UserDocumentService(db).save_user_resume_signal(
        student["user_id"], signal, file_name=file.filename, content_type=file.content_type
    )

    preview = None
    if job_id:
        job = JobDocumentService(db).find_job(job_id)
        if job is None:
            raise NotFound("Job", job_id)
        preview = get_fit_scorer().score(
            signal, job.to_requirements(), student_id=student["user_id"], job_id=job.id
        )

    message = f"Resume processed. {len(signal.skills)} skills detected."
    if signal.degraded:
        message += " Text extraction was partial; consider uploading a cleaner file."

    return ResumeUploadResponse(
        success=True,
        message=message,
        filename=file.filename,
        signal=ResumeSignalResponse(
            email=signal.email,
            phone=signal.phone,
            skills=signal.skills,
            experience_years=signal.experience_years,
            degraded=signal.degraded,
        ),
        preview_score=preview,
    )


@router.get("/resume/formats")
async def resume_formats():
    """Get supported resume file formats."""
    return get_supported_formats()


@router.get("/jobs", response_model=List[JobBoardItem])
async def get_available_jobs(student: dict = Depends(get_current_student), db: Database = Depends(get_db)):
    """
    Active jobs, newest first, each scored against my last uploaded resume.

    match_score is 0 until a resume is on file.
    """
    board = get_job_service(db).list_available(student["user_id"])
    return [JobBoardItem.from_job(job, score) for job, score in board]


@router.get("/profile", response_model=StudentProfileResponse)
async def get_profile(student: dict = Depends(get_current_student), db: Database = Depends(get_db)):
    """Get current student's profile."""
    user = UserDocumentService(db).get_by_subject(student["user_id"])
    if not user:
        raise HTTPException(status_code=404, detail="Profile not found")

    profile = user.get("profile") or {}
    resume = profile.get("resume") or {}
    return StudentProfileResponse(
        user_id=student["user_id"],
        email=user.get("email"),
        full_name=profile.get("full_name"),
        phone=profile.get("phone"),
        skills=profile.get("skills", []),
        resume_uploaded=bool(resume.get("signal")),
        resume_file_name=resume.get("file_name"),
        resume_uploaded_at=resume.get("uploaded_at"),
    )


@router.post("/applications", response_model=ApplicationResponse, status_code=201)
async def apply_to_job(
    data: ApplicationCreate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db)
):
    """Apply to a job. The fit score is computed from the last uploaded resume."""
    personal_info = None
    if data.personal_info:
        personal_info = PersonalInfo(**data.personal_info.model_dump())

    application = get_application_service(db).apply(student["user_id"], data.job_id, personal_info)
    return ApplicationResponse.from_application(application)


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_my_applications(student: dict = Depends(get_current_student), db: Database = Depends(get_db)):
    """Get all job applications for current student, most recent first."""
    applications = get_application_service(db).list_for_student(student["user_id"])
    return [ApplicationResponse.from_application(a) for a in applications]


@router.post("/applications/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: str,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db)
):
    """Withdraw one of my applications."""
    application = get_application_service(db).withdraw(application_id, student["user_id"])
    return ApplicationResponse.from_application(application)
