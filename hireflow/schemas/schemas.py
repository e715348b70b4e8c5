"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Internal records live in hireflow.models; the from_* helpers here turn
them into the API shape.
"""

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum

from hireflow.models.records import (
    AntiCheatEventType,
    Application,
    FitScore,
    Job,
    Severity,
    TimelineEntry,
    normalize_skill_list,
)


# ============================================================
# ENUMS
# ============================================================

class HRMoveTarget(str, Enum):
    shortlisted = "Shortlisted"
    round2 = "Round2"
    rejected = "Rejected"
    talent_pool = "TalentPool"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class UserResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: str


# ============================================================
# STUDENT SCHEMAS
# ============================================================

class PersonalInfoIn(BaseModel):
    first_name: Optional[str] = Field(None, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: Optional[str] = Field(None, validation_alias=AliasChoices("last_name", "lastName"))
    email: Optional[EmailStr] = None
    phone: Optional[str] = None


class ResumeSignalResponse(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = []
    experience_years: float = 0
    degraded: bool = False


class ResumeUploadResponse(BaseModel):
    success: bool
    message: str
    filename: Optional[str] = None
    signal: ResumeSignalResponse
    preview_score: Optional[FitScore] = None


class StudentProfileResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = []
    resume_uploaded: bool = False
    resume_file_name: Optional[str] = None
    resume_uploaded_at: Optional[datetime] = None


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    required_skills: List[str] = Field(
        [], validation_alias=AliasChoices("required_skills", "requiredSkills")
    )
    min_experience: int = Field(0, ge=0)
    max_experience: int = Field(10, ge=0)
    round_config: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("round_config", "roundConfig")
    )

    @field_validator("required_skills", mode="before")
    @classmethod
    def _split_skills(cls, value):
        return normalize_skill_list(value)


class JobResponse(BaseModel):
    job_id: str
    title: str
    description: str = ""
    location: Optional[str] = None
    status: str
    required_skills: List[str] = []
    round_config: Dict[str, Any] = {}
    posted_by: str
    created_at: datetime

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls(
            job_id=job.id,
            title=job.title,
            description=job.description,
            location=job.location,
            status=job.status,
            required_skills=job.requirements.skills,
            round_config=job.round_config,
            posted_by=job.posted_by,
            created_at=job.created_at,
        )


class JobBoardItem(BaseModel):
    """A job on the student board with the caller's fit against it."""
    job_id: str
    title: str
    description: str = ""
    location: Optional[str] = None
    required_skills: List[str] = []
    created_at: datetime
    match_score: int = 0
    score: Optional[FitScore] = None

    @classmethod
    def from_job(cls, job: Job, score: Optional[FitScore]) -> "JobBoardItem":
        return cls(
            job_id=job.id,
            title=job.title,
            description=job.description,
            location=job.location,
            required_skills=job.requirements.skills,
            created_at=job.created_at,
            match_score=score.fit_score if score is not None else 0,
            score=score,
        )


class JobHistoryItem(BaseModel):
    job: JobResponse
    total_applications: int
    stats: Dict[str, int]


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    job_id: str = Field(..., validation_alias=AliasChoices("job_id", "jobId"))
    personal_info: Optional[PersonalInfoIn] = Field(
        None, validation_alias=AliasChoices("personal_info", "personalInfo")
    )


class ApplicationStatusUpdate(BaseModel):
    status: HRMoveTarget
    reason: Optional[str] = None
    tags: List[str] = []
    notes: Optional[str] = None
    scheduled_at: Optional[datetime] = None


class TimelineEntryResponse(BaseModel):
    stage: str
    timestamp: datetime
    action: str = ""


class ApplicationResponse(BaseModel):
    application_id: str
    student_id: str
    job_id: str
    status: str
    ai_score: FitScore
    round1: Optional[Dict[str, Any]] = None
    round2: Optional[Dict[str, Any]] = None
    talent_pool: Optional[Dict[str, Any]] = None
    rejection_reason: Optional[str] = None
    timeline: List[TimelineEntryResponse] = []
    applied_at: datetime

    @classmethod
    def from_application(cls, application: Application) -> "ApplicationResponse":
        def dump(part):
            return part.model_dump() if part is not None else None

        return cls(
            application_id=application.id,
            student_id=application.student_id,
            job_id=application.job_id,
            status=application.status,
            ai_score=application.ai_score,
            round1=dump(application.round1),
            round2=dump(application.round2),
            talent_pool=dump(application.talent_pool),
            rejection_reason=application.rejection_reason,
            timeline=[_timeline(e) for e in application.timeline_for_display()],
            applied_at=application.applied_at,
        )


def _timeline(entry: TimelineEntry) -> TimelineEntryResponse:
    return TimelineEntryResponse(stage=entry.stage, timestamp=entry.timestamp, action=entry.action)


class CandidateResponse(BaseModel):
    application_id: str
    name: str
    email: str
    phone: str
    skills: List[str] = []
    job_id: str
    job_title: str
    job_location: str
    match_score: int
    status: str
    applied_at: datetime


# ============================================================
# TEST ROUND SCHEMAS
# ============================================================

class AssignTestRequest(BaseModel):
    round_config: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("round_config", "roundConfig")
    )


class AssignTestResponse(BaseModel):
    message: str
    application_id: str
    status: str
    match_score: int
    test_id: str
    test_config: Dict[str, Any]


class AntiCheatEventRequest(BaseModel):
    event_type: AntiCheatEventType = Field(..., validation_alias=AliasChoices("event_type", "eventType"))
    severity: Severity = Severity.medium
    metadata: Dict[str, Any] = {}


class TestSubmitRequest(BaseModel):
    answers: List[Dict[str, Any]] = []
    anti_cheat_log: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("anti_cheat_log", "antiCheatLog")
    )


class TestRoundResponse(BaseModel):
    test_id: str
    application_id: str
    anti_cheat: Dict[str, Any]
    started_at: datetime
    submitted_at: Optional[datetime] = None


class TestRoundReviewResponse(BaseModel):
    """HR view of a test round: counters, answers and the event log."""
    application_id: str
    application_status: str
    test_id: str
    anti_cheat: Dict[str, Any]
    answers: Optional[List[Dict[str, Any]]] = None
    started_at: datetime
    submitted_at: Optional[datetime] = None
    events: List[Dict[str, Any]] = []


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    detail: str
    error: str
