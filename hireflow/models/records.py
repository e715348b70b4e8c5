"""
Domain records for matching and the application lifecycle.

These are the internal data structures the services pass around and
persist. Mongo documents use the same field names, so a record can be
rebuilt with Model.from_doc(doc) and stored with record.to_doc().
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# ============================================================
# ENUMS
# ============================================================

class Role(str, Enum):
    hr = "HR"
    student = "STUDENT"


class ApplicationStatus(str, Enum):
    pending = "Pending"
    round1 = "Round1"
    round2 = "Round2"
    shortlisted = "Shortlisted"
    rejected = "Rejected"
    talent_pool = "TalentPool"
    withdrawn = "Withdrawn"


class RoundStatus(str, Enum):
    scheduled = "Scheduled"
    in_progress = "InProgress"
    completed = "Completed"
    failed = "Failed"


class JobStatus(str, Enum):
    active = "Active"
    closed = "Closed"


class AntiCheatEventType(str, Enum):
    tab_switch = "TabSwitch"
    copy_paste = "CopyPaste"
    fullscreen_exit = "FullscreenExit"
    duplicate_ip = "DuplicateIP"


class Severity(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"


# ============================================================
# BASE
# ============================================================

class Record(BaseModel):
    """Shared Mongo <-> model conversion."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    @classmethod
    def from_doc(cls, doc: Optional[dict]):
        if doc is None:
            return None
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)

    def to_doc(self) -> dict:
        if "id" in type(self).model_fields:
            return self.model_dump(exclude={"id"})
        return self.model_dump()


# ============================================================
# MATCHING
# ============================================================

class CandidateSignal(Record):
    """Structured signal pulled out of a resume."""

    email: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = []
    experience_years: float = Field(0, ge=0)
    education: List[str] = []
    resume_text: Optional[str] = None
    degraded: bool = False


class JobRequirements(Record):
    """The parts of a job the scorer looks at."""

    title: str = ""
    skills: List[str] = []
    description_text: str = ""

    @field_validator("skills", mode="before")
    @classmethod
    def _split_skills(cls, value):
        return normalize_skill_list(value)


class ScoreExplanation(Record):
    matched_skills: List[str] = []
    missing_skills: List[str] = []


class LearningLink(Record):
    skill: str
    url: str


class FitScore(Record):
    """Composite fit score embedded in an application."""

    fit_score: int = Field(0, ge=0, le=100)
    skill_match: int = Field(0, ge=0, le=100)
    keyword_match: int = Field(
        0, ge=0, le=100,
        validation_alias=AliasChoices("keyword_match", "experience_match", "experienceMatch"),
    )
    overall_rank: int = 0
    strategy: str = ""
    flags: List[str] = []
    explanation: ScoreExplanation = Field(default_factory=ScoreExplanation)
    learning_links: List[LearningLink] = []


# ============================================================
# JOBS
# ============================================================

class ExperienceRange(Record):
    min: int = 0
    max: int = 10


class JobRequirementSpec(Record):
    skills: List[str] = []
    experience: ExperienceRange = Field(default_factory=ExperienceRange)
    education: List[str] = []

    @field_validator("skills", mode="before")
    @classmethod
    def _split_skills(cls, value):
        return normalize_skill_list(value)


class Job(Record):
    id: Optional[str] = None
    title: str
    description: str = ""
    requirements: JobRequirementSpec = Field(default_factory=JobRequirementSpec)
    round_config: Dict[str, Any] = {}
    posted_by: str
    status: JobStatus = JobStatus.active
    location: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def to_requirements(self) -> JobRequirements:
        return JobRequirements(
            title=self.title,
            skills=list(self.requirements.skills),
            description_text=self.description or "",
        )


# ============================================================
# APPLICATIONS
# ============================================================

class TimelineEntry(Record):
    stage: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    action: str = ""


class RoundSummary(Record):
    status: RoundStatus = RoundStatus.scheduled
    test_id: Optional[str] = None
    mcq_score: int = 0
    coding_score: int = 0
    total_score: int = 0
    anti_cheat_flags: List[str] = []
    scheduled_at: Optional[datetime] = None
    notes: Optional[str] = None
    feedback: Optional[str] = None


class TalentPoolEntry(Record):
    added_at: datetime = Field(default_factory=datetime.utcnow)
    reason: str = ""
    tags: List[str] = []
    hr_notes: Optional[str] = None


class PersonalInfo(Record):
    first_name: Optional[str] = Field(None, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: Optional[str] = Field(None, validation_alias=AliasChoices("last_name", "lastName"))
    email: Optional[str] = None
    phone: Optional[str] = None


class Application(Record):
    id: Optional[str] = None
    student_id: str
    job_id: str
    status: ApplicationStatus = ApplicationStatus.pending
    ai_score: FitScore = Field(default_factory=FitScore)
    round1: Optional[RoundSummary] = None
    round2: Optional[RoundSummary] = None
    talent_pool: Optional[TalentPoolEntry] = None
    rejection_reason: Optional[str] = None
    personal_info: Optional[PersonalInfo] = None
    timeline: List[TimelineEntry] = []
    applied_at: datetime = Field(default_factory=datetime.utcnow)
    is_active: bool = True

    def timeline_for_display(self) -> List[TimelineEntry]:
        """Most recent entry first; storage order stays chronological."""
        return list(reversed(self.timeline))


# ============================================================
# TEST ROUNDS
# ============================================================

class AntiCheatCounters(Record):
    tab_switches: int = 0
    copy_paste_attempts: int = 0
    fullscreen_exits: int = 0
    ip_address: str = "pending"
    suspicious_activity: List[str] = []


class TestRound(Record):
    """One assessment round attached 1:1 to an application."""

    id: Optional[str] = None
    application_id: str
    questions: List[Dict[str, Any]] = []
    anti_cheat: AntiCheatCounters = Field(default_factory=AntiCheatCounters)
    answers: Optional[List[Dict[str, Any]]] = None
    submitted_anti_cheat_log: Optional[Dict[str, Any]] = None
    started_at: datetime = Field(default_factory=datetime.utcnow)
    submitted_at: Optional[datetime] = None
    is_auto_graded: bool = False
    total_score: Optional[int] = None


# ============================================================
# HELPERS
# ============================================================

def normalize_skill_list(value) -> List[str]:
    """Accept a list or a comma separated string; strip blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(s).strip() for s in value if s and str(s).strip()]


def reconcile_role(
    stored_role: Optional[str],
    claimed_role: Optional[str],
    has_posted_jobs: bool,
) -> Role:
    """
    Decide a user's role from what we have on file and what the token claims.

    Anyone who has posted jobs is HR. Otherwise a stored valid role wins,
    then the token claim, then STUDENT. Applying it to its own output is
    a no-op.
    """
    valid = {r.value for r in Role}

    if has_posted_jobs:
        return Role.hr
    if stored_role in valid:
        return Role(stored_role)
    if claimed_role in valid:
        return Role(claimed_role)
    return Role.student
