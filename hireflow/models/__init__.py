"""
Models module - internal domain records (pydantic).

These models are used for:
- Service inputs/outputs (CandidateSignal, JobRequirements, FitScore)
- Persisted documents (Application, Job, TestRound)

API request/response shapes live in hireflow.schemas instead.
"""

from hireflow.models.records import (
    AntiCheatCounters,
    AntiCheatEventType,
    Application,
    ApplicationStatus,
    CandidateSignal,
    FitScore,
    Job,
    JobRequirements,
    JobStatus,
    PersonalInfo,
    Role,
    RoundStatus,
    RoundSummary,
    Severity,
    TalentPoolEntry,
    TimelineEntry,
    reconcile_role,
)

__all__ = [
    "AntiCheatCounters",
    "AntiCheatEventType",
    "Application",
    "ApplicationStatus",
    "CandidateSignal",
    "FitScore",
    "Job",
    "JobRequirements",
    "JobStatus",
    "PersonalInfo",
    "Role",
    "RoundStatus",
    "RoundSummary",
    "Severity",
    "TalentPoolEntry",
    "TimelineEntry",
    "reconcile_role",
]
