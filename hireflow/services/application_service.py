"""
Application Lifecycle Service

PURPOSE:
Own the status of every application from "Applied" to a terminal state.

STATE MACHINE:
    Pending      -> Shortlisted, Round1, Rejected, TalentPool, Withdrawn
    Shortlisted  -> Round1, Round2, Rejected, TalentPool, Withdrawn
    Round1       -> Round2, Rejected, TalentPool, Withdrawn
    Round2       -> Rejected, TalentPool, Withdrawn
    TalentPool   -> Withdrawn
    Rejected     -> (terminal)
    Withdrawn    -> (terminal, the student may apply again)

Round1 is only entered through the test round gate (assign test) and
Withdrawn only by the student who owns the application.

Every move is a conditional update on the status that was read, and
appends one timeline entry.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from hireflow.core.config import Settings, get_settings
from hireflow.core.errors import (
    DuplicateApplication,
    Forbidden,
    InvalidTransition,
    NotFound,
    PreconditionFailed,
)
from hireflow.models.records import (
    Application,
    ApplicationStatus,
    JobStatus,
    PersonalInfo,
    RoundStatus,
    RoundSummary,
    TalentPoolEntry,
    TimelineEntry,
)
from hireflow.services.mongo_service import (
    ApplicationDocumentService,
    JobDocumentService,
    UserDocumentService,
)
from hireflow.services.scoring_service import FitScorer, get_fit_scorer

logger = logging.getLogger(__name__)

S = ApplicationStatus

ALLOWED_TRANSITIONS: Dict[str, set] = {
    S.pending.value: {S.shortlisted.value, S.round1.value, S.rejected.value, S.talent_pool.value, S.withdrawn.value},
    S.shortlisted.value: {S.round1.value, S.round2.value, S.rejected.value, S.talent_pool.value, S.withdrawn.value},
    S.round1.value: {S.round2.value, S.rejected.value, S.talent_pool.value, S.withdrawn.value},
    S.round2.value: {S.rejected.value, S.talent_pool.value, S.withdrawn.value},
    S.talent_pool.value: {S.withdrawn.value},
    S.rejected.value: set(),
    S.withdrawn.value: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


class ApplicationLifecycleService:
    """
    Apply / withdraw / delete / HR status moves, plus the listings the
    dashboards read.
    """

    def __init__(
        self,
        db: Database = None,
        scorer: Optional[FitScorer] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.applications = ApplicationDocumentService(db)
        self.jobs = JobDocumentService(db)
        self.users = UserDocumentService(db)
        self.scorer = scorer or get_fit_scorer(settings=self.settings)

    # ============================================================
    # STUDENT OPERATIONS
    # ============================================================

    def apply(
        self,
        student_id: str,
        job_id: str,
        personal_info: Optional[PersonalInfo] = None
    ) -> Application:
        """
        Create an application, scored against the student's last resume.

        Raises:
            NotFound: job does not exist
            PreconditionFailed: job closed, or no resume on file
            DuplicateApplication: a non-withdrawn application already exists
        """
        job = self.jobs.find_job(job_id)
        if job is None:
            raise NotFound("Job", job_id)

        if job.status == JobStatus.closed.value and not self.settings.allow_closed_job_applications:
            raise PreconditionFailed("This job is closed and no longer accepts applications")

        signal = self.users.get_user_resume_signal(student_id)
        if signal is None:
            raise PreconditionFailed("Please upload your resume before applying")

        if self.applications.find_application(student_id, job.id, exclude_status=S.withdrawn.value):
            raise DuplicateApplication("You have already applied to this job")

        fit = self.scorer.score(signal, job.to_requirements(), student_id=student_id, job_id=job.id)

        first_name = personal_info.first_name if personal_info else None
        application = Application(
            student_id=student_id,
            job_id=job.id,
            status=S.pending,
            ai_score=fit,
            personal_info=personal_info,
            timeline=[
                TimelineEntry(
                    stage="Applied",
                    action=f"Application submitted by {first_name or 'Student'}",
                )
            ],
        )

        try:
            created = self.applications.create_application(application)
        except DuplicateKeyError:
            # Lost the race against a concurrent apply for the same pair
            raise DuplicateApplication("You have already applied to this job")

        if personal_info:
            self.users.merge_profile(student_id, personal_info)

        logger.info(
            "Student %s applied to job %s (fit %d%%, %s)",
            student_id, job.id, fit.fit_score, fit.strategy,
        )
        return created

    def withdraw(self, application_id: str, student_id: str) -> Application:
        """
        Student withdraws their own application.

        Raises:
            NotFound, Forbidden (not the owner), InvalidTransition
        """
        application = self.applications.get_application(application_id)
        if application is None:
            raise NotFound("Application", application_id)

        if application.student_id != student_id:
            raise Forbidden("You can only withdraw your own applications")

        if not can_transition(application.status, S.withdrawn.value):
            raise InvalidTransition(f"Cannot withdraw an application that is {application.status}")

        updated = self.applications.update_application(
            application_id,
            {"status": S.withdrawn.value, "is_active": False},
            expected_status=application.status,
            timeline_entry=TimelineEntry(stage=S.withdrawn.value, action="Application withdrawn by student"),
        )
        if updated is None:
            raise InvalidTransition("Application status changed, please refresh and try again")

        logger.info("Application %s withdrawn by student %s", application_id, student_id)
        return updated

    def list_for_student(self, student_id: str) -> List[Application]:
        return self.applications.list_by_student(student_id)

    # ============================================================
    # HR OPERATIONS
    # ============================================================

    def load_for_hr(self, application_id: str, hr_id: str):
        """
        Fetch an application and its job, checking the HR posted the job.

        Returns:
            (application, job)
        """
        application = self.applications.get_application(application_id)
        if application is None:
            raise NotFound("Application", application_id)

        job = self.jobs.find_job(application.job_id)
        if job is None:
            raise NotFound("Job", application.job_id)

        if job.posted_by != hr_id:
            raise Forbidden("Not authorized to manage applications for this job")

        return application, job

    def delete(self, application_id: str, hr_id: str) -> None:
        """Hard delete. No timeline entry survives it."""
        self.load_for_hr(application_id, hr_id)
        self.applications.delete_application(application_id)
        logger.info("Application %s deleted by HR %s", application_id, hr_id)

    def move(
        self,
        application_id: str,
        hr_id: str,
        target: str,
        reason: str = None,
        tags: List[str] = None,
        notes: str = None,
        scheduled_at: datetime = None
    ) -> Application:
        """
        HR status move: Shortlisted, Round2, Rejected or TalentPool.

        Raises:
            NotFound, Forbidden, InvalidTransition
        """
        application, _job = self.load_for_hr(application_id, hr_id)

        try:
            target = ApplicationStatus(target).value
        except ValueError:
            raise InvalidTransition(f"Unknown application status '{target}'")

        if target == S.withdrawn.value:
            raise InvalidTransition("Only the student can withdraw an application")
        if target == S.round1.value:
            raise InvalidTransition("Round1 starts when a test is assigned")
        if not can_transition(application.status, target):
            raise InvalidTransition(f"Cannot move application from {application.status} to {target}")

        patch = {"status": target}
        if target == S.rejected.value:
            patch["rejection_reason"] = reason
            action = f"Rejected by HR: {reason}" if reason else "Rejected by HR"
        elif target == S.talent_pool.value:
            patch["talent_pool"] = TalentPoolEntry(reason=reason or "", tags=tags or [], hr_notes=notes).to_doc()
            action = "Moved to talent pool"
        elif target == S.round2.value:
            patch["round2"] = RoundSummary(
                status=RoundStatus.scheduled, scheduled_at=scheduled_at, notes=notes
            ).to_doc()
            action = "Round 2 scheduled by HR"
        else:
            action = "Shortlisted by HR"

        updated = self.applications.update_application(
            application_id,
            patch,
            expected_status=application.status,
            timeline_entry=TimelineEntry(stage=target, action=action),
        )
        if updated is None:
            raise InvalidTransition("Application status changed, please refresh and try again")

        logger.info("Application %s moved %s -> %s by HR %s", application_id, application.status, target, hr_id)
        return updated

    def list_candidates(self, hr_id: str, job_id: str = None) -> List[dict]:
        """
        Applications to the HR's jobs, most recent first.

        Each item: {"application", "job", "student"} where student is the
        user document (None if the user record is gone).
        """
        jobs = {job.id: job for job in self.jobs.list_by_poster(hr_id)}

        if job_id:
            if job_id not in jobs:
                if self.jobs.find_job(job_id) is None:
                    raise NotFound("Job", job_id)
                raise Forbidden("Not authorized to view candidates for this job")
            job_ids = [job_id]
        else:
            job_ids = list(jobs)

        candidates = []
        for application in self.applications.list_by_jobs(job_ids):
            candidates.append({
                "application": application,
                "job": jobs[application.job_id],
                "student": self.users.get_by_subject(application.student_id),
            })
        return candidates

    def job_history(self, hr_id: str) -> List[dict]:
        """Per posted job: the job plus totals and counts per status."""
        history = []
        for job in self.jobs.list_by_poster(hr_id):
            applications = self.applications.list_by_jobs([job.id])
            stats = {status.value: 0 for status in ApplicationStatus}
            for application in applications:
                stats[application.status] = stats.get(application.status, 0) + 1
            history.append({
                "job": job,
                "total_applications": len(applications),
                "stats": stats,
            })
        return history


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def get_application_service(db: Database = None) -> ApplicationLifecycleService:
    """Get application lifecycle service instance."""
    return ApplicationLifecycleService(db)
