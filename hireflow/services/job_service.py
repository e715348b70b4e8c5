"""
Job Posting Service - HR creates and closes jobs.

Round config is merged over the configured defaults per round, so a
posting that only overrides round1.duration keeps the other defaults.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from pymongo.database import Database

from hireflow.core.config import Settings, get_settings
from hireflow.core.errors import Forbidden, NotFound, PreconditionFailed
from hireflow.models.records import ExperienceRange, FitScore, Job, JobRequirementSpec, JobStatus
from hireflow.services.mongo_service import JobDocumentService, UserDocumentService
from hireflow.services.scoring_service import FitScorer, get_fit_scorer

logger = logging.getLogger(__name__)


def merge_round_config(defaults: Dict[str, dict], overrides: Optional[Dict[str, Any]]) -> Dict[str, dict]:
    """Per-round shallow merge of overrides onto the defaults."""
    merged = copy.deepcopy(defaults)
    for round_name, values in (overrides or {}).items():
        if isinstance(values, dict):
            merged[round_name] = {**merged.get(round_name, {}), **values}
    return merged


class JobPostingService:

    def __init__(self, db: Database = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.jobs = JobDocumentService(db)
        self.users = UserDocumentService(db)

    def create_job(
        self,
        hr_id: str,
        title: str,
        description: str = "",
        skills: List[str] = None,
        experience_min: int = 0,
        experience_max: int = 10,
        round_config: Dict[str, Any] = None,
        location: str = None
    ) -> Job:
        if not title or not title.strip():
            raise PreconditionFailed("Job title is required")

        job = Job(
            title=title.strip(),
            description=description or "",
            requirements=JobRequirementSpec(
                skills=skills or [],
                experience=ExperienceRange(min=experience_min, max=experience_max),
            ),
            round_config=merge_round_config(self.settings.default_round_config, round_config),
            posted_by=hr_id,
            status=JobStatus.active,
            location=location,
        )
        created = self.jobs.create(job)
        logger.info("HR %s posted job %s (%s)", hr_id, created.id, created.title)
        return created

    def close_job(self, job_id: str, hr_id: str) -> Job:
        job = self.jobs.find_job(job_id)
        if job is None:
            raise NotFound("Job", job_id)
        if job.posted_by != hr_id:
            raise Forbidden("Not authorized to close this job")

        closed = self.jobs.set_status(job_id, JobStatus.closed.value)
        logger.info("Job %s closed by HR %s", job_id, hr_id)
        return closed

    def list_available(
        self,
        student_id: str,
        scorer: Optional[FitScorer] = None
    ) -> List[Tuple[Job, Optional[FitScore]]]:
        """
        Job board for a student: Active jobs, newest first.

        Each job is scored against the student's stored resume signal;
        the score is None when no resume is on file. Nothing is saved.
        """
        signal = self.users.get_user_resume_signal(student_id)
        scorer = scorer or get_fit_scorer(settings=self.settings)

        board = []
        for job in self.jobs.list_active():
            score = None
            if signal is not None:
                score = scorer.score(signal, job.to_requirements(), student_id=student_id, job_id=job.id)
            board.append((job, score))
        return board


def get_job_service(db: Database = None) -> JobPostingService:
    """Get job posting service instance."""
    return JobPostingService(db)
