"""
MongoDB Service - CRUD operations for HireFlow collections.

Collections in this database:
1. users            - Identity-provider users + profile + last resume signal
2. jobs             - Job postings (requirements, round config, status)
3. applications     - One per (student, job) attempt, with embedded fit score
4. test_rounds      - Assessment round per application, anti-cheat counters
5. anti_cheat_logs  - One document per proctoring event

Every service takes an optional db handle; omit it to use the shared
client from hireflow.db.mongodb.

Status changes go through update_application with expected_status, so a
concurrent move that already changed the status makes the update miss
instead of overwriting it.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from hireflow.db.mongodb import COLLECTIONS, get_collection
from hireflow.models.records import (
    Application,
    CandidateSignal,
    Job,
    JobStatus,
    PersonalInfo,
    TestRound,
    TimelineEntry,
    reconcile_role,
)

logger = logging.getLogger(__name__)


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an id from a URL/body; None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


# ============================================================
# USERS COLLECTION
# Local copy of identity-provider users
# ============================================================

class UserDocumentService:
    """
    Handles user documents, keyed by the token subject id.

    The profile carries the most recent resume signal, which is what
    apply scores against.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["users"], db)
        self.jobs: Collection = get_collection(COLLECTIONS["jobs"], db)

    def get_by_subject(self, subject_id: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"subject_id": subject_id}))

    def has_posted_jobs(self, subject_id: str) -> bool:
        return self.jobs.find_one({"posted_by": subject_id}) is not None

    def sync_user(self, subject_id: str, email: str = None, claimed_role: str = None) -> dict:
        """
        Create or refresh the local user for a verified token.

        Args:
            subject_id: Token "sub" claim
            email: Token email claim, if any
            claimed_role: Token role claim (HR / STUDENT), if any

        Returns:
            The user document after the update
        """
        existing = self.collection.find_one({"subject_id": subject_id})
        stored_role = existing.get("role") if existing else None
        role = reconcile_role(stored_role, claimed_role, self.has_posted_jobs(subject_id))

        if stored_role != role.value:
            logger.info("User %s role set to %s (was %s)", subject_id, role.value, stored_role)

        fields = {"role": role.value}
        if email:
            fields["email"] = email

        doc = self.collection.find_one_and_update(
            {"subject_id": subject_id},
            {
                "$set": fields,
                "$setOnInsert": {"created_at": datetime.utcnow(), "profile": {"skills": []}},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return serialize_doc(doc)

    def get_user_resume_signal(self, user_id: str) -> Optional[CandidateSignal]:
        """Last uploaded resume signal, or None if the user never uploaded."""
        doc = self.collection.find_one({"subject_id": user_id}, {"profile.resume": 1})
        resume = ((doc or {}).get("profile") or {}).get("resume") or {}
        if not resume.get("signal"):
            return None
        return CandidateSignal.model_validate(resume["signal"])

    def save_user_resume_signal(
        self,
        user_id: str,
        signal: CandidateSignal,
        file_name: str = None,
        content_type: str = None
    ) -> bool:
        """Replace the stored resume signal (and profile skills) for a user."""
        result = self.collection.update_one(
            {"subject_id": user_id},
            {
                "$set": {
                    "profile.resume": {
                        "file_name": file_name,
                        "content_type": content_type,
                        "uploaded_at": datetime.utcnow(),
                        "signal": signal.to_doc(),
                    },
                    "profile.skills": list(signal.skills),
                },
                "$setOnInsert": {"created_at": datetime.utcnow()},
            },
            upsert=True,
        )
        return result.matched_count > 0 or result.upserted_id is not None

    def merge_profile(self, user_id: str, personal_info: PersonalInfo) -> bool:
        """Copy apply-time personal info onto the profile (only the fields given)."""
        fields = {}
        full_name = " ".join(p for p in [personal_info.first_name, personal_info.last_name] if p)
        if full_name:
            fields["profile.full_name"] = full_name
        if personal_info.phone:
            fields["profile.phone"] = personal_info.phone
        if personal_info.email:
            fields["email"] = personal_info.email
        if not fields:
            return False

        result = self.collection.update_one({"subject_id": user_id}, {"$set": fields})
        return result.modified_count > 0


# ============================================================
# JOBS COLLECTION
# ============================================================

class JobDocumentService:
    """
    Handles job postings.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["jobs"], db)

    def create(self, job: Job) -> Job:
        result = self.collection.insert_one(job.to_doc())
        return job.model_copy(update={"id": str(result.inserted_id)})

    def find_job(self, job_id: str) -> Optional[Job]:
        oid = to_object_id(job_id)
        if oid is None:
            return None
        return Job.from_doc(self.collection.find_one({"_id": oid}))

    def list_by_poster(self, hr_id: str) -> List[Job]:
        """Jobs posted by an HR user, newest first."""
        cursor = self.collection.find({"posted_by": hr_id}).sort("created_at", -1)
        return [Job.from_doc(doc) for doc in cursor]

    def list_active(self) -> List[Job]:
        """Open postings, newest first."""
        cursor = self.collection.find({"status": JobStatus.active.value}).sort("created_at", -1)
        return [Job.from_doc(doc) for doc in cursor]

    def set_status(self, job_id: str, status: str) -> Optional[Job]:
        oid = to_object_id(job_id)
        if oid is None:
            return None
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {"status": status}},
            return_document=ReturnDocument.AFTER,
        )
        return Job.from_doc(doc)


# ============================================================
# APPLICATIONS COLLECTION
# ============================================================

class ApplicationDocumentService:
    """
    Handles application documents.

    Timeline entries are only ever added with $push; nothing here
    rewrites the timeline array.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["applications"], db)

    def get_application(self, application_id: str) -> Optional[Application]:
        oid = to_object_id(application_id)
        if oid is None:
            return None
        return Application.from_doc(self.collection.find_one({"_id": oid}))

    def find_application(
        self,
        student_id: str,
        job_id: str,
        exclude_status: str = None
    ) -> Optional[Application]:
        """Application for (student, job), optionally ignoring one status."""
        query: Dict[str, Any] = {"student_id": student_id, "job_id": job_id}
        if exclude_status:
            query["status"] = {"$ne": exclude_status}
        return Application.from_doc(self.collection.find_one(query))

    def create_application(self, application: Application) -> Application:
        """
        Insert a new application.

        Raises:
            pymongo.errors.DuplicateKeyError: an active application exists
        """
        result = self.collection.insert_one(application.to_doc())
        return application.model_copy(update={"id": str(result.inserted_id)})

    def update_application(
        self,
        application_id: str,
        patch: Dict[str, Any],
        expected_status: str = None,
        timeline_entry: TimelineEntry = None
    ) -> Optional[Application]:
        """
        Apply a $set patch (and optional timeline $push) atomically.

        Returns:
            The updated application, or None when the id is unknown or the
            status no longer equals expected_status.
        """
        oid = to_object_id(application_id)
        if oid is None:
            return None

        query: Dict[str, Any] = {"_id": oid}
        if expected_status is not None:
            query["status"] = expected_status

        update: Dict[str, Any] = {}
        if patch:
            update["$set"] = patch
        if timeline_entry is not None:
            update["$push"] = {"timeline": timeline_entry.to_doc()}
        if not update:
            return self.get_application(application_id)

        doc = self.collection.find_one_and_update(
            query, update, return_document=ReturnDocument.AFTER
        )
        return Application.from_doc(doc)

    def delete_application(self, application_id: str) -> bool:
        oid = to_object_id(application_id)
        if oid is None:
            return False
        return self.collection.delete_one({"_id": oid}).deleted_count > 0

    def list_by_student(self, student_id: str) -> List[Application]:
        """A student's applications, most recent first."""
        cursor = self.collection.find({"student_id": student_id}).sort("applied_at", -1)
        return [Application.from_doc(doc) for doc in cursor]

    def list_by_jobs(self, job_ids: List[str]) -> List[Application]:
        """Applications for any of the given jobs, most recent first."""
        if not job_ids:
            return []
        cursor = self.collection.find({"job_id": {"$in": list(job_ids)}}).sort("applied_at", -1)
        return [Application.from_doc(doc) for doc in cursor]


# ============================================================
# TEST ROUNDS COLLECTION
# ============================================================

class TestRoundDocumentService:
    """
    Handles test round documents.

    Anti-cheat counters are only touched with $inc / $push so concurrent
    events never lose an increment.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["test_rounds"], db)

    def create_test_round(self, test_round: TestRound) -> TestRound:
        result = self.collection.insert_one(test_round.to_doc())
        return test_round.model_copy(update={"id": str(result.inserted_id)})

    def get_test_round(self, test_id: str) -> Optional[TestRound]:
        oid = to_object_id(test_id)
        if oid is None:
            return None
        return TestRound.from_doc(self.collection.find_one({"_id": oid}))

    def get_by_application(self, application_id: str) -> Optional[TestRound]:
        return TestRound.from_doc(self.collection.find_one({"application_id": application_id}))

    def increment_counter(self, test_id: str, counter: Optional[str], activity: str) -> Optional[TestRound]:
        """
        Record one anti-cheat event on the round.

        Args:
            counter: anti_cheat field to bump by one (None = no counter)
            activity: entry appended to anti_cheat.suspicious_activity
        """
        oid = to_object_id(test_id)
        if oid is None:
            return None

        update: Dict[str, Any] = {"$push": {"anti_cheat.suspicious_activity": activity}}
        if counter:
            update["$inc"] = {f"anti_cheat.{counter}": 1}

        doc = self.collection.find_one_and_update(
            {"_id": oid}, update, return_document=ReturnDocument.AFTER
        )
        return TestRound.from_doc(doc)

    def update_test_round(
        self,
        test_id: str,
        patch: Dict[str, Any],
        only_if_unsubmitted: bool = False
    ) -> Optional[TestRound]:
        """$set a patch; with only_if_unsubmitted the update misses once submitted_at is set."""
        oid = to_object_id(test_id)
        if oid is None:
            return None

        query: Dict[str, Any] = {"_id": oid}
        if only_if_unsubmitted:
            query["submitted_at"] = None

        doc = self.collection.find_one_and_update(
            query, {"$set": patch}, return_document=ReturnDocument.AFTER
        )
        return TestRound.from_doc(doc)


# ============================================================
# ANTI-CHEAT LOGS COLLECTION
# ============================================================

class AntiCheatLogDocumentService:
    """
    Append-only proctoring event log.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["anti_cheat_logs"], db)

    def insert(
        self,
        test_id: str,
        event_type: str,
        severity: str,
        student_id: str = None,
        metadata: dict = None
    ) -> str:
        doc = {
            "student_id": student_id,
            "test_id": test_id,
            "event_type": event_type,
            "severity": severity,
            "metadata": metadata or {},
            "timestamp": datetime.utcnow(),
        }
        result = self.collection.insert_one(doc)
        return str(result.inserted_id)

    def list_for_test(self, test_id: str) -> List[dict]:
        cursor = self.collection.find({"test_id": test_id}).sort("timestamp", 1)
        return [serialize_doc(doc) for doc in cursor]

