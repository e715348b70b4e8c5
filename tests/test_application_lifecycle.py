from datetime import datetime

import pytest
from bson import ObjectId

from hireflow.core.config import Settings
from hireflow.core.errors import (
    DuplicateApplication,
    Forbidden,
    InvalidTransition,
    NotFound,
    PreconditionFailed,
)
from hireflow.models.records import PersonalInfo
from hireflow.services.application_service import (
    ALLOWED_TRANSITIONS,
    ApplicationLifecycleService,
    can_transition,
)
from hireflow.services.job_service import JobPostingService
from hireflow.services.mongo_service import ApplicationDocumentService, UserDocumentService

from conftest import HR_ID, OTHER_HR_ID, OTHER_STUDENT_ID, STUDENT_ID


@pytest.fixture
def lifecycle(db):
    return ApplicationLifecycleService(db)


@pytest.fixture
def job(make_job):
    return make_job(skills=["React", "AWS"], description="Build scalable React applications")


# ============================================================
# apply
# ============================================================

def test_apply_creates_pending_application_with_timeline(lifecycle, job, store_resume):
    store_resume(skills=["React", "Docker"])

    application = lifecycle.apply(STUDENT_ID, job.id, PersonalInfo(first_name="Jane", last_name="Doe"))

    assert application.id
    assert application.status == "Pending"
    assert application.is_active is True
    assert application.ai_score.skill_match == 50
    assert application.ai_score.strategy == "keyword_blend"
    assert [e.stage for e in application.timeline] == ["Applied"]
    assert application.timeline[0].action == "Application submitted by Jane"


def test_apply_without_name_credits_student(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)
    assert application.timeline[0].action == "Application submitted by Student"


def test_apply_merges_personal_info_into_profile(db, lifecycle, job, store_resume):
    store_resume()
    lifecycle.apply(STUDENT_ID, job.id, PersonalInfo(first_name="Jane", last_name="Doe", phone="555-123-4567"))

    user = UserDocumentService(db).get_by_subject(STUDENT_ID)
    assert user["profile"]["full_name"] == "Jane Doe"
    assert user["profile"]["phone"] == "555-123-4567"


def test_apply_unknown_job(lifecycle, store_resume):
    store_resume()
    with pytest.raises(NotFound):
        lifecycle.apply(STUDENT_ID, str(ObjectId()))
    with pytest.raises(NotFound):
        lifecycle.apply(STUDENT_ID, "not-an-id")


def test_apply_requires_resume_on_file(lifecycle, job):
    with pytest.raises(PreconditionFailed, match="resume"):
        lifecycle.apply(STUDENT_ID, job.id)


def test_apply_to_closed_job(db, lifecycle, job, store_resume):
    store_resume()
    JobPostingService(db).close_job(job.id, HR_ID)

    with pytest.raises(PreconditionFailed, match="closed"):
        lifecycle.apply(STUDENT_ID, job.id)

    lenient = ApplicationLifecycleService(db, settings=Settings(allow_closed_job_applications=True))
    assert lenient.apply(STUDENT_ID, job.id).status == "Pending"


def test_second_apply_is_duplicate(lifecycle, job, store_resume):
    store_resume()
    lifecycle.apply(STUDENT_ID, job.id)

    with pytest.raises(DuplicateApplication):
        lifecycle.apply(STUDENT_ID, job.id)


def test_apply_after_withdrawal_succeeds(lifecycle, job, store_resume):
    store_resume()
    first = lifecycle.apply(STUDENT_ID, job.id)
    lifecycle.withdraw(first.id, STUDENT_ID)

    second = lifecycle.apply(STUDENT_ID, job.id)

    assert second.id != first.id
    assert second.status == "Pending"


def test_other_students_can_apply_to_same_job(lifecycle, job, store_resume):
    store_resume(STUDENT_ID)
    store_resume(OTHER_STUDENT_ID)
    lifecycle.apply(STUDENT_ID, job.id)
    assert lifecycle.apply(OTHER_STUDENT_ID, job.id).student_id == OTHER_STUDENT_ID


def test_reupload_does_not_change_existing_score(db, lifecycle, job, store_resume):
    store_resume(skills=["React"])
    application = lifecycle.apply(STUDENT_ID, job.id)

    store_resume(skills=["React", "AWS"])

    stored = ApplicationDocumentService(db).get_application(application.id)
    assert stored.ai_score.skill_match == 50


# ============================================================
# withdraw
# ============================================================

def test_withdraw_pending(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)

    withdrawn = lifecycle.withdraw(application.id, STUDENT_ID)

    assert withdrawn.status == "Withdrawn"
    assert withdrawn.is_active is False
    assert [e.stage for e in withdrawn.timeline] == ["Applied", "Withdrawn"]


def test_withdraw_someone_elses_application(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)

    with pytest.raises(Forbidden):
        lifecycle.withdraw(application.id, OTHER_STUDENT_ID)


def test_withdraw_rejected_is_invalid(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)
    lifecycle.move(application.id, HR_ID, "Rejected", reason="Not a fit")

    with pytest.raises(InvalidTransition):
        lifecycle.withdraw(application.id, STUDENT_ID)


def test_withdraw_twice_is_invalid(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)
    lifecycle.withdraw(application.id, STUDENT_ID)

    with pytest.raises(InvalidTransition):
        lifecycle.withdraw(application.id, STUDENT_ID)


def test_withdraw_missing(lifecycle):
    with pytest.raises(NotFound):
        lifecycle.withdraw(str(ObjectId()), STUDENT_ID)


# ============================================================
# HR moves
# ============================================================

def test_transition_table_terminal_states():
    assert ALLOWED_TRANSITIONS["Rejected"] == set()
    assert ALLOWED_TRANSITIONS["Withdrawn"] == set()
    assert ALLOWED_TRANSITIONS["TalentPool"] == {"Withdrawn"}
    assert can_transition("Shortlisted", "Round2")
    assert not can_transition("Pending", "Round2")
    assert not can_transition("Round2", "Shortlisted")


def test_shortlist_then_round2(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)

    lifecycle.move(application.id, HR_ID, "Shortlisted")
    moved = lifecycle.move(application.id, HR_ID, "Round2", notes="Panel interview")

    assert moved.status == "Round2"
    assert moved.round2.status == "Scheduled"
    assert moved.round2.notes == "Panel interview"
    assert [e.stage for e in moved.timeline] == ["Applied", "Shortlisted", "Round2"]


def test_reject_stores_reason(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)

    rejected = lifecycle.move(application.id, HR_ID, "Rejected", reason="Needs more AWS")

    assert rejected.status == "Rejected"
    assert rejected.rejection_reason == "Needs more AWS"
    assert rejected.timeline[-1].action == "Rejected by HR: Needs more AWS"


def test_talent_pool_stores_entry(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)

    pooled = lifecycle.move(application.id, HR_ID, "TalentPool", reason="Good later", tags=["react"], notes="ping Q3")

    assert pooled.talent_pool.reason == "Good later"
    assert pooled.talent_pool.tags == ["react"]
    assert pooled.talent_pool.hr_notes == "ping Q3"

    with pytest.raises(InvalidTransition):
        lifecycle.move(application.id, HR_ID, "Rejected")


@pytest.mark.parametrize("target", ["Withdrawn", "Round1", "Pending", "Bogus"])
def test_hr_cannot_move_to_reserved_states(lifecycle, job, store_resume, target):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)

    with pytest.raises(InvalidTransition):
        lifecycle.move(application.id, HR_ID, target)


def test_hr_must_own_the_job(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)

    with pytest.raises(Forbidden):
        lifecycle.move(application.id, OTHER_HR_ID, "Shortlisted")
    with pytest.raises(Forbidden):
        lifecycle.delete(application.id, OTHER_HR_ID)


def test_timeline_only_grows_and_starts_with_applied(lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)
    lengths = [len(application.timeline)]

    for target in ["Shortlisted", "Round2", "TalentPool"]:
        application = lifecycle.move(application.id, HR_ID, target)
        lengths.append(len(application.timeline))
    application = lifecycle.withdraw(application.id, STUDENT_ID)
    lengths.append(len(application.timeline))

    assert lengths == [1, 2, 3, 4, 5]
    assert application.timeline[0].stage == "Applied"
    assert application.timeline_for_display()[0].stage == "Withdrawn"


def test_stale_status_update_misses(db, lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)
    documents = ApplicationDocumentService(db)

    # Someone else moved it first
    documents.update_application(application.id, {"status": "Shortlisted"}, expected_status="Pending")

    assert documents.update_application(application.id, {"status": "Rejected"}, expected_status="Pending") is None
    assert documents.get_application(application.id).status == "Shortlisted"


def test_delete_removes_application(db, lifecycle, job, store_resume):
    store_resume()
    application = lifecycle.apply(STUDENT_ID, job.id)

    lifecycle.delete(application.id, HR_ID)

    assert ApplicationDocumentService(db).get_application(application.id) is None
    with pytest.raises(NotFound):
        lifecycle.delete(application.id, HR_ID)


# ============================================================
# listings
# ============================================================

def test_list_for_student(lifecycle, make_job, store_resume):
    store_resume()
    first = make_job(skills=["React"])
    second = make_job(skills=["AWS"], title="Cloud Engineer")
    lifecycle.apply(STUDENT_ID, first.id)
    lifecycle.apply(STUDENT_ID, second.id)

    applications = lifecycle.list_for_student(STUDENT_ID)

    assert {a.job_id for a in applications} == {first.id, second.id}
    assert lifecycle.list_for_student(OTHER_STUDENT_ID) == []


def test_list_candidates_scoped_to_hr(lifecycle, job, make_job, store_resume):
    store_resume(STUDENT_ID)
    store_resume(OTHER_STUDENT_ID)
    foreign = make_job(skills=["Go"], hr_id=OTHER_HR_ID, title="Go Engineer")
    lifecycle.apply(STUDENT_ID, job.id)
    lifecycle.apply(OTHER_STUDENT_ID, foreign.id)

    candidates = lifecycle.list_candidates(HR_ID)

    assert len(candidates) == 1
    assert candidates[0]["job"].id == job.id
    assert candidates[0]["student"]["subject_id"] == STUDENT_ID

    with pytest.raises(Forbidden):
        lifecycle.list_candidates(HR_ID, foreign.id)
    with pytest.raises(NotFound):
        lifecycle.list_candidates(HR_ID, str(ObjectId()))


def test_job_history_counts(lifecycle, job, store_resume):
    store_resume(STUDENT_ID)
    store_resume(OTHER_STUDENT_ID)
    first = lifecycle.apply(STUDENT_ID, job.id)
    lifecycle.apply(OTHER_STUDENT_ID, job.id)
    lifecycle.move(first.id, HR_ID, "Rejected")

    history = lifecycle.job_history(HR_ID)

    assert len(history) == 1
    assert history[0]["total_applications"] == 2
    assert history[0]["stats"]["Rejected"] == 1
    assert history[0]["stats"]["Pending"] == 1
    assert history[0]["stats"]["Round1"] == 0


# ============================================================
# job board
# ============================================================

def test_job_board_lists_active_jobs_newest_first(db, make_job, store_resume):
    older = make_job(skills=["React"], title="Older role")
    newer = make_job(skills=["AWS"], title="Newer role")
    closed = make_job(skills=["React"], title="Closed role")
    jobs = db["jobs"]
    jobs.update_one({"_id": ObjectId(older.id)}, {"$set": {"created_at": datetime(2024, 1, 1)}})
    jobs.update_one({"_id": ObjectId(newer.id)}, {"$set": {"created_at": datetime(2024, 2, 1)}})
    JobPostingService(db).close_job(closed.id, HR_ID)
    store_resume(skills=["React"])

    board = JobPostingService(db).list_available(STUDENT_ID)

    assert [job.title for job, _ in board] == ["Newer role", "Older role"]
    assert [score.skill_match for _, score in board] == [0, 100]


def test_job_board_without_resume_has_no_scores(db, make_job):
    make_job(skills=["React"])

    board = JobPostingService(db).list_available(STUDENT_ID)

    assert [score for _, score in board] == [None]
