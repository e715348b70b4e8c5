"""
Test Round Routes (student's browser during an assessment)

POST /tests/{test_id}/events - Report an anti-cheat event
POST /tests/{test_id}/submit - Submit answers
"""

from fastapi import APIRouter, Depends
from pymongo.database import Database

from hireflow.core.auth import get_current_student, get_db
from hireflow.schemas.schemas import AntiCheatEventRequest, TestRoundResponse, TestSubmitRequest
from hireflow.services.test_round_service import get_test_round_service

router = APIRouter(prefix="/tests", tags=["Tests"])


def _round_response(test_round) -> TestRoundResponse:
    return TestRoundResponse(
        test_id=test_round.id,
        application_id=test_round.application_id,
        anti_cheat=test_round.anti_cheat.model_dump(),
        started_at=test_round.started_at,
        submitted_at=test_round.submitted_at,
    )


@router.post("/{test_id}/events", response_model=TestRoundResponse)
async def record_event(
    test_id: str,
    data: AntiCheatEventRequest,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db)
):
    """Record a proctoring event. Never blocks the test."""
    test_round = get_test_round_service(db).record_event(
        test_id,
        data.event_type.value,
        severity=data.severity.value,
        student_id=student["user_id"],
        metadata=data.metadata,
    )
    return _round_response(test_round)


@router.post("/{test_id}/submit", response_model=TestRoundResponse)
async def submit_test(
    test_id: str,
    data: TestSubmitRequest,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db)
):
    """Submit answers and the client-side anti-cheat log. Scoring happens elsewhere."""
    test_round = get_test_round_service(db).submit(
        test_id, data.answers, data.anti_cheat_log, student_id=student["user_id"]
    )
    return _round_response(test_round)
