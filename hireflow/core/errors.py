"""
Domain errors raised by the matching and lifecycle services.

These carry no transport details. The API layer maps each type to an
HTTP status in hireflow.main; services just raise them.
"""

from typing import Optional


class HireflowError(Exception):
    """Base class for every expected, request-scoped failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExtractionDegraded(HireflowError):
    """Resume text could not be extracted; caller falls back to raw bytes."""


class DuplicateApplication(HireflowError):
    """A non-withdrawn application already exists for (student, job)."""


class PreconditionFailed(HireflowError):
    """A required input is missing (no resume on file, job closed, bad upload)."""


class Forbidden(HireflowError):
    """Ownership or role violation."""


class InvalidTransition(HireflowError):
    """The requested status move is not allowed from the current state."""


class ScoreTooLow(HireflowError):
    """Fit score is below the threshold required to assign a test."""

    def __init__(self, match_score: int, threshold: int):
        super().__init__(
            f"Cannot assign test. Match score is {match_score}%. "
            f"Minimum {threshold}% required."
        )
        self.match_score = match_score
        self.threshold = threshold


class AlreadyAssigned(HireflowError):
    """A test round is already attached to the application."""


class NotFound(HireflowError):
    """Missing application, job, test round or user."""

    def __init__(self, entity: str, entity_id: Optional[str] = None):
        detail = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(detail)
        self.entity = entity
        self.entity_id = entity_id
