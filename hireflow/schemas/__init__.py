"""
Schemas module - Request/Response schemas for API endpoints.

Difference from models:
- Models: Internal data structures (hireflow.models)
- Schemas: API contract (what client sends/receives)
"""

from hireflow.schemas.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatusUpdate,
    CandidateResponse,
    ErrorResponse,
    JobBoardItem,
    JobCreate,
    JobResponse,
    MessageResponse,
    ResumeUploadResponse,
    UserResponse,
)

__all__ = [
    "ApplicationCreate",
    "ApplicationResponse",
    "ApplicationStatusUpdate",
    "CandidateResponse",
    "ErrorResponse",
    "JobBoardItem",
    "JobCreate",
    "JobResponse",
    "MessageResponse",
    "ResumeUploadResponse",
    "UserResponse",
]
