"""
Authentication Routes

GET /auth/me - Get current user info (syncs the local user record)

Sign-up and login happen at the identity provider; we only verify its
bearer tokens.
"""

from fastapi import APIRouter, Depends

from hireflow.core.auth import get_current_user
from hireflow.schemas.schemas import UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current user info, with the reconciled role."""
    return UserResponse(user_id=user["user_id"], email=user.get("email"), role=user["role"])
