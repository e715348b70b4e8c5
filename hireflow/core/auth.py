"""
Authentication Utility - JWT verification and role dependencies.

Provides:
- JWT token creation/verification (HS256, shared with the identity provider)
- get_db dependency (override it in tests)
- FastAPI dependencies for protected routes

The identity provider owns passwords. We only verify its tokens and keep
a local user document in sync, with the role reconciled on every request.
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database

from hireflow.core.config import get_settings
from hireflow.db.mongodb import get_mongo_db
from hireflow.models.records import Role
from hireflow.services.mongo_service import UserDocumentService

settings = get_settings()

# Bearer token extractor
bearer_scheme = HTTPBearer()


def create_access_token(
    subject: str,
    role: Optional[str] = None,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token (used by scripts and tests)."""
    to_encode = {"sub": subject}
    if role:
        to_encode["role"] = role
    if email:
        to_encode["email"] = email
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def get_db() -> Database:
    """FastAPI dependency - Mongo database handle."""
    return get_mongo_db()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Database = Depends(get_db)
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    subject_id = payload.get("sub")
    if not subject_id:
        raise credentials_exception

    user = UserDocumentService(db).sync_user(
        subject_id,
        email=payload.get("email"),
        claimed_role=payload.get("role"),
    )

    return {
        "user_id": subject_id,
        "subject_id": subject_id,
        "email": user.get("email"),
        "role": user["role"],
    }


async def get_current_student(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require student role."""
    if user["role"] != Role.student.value:
        raise HTTPException(status_code=403, detail="Students only")
    return user


async def get_current_hr(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require HR role."""
    if user["role"] != Role.hr.value:
        raise HTTPException(status_code=403, detail="HR only")
    return user
