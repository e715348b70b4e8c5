"""
HireFlow - Main Application

FastAPI backend with:
- MongoDB for every document (users, jobs, applications, test rounds)
- Heuristic resume signal extraction + configurable fit scoring
- Application lifecycle with a score-gated Round1 test
- JWT bearer tokens from the identity provider

Run: uvicorn hireflow.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hireflow.api import api_router
from hireflow.core.config import get_settings
from hireflow.core.errors import (
    AlreadyAssigned,
    DuplicateApplication,
    Forbidden,
    HireflowError,
    InvalidTransition,
    NotFound,
    PreconditionFailed,
    ScoreTooLow,
)
from hireflow.core.logging import configure_logging
from hireflow.db.mongodb import init_mongo_indexes, test_mongo_connection
from hireflow.schemas import ErrorResponse

settings = get_settings()
logger = logging.getLogger(__name__)

# Domain error -> HTTP status
ERROR_STATUS = {
    NotFound: 404,
    Forbidden: 403,
    DuplicateApplication: 409,
    AlreadyAssigned: 409,
    InvalidTransition: 409,
    PreconditionFailed: 400,
    ScoreTooLow: 400,
}


def status_for(exc: HireflowError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and MongoDB indexes on startup."""
    configure_logging(settings.log_level)
    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)
    yield


# Create FastAPI app
app = FastAPI(
    title="HireFlow",
    description="""
    Candidate matching and application lifecycle engine.

    ## Features
    - **Students**: Resume upload with signal extraction, apply, withdraw
    - **HR**: Job posting, candidate lists, status moves, test assignment
    - **Tests**: Anti-cheat telemetry and answer submission
    - **Scoring**: keyword_blend (default), skill_experience, demo
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HireflowError)
async def hireflow_error_handler(request: Request, exc: HireflowError):
    status_code = status_for(exc)
    logger.info("%s %s -> %d %s: %s", request.method, request.url.path, status_code, type(exc).__name__, exc.message)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=exc.message, error=type(exc).__name__).model_dump(),
    )


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
        "scoring_strategy": settings.scoring_strategy,
    }
