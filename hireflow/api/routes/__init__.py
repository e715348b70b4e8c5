"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from hireflow.api.routes.auth_routes import router as auth_router
from hireflow.api.routes.student_routes import router as student_router
from hireflow.api.routes.hr_routes import router as hr_router
from hireflow.api.routes.assessment_routes import router as assessment_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(student_router)
api_router.include_router(hr_router)
api_router.include_router(assessment_router)
