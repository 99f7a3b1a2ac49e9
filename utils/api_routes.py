"""
API routes module that combines all routers
"""
from fastapi import APIRouter
from routes.auth_routes import router as auth_router
from routes.report_api_routes import router as report_router

# Create main router
router = APIRouter()

# Include all sub-routers
router.include_router(auth_router)
router.include_router(report_router)
