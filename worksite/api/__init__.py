"""
API routes package
"""
from fastapi import APIRouter
from worksite.api.routes import auth, work_zones, check_ins, locations, deployments

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(work_zones.router)
api_router.include_router(check_ins.router)
api_router.include_router(locations.router)
api_router.include_router(deployments.router)
