from fastapi import APIRouter

from sensorwriter.api.routes import readings

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(readings.router, tags=["readings"])
