"""API routes."""

from fastapi import APIRouter

from app.api.v1 import admins, auth, cities, health, pois

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(cities.router, prefix="/cities", tags=["cities"])
router.include_router(pois.router, prefix="/pois", tags=["pois"])
router.include_router(admins.router, prefix="/admins", tags=["admins"])
