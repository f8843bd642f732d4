"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import dashboard, health, policies, products, scans, schedules

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(policies.router, prefix="/policies", tags=["policies"])
router.include_router(scans.router, prefix="/scans", tags=["scans"])
router.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
router.include_router(products.router, prefix="/products", tags=["products"])
