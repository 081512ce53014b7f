# vipgate/api/internal/system.py
import logging

from fastapi import APIRouter, Depends

from core.config import ConfigManager
from core.database.base import DatabaseService
from core.stats import DashboardService
from schemas.auth import AuthResult
from schemas.common import HealthStatus, UnifiedAPIResponse
from schemas.stats import DashboardStats
from api.dependencies import get_config, get_current_user, get_dashboard_service, get_db_service


router = APIRouter()

logger = logging.getLogger(f"vipgate.{__name__}")


@router.get(
        "/stats",
        response_model=UnifiedAPIResponse[DashboardStats],
        response_model_exclude_none=True,
        summary="Dashboard Statistics"
)
async def get_dashboard_stats(
    auth_result: AuthResult = Depends(get_current_user),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    return UnifiedAPIResponse(success=True, message="Statistics retrieved.", data=dashboard.get_stats())


@router.get(
        "/system/health",
        response_model=UnifiedAPIResponse[HealthStatus],
        response_model_exclude_none=True,
        summary="Health Check"
)
async def health_check(
    db: DatabaseService = Depends(get_db_service),
    config: ConfigManager = Depends(get_config),
):
    """
    Liveness plus a trivial database query. Always 200; a failing database
    shows up as status "degraded".
    """
    db_ok = db.ping()
    if not db_ok:
        logger.warning("Health check: database did not answer.")
    return UnifiedAPIResponse(
        success=True,
        message="Service is healthy." if db_ok else "Database unavailable.",
        data=HealthStatus(
            status="ok" if db_ok else "degraded",
            database=db_ok,
            version=config.get_config("system.version", "1.0.0"),
        ),
    )
