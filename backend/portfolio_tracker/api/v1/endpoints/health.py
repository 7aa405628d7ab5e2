from datetime import datetime, timezone
from fastapi import APIRouter

from portfolio_tracker.schemas.portfolio import HealthStatus

router = APIRouter()

@router.get("/health", response_model=HealthStatus)
async def health_check():
    """健康检查接口：确保后端服务在线"""
    return HealthStatus(status="OK", timestamp=datetime.now(timezone.utc))
