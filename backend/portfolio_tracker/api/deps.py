from typing import Optional
from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from portfolio_tracker.core.config import settings
from portfolio_tracker.core.database import get_db
from portfolio_tracker.schemas.records import Scope
from portfolio_tracker.services.data_sources import (
    PortfolioDataSource, SqlDataSource, build_sample_data_source
)
from portfolio_tracker.services.aggregation import AggregationEngine

async def get_data_source(db: AsyncSession = Depends(get_db)) -> PortfolioDataSource:
    # 演示模式：不连数据库，直接使用内置的印度市场样例数据
    if settings.DATA_SOURCE == "sample":
        return build_sample_data_source()
    return SqlDataSource(db)

def get_engine(source: PortfolioDataSource = Depends(get_data_source)) -> AggregationEngine:
    return AggregationEngine(source)

def get_scope(
    username: Optional[str] = Query(None, description="只看某个用户，不传则为全部用户"),
    portfolio_id: Optional[int] = Query(None, ge=1, description="只看某个组合"),
) -> Scope:
    # 空字符串等同于未传 (前端下拉框 "All Users" 的值为空)
    username = username.strip() if username else None
    return Scope(username=username or None, portfolio_id=portfolio_id)
