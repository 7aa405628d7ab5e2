from typing import List
from fastapi import APIRouter, Depends, Query

from portfolio_tracker.api.deps import get_engine
from portfolio_tracker.core.config import settings
from portfolio_tracker.schemas.portfolio import PerformerItem
from portfolio_tracker.services.aggregation import AggregationEngine

router = APIRouter()

@router.get("/top-performers", response_model=List[PerformerItem])
async def get_top_performers(
    limit: int = Query(settings.TOP_PERFORMERS_LIMIT, ge=1, le=100),
    engine: AggregationEngine = Depends(get_engine)
):
    """
    最佳表现股票 (Top Performers)
    - 跨所有用户、所有组合按代码分组，不受用户筛选影响
    - 收益率 = (最新价 - 各组合平均成本) / 平均成本
    """
    return await engine.top_performers(limit)

@router.get("/worst-performers", response_model=List[PerformerItem])
async def get_worst_performers(
    limit: int = Query(settings.TOP_PERFORMERS_LIMIT, ge=1, le=100),
    engine: AggregationEngine = Depends(get_engine)
):
    """最差表现股票：与 top-performers 同口径，按收益率升序"""
    return await engine.worst_performers(limit)
