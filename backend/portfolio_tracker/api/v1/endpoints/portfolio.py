from typing import List, Literal, Optional
from datetime import date
import logging

from fastapi import APIRouter, Depends, Query

from portfolio_tracker.api.deps import get_engine, get_scope
from portfolio_tracker.core.config import settings
from portfolio_tracker.schemas.records import Scope
from portfolio_tracker.schemas.portfolio import (
    PortfolioSummary, HoldingItem, PortfolioOverview, SectorAllocation,
    PerformancePoint, PortfolioAlert
)
from portfolio_tracker.services.aggregation import AggregationEngine

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/portfolio-summary", response_model=PortfolioSummary)
async def get_portfolio_summary(
    scope: Scope = Depends(get_scope),
    engine: AggregationEngine = Depends(get_engine)
):
    """
    获取投资组合汇总数据 (Get Portfolio Summary)
    - 不传 username：先按用户汇总，再跨用户求和
    - 用户不存在时返回全 0，而不是 404
    """
    return await engine.portfolio_summary(scope)

@router.get("/holdings", response_model=List[HoldingItem])
async def get_holdings(
    scope: Scope = Depends(get_scope),
    sort_by: Literal["value", "return", "symbol"] = "value",
    search: Optional[str] = Query(None, max_length=100),
    engine: AggregationEngine = Depends(get_engine)
):
    """
    获取当前持仓明细 (Fetch Current Holdings)

    逻辑 (Logic)：
    1. 联表：持仓 -> 组合 -> 用户 -> 股票 -> 最新收盘价
    2. 计算市值、未实现盈亏、收益率、组合内权重
    3. 默认按市值降序，可切换为收益率或代码排序
    """
    return await engine.holdings(scope, sort_by=sort_by, search=search)

@router.get("/portfolios", response_model=List[PortfolioOverview])
async def get_portfolios(
    scope: Scope = Depends(get_scope),
    engine: AggregationEngine = Depends(get_engine)
):
    """获取组合列表 (空组合也会返回，数值为 0)，按当前市值降序"""
    return await engine.portfolios(scope)

@router.get("/sector-allocation", response_model=List[SectorAllocation])
async def get_sector_allocation(
    scope: Scope = Depends(get_scope),
    engine: AggregationEngine = Depends(get_engine)
):
    """行业分布：占比以同一范围内的总市值为分母"""
    return await engine.sector_allocation(scope)

@router.get("/performance", response_model=List[PerformancePoint])
async def get_performance(
    scope: Scope = Depends(get_scope),
    period: Optional[Literal["1M", "3M", "6M", "1Y"]] = None,
    as_of: Optional[date] = None,
    engine: AggregationEngine = Depends(get_engine)
):
    """
    组合市值走势 (Portfolio Performance Over Time)
    - period 对应前端的 1M / 3M / 6M / 1Y 切换按钮
    - 简化口径：使用当前持股数回溯计算历史市值
    """
    period = period or settings.DEFAULT_PERFORMANCE_PERIOD
    return await engine.performance_series(scope, period=period, as_of=as_of)

@router.get("/alerts", response_model=List[PortfolioAlert])
async def get_alerts(
    scope: Scope = Depends(get_scope),
    engine: AggregationEngine = Depends(get_engine)
):
    """集中度与浮亏预警 (阈值见配置项)"""
    alerts = await engine.alerts(scope)
    if alerts:
        logger.info(f"{len(alerts)} alert(s) raised for scope {scope.model_dump()}")
    return alerts
