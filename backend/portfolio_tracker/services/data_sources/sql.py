from typing import List, Optional
from datetime import date
import logging

from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from portfolio_tracker.core.exceptions import DataSourceError
from portfolio_tracker.models.user import User
from portfolio_tracker.models.stock import Stock, StockPrice
from portfolio_tracker.models.portfolio import Portfolio, Holding
from portfolio_tracker.schemas.records import (
    Scope, UserRecord, PortfolioRecord, HoldingRecord, PriceObservation
)
from portfolio_tracker.services.data_sources.base import PortfolioDataSource

logger = logging.getLogger(__name__)

# SQL 数据源 (SQLAlchemy Async)
# 职责：把范围过滤 + “每支股票最新价”翻译成参数化查询，结果映射为只读记录。
# 任何数据库异常统一包装成 DataSourceError，不做重试，也不返回部分结果。
class SqlDataSource(PortfolioDataSource):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fetch(self, operation: str, stmt) -> list:
        try:
            result = await self.db.execute(stmt)
            return result.all()
        except SQLAlchemyError as e:
            logger.error(f"Query failed during {operation}: {type(e).__name__}: {e}")
            raise DataSourceError(operation, e) from e

    @staticmethod
    def _latest_prices():
        """
        最新价子查询：先按股票取 MAX(price_date)，再回连价格表拿到当天收盘价
        """
        latest_dates = (
            select(
                StockPrice.stock_id.label("stock_id"),
                func.max(StockPrice.price_date).label("latest_date"),
            )
            .group_by(StockPrice.stock_id)
            .subquery("latest_dates")
        )
        return (
            select(
                StockPrice.stock_id.label("stock_id"),
                StockPrice.close_price.label("close_price"),
                StockPrice.price_date.label("price_date"),
            )
            .join(
                latest_dates,
                and_(
                    StockPrice.stock_id == latest_dates.c.stock_id,
                    StockPrice.price_date == latest_dates.c.latest_date,
                ),
            )
            .subquery("latest_prices")
        )

    @staticmethod
    def _apply_scope(stmt, scope: Scope):
        if scope.username is not None:
            stmt = stmt.where(User.username == scope.username)
        if scope.portfolio_id is not None:
            stmt = stmt.where(Portfolio.portfolio_id == scope.portfolio_id)
        return stmt

    async def list_users(self, username: Optional[str] = None) -> List[UserRecord]:
        stmt = select(
            User.user_id,
            User.username,
            User.email,
            User.first_name,
            User.last_name,
            User.pan_number,
            User.phone_number,
            User.city,
            User.state,
        ).order_by(User.user_id)
        if username is not None:
            stmt = stmt.where(User.username == username)

        rows = await self._fetch("list_users", stmt)
        return [UserRecord(**row._mapping) for row in rows]

    async def list_portfolios(self, scope: Scope) -> List[PortfolioRecord]:
        stmt = (
            select(
                Portfolio.portfolio_id,
                Portfolio.portfolio_name,
                Portfolio.description,
                User.user_id,
                User.username,
            )
            .join(User, Portfolio.user_id == User.user_id)
            .order_by(Portfolio.portfolio_id)
        )
        stmt = self._apply_scope(stmt, scope)

        rows = await self._fetch("list_portfolios", stmt)
        return [PortfolioRecord(**row._mapping) for row in rows]

    async def list_holdings(self, scope: Scope) -> List[HoldingRecord]:
        latest = self._latest_prices()

        # 持仓 -> 组合 -> 用户 -> 股票 为内连接；最新价用 outerjoin，缺价的持仓依然返回
        stmt = (
            select(
                Holding.holding_id,
                Holding.portfolio_id,
                Portfolio.portfolio_name,
                User.user_id,
                User.username,
                User.first_name,
                User.last_name,
                Stock.stock_id,
                Stock.symbol,
                Stock.company_name,
                Stock.sector,
                Stock.exchange,
                Stock.market_cap_category,
                Holding.shares_held,
                Holding.average_purchase_price,
                latest.c.close_price.label("latest_price"),
                latest.c.price_date.label("latest_price_date"),
            )
            .join(Portfolio, Holding.portfolio_id == Portfolio.portfolio_id)
            .join(User, Portfolio.user_id == User.user_id)
            .join(Stock, Holding.stock_id == Stock.stock_id)
            .outerjoin(latest, latest.c.stock_id == Holding.stock_id)
            .order_by(Holding.holding_id)
        )
        stmt = self._apply_scope(stmt, scope)

        rows = await self._fetch("list_holdings", stmt)
        return [HoldingRecord(**row._mapping) for row in rows]

    async def list_price_history(self, stock_ids: List[int], start: date, end: date) -> List[PriceObservation]:
        if not stock_ids:
            return []

        stmt = (
            select(
                StockPrice.stock_id,
                Stock.symbol,
                StockPrice.price_date,
                StockPrice.close_price,
            )
            .join(Stock, StockPrice.stock_id == Stock.stock_id)
            .where(
                StockPrice.stock_id.in_(stock_ids),
                StockPrice.price_date >= start,
                StockPrice.price_date <= end,
            )
            .order_by(StockPrice.price_date, StockPrice.stock_id)
        )

        rows = await self._fetch("list_price_history", stmt)
        return [PriceObservation(**row._mapping) for row in rows]
