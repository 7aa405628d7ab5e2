from typing import Dict, Iterable, List, Optional
from datetime import date

from portfolio_tracker.schemas.records import (
    Scope, UserRecord, PortfolioRecord, StockRecord, PositionRecord,
    HoldingRecord, PriceObservation
)
from portfolio_tracker.services.data_sources.base import PortfolioDataSource

# 内存数据源 (In-memory Data Source)
# 与 SQL 数据源语义一致的纯 Python 实现：构造后不可变，可被多个请求同时读取。
# 用于演示模式 (DATA_SOURCE=sample) 和单元测试。
class InMemoryDataSource(PortfolioDataSource):
    def __init__(
        self,
        users: Iterable[UserRecord] = (),
        portfolios: Iterable[PortfolioRecord] = (),
        stocks: Iterable[StockRecord] = (),
        positions: Iterable[PositionRecord] = (),
        prices: Iterable[PriceObservation] = (),
    ):
        self._users = tuple(users)
        self._portfolios = tuple(portfolios)
        self._stocks: Dict[int, StockRecord] = {s.stock_id: s for s in stocks}
        self._positions = tuple(positions)
        self._prices = tuple(sorted(prices, key=lambda p: (p.price_date, p.stock_id)))

        # 每支股票的最新观测：价格已按日期升序，后出现的覆盖先出现的
        self._latest: Dict[int, PriceObservation] = {}
        for observation in self._prices:
            self._latest[observation.stock_id] = observation

    def _portfolios_in_scope(self, scope: Scope) -> List[PortfolioRecord]:
        return [
            p for p in self._portfolios
            if (scope.username is None or p.username == scope.username)
            and (scope.portfolio_id is None or p.portfolio_id == scope.portfolio_id)
        ]

    async def list_users(self, username: Optional[str] = None) -> List[UserRecord]:
        return [u for u in self._users if username is None or u.username == username]

    async def list_portfolios(self, scope: Scope) -> List[PortfolioRecord]:
        return self._portfolios_in_scope(scope)

    async def list_holdings(self, scope: Scope) -> List[HoldingRecord]:
        portfolios = {p.portfolio_id: p for p in self._portfolios_in_scope(scope)}
        users = {u.user_id: u for u in self._users}

        records = []
        for position in self._positions:
            portfolio = portfolios.get(position.portfolio_id)
            stock = self._stocks.get(position.stock_id)
            if portfolio is None or stock is None:
                continue

            owner = users.get(portfolio.user_id)
            latest = self._latest.get(stock.stock_id)
            records.append(HoldingRecord(
                holding_id=position.holding_id,
                portfolio_id=portfolio.portfolio_id,
                portfolio_name=portfolio.portfolio_name,
                user_id=portfolio.user_id,
                username=portfolio.username,
                first_name=owner.first_name if owner else None,
                last_name=owner.last_name if owner else None,
                stock_id=stock.stock_id,
                symbol=stock.symbol,
                company_name=stock.company_name,
                sector=stock.sector,
                exchange=stock.exchange,
                market_cap_category=stock.market_cap_category,
                shares_held=position.shares_held,
                average_purchase_price=position.average_purchase_price,
                latest_price=latest.close_price if latest else None,
                latest_price_date=latest.price_date if latest else None,
            ))
        return records

    async def list_price_history(self, stock_ids: List[int], start: date, end: date) -> List[PriceObservation]:
        wanted = set(stock_ids)
        return [
            p for p in self._prices
            if p.stock_id in wanted and start <= p.price_date <= end
        ]
