from abc import ABC, abstractmethod
from typing import List, Optional
from datetime import date
from portfolio_tracker.schemas.records import (
    Scope, UserRecord, PortfolioRecord, HoldingRecord, PriceObservation
)

# 只读数据源抽象基类 (Read-only Data Source Interface)
# 聚合引擎通过它读取用户、组合、持仓和价格，不关心背后是 SQL 数据库还是内存样例数据。
# 所有方法都不修改数据；找不到的范围返回空列表，而不是抛异常。
class PortfolioDataSource(ABC):
    @abstractmethod
    async def list_users(self, username: Optional[str] = None) -> List[UserRecord]:
        """
        获取用户列表；给出 username 时最多返回一条
        """
        pass

    @abstractmethod
    async def list_portfolios(self, scope: Scope) -> List[PortfolioRecord]:
        """
        获取范围内的组合（包含没有任何持仓的空组合）
        """
        pass

    @abstractmethod
    async def list_holdings(self, scope: Scope) -> List[HoldingRecord]:
        """
        获取范围内的持仓，每条都带上股票资料和最新收盘价
        最新价 = 该股票 price_date 最大的那条观测；没有任何价格时 latest_price 为 None
        """
        pass

    @abstractmethod
    async def list_price_history(self, stock_ids: List[int], start: date, end: date) -> List[PriceObservation]:
        """
        获取指定股票在 [start, end] 区间内的全部日线收盘价，按日期升序
        """
        pass
