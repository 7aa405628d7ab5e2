from typing import Dict, List, Optional, Set
from dataclasses import dataclass, field
from datetime import date
import logging

from portfolio_tracker.core.config import settings
from portfolio_tracker.schemas.records import Scope, HoldingRecord
from portfolio_tracker.schemas.portfolio import (
    UserOut, PortfolioSummary, HoldingItem, PortfolioOverview, SectorAllocation,
    PerformerItem, PerformancePoint, PortfolioAlert
)
from portfolio_tracker.services.data_sources.base import PortfolioDataSource
from portfolio_tracker.services.valuation import (
    safe_ratio, percent, market_value, value_holding, months_ago
)

logger = logging.getLogger(__name__)

PERIOD_MONTHS = {"1M": 1, "3M": 3, "6M": 6, "1Y": 12}

UNKNOWN_SECTOR = "Unknown"


@dataclass
class _UserTotals:
    portfolio_ids: Set[int] = field(default_factory=set)
    symbols: Set[str] = field(default_factory=set)
    invested: float = 0.0
    current_value: float = 0.0


@dataclass
class _SymbolTotals:
    company_name: str
    sector: Optional[str]
    latest_price: Optional[float]
    purchase_prices: List[float] = field(default_factory=list)
    portfolio_ids: Set[int] = field(default_factory=set)
    market_value: float = 0.0


# 组合聚合引擎 (Portfolio Aggregation Engine)
# 职责：在请求时根据 “持仓 + 最新价” 现算所有派生指标，从不写回任何数据。
# 数据源通过构造函数显式传入，引擎本身无全局状态，可在并发请求间随意创建。
class AggregationEngine:
    def __init__(
        self,
        source: PortfolioDataSource,
        position_concentration_pct: Optional[float] = None,
        loss_alert_pct: Optional[float] = None,
        sector_concentration_pct: Optional[float] = None,
    ):
        self.source = source
        self.position_concentration_pct = (
            settings.POSITION_CONCENTRATION_PCT if position_concentration_pct is None else position_concentration_pct
        )
        self.loss_alert_pct = settings.LOSS_ALERT_PCT if loss_alert_pct is None else loss_alert_pct
        self.sector_concentration_pct = (
            settings.SECTOR_CONCENTRATION_PCT if sector_concentration_pct is None else sector_concentration_pct
        )

    async def users(self) -> List[UserOut]:
        records = await self.source.list_users()
        return [UserOut(**u.model_dump()) for u in records]

    async def portfolio_summary(self, scope: Scope) -> PortfolioSummary:
        """
        组合汇总 (Portfolio Summary)

        逻辑 (Logic)：
        1. 确定范围内的用户：全部用户 / 指定用户 / 指定组合的所有者
        2. 按用户累加组合数、本金、市值、持股代码
        3. 跨用户求和；盈亏由两个总数相减得出，保证 市值 - 本金 == 盈亏
        """
        portfolios = await self.source.list_portfolios(scope)
        holdings = await self.source.list_holdings(scope)

        # 1. 范围内的用户 (Step 1: Users in scope)
        # 全部用户模式下，没有任何组合的用户也要计入 (贡献 0)
        if scope.portfolio_id is None:
            usernames = [u.username for u in await self.source.list_users(scope.username)]
        else:
            usernames = sorted({p.username for p in portfolios})

        per_user: Dict[str, _UserTotals] = {name: _UserTotals() for name in usernames}

        # 2. 按用户累计 (Step 2: Per-user aggregation)
        for p in portfolios:
            totals = per_user.get(p.username)
            if totals is not None:
                totals.portfolio_ids.add(p.portfolio_id)

        for h in holdings:
            totals = per_user.get(h.username)
            if totals is None:
                continue
            totals.invested += h.total_invested
            totals.current_value += market_value(h)
            totals.symbols.add(h.symbol)

        # 3. 跨用户汇总 (Step 3: Sum across users)
        total_invested = sum(t.invested for t in per_user.values())
        total_current_value = sum(t.current_value for t in per_user.values())
        total_gain_loss = total_current_value - total_invested

        summary = PortfolioSummary(
            total_users=len(per_user),
            total_portfolios=sum(len(t.portfolio_ids) for t in per_user.values()),
            total_invested=total_invested,
            total_current_value=total_current_value,
            total_unrealized_gain_loss=total_gain_loss,
            unrealized_pl_pct=percent(total_gain_loss, total_invested),
            total_unique_stocks=sum(len(t.symbols) for t in per_user.values()),
        )
        if scope.username is not None and scope.username in per_user:
            summary.username = scope.username

        logger.debug(
            f"Summary scope={scope.model_dump()} users={summary.total_users} "
            f"value={total_current_value:.2f} invested={total_invested:.2f}"
        )
        return summary

    async def holdings(self, scope: Scope, sort_by: str = "value", search: Optional[str] = None) -> List[HoldingItem]:
        """
        持仓明细 (Holdings)
        - 默认按当前市值降序
        - sort_by=return 按收益率降序 (无价格的排最后)，sort_by=symbol 按代码升序
        - search 对代码、公司名、行业、组合名做不区分大小写的包含匹配
        """
        records = await self.source.list_holdings(scope)
        items = self._value_holdings(records)

        if search:
            needle = search.strip().lower()
            items = [
                i for i in items
                if needle in " ".join(
                    filter(None, [i.symbol, i.company_name, i.sector, i.portfolio_name])
                ).lower()
            ]

        return self._sort_holdings(items, sort_by)

    async def portfolios(self, scope: Scope) -> List[PortfolioOverview]:
        portfolios = await self.source.list_portfolios(scope)
        holdings = await self.source.list_holdings(scope)

        overviews = {
            p.portfolio_id: PortfolioOverview(
                portfolio_id=p.portfolio_id,
                portfolio_name=p.portfolio_name,
                description=p.description,
                username=p.username,
            )
            for p in portfolios
        }
        for h in holdings:
            overview = overviews.get(h.portfolio_id)
            if overview is None:
                continue
            overview.holdings_count += 1
            overview.total_invested += h.total_invested
            overview.current_value += market_value(h)

        for overview in overviews.values():
            overview.unrealized_gain_loss = overview.current_value - overview.total_invested
            overview.unrealized_pl_pct = percent(overview.unrealized_gain_loss, overview.total_invested)

        return sorted(overviews.values(), key=lambda o: (-o.current_value, o.portfolio_id))

    async def sector_allocation(self, scope: Scope) -> List[SectorAllocation]:
        records = await self.source.list_holdings(scope)
        return self._sector_rows(records)

    async def top_performers(self, limit: int = 10) -> List[PerformerItem]:
        """
        最佳表现 (Top Performers)：跨所有组合按股票代码分组，不受用户范围限制
        """
        rows = await self._performer_rows()
        rows.sort(key=lambda r: (-r.avg_return_pct, r.symbol))
        return rows[:limit]

    async def worst_performers(self, limit: int = 10) -> List[PerformerItem]:
        rows = await self._performer_rows()
        rows.sort(key=lambda r: (r.avg_return_pct, r.symbol))
        return rows[:limit]

    async def performance_series(
        self,
        scope: Scope,
        period: str = "6M",
        as_of: Optional[date] = None,
    ) -> List[PerformancePoint]:
        """
        组合市值时间序列 (Performance Series)

        注意：用当前持股数乘以历史收盘价，不追溯历史上的加减仓。
        窗口为 [as_of 回退 period, as_of]，按日期升序。
        """
        as_of = as_of or date.today()
        start = months_ago(as_of, PERIOD_MONTHS[period])

        records = await self.source.list_holdings(scope)
        if not records:
            return []

        # 同一股票可能出现在多个组合中：先合并持股数
        shares_by_stock: Dict[int, float] = {}
        for r in records:
            shares_by_stock[r.stock_id] = shares_by_stock.get(r.stock_id, 0.0) + r.shares_held
        invested = sum(r.total_invested for r in records)

        observations = await self.source.list_price_history(sorted(shares_by_stock), start, as_of)

        values_by_date: Dict[date, float] = {}
        for o in observations:
            shares = shares_by_stock.get(o.stock_id)
            if shares is None:
                continue
            values_by_date[o.price_date] = values_by_date.get(o.price_date, 0.0) + shares * o.close_price

        return [
            PerformancePoint(
                price_date=day,
                month_year=day.strftime("%Y-%m"),
                portfolio_value=value,
                invested_amount=invested,
            )
            for day, value in sorted(values_by_date.items())
        ]

    async def alerts(self, scope: Scope) -> List[PortfolioAlert]:
        """
        集中度与风险预警 (Concentration Alerts)
        1. 单一持仓占所在组合比例过高 (组合内至少两支股票时才判断)
        2. 单一持仓浮亏超过阈值
        3. 单一行业占比过高
        """
        records = await self.source.list_holdings(scope)
        items = self._value_holdings(records)

        holdings_per_portfolio: Dict[int, int] = {}
        for i in items:
            holdings_per_portfolio[i.portfolio_id] = holdings_per_portfolio.get(i.portfolio_id, 0) + 1

        alerts = []
        for i in items:
            if (
                holdings_per_portfolio[i.portfolio_id] > 1
                and i.portfolio_weight_pct > self.position_concentration_pct
            ):
                alerts.append(PortfolioAlert(
                    type="warning",
                    category="position_concentration",
                    message=(
                        f"{i.symbol} position exceeds {self.position_concentration_pct:g}% of "
                        f"{i.portfolio_name} - consider rebalancing"
                    ),
                    value=i.portfolio_weight_pct,
                    symbol=i.symbol,
                    sector=i.sector,
                    portfolio_name=i.portfolio_name,
                ))

            if i.unrealized_return_pct is not None and i.unrealized_return_pct < -self.loss_alert_pct:
                alerts.append(PortfolioAlert(
                    type="danger",
                    category="unrealized_loss",
                    message=f"{i.symbol} position has unrealized loss > {self.loss_alert_pct:g}%",
                    value=i.unrealized_return_pct,
                    symbol=i.symbol,
                    sector=i.sector,
                    portfolio_name=i.portfolio_name,
                ))

        for row in self._sector_rows(records):
            if row.percentage > self.sector_concentration_pct:
                alerts.append(PortfolioAlert(
                    type="warning",
                    category="sector_concentration",
                    message=(
                        f"{row.sector} sector allocation is {row.percentage:.1f}% - "
                        f"high concentration risk"
                    ),
                    value=row.percentage,
                    sector=row.sector,
                ))

        return alerts

    # ---------- 内部计算 (Internal helpers) ----------

    @staticmethod
    def _value_holdings(records: List[HoldingRecord]) -> List[HoldingItem]:
        """逐条估值并计算每条持仓在所属组合中的市值占比"""
        items = [value_holding(r) for r in records]

        portfolio_values: Dict[int, float] = {}
        for i in items:
            portfolio_values[i.portfolio_id] = portfolio_values.get(i.portfolio_id, 0.0) + i.current_market_value
        for i in items:
            i.portfolio_weight_pct = percent(i.current_market_value, portfolio_values[i.portfolio_id])

        return items

    @staticmethod
    def _sort_holdings(items: List[HoldingItem], sort_by: str) -> List[HoldingItem]:
        if sort_by == "symbol":
            return sorted(items, key=lambda i: (i.symbol, i.portfolio_id))
        if sort_by == "return":
            return sorted(items, key=lambda i: (
                i.unrealized_return_pct is None,
                -(i.unrealized_return_pct or 0.0),
                i.symbol,
            ))
        return sorted(items, key=lambda i: (-i.current_market_value, i.symbol, i.portfolio_id))

    @staticmethod
    def _sector_rows(records: List[HoldingRecord]) -> List[SectorAllocation]:
        """行业分布：占比的分母是同一范围内所有行业市值之和"""
        sector_values: Dict[str, float] = {}
        for r in records:
            sector = r.sector or UNKNOWN_SECTOR
            sector_values[sector] = sector_values.get(sector, 0.0) + market_value(r)

        total_value = sum(sector_values.values())
        rows = [
            SectorAllocation(sector=sector, sector_value=value, percentage=percent(value, total_value))
            for sector, value in sector_values.items()
        ]
        rows.sort(key=lambda r: (-r.sector_value, r.sector))
        return rows

    async def _performer_rows(self) -> List[PerformerItem]:
        """
        按代码分组：平均成本 = 各组合持仓均价的简单平均
        平均成本为 0 或没有最新价的股票收益率无定义，直接剔除
        """
        records = await self.source.list_holdings(Scope())

        by_symbol: Dict[str, _SymbolTotals] = {}
        for r in records:
            totals = by_symbol.get(r.symbol)
            if totals is None:
                totals = _SymbolTotals(
                    company_name=r.company_name,
                    sector=r.sector,
                    latest_price=r.latest_price,
                )
                by_symbol[r.symbol] = totals
            totals.purchase_prices.append(r.average_purchase_price)
            totals.portfolio_ids.add(r.portfolio_id)
            totals.market_value += market_value(r)

        rows = []
        for symbol, totals in by_symbol.items():
            if totals.latest_price is None:
                continue
            avg_cost = sum(totals.purchase_prices) / len(totals.purchase_prices)
            ratio = safe_ratio(totals.latest_price - avg_cost, avg_cost, default=None)
            if ratio is None:
                continue

            rows.append(PerformerItem(
                symbol=symbol,
                company_name=totals.company_name,
                sector=totals.sector,
                held_by_portfolios=len(totals.portfolio_ids),
                avg_purchase_price_all_portfolios=avg_cost,
                current_price=totals.latest_price,
                avg_return_pct=ratio * 100,
                total_market_value_all_portfolios=totals.market_value,
            ))
        return rows
