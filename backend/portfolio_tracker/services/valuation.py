import calendar
from typing import Optional
from datetime import date

from portfolio_tracker.schemas.records import HoldingRecord
from portfolio_tracker.schemas.portfolio import HoldingItem

# 估值基础函数 (Valuation Primitives)
# 所有百分比计算都经过 safe_ratio，分母为 0 时返回约定的默认值，而不是抛出 ZeroDivisionError。


def safe_ratio(numerator: float, denominator: Optional[float], default: Optional[float] = 0.0) -> Optional[float]:
    """分母为 0 或缺失时返回 default"""
    if not denominator:
        return default
    return numerator / denominator


def percent(numerator: float, denominator: Optional[float], default: Optional[float] = 0.0) -> Optional[float]:
    ratio = safe_ratio(numerator, denominator, default=None)
    if ratio is None:
        return default
    return ratio * 100


def market_value(record: HoldingRecord) -> float:
    """当前市值；没有最新价的持仓按 0 计入"""
    if record.latest_price is None:
        return 0.0
    return record.shares_held * record.latest_price


def value_holding(record: HoldingRecord) -> HoldingItem:
    """
    单条持仓估值 (Value a Single Holding)
    - 市值 = 数量 * 最新价
    - 未实现盈亏 = 市值 - 投入本金
    - 收益率 = 盈亏 / 本金 * 100；本金为 0 时为 0
    - 缺少最新价时，价格、盈亏、收益率均为 None，市值为 0
    """
    invested = record.total_invested
    current_value = market_value(record)

    gain_loss = None
    return_pct = None
    if record.latest_price is not None:
        gain_loss = current_value - invested
        return_pct = percent(gain_loss, invested)

    return HoldingItem(
        holding_id=record.holding_id,
        portfolio_id=record.portfolio_id,
        portfolio_name=record.portfolio_name,
        username=record.username,
        first_name=record.first_name,
        last_name=record.last_name,
        symbol=record.symbol,
        company_name=record.company_name,
        sector=record.sector,
        exchange=record.exchange,
        market_cap_category=record.market_cap_category,
        shares_held=record.shares_held,
        average_purchase_price=record.average_purchase_price,
        total_invested=invested,
        current_price=record.latest_price,
        price_date=record.latest_price_date,
        current_market_value=current_value,
        unrealized_gain_loss=gain_loss,
        unrealized_return_pct=return_pct,
    )


def months_ago(day: date, months: int) -> date:
    """按自然月回退；目标月份天数不足时取月末 (3/31 回退 1 个月 -> 2/28)"""
    month_index = day.year * 12 + (day.month - 1) - months
    # 早于公元 1 年 1 月时截断到 date.min
    if month_index < 12:
        return date.min
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))
