import asyncio
from datetime import date

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from portfolio_tracker.core.database import Base
from portfolio_tracker.core.exceptions import DataSourceError
from portfolio_tracker.models import User, Stock, StockPrice, Portfolio, Holding
from portfolio_tracker.schemas.records import Scope
from portfolio_tracker.services.aggregation import AggregationEngine
from portfolio_tracker.services.data_sources import SqlDataSource


def seed_rows():
    """两位用户、三个组合、三支股票；WIPRO 没有任何价格记录"""
    return [
        User(user_id=1, username="raj_investor", first_name="Raj", last_name="Sharma", city="Mumbai"),
        User(user_id=2, username="priya_trader", first_name="Priya", last_name="Patel"),
        Stock(stock_id=1, symbol="TCS", company_name="Tata Consultancy Services Limited",
              sector="Information Technology", market_cap_category="Large Cap"),
        Stock(stock_id=2, symbol="ICICIBANK", company_name="ICICI Bank Limited", sector="Financial Services"),
        Stock(stock_id=3, symbol="WIPRO", company_name="Wipro Limited", sector="Information Technology"),
        # 故意乱序插入，最新价必须按 price_date 取
        StockPrice(stock_id=1, price_date=date(2024, 6, 28), close_price=4165.30),
        StockPrice(stock_id=1, price_date=date(2024, 5, 31), close_price=4120.40),
        StockPrice(stock_id=1, price_date=date(2024, 4, 30), close_price=4072.80),
        StockPrice(stock_id=2, price_date=date(2024, 5, 31), close_price=1312.00),
        StockPrice(stock_id=2, price_date=date(2024, 6, 28), close_price=1320.50),
        Portfolio(portfolio_id=1, user_id=1, portfolio_name="Tech Focus Portfolio"),
        Portfolio(portfolio_id=2, user_id=1, portfolio_name="Dividend Income Portfolio"),
        Portfolio(portfolio_id=3, user_id=2, portfolio_name="Growth Portfolio"),
        Holding(holding_id=1, portfolio_id=1, stock_id=1, shares_held=50, average_purchase_price=4100.0),
        Holding(holding_id=2, portfolio_id=1, stock_id=3, shares_held=120, average_purchase_price=480.0),
        Holding(holding_id=3, portfolio_id=3, stock_id=2, shares_held=200, average_purchase_price=1285.0),
    ]


def with_seeded_source(tmp_path, check):
    """建库 -> 写入样例 -> 在同一个事件循环里执行 check(source)"""
    async def scenario():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'portfolio_test.db'}")
        session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            async with session_factory() as db:
                db.add_all(seed_rows())
                await db.commit()
            async with session_factory() as db:
                return await check(SqlDataSource(db))
        finally:
            await engine.dispose()

    return asyncio.run(scenario())


def test_list_users(tmp_path):
    async def check(source):
        return await source.list_users(), await source.list_users("priya_trader")

    everyone, priya = with_seeded_source(tmp_path, check)
    assert [u.username for u in everyone] == ["raj_investor", "priya_trader"]
    assert everyone[0].city == "Mumbai"
    assert [u.user_id for u in priya] == [2]


def test_latest_price_selection(tmp_path):
    async def check(source):
        return await source.list_holdings(Scope(username="raj_investor"))

    records = with_seeded_source(tmp_path, check)
    by_symbol = {r.symbol: r for r in records}

    assert set(by_symbol) == {"TCS", "WIPRO"}
    assert by_symbol["TCS"].latest_price == pytest.approx(4165.30)
    assert by_symbol["TCS"].latest_price_date == date(2024, 6, 28)
    assert by_symbol["TCS"].portfolio_name == "Tech Focus Portfolio"
    # 没有价格记录的股票依然返回，价格为空
    assert by_symbol["WIPRO"].latest_price is None
    assert by_symbol["WIPRO"].latest_price_date is None


def test_scope_filters(tmp_path):
    async def check(source):
        return (
            await source.list_portfolios(Scope()),
            await source.list_portfolios(Scope(username="raj_investor")),
            await source.list_holdings(Scope(portfolio_id=3)),
            await source.list_holdings(Scope(username="raj_investor", portfolio_id=3)),
        )

    all_portfolios, raj_portfolios, growth, mismatch = with_seeded_source(tmp_path, check)
    assert [p.portfolio_id for p in all_portfolios] == [1, 2, 3]
    assert [p.portfolio_name for p in raj_portfolios] == ["Tech Focus Portfolio", "Dividend Income Portfolio"]
    assert [h.symbol for h in growth] == ["ICICIBANK"]
    assert growth[0].username == "priya_trader"
    assert mismatch == []


def test_price_history_range_is_inclusive(tmp_path):
    async def check(source):
        return (
            await source.list_price_history([1, 2], date(2024, 5, 31), date(2024, 6, 28)),
            await source.list_price_history([], date(2024, 1, 1), date(2024, 12, 31)),
        )

    history, empty = with_seeded_source(tmp_path, check)
    assert [(o.price_date, o.symbol) for o in history] == [
        (date(2024, 5, 31), "TCS"),
        (date(2024, 5, 31), "ICICIBANK"),
        (date(2024, 6, 28), "TCS"),
        (date(2024, 6, 28), "ICICIBANK"),
    ]
    assert empty == []


def test_engine_on_sql_source(tmp_path):
    """聚合引擎在 SQL 数据源上的结果与内存实现口径一致"""
    async def check(source):
        engine = AggregationEngine(source)
        return (
            await engine.portfolio_summary(Scope(username="raj_investor")),
            await engine.performance_series(Scope(portfolio_id=1), period="1M", as_of=date(2024, 6, 28)),
        )

    summary, points = with_seeded_source(tmp_path, check)
    assert summary.total_portfolios == 2
    assert summary.total_invested == pytest.approx(205000.0 + 57600.0)
    # WIPRO 缺价：计入本金，市值为 0
    assert summary.total_current_value == pytest.approx(208265.0)
    assert summary.total_unrealized_gain_loss == pytest.approx(208265.0 - 262600.0)
    assert [p.price_date for p in points] == [date(2024, 5, 31), date(2024, 6, 28)]


def test_query_failure_raises_data_source_error(tmp_path):
    """表不存在等数据库错误统一包装为 DataSourceError"""
    async def scenario():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        try:
            async with session_factory() as db:
                await SqlDataSource(db).list_holdings(Scope())
        finally:
            await engine.dispose()

    with pytest.raises(DataSourceError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.operation == "list_holdings"
    assert exc_info.value.cause is not None
