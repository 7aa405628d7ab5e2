from datetime import date

import pytest
from fastapi.testclient import TestClient

from portfolio_tracker.main import app
from portfolio_tracker.api.deps import get_data_source
from portfolio_tracker.schemas.records import (
    UserRecord, PortfolioRecord, StockRecord, PositionRecord, PriceObservation
)
from portfolio_tracker.services.aggregation import AggregationEngine
from portfolio_tracker.services.data_sources import InMemoryDataSource, build_sample_data_source

# 固定 "今天"，保证样例价格日期与业绩窗口可复现
TODAY = date(2024, 6, 30)


@pytest.fixture
def sample_source():
    """内置印度市场样例数据 (Built-in sample dataset)"""
    return build_sample_data_source(today=TODAY)


@pytest.fixture
def sample_engine(sample_source):
    return AggregationEngine(sample_source)


@pytest.fixture
def edge_source():
    """
    边界场景数据集 (Edge-case dataset)
    - alice：同一股票 (ACME) 出现在两个组合中
    - bob：持有一支没有任何价格记录的股票 (NOPX)，以及一支成本为 0 的赠股 (GIFT)
    - carol：没有任何组合
    """
    users = [
        UserRecord(user_id=1, username="alice", first_name="Alice"),
        UserRecord(user_id=2, username="bob", first_name="Bob"),
        UserRecord(user_id=3, username="carol", first_name="Carol"),
    ]
    portfolios = [
        PortfolioRecord(portfolio_id=10, portfolio_name="Core", user_id=1, username="alice"),
        PortfolioRecord(portfolio_id=11, portfolio_name="Satellite", user_id=1, username="alice"),
        PortfolioRecord(portfolio_id=20, portfolio_name="Odd Lots", user_id=2, username="bob"),
    ]
    stocks = [
        StockRecord(stock_id=1, symbol="ACME", company_name="Acme Corp", sector="Industrials"),
        StockRecord(stock_id=2, symbol="NOPX", company_name="No Price Ltd", sector="Energy"),
        StockRecord(stock_id=3, symbol="GIFT", company_name="Gifted Shares Ltd", sector=None),
    ]
    positions = [
        PositionRecord(holding_id=100, portfolio_id=10, stock_id=1, shares_held=10, average_purchase_price=100.0),
        PositionRecord(holding_id=101, portfolio_id=11, stock_id=1, shares_held=5, average_purchase_price=140.0),
        PositionRecord(holding_id=200, portfolio_id=20, stock_id=2, shares_held=7, average_purchase_price=50.0),
        PositionRecord(holding_id=201, portfolio_id=20, stock_id=3, shares_held=4, average_purchase_price=0.0),
    ]
    prices = [
        PriceObservation(stock_id=1, symbol="ACME", price_date=date(2024, 4, 30), close_price=110.0),
        PriceObservation(stock_id=1, symbol="ACME", price_date=date(2024, 5, 31), close_price=115.0),
        PriceObservation(stock_id=1, symbol="ACME", price_date=date(2024, 6, 28), close_price=120.0),
        PriceObservation(stock_id=3, symbol="GIFT", price_date=date(2024, 6, 28), close_price=25.0),
    ]
    return InMemoryDataSource(
        users=users, portfolios=portfolios, stocks=stocks, positions=positions, prices=prices
    )


@pytest.fixture
def edge_engine(edge_source):
    return AggregationEngine(edge_source)


@pytest.fixture
def client(sample_source):
    """TestClient：数据源替换为固定日期的样例数据，不连接数据库"""
    app.dependency_overrides[get_data_source] = lambda: sample_source
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
