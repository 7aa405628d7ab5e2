from datetime import date
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from portfolio_tracker import main
from portfolio_tracker.main import app
from portfolio_tracker.api.deps import get_data_source, get_scope
from portfolio_tracker.core.exceptions import DataSourceError
from portfolio_tracker.schemas.records import Scope
from portfolio_tracker.services.data_sources import PortfolioDataSource


class BrokenDataSource(PortfolioDataSource):
    """模拟存储层不可用 (Simulates an unavailable store)"""

    async def list_users(self, username: Optional[str] = None) -> List:
        raise DataSourceError("list_users", ConnectionError("database is locked"))

    async def list_portfolios(self, scope: Scope) -> List:
        raise DataSourceError("list_portfolios", ConnectionError("database is locked"))

    async def list_holdings(self, scope: Scope) -> List:
        raise DataSourceError("list_holdings", ConnectionError("database is locked"))

    async def list_price_history(self, stock_ids: List[int], start: date, end: date) -> List:
        raise DataSourceError("list_price_history", ConnectionError("database is locked"))


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert "timestamp" in data

    # 根路径 /health 与 /api/health 返回结构相同
    root_data = client.get("/health").json()
    assert set(root_data) == set(data)
    assert root_data["status"] == "OK"


def test_shutdown_releases_database(monkeypatch):
    """应用关闭时释放连接池 (Engine is disposed on shutdown)"""
    calls = []

    async def fake_close_db():
        calls.append("closed")

    monkeypatch.setattr(main, "close_db", fake_close_db)
    with TestClient(app) as test_client:
        test_client.get("/")
        assert calls == []
    assert calls == ["closed"]


def test_root(client):
    data = client.get("/").json()
    assert data["currency"] == "INR"
    assert data["docs"] == "/docs"


def test_request_timing_header(client):
    response = client.get("/api/users")
    assert response.status_code == 200
    assert response.headers["X-Process-Time"].endswith("ms")


def test_users(client):
    response = client.get("/api/users")
    assert response.status_code == 200
    users = response.json()
    assert len(users) == 5
    assert users[0]["username"] == "raj_investor"
    assert users[0]["city"] == "Mumbai"


def test_portfolio_summary_all_users(client):
    response = client.get("/api/portfolio-summary")
    assert response.status_code == 200
    data = response.json()
    assert data["username"] is None
    assert data["total_users"] == 5
    assert data["total_portfolios"] == 7
    assert data["total_invested"] == pytest.approx(3208550.0)
    assert data["total_current_value"] == pytest.approx(3216742.5)


def test_portfolio_summary_for_user(client):
    data = client.get("/api/portfolio-summary", params={"username": "priya_trader"}).json()
    assert data["username"] == "priya_trader"
    assert data["total_portfolios"] == 1
    assert data["total_invested"] == pytest.approx(840500.0)
    assert data["total_unique_stocks"] == 2


def test_portfolio_summary_unknown_user(client):
    response = client.get("/api/portfolio-summary", params={"username": "nobody"})
    assert response.status_code == 200
    assert response.json()["total_users"] == 0


def test_empty_username_means_all_users():
    """前端 "All Users" 选项传空字符串"""
    assert get_scope(username="", portfolio_id=None) == Scope()
    assert get_scope(username="  ", portfolio_id=None) == Scope()
    assert get_scope(username=" raj_investor ", portfolio_id=3) == Scope(username="raj_investor", portfolio_id=3)


def test_holdings_filters_and_sort(client):
    response = client.get("/api/holdings", params={"username": "raj_investor", "sort_by": "symbol"})
    assert response.status_code == 200
    items = response.json()
    assert [i["symbol"] for i in items] == ["INFY", "TCS"]
    tcs = items[1]
    assert tcs["total_invested"] == pytest.approx(205000.0)
    assert tcs["current_market_value"] == pytest.approx(208265.0)
    assert tcs["unrealized_gain_loss"] == pytest.approx(3265.0)
    assert tcs["price_date"] == "2024-06-30"


def test_holdings_search(client):
    items = client.get("/api/holdings", params={"search": "reliance"}).json()
    assert [i["symbol"] for i in items] == ["RELIANCE"]


def test_portfolios(client):
    items = client.get("/api/portfolios", params={"username": "raj_investor"}).json()
    assert [i["portfolio_name"] for i in items] == ["Tech Focus Portfolio", "Dividend Income Portfolio"]
    assert items[1]["holdings_count"] == 0


def test_sector_allocation(client):
    rows = client.get("/api/sector-allocation").json()
    assert rows[0]["sector"] == "Financial Services"
    assert sum(r["percentage"] for r in rows) == pytest.approx(100.0)


def test_top_and_worst_performers(client):
    top = client.get("/api/top-performers", params={"limit": 3}).json()
    assert [r["symbol"] for r in top] == ["MARUTI", "INFY", "RELIANCE"]

    worst = client.get("/api/worst-performers", params={"limit": 1}).json()
    assert [r["symbol"] for r in worst] == ["TATAMOTORS"]


def test_top_performers_default_limit(client):
    rows = client.get("/api/top-performers").json()
    assert len(rows) == 9


def test_performance(client):
    response = client.get("/api/performance", params={"period": "3M", "as_of": "2024-06-30"})
    assert response.status_code == 200
    points = response.json()
    assert len(points) == 4
    assert points[-1]["month_year"] == "2024-06"
    assert points[-1]["portfolio_value"] == pytest.approx(3216742.5)


def test_performance_far_past_as_of(client):
    """极早的 as_of 不应导致 500，窗口内没有价格时返回空列表"""
    response = client.get("/api/performance", params={"period": "1M", "as_of": "0001-01-15"})
    assert response.status_code == 200
    assert response.json() == []


def test_performance_default_period(client):
    points = client.get("/api/performance", params={"as_of": "2024-06-30"}).json()
    assert len(points) == 6


def test_alerts(client):
    alerts = client.get("/api/alerts", params={"portfolio_id": 3}).json()
    categories = {a["category"] for a in alerts}
    assert "position_concentration" in categories
    assert all(a["portfolio_name"] in (None, "Growth Portfolio") for a in alerts)


@pytest.mark.parametrize("path, params", [
    ("/api/holdings", {"portfolio_id": 0}),
    ("/api/holdings", {"portfolio_id": "abc"}),
    ("/api/holdings", {"sort_by": "price"}),
    ("/api/performance", {"period": "2Y"}),
    ("/api/performance", {"as_of": "not-a-date"}),
    ("/api/top-performers", {"limit": 0}),
    ("/api/top-performers", {"limit": 101}),
])
def test_invalid_query_parameters(client, path, params):
    response = client.get(path, params=params)
    assert response.status_code == 422


def test_data_source_failure_returns_500():
    """存储层异常：对外只返回通用 500，不泄露细节"""
    app.dependency_overrides[get_data_source] = lambda: BrokenDataSource()
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/portfolio-summary")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "locked" not in response.text
