from pydantic import BaseModel
from typing import Optional
from datetime import date

# 数据访问层记录 (Data Access Records)
# 数据源 (SQL / 内存样例) 统一返回这些只读结构，聚合引擎只依赖它们，不接触 ORM 对象。

class Scope(BaseModel):
    """查询范围：都为空代表全部用户；两个条件同时给出时按 AND 组合"""
    username: Optional[str] = None
    portfolio_id: Optional[int] = None

class UserRecord(BaseModel):
    user_id: int
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    pan_number: Optional[str] = None
    phone_number: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

class PortfolioRecord(BaseModel):
    portfolio_id: int
    portfolio_name: str
    description: Optional[str] = None
    user_id: int
    username: str

class StockRecord(BaseModel):
    stock_id: int
    symbol: str
    company_name: str
    sector: Optional[str] = None
    exchange: Optional[str] = "NSE"
    market_cap_category: Optional[str] = None

class PositionRecord(BaseModel):
    """原始持仓行（未联表），内存数据源使用"""
    holding_id: int
    portfolio_id: int
    stock_id: int
    shares_held: float
    average_purchase_price: float

class HoldingRecord(BaseModel):
    """一条持仓，已联表带出股票资料和该股票的最新收盘价（可能缺失）"""
    holding_id: int
    portfolio_id: int
    portfolio_name: str
    user_id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    stock_id: int
    symbol: str
    company_name: str
    sector: Optional[str] = None
    exchange: Optional[str] = None
    market_cap_category: Optional[str] = None
    shares_held: float
    average_purchase_price: float
    latest_price: Optional[float] = None
    latest_price_date: Optional[date] = None

    @property
    def total_invested(self) -> float:
        return self.shares_held * self.average_purchase_price

class PriceObservation(BaseModel):
    stock_id: int
    symbol: str
    price_date: date
    close_price: float
