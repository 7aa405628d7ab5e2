from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime

class UserOut(BaseModel):
    user_id: int
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    pan_number: Optional[str] = None
    phone_number: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

class PortfolioSummary(BaseModel):
    username: Optional[str] = None  # 仅在按用户查询时返回
    total_users: int = 0
    total_portfolios: int = 0
    total_invested: float = 0.0
    total_current_value: float = 0.0
    total_unrealized_gain_loss: float = 0.0
    unrealized_pl_pct: float = 0.0
    total_unique_stocks: int = 0

class HoldingItem(BaseModel):
    holding_id: int
    portfolio_id: int
    portfolio_name: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    # 股票资料
    symbol: str
    company_name: str
    sector: Optional[str] = None
    exchange: Optional[str] = None
    market_cap_category: Optional[str] = None

    # 持仓与估值
    shares_held: float
    average_purchase_price: float
    total_invested: float
    current_price: Optional[float] = None       # 无价格时为 null
    price_date: Optional[date] = None
    current_market_value: float = 0.0
    unrealized_gain_loss: Optional[float] = None
    unrealized_return_pct: Optional[float] = None
    portfolio_weight_pct: float = 0.0           # 在所属组合中的市值占比

class PortfolioOverview(BaseModel):
    portfolio_id: int
    portfolio_name: str
    description: Optional[str] = None
    username: str
    holdings_count: int = 0
    total_invested: float = 0.0
    current_value: float = 0.0
    unrealized_gain_loss: float = 0.0
    unrealized_pl_pct: float = 0.0

class SectorAllocation(BaseModel):
    sector: str
    sector_value: float
    percentage: float

class PerformerItem(BaseModel):
    symbol: str
    company_name: str
    sector: Optional[str] = None
    held_by_portfolios: int
    avg_purchase_price_all_portfolios: float
    current_price: float
    avg_return_pct: float
    total_market_value_all_portfolios: float

class PerformancePoint(BaseModel):
    price_date: date
    month_year: str  # YYYY-MM，用于图表横轴分组
    portfolio_value: float
    invested_amount: float

class PortfolioAlert(BaseModel):
    type: str       # warning / danger
    category: str   # position_concentration / unrealized_loss / sector_concentration
    message: str
    value: float
    symbol: Optional[str] = None
    sector: Optional[str] = None
    portfolio_name: Optional[str] = None

class HealthStatus(BaseModel):
    status: str
    timestamp: datetime
