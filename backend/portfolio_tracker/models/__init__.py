from portfolio_tracker.models.user import User
from portfolio_tracker.models.stock import Stock, StockPrice
from portfolio_tracker.models.portfolio import Portfolio, Holding
