from sqlalchemy import Column, Integer, String, Float, Date, BigInteger, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from portfolio_tracker.core.database import Base

# 股票基础信息表：共享的只读参考数据 (symbol 唯一)
class Stock(Base):
    __tablename__ = "stocks"

    stock_id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String(20), unique=True, index=True, nullable=False) # 如 TCS, RELIANCE
    company_name = Column(String(255), nullable=False)
    sector = Column(String(100), nullable=True)              # 如 Information Technology
    exchange = Column(String(10), default="NSE")             # NSE / BSE
    market_cap_category = Column(String(20), nullable=True)  # Large Cap / Mid Cap / Small Cap

    prices = relationship("StockPrice", back_populates="stock", cascade="all, delete-orphan")
    holdings = relationship("Holding", back_populates="stock")


# 日线价格表：每支股票每天一条记录，只追加、不修改
# 估值时只使用 price_date 最大的那一条（最新收盘价）
class StockPrice(Base):
    __tablename__ = "stock_prices"

    price_id = Column(Integer, primary_key=True, autoincrement=True)
    stock_id = Column(Integer, ForeignKey("stocks.stock_id"), nullable=False, index=True)
    price_date = Column(Date, nullable=False, index=True)
    open_price = Column(Float, nullable=True)
    high_price = Column(Float, nullable=True)
    low_price = Column(Float, nullable=True)
    close_price = Column(Float, nullable=False)
    volume = Column(BigInteger, nullable=True)

    __table_args__ = (
        UniqueConstraint('stock_id', 'price_date', name='uq_stock_prices_stock_date'),
    )

    stock = relationship("Stock", back_populates="prices")
